"""Storage substrate abstraction.

Every component above this module talks to a ``StorageBackend``; the concrete
backend is chosen once when the engine is constructed. Two backends ship:

- ``LocalStorage``: the local disk, blocking calls moved off the event loop
  with ``asyncio.to_thread`` and native notifications through watchdog.
- ``MemoryStorage``: an in-memory tree without native notifications, so the
  scheduler falls back to polling. Used for embedding and tests.
"""

import asyncio
import os
import posixpath
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

# callback(event_type, path); may be invoked from a watcher thread
WatchCallback = Callable[[str, str], None]
CancelHandle = Callable[[], None]


@dataclass(frozen=True)
class DirEntry:
    """One entry of a directory listing."""

    name: str
    is_directory: bool


@dataclass(frozen=True)
class FileStat:
    """Subset of stat information the tracker relies on."""

    is_directory: bool
    size: int
    modified_time: float


@runtime_checkable
class StorageBackend(Protocol):
    """Capabilities the tracker and scheduler need from a storage substrate."""

    def join(self, parent: str, name: str) -> str: ...

    def resolve(self, path: str) -> str: ...

    async def read_file(self, path: str) -> str: ...

    async def write_file(self, path: str, content: str) -> bool: ...

    async def list_directory(self, path: str) -> list[DirEntry]: ...

    async def stat(self, path: str) -> FileStat: ...

    def watch(self, path: str, callback: WatchCallback, recursive: bool = True) -> CancelHandle:
        """Subscribe to change notifications; raise NotImplementedError when unsupported."""
        ...


class _ForwardingHandler(FileSystemEventHandler):
    """Forward watchdog events to a plain callback."""

    def __init__(self, callback: WatchCallback, skip_directory_modified: bool = False):
        super().__init__()
        self.callback = callback
        self.skip_directory_modified = skip_directory_modified

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed_no_write"):
            return
        # Under a recursive watch every changed entry gets its own event, so the
        # parent directory's "modified" echo carries nothing new
        if self.skip_directory_modified and event.is_directory and event.event_type == "modified":
            return
        self.callback(event.event_type, os.fsdecode(event.src_path))
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            self.callback(event.event_type, os.fsdecode(dest_path))


class LocalStorage:
    """Storage backend over the local filesystem."""

    def join(self, parent: str, name: str) -> str:
        return os.path.join(parent, name)

    def resolve(self, path: str) -> str:
        return os.path.realpath(os.path.abspath(path))

    async def read_file(self, path: str) -> str:
        return await asyncio.to_thread(self._read, path)

    async def write_file(self, path: str, content: str) -> bool:
        try:
            await asyncio.to_thread(self._write, path, content)
            return True
        except OSError as e:
            print(f"Warning: Failed to write {path}: {e}", file=sys.stderr)
            return False

    async def list_directory(self, path: str) -> list[DirEntry]:
        return await asyncio.to_thread(self._list, path)

    async def stat(self, path: str) -> FileStat:
        st = await asyncio.to_thread(os.stat, path)
        return FileStat(
            is_directory=os.path.isdir(path),
            size=st.st_size,
            modified_time=st.st_mtime,
        )

    def watch(self, path: str, callback: WatchCallback, recursive: bool = True) -> CancelHandle:
        observer = Observer()
        observer.schedule(
            _ForwardingHandler(callback, skip_directory_modified=recursive), path, recursive=recursive
        )
        observer.daemon = True
        observer.start()

        def shutdown() -> None:
            observer.stop()
            observer.join(timeout=2)

        def cancel() -> None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                shutdown()
                return
            # Joining blocks; keep it off the event loop
            loop.run_in_executor(None, shutdown)

        return cancel

    @staticmethod
    def _read(path: str) -> str:
        # Undecodable bytes are replaced so binary files are still tracked
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read()

    @staticmethod
    def _write(path: str, content: str) -> None:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)

    @staticmethod
    def _list(path: str) -> list[DirEntry]:
        with os.scandir(path) as it:
            entries = [DirEntry(name=entry.name, is_directory=entry.is_dir()) for entry in it]
        return sorted(entries, key=lambda e: e.name)


class MemoryStorage:
    """In-memory storage backend with POSIX-style paths.

    Directories are implicit parents of files unless created explicitly.
    Paths registered through ``deny`` raise PermissionError on access.
    """

    def __init__(self, files: dict[str, str] | None = None):
        self._files: dict[str, tuple[str, float]] = {}
        self._dirs: set[str] = {"/"}
        self._denied: set[str] = set()
        for path, content in (files or {}).items():
            self.put(path, content)

    # Test and embedding helpers

    def put(self, path: str, content: str) -> None:
        """Create or replace a file, creating parent directories."""
        path = self.resolve(path)
        self._files[path] = (content, time.time())
        self.mkdir(posixpath.dirname(path))

    def mkdir(self, path: str) -> None:
        path = self.resolve(path)
        while path not in self._dirs:
            self._dirs.add(path)
            path = posixpath.dirname(path)

    def remove(self, path: str) -> None:
        """Remove a file, or a directory and everything below it."""
        path = self.resolve(path)
        self._files.pop(path, None)
        prefix = path.rstrip("/") + "/"
        for file_path in [p for p in self._files if p.startswith(prefix)]:
            del self._files[file_path]
        self._dirs = {d for d in self._dirs if d != path and not d.startswith(prefix)}

    def deny(self, path: str) -> None:
        """Make a path raise PermissionError on read, list and stat."""
        self._denied.add(self.resolve(path))

    # StorageBackend

    def join(self, parent: str, name: str) -> str:
        return posixpath.join(parent, name)

    def resolve(self, path: str) -> str:
        return posixpath.normpath(posixpath.join("/", path))

    async def read_file(self, path: str) -> str:
        path = self._check(path)
        if path not in self._files:
            if path in self._dirs:
                raise IsADirectoryError(path)
            raise FileNotFoundError(path)
        return self._files[path][0]

    async def write_file(self, path: str, content: str) -> bool:
        path = self.resolve(path)
        if path in self._denied or path in self._dirs:
            return False
        self.put(path, content)
        return True

    async def list_directory(self, path: str) -> list[DirEntry]:
        path = self._check(path)
        if path not in self._dirs:
            raise NotADirectoryError(path) if path in self._files else FileNotFoundError(path)

        entries: dict[str, bool] = {}
        for dir_path in self._dirs:
            if dir_path != path and posixpath.dirname(dir_path) == path:
                entries[posixpath.basename(dir_path)] = True
        for file_path in self._files:
            if posixpath.dirname(file_path) == path:
                entries[posixpath.basename(file_path)] = False
        return [DirEntry(name=name, is_directory=is_dir) for name, is_dir in sorted(entries.items())]

    async def stat(self, path: str) -> FileStat:
        path = self._check(path)
        if path in self._files:
            content, modified = self._files[path]
            return FileStat(is_directory=False, size=len(content.encode("utf-8")), modified_time=modified)
        if path in self._dirs:
            return FileStat(is_directory=True, size=0, modified_time=0.0)
        raise FileNotFoundError(path)

    def watch(self, path: str, callback: WatchCallback, recursive: bool = True) -> CancelHandle:
        raise NotImplementedError("MemoryStorage has no native change notifications")

    def _check(self, path: str) -> str:
        path = self.resolve(path)
        if path in self._denied:
            raise PermissionError(f"Permission denied: {path}")
        return path
