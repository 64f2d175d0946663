"""File tracker: the live view of a project tree.

The tracker owns the ``TrackedFile`` map and the dependency graph, and feeds
the command registry with descriptors from the synthesizer. Every mutation
runs under one ``asyncio.Lock``. A generation counter is bumped whenever
tracking stops, so reads that finish after ``stop`` are dropped instead of
committed.
"""

import asyncio
import hashlib
import posixpath
import sys
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from ..commands.actions import ActionServices
from ..commands.manifest import manifest_commands
from ..commands.models import CommandDescriptor
from ..commands.registry import CommandRegistry
from ..commands.synthesizer import CommandSynthesizer, file_context
from ..constants import TemplateScope
from ..core.analyzer import Analyzer, BasicAnalyzer
from ..core.classifier import Classifier, ExtensionClassifier
from ..core.patterns import has_ignored_component, is_ignored_name, matches_exclude_pattern
from ..core.storage import StorageBackend
from ..indexing.extractor import extract_dependencies
from ..indexing.graph import DependencyGraph
from ..schemas.config import CmdTrackConfig


@dataclass(frozen=True)
class TrackedFile:
    """Snapshot of one tracked file. Replaced, never mutated, on change."""

    path: str
    language: str
    content: str
    checksum: str
    size: int
    modified_time: float | None
    command_names: tuple[str, ...] = ()
    relative_path: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "relative_path": self.relative_path,
            "language": self.language,
            "size": self.size,
            "checksum": self.checksum,
            "modified_time": self.modified_time,
            "is_empty": self.is_empty,
            "commands": list(self.command_names),
        }


def content_checksum(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8", errors="replace")).hexdigest()


class FileTracker:
    """Discovers, reads and indexes the files under a root directory."""

    def __init__(
        self,
        storage: StorageBackend,
        registry: CommandRegistry,
        classifier: Classifier | None = None,
        analyzer: Analyzer | None = None,
        config: CmdTrackConfig | None = None,
    ):
        self.storage = storage
        self.registry = registry
        self.classifier = classifier or ExtensionClassifier()
        self.config = config or CmdTrackConfig()
        self.graph = DependencyGraph()
        self.services = ActionServices(
            storage=storage,
            graph=self.graph,
            analyzer=analyzer or BasicAnalyzer(),
            on_file_written=self.track_file,
            command_timeout=self.config.command_timeout,
        )
        self.root: str | None = None
        self.synthesizer = CommandSynthesizer(self.services)
        self._files: dict[str, TrackedFile] = {}
        self._lock = asyncio.Lock()
        self._generation = 0
        self._active = False

    # Session lifecycle

    @property
    def active(self) -> bool:
        return self._active

    @property
    def files(self) -> MappingProxyType:
        return MappingProxyType(self._files)

    def begin(self, root: str, config: CmdTrackConfig | None = None) -> None:
        """Start a fresh session rooted at ``root``, discarding previous state."""
        self.halt()
        self.reset()
        if config is not None:
            self.config = config
            self.services.command_timeout = config.command_timeout
        self.root = root
        self.graph.root = root
        self.synthesizer = CommandSynthesizer(self.services, root)
        self._active = True

    def halt(self) -> None:
        """Stop committing results; in-flight reads from this session are discarded."""
        self._generation += 1
        self._active = False

    def reset(self) -> None:
        """Drop every tracked file together with its commands and graph node."""
        for path in list(self._files):
            self.registry.unregister_owned(path)
        self._files.clear()
        self.graph.clear()

    # Path policy

    def _normalized(self, path: str) -> str:
        return path.replace("\\", "/").rstrip("/")

    def relative(self, path: str) -> str | None:
        """Root-relative POSIX path; "" for the root, None for paths outside it."""
        if self.root is None:
            return None
        root = self._normalized(self.root)
        normalized = self._normalized(path)
        if normalized == root:
            return ""
        if normalized.startswith(root + "/") or root == "":
            return normalized[len(root):].lstrip("/")
        return None

    def _depth(self, relative: str) -> int:
        # Entries directly under the root are at depth 0
        return relative.count("/")

    def accepts_file(self, path: str) -> bool:
        relative = self.relative(path)
        if not relative:
            return False
        if has_ignored_component(relative, self.config.ignore_dirs):
            return False
        if self._depth(relative) > self.config.max_depth:
            return False
        return not matches_exclude_pattern(relative, self.config.exclude)

    def accepts_directory(self, path: str) -> bool:
        relative = self.relative(path)
        if relative is None:
            return False
        if relative == "":
            return True
        parts = relative.split("/")
        if any(is_ignored_name(part, self.config.ignore_dirs) for part in parts):
            return False
        return len(parts) - 1 < self.config.max_depth

    def _is_under(self, path: str, directory: str) -> bool:
        prefix = self._normalized(directory) + "/"
        return self._normalized(path).startswith(prefix)

    # Discovery

    async def _discover(self, directory: str) -> list[str]:
        """List every acceptable file below ``directory``, pruning ignored subtrees."""
        found = []
        pending = [directory]
        while pending:
            current = pending.pop()
            try:
                entries = await self.storage.list_directory(current)
            except OSError as e:
                print(f"Warning: Skipping unreadable directory {current}: {e}", file=sys.stderr)
                continue
            for entry in entries:
                path = self.storage.join(current, entry.name)
                if entry.is_directory:
                    if not is_ignored_name(entry.name, self.config.ignore_dirs) and self.accepts_directory(path):
                        pending.append(path)
                elif self.accepts_file(path):
                    found.append(path)
        return sorted(found)

    # Single-file operations (caller holds the lock)

    async def _read(self, path: str) -> str | None:
        try:
            return await self.storage.read_file(path)
        except (OSError, UnicodeDecodeError) as e:
            print(f"Warning: Failed to read {path}: {e}", file=sys.stderr)
            return None

    def _claim(self, descriptor: CommandDescriptor, path: str, relative: str) -> CommandDescriptor:
        """Keep names unique across files; a later claimant gets a path-derived suffix."""
        if descriptor.scope == TemplateScope.PROJECT:
            return descriptor
        owners = self.registry.owners_of(descriptor.name)
        if not owners or path in owners:
            return descriptor
        suffix = hashlib.sha1(relative.encode("utf-8")).hexdigest()[:6]
        return descriptor.renamed(f"{descriptor.name}-{suffix}")

    async def _track(self, path: str, generation: int, content: str | None = None) -> TrackedFile | None:
        if not self.accepts_file(path):
            self._remove(path)
            return None

        if content is None:
            content = await self._read(path)
        if content is None:
            if generation == self._generation:
                self._remove(path)
            return None

        try:
            stat = await self.storage.stat(path)
            size, modified_time = stat.size, stat.modified_time
        except OSError:
            size, modified_time = len(content.encode("utf-8", errors="replace")), None

        if generation != self._generation:
            return None

        relative = self.relative(path) or posixpath.basename(path)
        language = self.classifier.classify(path, content)
        descriptors = self.synthesizer.synthesize(path, language, content)
        if relative == self.config.manifest:
            ctx = file_context(path, language, content, self.root)
            descriptors += manifest_commands(ctx, self.services)

        self.registry.unregister_owned(path)
        names = []
        for descriptor in descriptors:
            registered = self.registry.add(self._claim(descriptor, path, relative))
            names.append(registered.name)

        tracked = TrackedFile(
            path=path,
            language=language,
            content=content,
            checksum=content_checksum(content),
            size=size,
            modified_time=modified_time,
            command_names=tuple(names),
            relative_path=relative,
        )
        self._files[path] = tracked
        self.graph.update_node(path, language, extract_dependencies(content, language))
        return tracked

    def _remove(self, path: str) -> bool:
        existed = self._files.pop(path, None) is not None
        self.registry.unregister_owned(path)
        self.graph.remove_node(path)
        return existed

    async def _sync(self, directory: str, generation: int, refresh: bool) -> dict[str, list[str]]:
        """Reconcile the tracked entries below ``directory`` with storage.

        With ``refresh`` every known file is re-read and re-tracked when its
        content differs; otherwise only additions and removals are applied.
        """
        summary: dict[str, list[str]] = {"added": [], "updated": [], "removed": []}
        discovered = await self._discover(directory)
        if generation != self._generation:
            return summary

        for path in discovered:
            existing = self._files.get(path)
            if existing is None:
                if await self._track(path, generation):
                    summary["added"].append(path)
            elif refresh:
                content = await self._read(path)
                if generation != self._generation:
                    return summary
                if content is None:
                    self._remove(path)
                    summary["removed"].append(path)
                elif content != existing.content:
                    await self._track(path, generation, content)
                    summary["updated"].append(path)

        if generation != self._generation:
            return summary

        found = set(discovered)
        is_root = self.relative(directory) == ""
        for path in list(self._files):
            if path in found:
                continue
            if is_root or self._is_under(path, directory):
                self._remove(path)
                summary["removed"].append(path)
        return summary

    # Public mutations

    async def scan(self, root: str | None = None) -> list[str]:
        """Discover and track every acceptable file under the root."""
        if root is not None and root != self.root:
            self.begin(root)
        if self.root is None:
            raise ValueError("No root directory to scan")
        async with self._lock:
            generation = self._generation
            for path in await self._discover(self.root):
                await self._track(path, generation)
            self.graph.rebuild_inverse_edges()
            return sorted(self._files)

    async def rescan(self) -> dict[str, list[str]]:
        """Re-track changed files, track new ones and drop vanished ones."""
        if self.root is None:
            return {"added": [], "updated": [], "removed": []}
        async with self._lock:
            summary = await self._sync(self.root, self._generation, refresh=True)
            self.graph.rebuild_inverse_edges()
            return summary

    async def track_file(self, path: str) -> TrackedFile | None:
        async with self._lock:
            tracked = await self._track(path, self._generation)
            self.graph.rebuild_inverse_edges()
            return tracked

    async def remove(self, path: str) -> bool:
        async with self._lock:
            existed = self._remove(path)
            self.graph.rebuild_inverse_edges()
            return existed

    async def apply_change(self, path: str) -> None:
        """Apply one (debounced) change notification for ``path``."""
        if self.root is None or self.relative(path) is None:
            return
        async with self._lock:
            generation = self._generation
            try:
                stat = await self.storage.stat(path)
            except OSError:
                stat = None

            if generation != self._generation:
                return
            if stat is None:
                # Gone: the path itself and, for a directory, everything below it
                self._remove(path)
                for tracked in [p for p in self._files if self._is_under(p, path)]:
                    self._remove(tracked)
            elif stat.is_directory:
                if self.accepts_directory(path):
                    await self._sync(path, generation, refresh=False)
                else:
                    for tracked in [p for p in self._files if self._is_under(p, path)]:
                        self._remove(tracked)
            elif not self.accepts_file(path):
                self._remove(path)
            else:
                existing = self._files.get(path)
                content = await self._read(path)
                if generation != self._generation:
                    return
                if content is None:
                    self._remove(path)
                elif existing is None or content != existing.content:
                    await self._track(path, generation, content)
            self.graph.rebuild_inverse_edges()

    # Queries

    def get(self, path: str) -> TrackedFile | None:
        return self._files.get(path)

    def tracked_files(self) -> list[TrackedFile]:
        return [self._files[path] for path in sorted(self._files)]
