"""Public surface of the tracking and command engine.

``CommandEngine`` wires the storage backend, tracker, scheduler and registry
together. It is constructed by the caller (the MCP server creates one in its
lifespan); there is no module-level instance.
"""

import asyncio
import sys
from typing import Any

from .commands.models import CommandAction, CommandDescriptor, ExecutionResult
from .commands.registry import CommandRegistry
from .constants import CONFIG_FILENAME, PARENT_SIGNAL_NAMES, CommandCategory
from .core.analyzer import Analyzer
from .core.classifier import Classifier
from .core.config import parse_config
from .core.errors import TrackingError
from .core.storage import LocalStorage, StorageBackend
from .schemas.config import CmdTrackConfig
from .tracking.scheduler import WatchScheduler
from .tracking.tracker import FileTracker, TrackedFile


class CommandEngine:
    """Tracks a project directory and keeps its command registry current."""

    def __init__(
        self,
        storage: StorageBackend | None = None,
        classifier: Classifier | None = None,
        analyzer: Analyzer | None = None,
        config: CmdTrackConfig | None = None,
    ):
        self.storage = storage or LocalStorage()
        self.registry = CommandRegistry()
        self.tracker = FileTracker(self.storage, self.registry, classifier, analyzer, config)
        self.scheduler: WatchScheduler | None = None
        self.root: str | None = None
        # An explicit config wins over the project's .cmdtrack.yml
        self._config_override = config
        self._lifecycle = asyncio.Lock()

    @property
    def tracking(self) -> bool:
        return self.tracker.active

    @property
    def config(self) -> CmdTrackConfig:
        return self.tracker.config

    async def _load_config(self, root: str) -> CmdTrackConfig:
        if self._config_override is not None:
            return self._config_override
        try:
            raw = await self.storage.read_file(self.storage.join(root, CONFIG_FILENAME))
        except OSError:
            raw = None
        return parse_config(raw)

    async def _check_root(self, root: str) -> str:
        resolved = self.storage.resolve(root)
        try:
            stat = await self.storage.stat(resolved)
        except OSError as e:
            raise TrackingError(f"Root directory is not accessible: {root} ({e})") from e
        if not stat.is_directory:
            raise TrackingError(f"Root is not a directory: {root}")
        try:
            await self.storage.list_directory(resolved)
        except OSError as e:
            raise TrackingError(f"Root directory cannot be listed: {root} ({e})") from e
        return resolved

    async def start_tracking(self, root: str) -> dict[str, Any]:
        """Scan ``root`` and start watching it.

        Calling this while already tracking restarts tracking explicitly, so a
        root is never subscribed twice.

        Raises:
            TrackingError: If the root is missing, not a directory, or unreadable
        """
        async with self._lifecycle:
            resolved = await self._check_root(root)
            self.stop_tracking()

            config = await self._load_config(resolved)
            self.tracker.begin(resolved, config)
            self.root = resolved
            try:
                await self.tracker.scan()

                if not self.tracker.active:
                    # Stopped while the initial scan was running
                    return self.status()

                signal_names = list(dict.fromkeys(PARENT_SIGNAL_NAMES + [config.manifest]))
                self.scheduler = WatchScheduler(
                    self.storage,
                    debounce_seconds=config.debounce_seconds,
                    poll_interval=config.poll_interval,
                    parent_watch_hops=config.parent_watch_hops,
                    native_watch=config.native_watch,
                    signal_names=signal_names,
                )
                self.scheduler.start(resolved, self.tracker.apply_change, self.tracker.rescan)
            except BaseException:
                # Cancelled (e.g. by the tool timeout) or failed mid-start
                self.stop_tracking()
                raise
            print(
                f"cmdtrack: tracking {len(self.tracker.files)} files, "
                f"{len(self.registry)} commands ({self.scheduler.mode})",
                file=sys.stderr,
            )
            return self.status()

    def stop_tracking(self) -> None:
        """Stop watching. Tracked files and commands stay available. Idempotent."""
        if self.scheduler is not None:
            self.scheduler.stop()
            self.scheduler = None
        self.tracker.halt()

    async def restart_tracking(self, root: str | None = None) -> dict[str, Any]:
        """Drop all tracked state and start again, on ``root`` or the current root."""
        target = root or self.root
        if target is None:
            raise TrackingError("No root directory to restart tracking on")
        return await self.start_tracking(target)

    async def rescan(self) -> dict[str, list[str]]:
        return await self.tracker.rescan()

    # Commands

    def register_command(
        self,
        name: str,
        action: CommandAction,
        description: str = "",
        tags: list[str] | None = None,
        weight: float = 1.0,
    ) -> CommandDescriptor:
        """Register a user command. Existing commands with the same name are replaced."""
        return self.registry.register(
            name,
            action,
            description,
            category=CommandCategory.USER,
            tags=tags or (),
            weight=weight,
        )

    async def execute_command(self, name: str, *args: Any) -> ExecutionResult:
        return await self.registry.execute(name, *args)

    def get_commands(
        self,
        category: CommandCategory | str | None = None,
        tag: str | None = None,
        search: str | None = None,
        owner: str | None = None,
    ) -> list[CommandDescriptor]:
        return self.registry.list(category=category, tag=tag, search=search, owner=owner)

    def get_command(self, name: str) -> CommandDescriptor | None:
        return self.registry.get(name)

    # Tracked state

    def get_tracked_files(self) -> list[TrackedFile]:
        return self.tracker.tracked_files()

    def dependency_graph(self) -> dict[str, Any]:
        """Serialized snapshot of the dependency graph, keyed by path."""
        return self.tracker.graph.to_dict()

    def status(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "tracking": self.tracking,
            "watch_mode": self.scheduler.mode if self.scheduler else None,
            "tracked_files": len(self.tracker.files),
            "commands": len(self.registry),
        }
