"""Change scheduling: native watches with a polling fallback.

Watcher callbacks may arrive on a watchdog thread; they are handed to the
event loop with ``call_soon_threadsafe`` and debounced per path there, so
every tracker mutation still happens on the loop under the tracker lock.
"""

import asyncio
import os
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from ..constants import (
    DEBOUNCE_SECONDS,
    PARENT_RESCAN_DELAY,
    PARENT_SIGNAL_NAMES,
    PARENT_WATCH_HOPS,
    POLL_INTERVAL_SECONDS,
)
from ..core.storage import CancelHandle, StorageBackend

ChangeCallback = Callable[[str], Awaitable[Any]]
RescanCallback = Callable[[], Awaitable[Any]]


class WatchScheduler:
    """Turns storage notifications (or a poll timer) into tracker work."""

    def __init__(
        self,
        storage: StorageBackend,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        parent_watch_hops: int = PARENT_WATCH_HOPS,
        native_watch: bool = True,
        signal_names: list[str] | None = None,
        parent_rescan_delay: float = PARENT_RESCAN_DELAY,
    ):
        self.storage = storage
        self.debounce_seconds = debounce_seconds
        self.poll_interval = poll_interval
        self.parent_watch_hops = parent_watch_hops
        self.native_watch = native_watch
        self.signal_names = set(signal_names or PARENT_SIGNAL_NAMES)
        self.parent_rescan_delay = parent_rescan_delay

        self.mode: str | None = None
        self.watched_parents: list[str] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._on_change: ChangeCallback | None = None
        self._on_rescan: RescanCallback | None = None
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._rescan_timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._cancels: list[CancelHandle] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self, root: str, on_change: ChangeCallback, on_rescan: RescanCallback) -> str:
        """Begin delivering changes below ``root``; returns "native" or "polling".

        Must be called from the event loop thread.
        """
        self.stop()
        self._loop = asyncio.get_running_loop()
        self._on_change = on_change
        self._on_rescan = on_rescan
        self._running = True

        self.mode = "polling"
        if self.native_watch:
            try:
                self._cancels.append(self.storage.watch(root, self._on_native_event, recursive=True))
                self.mode = "native"
            except NotImplementedError:
                pass
            except (OSError, RuntimeError) as e:
                print(f"Warning: Native watch failed for {root}, polling instead: {e}", file=sys.stderr)

        if self.mode == "polling":
            self._spawn(self._poll_loop())

        self._watch_parents(root)
        return self.mode

    def stop(self) -> None:
        """Cancel every timer, task and subscription. Safe to call repeatedly."""
        self._running = False
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        if self._rescan_timer is not None:
            self._rescan_timer.cancel()
            self._rescan_timer = None
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        cancels, self._cancels = self._cancels, []
        for cancel in cancels:
            try:
                cancel()
            except Exception as e:
                print(f"Warning: Failed to cancel watch: {e}", file=sys.stderr)
        self.watched_parents = []
        self.mode = None

    # Debounce

    def notify(self, path: str) -> None:
        """Schedule ``on_change(path)`` after the debounce window, restarting the window."""
        if not self._running or self._loop is None:
            return
        existing = self._timers.pop(path, None)
        if existing is not None:
            existing.cancel()
        self._timers[path] = self._loop.call_later(self.debounce_seconds, self._fire, path)

    def request_rescan(self, delay: float | None = None) -> None:
        """Schedule one full rescan; repeated requests inside the delay coalesce."""
        if not self._running or self._loop is None:
            return
        if self._rescan_timer is not None:
            self._rescan_timer.cancel()
        self._rescan_timer = self._loop.call_later(
            self.parent_rescan_delay if delay is None else delay, self._fire_rescan
        )

    def _fire(self, path: str) -> None:
        self._timers.pop(path, None)
        if self._running and self._on_change is not None:
            self._spawn(self._on_change(path))

    def _fire_rescan(self) -> None:
        self._rescan_timer = None
        if self._running and self._on_rescan is not None:
            self._spawn(self._on_rescan())

    # Sources

    def _threadsafe(self, callback: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if not self._running or loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Loop closed between the check and the call
            pass

    def _on_native_event(self, event_type: str, path: str) -> None:
        self._threadsafe(self.notify, path)

    def _on_parent_event(self, event_type: str, path: str) -> None:
        if os.path.basename(path.rstrip("/\\")) in self.signal_names:
            self._threadsafe(self.request_rescan)

    def _watch_parents(self, root: str) -> None:
        current = root
        for _ in range(self.parent_watch_hops):
            parent = os.path.dirname(current.rstrip("/\\")) or current
            if parent == current:
                break
            try:
                self._cancels.append(self.storage.watch(parent, self._on_parent_event, recursive=False))
            except (NotImplementedError, OSError, RuntimeError):
                break
            self.watched_parents.append(parent)
            current = parent

    async def _poll_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.poll_interval)
            if self._running and self._on_rescan is not None:
                await self._guarded(self._on_rescan())

    # Tasks

    async def _guarded(self, work: Awaitable[Any]) -> None:
        try:
            await work
        except asyncio.CancelledError:
            raise
        except Exception as e:
            print(f"Warning: Scheduled tracking work failed: {type(e).__name__}: {e}", file=sys.stderr)

    def _spawn(self, work: Awaitable[Any]) -> None:
        assert self._loop is not None
        task = self._loop.create_task(self._guarded(work))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
