"""Live file tracking and change scheduling."""

from .scheduler import WatchScheduler
from .tracker import FileTracker, TrackedFile

__all__ = ["FileTracker", "TrackedFile", "WatchScheduler"]
