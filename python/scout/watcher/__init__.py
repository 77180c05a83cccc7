"""
File watching for automatic index updates.
"""

from scout.watcher.core import IndexWatcher
from scout.watcher.debouncer import DebouncedTrigger
from scout.watcher.handlers import IndexEventHandler, watch_patterns
from scout.watcher.types import FileEvent

__all__ = [
    "DebouncedTrigger",
    "FileEvent",
    "IndexEventHandler",
    "IndexWatcher",
    "watch_patterns",
]
