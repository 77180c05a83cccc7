"""
File watcher event types.
"""

from enum import Enum


class FileEvent(Enum):
    """File system event types that schedule an index update."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"
