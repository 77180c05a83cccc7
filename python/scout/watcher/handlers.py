"""
watchdog event handler that forwards matching file events to the watcher.

Runs on watchdog's observer thread; the callback it is given must be
thread-safe (IndexWatcher marshals onto the event loop).

Only events the index would care about are forwarded. Besides the extension
patterns, a handler that knows the workspace root applies the same hidden
and exclusion rules as discovery, and it never forwards events for its
ignored paths (the index file the auto-update writes). Otherwise saving the
refreshed index would schedule the next update.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from watchdog.events import FileSystemEvent, PatternMatchingEventHandler

from scout.extensions import ExtensionSpec, expand_extensions, extension_label
from scout.ignore_patterns import ExclusionFilter
from scout.watcher.types import FileEvent

logger = logging.getLogger("scout.watcher")


def watch_patterns(extensions: ExtensionSpec) -> list[str]:
    """fnmatch patterns for the resolved extensions (``["*.py", "*.ts", ...]``)."""
    labels = [extension_label(e) for e in expand_extensions(extensions) if e.strip()]
    if not labels:
        return ["*"]
    return [f"*.{label}" for label in labels]


def _canonical(path: Union[str, Path]) -> str:
    return os.path.normcase(os.path.realpath(str(path)))


class IndexEventHandler(PatternMatchingEventHandler):
    """
    Forwards create/modify/delete/move events of matching files.

    Directory events are ignored. A move is reported once, as MOVED, with the
    destination path when it matches, otherwise the source path.

    Args:
        extensions: Extension spec the index was built with
        notify: Called with (FileEvent, path) for every forwarded event
        workspace_root: Enables the hidden/exclusion rules (paths relative to it)
        exclusions: ExclusionFilter of the index options
        include_hidden: Forward events under dotfiles / dot-directories
        ignored_paths: Files whose events are never forwarded
    """

    def __init__(
        self,
        extensions: ExtensionSpec,
        notify: Callable[[FileEvent, str], None],
        workspace_root: Optional[Union[str, Path]] = None,
        exclusions: Optional[ExclusionFilter] = None,
        include_hidden: bool = False,
        ignored_paths: Iterable[Union[str, Path]] = (),
    ):
        super().__init__(
            patterns=watch_patterns(extensions),
            ignore_directories=True,
            case_sensitive=False,
        )
        self._notify = notify
        self.workspace_root = _canonical(workspace_root) if workspace_root is not None else None
        self.exclusions = exclusions
        self.include_hidden = include_hidden
        self.ignored_paths = {_canonical(p) for p in ignored_paths}

    def is_relevant(self, path: str) -> bool:
        """True if an event on path could change the index."""
        if not path:
            return False
        canonical = _canonical(path)
        if canonical in self.ignored_paths:
            return False
        if self.workspace_root is None:
            return True

        rel = os.path.relpath(canonical, self.workspace_root).replace("\\", "/")
        if rel == ".." or rel.startswith("../"):
            return False
        if not self.include_hidden and any(part.startswith(".") for part in rel.split("/")):
            return False
        if self.exclusions is not None and self.exclusions.is_excluded(rel):
            return False
        return True

    def _forward(self, event_type: FileEvent, path: str) -> None:
        if self.is_relevant(path):
            self._notify(event_type, path)
        else:
            logger.debug(f"Ignoring {event_type.value} event for {path}")

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(FileEvent.CREATED, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(FileEvent.MODIFIED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._forward(FileEvent.DELETED, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        dest = getattr(event, "dest_path", None)
        # Moving a file out of the indexed set still removes it from the index
        if dest and self.is_relevant(dest):
            self._notify(FileEvent.MOVED, dest)
        else:
            self._forward(FileEvent.MOVED, event.src_path)
