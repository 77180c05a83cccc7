"""
IndexWatcher: watchdog observer wired to a debounced index update.

watchdog delivers events on its own thread. Each matching event is handed
to the event loop with call_soon_threadsafe(), where it restarts the
DebouncedTrigger. The trigger, not the watcher, decides when an update runs.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from scout.extensions import ExtensionSpec, build_watch_glob
from scout.ignore_patterns import ExclusionFilter
from scout.watcher.debouncer import DebouncedTrigger
from scout.watcher.handlers import IndexEventHandler
from scout.watcher.types import FileEvent

logger = logging.getLogger("scout.watcher")


def _default_observer():
    from watchdog.observers import Observer

    return Observer()


class IndexWatcher:
    """
    Watches a workspace recursively for changes to files of the given extensions.

    Args:
        workspace_root: Directory to watch
        extensions: Extension spec the index was built with
        trigger: DebouncedTrigger restarted on every matching event
        loop: Event loop the trigger lives on (default: the running loop at start())
        observer_factory: Returns an object with schedule/start/stop/join
            (default: watchdog.observers.Observer)
        exclusions: Events for excluded paths are dropped
        include_hidden: Forward events under dotfiles / dot-directories
        ignored_paths: Files whose events never trigger an update (the index file)
    """

    def __init__(
        self,
        workspace_root: Union[str, Path],
        extensions: ExtensionSpec,
        trigger: DebouncedTrigger,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        observer_factory: Optional[Callable[[], Any]] = None,
        exclusions: Optional[ExclusionFilter] = None,
        include_hidden: bool = False,
        ignored_paths: Iterable[Union[str, Path]] = (),
    ) -> None:
        workspace_root = Path(workspace_root)
        if not workspace_root.is_dir():
            raise FileNotFoundError(f"Workspace path is not a directory: {workspace_root}")

        self.workspace_root = workspace_root.resolve()
        self.extensions = extensions
        self.pattern = build_watch_glob(extensions)
        self.trigger = trigger
        self._loop = loop
        self._observer_factory = observer_factory or _default_observer
        self.exclusions = exclusions
        self.include_hidden = include_hidden
        self.ignored_paths = list(ignored_paths)
        self._observer = None
        self.events_seen = 0

    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """
        Start the observer thread.

        Raises:
            RuntimeError: If already running
        """
        if self.is_running():
            raise RuntimeError("IndexWatcher is already running")

        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        handler = IndexEventHandler(
            self.extensions,
            self._on_fs_event,
            workspace_root=self.workspace_root,
            exclusions=self.exclusions,
            include_hidden=self.include_hidden,
            ignored_paths=self.ignored_paths,
        )
        observer = self._observer_factory()
        observer.schedule(handler, str(self.workspace_root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info(f"👀 File watcher set up for pattern: {self.pattern} in {self.workspace_root}")

    def stop(self) -> None:
        """Stop the observer and cancel any pending debounced update. Safe when stopped."""
        self.trigger.cancel_pending()
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=5)
        logger.info(f"File watcher stopped for {self.workspace_root}")

    def _on_fs_event(self, event_type: FileEvent, path: str) -> None:
        # watchdog thread
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.notify, event_type, path)

    def notify(self, event_type: FileEvent, path: str) -> None:
        """Record an event and restart the debounce timer (event loop thread)."""
        if not self.is_running():
            return
        self.events_seen += 1
        logger.debug(f"File {event_type.value}: {path}")
        self.trigger.schedule_debounced()
