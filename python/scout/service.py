"""
IndexService: the single owner of the engine's shared mutable state.

State that must exist once per process lives here as fields instead of
module globals:
- the update-in-progress flag (inside the IncrementalUpdater)
- the FlatSymbolTable
- the file watcher handle and its debounced trigger

Collaborators (extractor, stat, live provider, timer, observer) are
injectable so tests can run the whole service against fakes.

Example:
    service = IndexService("/path/to/project")
    index = await service.build(output_path=".scout/index.json")
    service.load(".scout/index.json")
    hits = service.search("handleCommand")
    ...
    service.dispose()
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from scout import formatting
from scout.config import (
    ExportOptions,
    IndexOptions,
    ReferenceOptions,
    SearchOptions,
    Settings,
    UpdateOptions,
)
from scout.errors import EBUSY, ENOWORKSPACE, IndexOperationError
from scout.export.exporter import export_index
from scout.extensions import DEFAULT_EXTENSIONS
from scout.extraction.base import StatFunction, SymbolExtractor
from scout.ignore_patterns import ExclusionFilter
from scout.live import ExtractorSymbolProvider, WorkspaceSymbolProvider
from scout.logging_config import setup_logging
from scout.models import (
    ExportResult,
    IndexedSymbol,
    IndexUpdateResult,
    SymbolLocation,
    SymbolReference,
    TableStatus,
    WorkspaceIndex,
)
from scout.query.engine import QueryEngine
from scout.symbol_table import FlatSymbolTable
from scout.watcher.core import IndexWatcher
from scout.watcher.debouncer import CallLater, DebouncedTrigger
from scout.workspace.builder import IndexBuilder
from scout.workspace.persistence import load_workspace_index, save_index
from scout.workspace.updater import IncrementalUpdater

logger = logging.getLogger("scout.service")


class IndexService:
    """
    Command-level surface of the indexing engine.

    Args:
        workspace_root: Project root; relative paths are resolved against it
        extractor: SymbolExtractor (default: built-in registry)
        stat: async stat function (default: os.stat in a worker thread)
        provider: WorkspaceSymbolProvider for live search/references
            (default: ExtractorSymbolProvider over the same extractor)
        settings: Process tunables (default: Settings.from_env())
        call_later: Timer factory for the watcher debounce (default: loop.call_later)
        observer_factory: watchdog Observer factory for the watcher
    """

    def __init__(
        self,
        workspace_root: Optional[Union[str, Path]],
        extractor: Optional[SymbolExtractor] = None,
        stat: Optional[StatFunction] = None,
        provider: Optional[WorkspaceSymbolProvider] = None,
        settings: Optional[Settings] = None,
        call_later: Optional[CallLater] = None,
        observer_factory: Optional[Callable[[], Any]] = None,
    ):
        self.settings = settings or Settings.from_env()
        self.builder = IndexBuilder(workspace_root, extractor=extractor, stat=stat)
        self.workspace_root = self.builder.workspace_root
        self.updater = IncrementalUpdater(self.builder)
        self.table = FlatSymbolTable(self.workspace_root)

        if provider is None and self.workspace_root is not None:
            provider = ExtractorSymbolProvider(
                self.workspace_root,
                self.builder.extractor,
                self.settings.index_options(),
            )
        self.provider = provider
        self.query = QueryEngine(self.table, provider, self.workspace_root)

        self._call_later = call_later
        self._observer_factory = observer_factory
        self._watcher: Optional[IndexWatcher] = None
        self._trigger: Optional[DebouncedTrigger] = None
        self._disposed = False

    @classmethod
    def create(cls, workspace_root: Union[str, Path], console: bool = False, **kwargs) -> "IndexService":
        """Construct a service and install file logging (SCOUT_LOG_DIR or .scout/logs)."""
        settings = kwargs.pop("settings", None) or Settings.from_env()
        log_dir = settings.log_dir or Path(workspace_root) / ".scout" / "logs"
        setup_logging(log_dir=log_dir, console=console)
        return cls(workspace_root, settings=settings, **kwargs)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def update_in_progress(self) -> bool:
        return self.updater.busy

    @property
    def watcher(self) -> Optional[IndexWatcher]:
        return self._watcher

    @property
    def trigger(self) -> Optional[DebouncedTrigger]:
        return self._trigger

    def resolve_path(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        if not path.is_absolute():
            if self.workspace_root is None:
                raise IndexOperationError("No workspace folder open", ENOWORKSPACE)
            path = self.workspace_root / path
        return path

    # ------------------------------------------------------------------
    # Build / update / persist
    # ------------------------------------------------------------------

    async def build(
        self,
        options: Optional[IndexOptions] = None,
        output_path: Optional[Union[str, Path]] = None,
    ) -> WorkspaceIndex:
        """Build a fresh index; also saves it when output_path is given."""
        index = await self.builder.build(options or self.settings.index_options())
        if output_path is not None:
            await asyncio.to_thread(save_index, index, self.resolve_path(output_path))
        return index

    def save(self, index: WorkspaceIndex, output_path: Union[str, Path]) -> str:
        return save_index(index, self.resolve_path(output_path))

    async def update(
        self,
        index_path: Union[str, Path],
        options: Optional[UpdateOptions] = None,
        save: bool = False,
    ) -> tuple[WorkspaceIndex, IndexUpdateResult]:
        """
        Incrementally update the index at index_path.

        With options.watch_files, (re)installs the file watcher for this path.
        With save=True, the refreshed index is written back to index_path.
        """
        options = options or self.settings.update_options()
        path = self.resolve_path(index_path)
        index, result = await self.updater.update(path, options)

        if save:
            await asyncio.to_thread(save_index, index, path)
        if options.watch_files:
            self.install_watcher(path, index.metadata.index_options)
        return index, result

    # ------------------------------------------------------------------
    # Watcher
    # ------------------------------------------------------------------

    def install_watcher(self, index_path: Union[str, Path], index_options: Optional[dict] = None) -> IndexWatcher:
        """
        Watch the workspace and auto-update index_path after a quiet period.

        Any previously installed watcher is disposed first.
        """
        if self.workspace_root is None:
            raise IndexOperationError("No workspace folder available for file watching", ENOWORKSPACE)

        self.dispose_watcher()

        path = self.resolve_path(index_path)
        options = IndexOptions.from_dict(index_options)
        extensions = options.extensions or DEFAULT_EXTENSIONS
        trigger = DebouncedTrigger(
            self.settings.debounce_seconds,
            lambda: self._auto_update(path),
            call_later=self._call_later,
        )
        watcher = IndexWatcher(
            self.workspace_root,
            extensions,
            trigger,
            observer_factory=self._observer_factory,
            exclusions=ExclusionFilter(options.exclude_patterns or [], self.workspace_root, options.use_gitignore),
            include_hidden=options.include_hidden,
            ignored_paths=[path],
        )
        watcher.start()

        self._trigger = trigger
        self._watcher = watcher
        return watcher

    def dispose_watcher(self) -> bool:
        """Stop the watcher, if any. Returns True if one was running."""
        watcher, self._watcher = self._watcher, None
        trigger, self._trigger = self._trigger, None
        if trigger is not None:
            trigger.cancel_pending()
        if watcher is None:
            return False
        watcher.stop()
        return True

    async def _auto_update(self, index_path: Path) -> None:
        logger.info("Auto-updating index due to file changes...")
        try:
            index, result = await self.updater.update(index_path, self.settings.update_options())
            await asyncio.to_thread(save_index, index, index_path)
        except IndexOperationError as e:
            if e.code == EBUSY:
                logger.info("Index update skipped - already in progress")
                return
            logger.error(f"Failed to auto-update index: {e}", exc_info=True)
            return
        except Exception as e:
            logger.error(f"Failed to auto-update index: {e}", exc_info=True)
            return

        logger.info(
            f"Index auto-update completed: {len(result.updated)} updated, "
            f"{len(result.added)} added, {len(result.removed)} removed"
        )

    # ------------------------------------------------------------------
    # Flat table
    # ------------------------------------------------------------------

    def load(self, index_path: Union[str, Path]) -> TableStatus:
        return self.table.load(index_path)

    def clear(self) -> TableStatus:
        return self.table.clear()

    def symbols(self) -> list[IndexedSymbol]:
        return self.table.get()

    def table_metadata(self) -> TableStatus:
        return self.table.metadata()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(self, term: str, options: Optional[SearchOptions] = None) -> list[SymbolLocation]:
        """Ranked search over the loaded flat table."""
        return self.query.search_table(term, options)

    async def search_workspace(self, term: str, options: Optional[SearchOptions] = None) -> list[SymbolLocation]:
        """Ranked search through the live provider (no index needed)."""
        return await self.query.search_workspace(term, options)

    def find_symbol_position(self, name: str, options: Optional[SearchOptions] = None) -> Optional[SymbolLocation]:
        return self.query.find_symbol_position(name, options)

    async def find_references(
        self,
        file_path: str,
        line: int,
        character: int,
        options: Optional[ReferenceOptions] = None,
    ) -> list[SymbolReference]:
        if file_path and self.workspace_root is not None:
            file_path = str(self.resolve_path(file_path))
        return await self.query.find_references(file_path, line, character, options)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def export(
        self,
        index: WorkspaceIndex,
        output_path: Union[str, Path],
        options: Optional[ExportOptions] = None,
    ) -> ExportResult:
        return await asyncio.to_thread(export_index, index, self.resolve_path(output_path), options)

    async def export_file(
        self,
        index_path: Union[str, Path],
        output_path: Union[str, Path],
        options: Optional[ExportOptions] = None,
    ) -> ExportResult:
        """Export a persisted index without rebuilding it."""
        index = await asyncio.to_thread(load_workspace_index, self.resolve_path(index_path))
        return await self.export(index, output_path, options)

    # ------------------------------------------------------------------
    # Text reports
    # ------------------------------------------------------------------

    async def build_report(
        self,
        options: Optional[IndexOptions] = None,
        output_path: Optional[Union[str, Path]] = None,
    ) -> str:
        """build(), summarized for display."""
        index = await self.build(options, output_path)
        return formatting.format_index_summary(index)

    async def update_report(
        self,
        index_path: Union[str, Path],
        options: Optional[UpdateOptions] = None,
        save: bool = True,
    ) -> str:
        _, result = await self.update(index_path, options, save=save)
        return formatting.format_update_result(result)

    def load_report(self, index_path: Union[str, Path]) -> str:
        status = self.load(index_path)
        return formatting.format_load_result(status, self.table.file_count)

    def status_report(self) -> str:
        return formatting.format_table_status(self.table_metadata())

    def clear_report(self) -> str:
        return formatting.format_table_status(self.clear())

    def search_report(self, term: str, options: Optional[SearchOptions] = None, show_details: bool = True) -> str:
        return formatting.format_symbol_results(self.search(term, options), term, show_details)

    async def references_report(
        self,
        file_path: str,
        line: int,
        character: int,
        options: Optional[ReferenceOptions] = None,
    ) -> str:
        return formatting.format_references(await self.find_references(file_path, line, character, options))

    async def export_report(
        self,
        index_path: Union[str, Path],
        output_path: Union[str, Path],
        options: Optional[ExportOptions] = None,
    ) -> str:
        return formatting.format_export_result(await self.export_file(index_path, output_path, options))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Stop the watcher, cancel any pending update and clear the table."""
        if self._disposed:
            return
        self.dispose_watcher()
        self.table.clear()
        self._disposed = True
        logger.debug("IndexService disposed")

    async def __aenter__(self) -> "IndexService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.dispose()
