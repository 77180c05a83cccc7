"""
IndexBuilder: discovery + metadata lookup + symbol extraction → WorkspaceIndex.

Processing model:
1. Discover files (off the event loop) and apply exclusions / max_files
2. Process files in fixed-size batches; each batch is fanned out with
   asyncio.gather() and awaited as a unit, then a short pause lets other
   work on the loop interleave
3. Aggregate the summary once every batch has settled

Per-file failures never raise. They are appended to that file's ``errors``
and the file still gets an entry. Only workspace-level problems (no
workspace root, nothing to index) raise IndexOperationError.
"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Optional, Union

from scout.config import IndexOptions
from scout.errors import ENOENT, ENOWORKSPACE, EUNKNOWN, IndexOperationError
from scout.extensions import extension_label
from scout.extraction.base import StatFunction, SymbolExtractor, stat_file
from scout.extraction.registry import default_registry
from scout.models import (
    INDEX_VERSION,
    FileIndex,
    FileInfo,
    IndexMetadata,
    SymbolInfo,
    WorkspaceIndex,
    now_iso,
    timestamp_to_iso,
)
from scout.utils.progress import ProgressTracker
from scout.workspace.discovery import FileEntry, collect_index_files, to_relative_path
from scout.workspace.summary import create_index_summary, total_symbols

logger = logging.getLogger("scout.workspace")


def error_message(error: BaseException) -> str:
    """Message text of an exception, without the error-code decoration."""
    if isinstance(error, IndexOperationError):
        return error.message
    return str(error) or error.__class__.__name__


class IndexBuilder:
    """
    Builds complete, versioned workspace indexes.

    Args:
        workspace_root: Root directory; relative paths in the index are relative to it
        extractor: SymbolExtractor collaborator (default: built-in registry)
        stat: async stat collaborator (default: os.stat in a worker thread)
    """

    def __init__(
        self,
        workspace_root: Optional[Union[str, Path]],
        extractor: Optional[SymbolExtractor] = None,
        stat: Optional[StatFunction] = None,
    ):
        self.workspace_root = Path(workspace_root).resolve() if workspace_root else None
        self.extractor = extractor if extractor is not None else default_registry()
        self.stat = stat if stat is not None else stat_file

    def require_workspace(self) -> Path:
        if self.workspace_root is None or not self.workspace_root.is_dir():
            raise IndexOperationError("No workspace folder open", ENOWORKSPACE)
        return self.workspace_root

    async def build(self, options: Optional[IndexOptions] = None) -> WorkspaceIndex:
        """
        Build an index of the workspace.

        Raises:
            IndexOperationError: ENOWORKSPACE without a workspace root, ENOENT when
                nothing is left to index after filtering, EUNKNOWN for anything
                unexpected
        """
        options = options or IndexOptions()
        root = self.require_workspace()
        start_time = time.time()

        try:
            entries = await asyncio.to_thread(collect_index_files, root, options)
            if not entries:
                raise IndexOperationError("No files found to index", ENOENT, options.search_path)

            logger.info(f"📁 Indexing {len(entries)} files under {root}")
            files = await self.process_files(entries, options, desc="Indexing")

            metadata = IndexMetadata(
                version=INDEX_VERSION,
                created_at=now_iso(),
                workspace_path=str(root),
                workspace_name=root.name,
                total_files=len(files),
                total_symbols=total_symbols(files),
                index_options=options.to_dict(),
            )
            index = WorkspaceIndex(
                metadata=metadata,
                files=files,
                summary=create_index_summary(files),
            )
        except IndexOperationError:
            raise
        except Exception as e:
            raise IndexOperationError(
                f"Unexpected error creating index: {e}", EUNKNOWN, options.search_path
            ) from e

        error_count = len(index.summary.error_files)
        logger.info(
            f"✅ Index created: {metadata.total_files} files, {metadata.total_symbols} symbols"
            f"{f', {error_count} with errors' if error_count else ''} "
            f"in {time.time() - start_time:.2f}s"
        )
        return index

    async def process_files(
        self,
        entries: list[FileEntry],
        options: IndexOptions,
        desc: str = "Processing",
        workspace_root: Optional[Path] = None,
    ) -> list[FileIndex]:
        """
        Run metadata lookup + extraction for entries in sequential batches.

        Output order follows input order regardless of completion order.
        """
        batch_size = max(1, options.batch_size)
        progress = ProgressTracker(total=len(entries), desc=desc)
        results: list[FileIndex] = []

        for start in range(0, len(entries), batch_size):
            batch = entries[start:start + batch_size]
            batch_results = await asyncio.gather(
                *(self.index_file(entry.path, options, workspace_root) for entry in batch)
            )
            results.extend(batch_results)
            progress.update(len(batch), failed=sum(1 for r in batch_results if r.errors))

            if start + batch_size < len(entries) and options.batch_delay > 0:
                await asyncio.sleep(options.batch_delay)

        return results

    def _base_info(self, file_path: str, relative_path: str) -> FileInfo:
        directory = os.path.dirname(relative_path) or "."
        return FileInfo(
            size=0,
            modified="",
            extension=extension_label(os.path.splitext(file_path)[1]),
            basename=os.path.basename(file_path),
            directory=directory,
        )

    async def index_file(
        self,
        file_path: str,
        options: IndexOptions,
        workspace_root: Optional[Path] = None,
        always_stat: bool = False,
    ) -> FileIndex:
        """
        Build the FileIndex for one file. Never raises.

        Stat and extraction are attempted independently; each failure is
        recorded in ``errors`` without preventing the other. The file is
        stat'ed when ``options.include_file_info`` or ``always_stat`` is set;
        the updater needs size and mtime for its next change check either way.
        """
        relative_path = to_relative_path(file_path, workspace_root or self.workspace_root)
        errors: list[str] = []
        symbols: list[SymbolInfo] = []

        try:
            file_info = self._base_info(file_path, relative_path)

            if options.include_file_info or always_stat:
                try:
                    st = await self.stat(file_path)
                    file_info.size = st.size or 0
                    file_info.modified = timestamp_to_iso(st.modified_time)
                except Exception as e:
                    errors.append(f"Failed to get file info: {error_message(e)}")
                    file_info.modified = now_iso()

            if options.include_symbols:
                try:
                    symbols = await self.extractor.extract_symbols(
                        file_path,
                        include_children=True,
                        max_depth=options.symbol_max_depth,
                    )
                except Exception as e:
                    errors.append(f"Failed to extract symbols: {error_message(e)}")
                    symbols = []

            if errors:
                logger.debug(f"⚠️ {relative_path}: {'; '.join(errors)}")

            return FileIndex(
                file_path=file_path,
                relative_path=relative_path,
                file_info=file_info,
                symbols=list(symbols or []),
                errors=errors or None,
            )
        except Exception as e:
            logger.warning(f"Failed to process {relative_path}: {e}")
            fallback = self._base_info(file_path, relative_path)
            fallback.modified = now_iso()
            return FileIndex(
                file_path=file_path,
                relative_path=relative_path,
                file_info=fallback,
                symbols=[],
                errors=[f"Failed to process file: {error_message(e)}"],
            )
