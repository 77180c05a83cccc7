"""
IncrementalUpdater: reconcile a persisted index with the current filesystem.

Only files detected as added or changed are re-processed. Change detection
compares the stored fileInfo with a fresh stat from discovery:

    changed = refresh_all
              or |stored mtime - current mtime| > 1000 ms
              or stored size != current size

The one-second tolerance absorbs timestamp precision lost when mtimes are
serialized; it must not be tightened to exact equality.

Updates are single-flight. A call made while another is running fails
immediately with EBUSY instead of queueing.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional, Union

from scout.config import IndexOptions, UpdateOptions
from scout.errors import EBUSY, ENOENT, ENOWORKSPACE, EUNKNOWN, IndexOperationError
from scout.models import (
    FileIndex,
    FileInfo,
    IndexMetadata,
    IndexUpdateResult,
    WorkspaceIndex,
    now_iso,
    parse_iso,
)
from scout.utils.progress import ProgressTracker
from scout.workspace.builder import IndexBuilder, error_message
from scout.workspace.discovery import FileEntry, collect_index_files, to_relative_path
from scout.workspace.persistence import load_workspace_index
from scout.workspace.summary import create_index_summary, total_symbols

logger = logging.getLogger("scout.workspace")

MTIME_TOLERANCE_MS = 1000


def has_file_changed(existing: FileInfo, current_size: Optional[int], current_mtime: Optional[float]) -> bool:
    """
    Decide whether a stored file differs from what is on disk now.

    Args:
        existing: fileInfo stored in the index
        current_size: size from a fresh stat (None if the stat failed)
        current_mtime: POSIX mtime from a fresh stat (None if the stat failed)
    """
    if current_size is None or current_mtime is None:
        return True

    existing_time = parse_iso(existing.modified)
    if existing_time is None:
        return True

    delta_ms = abs(existing_time.timestamp() - current_mtime) * 1000
    if delta_ms > MTIME_TOLERANCE_MS:
        return True

    return existing.size != current_size


class IncrementalUpdater:
    """
    Applies incremental updates to persisted indexes.

    Holds the update-in-progress flag; one instance should be shared by
    everything that may trigger updates (commands and the file watcher).
    """

    def __init__(self, builder: IndexBuilder):
        self.builder = builder
        self._update_in_progress = False

    @property
    def busy(self) -> bool:
        return self._update_in_progress

    async def update(
        self,
        index_path: Union[str, Path],
        options: Optional[UpdateOptions] = None,
    ) -> tuple[WorkspaceIndex, IndexUpdateResult]:
        """
        Refresh the index stored at index_path.

        Returns:
            (new index, update result). The stored file is not rewritten;
            persisting the new index is the caller's decision.

        Raises:
            IndexOperationError: EBUSY if an update is running, ENOENT/EINVAL for a
                missing or malformed index, ENOWORKSPACE if the workspace root is gone
        """
        if self._update_in_progress:
            raise IndexOperationError("Index update already in progress", EBUSY, str(index_path))
        self._update_in_progress = True

        options = options or UpdateOptions()
        start_time = time.time()
        try:
            return await self._run_update(Path(index_path), options, start_time)
        except IndexOperationError:
            raise
        except Exception as e:
            raise IndexOperationError(
                f"Unexpected error updating index: {e}", EUNKNOWN, str(index_path)
            ) from e
        finally:
            self._update_in_progress = False

    def _resolve_root(self, metadata: IndexMetadata) -> Path:
        root = self.builder.workspace_root
        if root is None and metadata.workspace_path:
            root = Path(metadata.workspace_path)
        if root is None or not root.is_dir():
            raise IndexOperationError("No workspace folder open", ENOWORKSPACE)
        return root

    async def _run_update(
        self,
        index_path: Path,
        options: UpdateOptions,
        start_time: float,
    ) -> tuple[WorkspaceIndex, IndexUpdateResult]:
        # Step 1: load the stored index
        try:
            existing = await asyncio.to_thread(load_workspace_index, index_path)
        except IndexOperationError as e:
            if e.code == ENOENT:
                raise IndexOperationError(
                    f"Failed to load existing index: {e.message}", ENOENT, str(index_path)
                ) from e
            raise

        root = self._resolve_root(existing.metadata)

        # Step 2: discover the current file set with the stored options
        index_options = IndexOptions.from_dict(existing.metadata.index_options)
        index_options.batch_size = options.batch_size
        index_options.batch_delay = options.batch_delay
        entries = await asyncio.to_thread(collect_index_files, root, index_options)

        existing_files = {f.relative_path: f for f in existing.files}
        current_files: dict[str, FileEntry] = {
            to_relative_path(entry.path, root): entry for entry in entries
        }

        # Step 3/4: diff
        result = IndexUpdateResult()
        to_update: list[str] = []
        to_add: list[str] = []
        for relative_path, entry in current_files.items():
            stored = existing_files.get(relative_path)
            if stored is None:
                to_add.append(relative_path)
            elif options.refresh_all or has_file_changed(stored.file_info, entry.size, entry.modified):
                to_update.append(relative_path)
            else:
                result.unchanged += 1

        result.removed = sorted(rel for rel in existing_files if rel not in current_files)

        pending = to_update + to_add
        if pending:
            logger.info(
                f"🔄 Processing {len(pending)} changed files "
                f"({len(to_update)} updated, {len(to_add)} added), "
                f"skipping {result.unchanged} unchanged"
            )

        # Step 5: re-process only the delta
        processed = await self._process(pending, current_files, index_options, root, result)
        added_set = set(to_add)
        for file_index in processed:
            if file_index.relative_path in added_set:
                result.added.append(file_index)
            else:
                result.updated.append(file_index)
        result.added.sort(key=lambda f: f.relative_path)
        result.updated.sort(key=lambda f: f.relative_path)

        # Step 6: merge
        merged = {rel: f for rel, f in existing_files.items() if rel in current_files}
        for file_index in result.updated:
            merged[file_index.relative_path] = file_index
        for file_index in result.added:
            merged[file_index.relative_path] = file_index
        files = sorted(merged.values(), key=lambda f: f.file_path or f.relative_path)

        metadata = IndexMetadata(
            version=existing.metadata.version,
            created_at=existing.metadata.created_at,
            updated_at=now_iso(),
            workspace_path=existing.metadata.workspace_path or str(root),
            workspace_name=existing.metadata.workspace_name or root.name,
            total_files=len(files),
            total_symbols=total_symbols(files),
            index_options=dict(existing.metadata.index_options),
        )
        index = WorkspaceIndex(metadata=metadata, files=files, summary=create_index_summary(files))

        total_changes = len(result.updated) + len(result.added) + len(result.removed)
        logger.info(
            f"✅ Index updated: {total_changes} changes ({len(result.updated)} updated, "
            f"{len(result.added)} added, {len(result.removed)} removed, "
            f"{result.unchanged} unchanged) in {time.time() - start_time:.2f}s"
        )
        return index, result

    async def _process(
        self,
        relative_paths: list[str],
        current_files: dict[str, FileEntry],
        index_options: IndexOptions,
        root: Path,
        result: IndexUpdateResult,
    ) -> list[FileIndex]:
        batch_size = max(1, index_options.batch_size)
        progress = ProgressTracker(total=len(relative_paths), desc="Updating")
        processed: list[FileIndex] = []

        async def process_one(relative_path: str) -> Optional[FileIndex]:
            entry = current_files[relative_path]
            try:
                file_index = await self.builder.index_file(entry.path, index_options, root, always_stat=True)
            except Exception as e:
                # Dropped from this update; retried on the next one
                logger.warning(f"Failed to update {relative_path}: {e}")
                result.errors.append({"path": relative_path, "error": error_message(e)})
                return None
            for message in file_index.errors or []:
                result.errors.append({"path": relative_path, "error": message})
            return file_index

        for start in range(0, len(relative_paths), batch_size):
            batch = relative_paths[start:start + batch_size]
            batch_results = await asyncio.gather(*(process_one(rel) for rel in batch))
            processed.extend(r for r in batch_results if r is not None)
            progress.update(len(batch), failed=sum(1 for r in batch_results if r is None or r.errors))

            if start + batch_size < len(relative_paths) and index_options.batch_delay > 0:
                await asyncio.sleep(index_options.batch_delay)

        return processed
