"""
FlatSymbolTable: an explicitly loaded, in-memory flattening of a persisted index.

The table is derived from the serialized document on disk, never from a live
WorkspaceIndex object. It has no incremental maintenance: a stale table is
refreshed only by calling load() again.

A failed load leaves the previously loaded table untouched; the new table is
fully built before it replaces the old one.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from scout.errors import EINVAL, IndexOperationError
from scout.models import IndexedSymbol, TableStatus
from scout.workspace.persistence import read_index_document, validate_files_array

logger = logging.getLogger("scout.symbol_table")


def _flatten_symbols(symbols: Iterable[dict[str, Any]], relative_path: str, out: list[IndexedSymbol]) -> None:
    for sym in symbols:
        start = sym["range"]["start"]
        out.append(
            IndexedSymbol(
                name=sym["name"],
                file_path=relative_path,
                line=int(start["line"]),
                character=int(start["character"]),
                kind=sym.get("kind"),
                detail=sym.get("detail"),
            )
        )
        children = sym.get("children")
        if children:
            _flatten_symbols(children, relative_path, out)


def flatten_index_document(data: dict[str, Any], path: str = "") -> list[IndexedSymbol]:
    """
    Flatten every symbol of every file (children included) into one list.

    Raises:
        IndexOperationError: EINVAL when files/symbols/ranges are malformed
    """
    files = validate_files_array(data, path)
    table: list[IndexedSymbol] = []
    for entry in files:
        try:
            _flatten_symbols(entry.get("symbols") or [], entry["relativePath"], table)
        except (KeyError, TypeError, ValueError) as e:
            raise IndexOperationError(
                f"Invalid index format: malformed symbol in {entry.get('relativePath')}: {e}",
                EINVAL,
                path,
            ) from e
    return table


class FlatSymbolTable:
    """
    Process-wide flat symbol table with an explicit load/clear lifecycle.

    Args:
        workspace_root: Base directory for resolving relative index paths
    """

    def __init__(self, workspace_root: Optional[Union[str, Path]] = None):
        self.workspace_root = Path(workspace_root) if workspace_root else None
        self._symbols: list[IndexedSymbol] = []
        self._metadata: Optional[dict[str, Any]] = None
        self._loaded_path: Optional[str] = None
        self._file_count = 0

    def resolve_path(self, index_path: Union[str, Path]) -> Path:
        path = Path(index_path)
        if not path.is_absolute() and self.workspace_root is not None:
            path = self.workspace_root / path
        return path.resolve()

    def load(self, index_path: Union[str, Path]) -> TableStatus:
        """
        Replace the table with the contents of a persisted index.

        Raises:
            IndexOperationError: ENOENT if missing, EINVAL if not a valid index
        """
        path = self.resolve_path(index_path)
        data = read_index_document(path)
        table = flatten_index_document(data, str(path))

        metadata = data.get("metadata")
        self._symbols = table
        self._metadata = metadata if isinstance(metadata, dict) else None
        self._loaded_path = str(path)
        self._file_count = len(data["files"])

        logger.info(f"📚 Loaded {path.name}: {self._file_count} files, {len(table)} symbols")
        return self.status()

    def clear(self) -> TableStatus:
        """Drop the table. ``was_loaded`` on the result reports whether anything was loaded."""
        was_loaded = self.is_loaded
        self._symbols = []
        self._metadata = None
        self._loaded_path = None
        self._file_count = 0
        if was_loaded:
            logger.info("🗑️ Cleared loaded index from memory")
        status = self.status()
        status.was_loaded = was_loaded
        return status

    def get(self) -> list[IndexedSymbol]:
        return list(self._symbols)

    @property
    def is_loaded(self) -> bool:
        return self._loaded_path is not None

    @property
    def file_count(self) -> int:
        return self._file_count

    def __len__(self) -> int:
        return len(self._symbols)

    def status(self) -> TableStatus:
        return TableStatus(
            is_loaded=self.is_loaded,
            symbol_count=len(self._symbols),
            loaded_path=self._loaded_path,
            metadata=dict(self._metadata) if self._metadata is not None else None,
        )

    # Alias matching the lifecycle vocabulary: load / clear / get / metadata
    metadata = status
