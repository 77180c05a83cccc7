"""
QueryEngine: ranked name search and reference lookup.

Search runs against one of two sources with identical ranking rules:
- the FlatSymbolTable (fast, from a loaded persisted index)
- a live WorkspaceSymbolProvider (no index required)

Kind filtering happens before ranking; the max_results cap is applied after
ranking so the best matches are never cut off by arrival order.
"""

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from scout.config import ReferenceOptions, SearchOptions
from scout.errors import EINVAL, ENOINDEX, ENOWORKSPACE, IndexOperationError
from scout.models import Position, SymbolLocation, SymbolReference
from scout.query.ranking import filter_by_kind, name_matches, rank_locations
from scout.symbol_table import FlatSymbolTable

if TYPE_CHECKING:
    from scout.live import WorkspaceSymbolProvider

logger = logging.getLogger("scout.query")

CONTEXT_UNAVAILABLE = "<context unavailable>"


def _require_term(term: str) -> str:
    if not term or not term.strip():
        raise IndexOperationError("Symbol name cannot be empty", EINVAL)
    return term


def _read_context(path: str, line: int, context_lines: int) -> str:
    lines = Path(path).read_text(encoding="utf-8", errors="replace").splitlines()
    if line >= len(lines):
        raise IndexError(f"line {line} out of range")
    if context_lines > 0:
        start = max(0, line - context_lines)
        end = min(len(lines) - 1, line + context_lines)
        return "\n".join(lines[start:end + 1]).strip()
    return lines[line].strip()


class QueryEngine:
    """
    Args:
        table: Flat symbol table for indexed search
        provider: Live workspace symbol provider (optional)
        workspace_root: Used to turn table paths back into absolute paths
    """

    def __init__(
        self,
        table: FlatSymbolTable,
        provider: Optional["WorkspaceSymbolProvider"] = None,
        workspace_root: Optional[Union[str, Path]] = None,
    ):
        self.table = table
        self.provider = provider
        self.workspace_root = Path(workspace_root) if workspace_root else None

    def _select(self, locations, term: str, options: SearchOptions, keep_unknown_kind: bool):
        candidates = filter_by_kind(locations, options.kind_filter, keep_unknown=keep_unknown_kind)
        matches = [
            loc for loc in candidates
            if name_matches(loc.name, term, options.case_sensitive, options.exact_match)
        ]
        ranked = rank_locations(matches, term, options.case_sensitive)
        return ranked[: max(0, options.max_results)]

    def search_table(self, term: str, options: Optional[SearchOptions] = None) -> list[SymbolLocation]:
        """
        Ranked search over the loaded flat table.

        Raises:
            IndexOperationError: ENOINDEX when no symbols are loaded, EINVAL for an empty term
        """
        options = options or SearchOptions()
        symbols = self.table.get()
        if not symbols:
            raise IndexOperationError(
                "No index loaded. Load a symbol index before searching it.", ENOINDEX
            )
        _require_term(term)

        locations = [
            SymbolLocation(
                name=sym.name,
                kind=sym.kind,
                relative_path=sym.file_path,
                line=sym.line,
                character=sym.character,
                detail=sym.detail,
                file_path=str(self.workspace_root / sym.file_path) if self.workspace_root else None,
            )
            for sym in symbols
        ]
        results = self._select(locations, term, options, keep_unknown_kind=True)
        logger.debug(f"Table search {term!r}: {len(results)} results")
        return results

    async def search_workspace(self, term: str, options: Optional[SearchOptions] = None) -> list[SymbolLocation]:
        """Ranked search through the live provider."""
        options = options or SearchOptions()
        _require_term(term)
        if self.provider is None:
            raise IndexOperationError("No workspace symbol provider available", ENOWORKSPACE)

        found = await self.provider.search_workspace_symbols(term)
        results = self._select(found or [], term, options, keep_unknown_kind=False)
        logger.debug(f"Workspace search {term!r}: {len(found or [])} candidates, {len(results)} results")
        return results

    def find_symbol_position(self, name: str, options: Optional[SearchOptions] = None) -> Optional[SymbolLocation]:
        """Best-ranked table location for name, or None."""
        results = self.search_table(name, options)
        return results[0] if results else None

    async def find_references(
        self,
        file_path: str,
        line: int,
        character: int,
        options: Optional[ReferenceOptions] = None,
    ) -> list[SymbolReference]:
        """
        References to the symbol at (line, character) of file_path.

        Raises:
            IndexOperationError: EINVAL for a missing path or negative position
        """
        options = options or ReferenceOptions()
        if not file_path:
            raise IndexOperationError("No file path provided", EINVAL)
        if line < 0 or character < 0:
            raise IndexOperationError("Invalid line or character position", EINVAL, file_path)
        if self.provider is None:
            raise IndexOperationError("No workspace symbol provider available", ENOWORKSPACE)

        found = await self.provider.find_references(
            file_path, Position(line, character), options.include_declaration
        )

        results: list[SymbolReference] = []
        for ref in (found or [])[: max(0, options.max_results)]:
            try:
                context = await asyncio.to_thread(_read_context, ref.file_path, ref.line, options.context_lines)
            except (OSError, IndexError) as e:
                logger.warning(f"Could not get context for reference in {ref.file_path}: {e}")
                context = CONTEXT_UNAVAILABLE
            results.append(
                SymbolReference(
                    file_path=ref.file_path,
                    relative_path=ref.relative_path,
                    line=ref.line,
                    character=ref.character,
                    end_line=ref.end_line,
                    end_character=ref.end_character,
                    context=context,
                )
            )

        results.sort(key=lambda r: (r.relative_path, r.line, r.character))
        return results
