"""
Live (non-indexed) workspace symbol search and reference lookup.

WorkspaceSymbolProvider is the boundary QueryEngine uses when it is asked to
search the live workspace instead of the flat table. ExtractorSymbolProvider
is the built-in implementation: it discovers files on demand, runs them
through a SymbolExtractor, and finds references lexically.

Lexical references are whole-word occurrences of the identifier under the
cursor across the discovered files. They are not scope-aware.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from scout.config import IndexOptions
from scout.errors import EINVAL, ENOENT, IndexOperationError, NoProviderError
from scout.extraction.base import SymbolExtractor
from scout.extraction.registry import default_registry
from scout.models import Position, SymbolInfo, SymbolLocation, SymbolReference
from scout.query.ranking import name_matches
from scout.workspace.discovery import collect_index_files, to_relative_path

logger = logging.getLogger("scout.live")

_IDENTIFIER = re.compile(r"\w+")


@runtime_checkable
class WorkspaceSymbolProvider(Protocol):
    async def search_workspace_symbols(self, term: str) -> list[SymbolLocation]:
        ...

    async def find_references(
        self,
        file_path: str,
        position: Position,
        include_declaration: bool = True,
    ) -> list[SymbolReference]:
        ...


def identifier_at(line_text: str, character: int) -> Optional[str]:
    """Return the identifier touching the given column, if any."""
    for match in _IDENTIFIER.finditer(line_text):
        if match.start() <= character <= match.end():
            return match.group(0)
    return None


def _scan_for_word(paths: list[str], word: str) -> list[tuple[str, int, int]]:
    pattern = re.compile(r"\b" + re.escape(word) + r"\b")
    hits = []
    for path in paths:
        try:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.debug(f"Skipping unreadable file {path}: {e}")
            continue
        for line_number, line in enumerate(text.splitlines()):
            for match in pattern.finditer(line):
                hits.append((path, line_number, match.start()))
    return hits


class ExtractorSymbolProvider:
    """
    WorkspaceSymbolProvider backed by discovery + a SymbolExtractor.

    Args:
        workspace_root: Directory to search
        extractor: Symbol extractor (default: built-in registry)
        options: Discovery options (default: IndexOptions())
    """

    def __init__(
        self,
        workspace_root: Union[str, Path],
        extractor: Optional[SymbolExtractor] = None,
        options: Optional[IndexOptions] = None,
    ):
        self.workspace_root = Path(workspace_root).resolve()
        self.extractor = extractor if extractor is not None else default_registry()
        self.options = options or IndexOptions()

    async def _discover_paths(self) -> list[str]:
        try:
            entries = await asyncio.to_thread(collect_index_files, self.workspace_root, self.options)
        except IndexOperationError as e:
            logger.warning(f"Live discovery failed: {e}")
            return []
        return [entry.path for entry in entries]

    async def _symbols_of(self, path: str) -> list[SymbolInfo]:
        try:
            return await self.extractor.extract_symbols(
                path, include_children=True, max_depth=self.options.symbol_max_depth
            )
        except NoProviderError:
            return []
        except Exception as e:
            logger.debug(f"Symbol extraction failed for {path}: {e}")
            return []

    async def search_workspace_symbols(self, term: str) -> list[SymbolLocation]:
        paths = await self._discover_paths()
        results: list[SymbolLocation] = []
        batch_size = max(1, self.options.batch_size)

        for start in range(0, len(paths), batch_size):
            batch = paths[start:start + batch_size]
            trees = await asyncio.gather(*(self._symbols_of(p) for p in batch))
            for path, symbols in zip(batch, trees):
                relative_path = to_relative_path(path, self.workspace_root)
                self._collect(symbols, term, path, relative_path, None, results)

        return results

    def _collect(self, symbols, term, path, relative_path, container, out) -> None:
        for symbol in symbols:
            if name_matches(symbol.name, term):
                out.append(
                    SymbolLocation(
                        name=symbol.name,
                        kind=symbol.kind,
                        relative_path=relative_path,
                        line=symbol.selection_range.start.line,
                        character=symbol.selection_range.start.character,
                        detail=symbol.detail,
                        file_path=path,
                        container_name=container,
                    )
                )
            if symbol.children:
                self._collect(symbol.children, term, path, relative_path, symbol.name, out)

    async def find_references(
        self,
        file_path: str,
        position: Position,
        include_declaration: bool = True,
    ) -> list[SymbolReference]:
        path = Path(file_path)
        if not path.is_absolute():
            path = self.workspace_root / path
        if not path.is_file():
            raise IndexOperationError(f"File not found: {path}", ENOENT, str(path))

        lines = (await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")).splitlines()
        if position.line >= len(lines):
            raise IndexOperationError(
                f"Line {position.line} is past the end of {path.name}", EINVAL, str(path)
            )

        word = identifier_at(lines[position.line], position.character)
        if not word:
            return []

        paths = await self._discover_paths()
        if str(path.resolve()) not in paths:
            paths.append(str(path.resolve()))
        hits = await asyncio.to_thread(_scan_for_word, paths, word)

        declarations: set[tuple[str, int, int]] = set()
        if not include_declaration:
            for hit_path in sorted({h[0] for h in hits}):
                for symbol in await self._symbols_of(hit_path):
                    for node in symbol.walk():
                        if node.name == word:
                            start = node.selection_range.start
                            declarations.add((hit_path, start.line, start.character))

        references = []
        for hit_path, line, character in hits:
            if (hit_path, line, character) in declarations:
                continue
            references.append(
                SymbolReference(
                    file_path=hit_path,
                    relative_path=to_relative_path(hit_path, self.workspace_root),
                    line=line,
                    character=character,
                    end_line=line,
                    end_character=character + len(word),
                )
            )
        return references
