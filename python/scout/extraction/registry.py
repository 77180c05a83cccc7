"""
Extension-based dispatch over SymbolExtractor implementations.
"""

import logging
import os
from typing import Iterable, Optional

from scout.errors import NoProviderError
from scout.extraction.base import SymbolExtractor
from scout.extraction.python_ast import PythonAstExtractor
from scout.extensions import normalize_extension
from scout.models import SymbolInfo

logger = logging.getLogger("scout.extraction")


class ExtractorRegistry:
    """
    Routes extract_symbols() to the extractor registered for a file's extension.

    Files with no registered extractor raise NoProviderError, which the
    builder records as a per-file error.

    Example:
        >>> registry = ExtractorRegistry()
        >>> registry.register([".py"], PythonAstExtractor())
        >>> await registry.extract_symbols("pkg/mod.py")
    """

    def __init__(self):
        self._extractors: dict[str, SymbolExtractor] = {}

    def register(self, extensions: Iterable[str], extractor: SymbolExtractor) -> None:
        for ext in extensions:
            self._extractors[normalize_extension(ext)] = extractor

    def supports(self, file_path: str) -> bool:
        return self._lookup(file_path) is not None

    @property
    def extensions(self) -> list[str]:
        return sorted(self._extractors)

    def _lookup(self, file_path: str) -> Optional[SymbolExtractor]:
        ext = os.path.splitext(file_path)[1]
        if not ext:
            return None
        return self._extractors.get(normalize_extension(ext))

    async def extract_symbols(
        self,
        file_path: str,
        include_children: bool = True,
        max_depth: int = 10,
        kind_filter: Optional[list[str]] = None,
    ) -> list[SymbolInfo]:
        extractor = self._lookup(file_path)
        if extractor is None:
            ext = os.path.splitext(file_path)[1] or "(none)"
            raise NoProviderError(f"No symbol provider available for file type: {ext}", file_path)
        return await extractor.extract_symbols(
            file_path,
            include_children=include_children,
            max_depth=max_depth,
            kind_filter=kind_filter,
        )


def default_registry() -> ExtractorRegistry:
    """Registry with the built-in extractors."""
    registry = ExtractorRegistry()
    python = PythonAstExtractor()
    registry.register(python.extensions, python)
    return registry
