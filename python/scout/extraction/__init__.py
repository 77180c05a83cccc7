"""Symbol extraction boundary and built-in extractors."""

from scout.extraction.base import FileStat, StatFunction, SymbolExtractor, stat_file
from scout.extraction.python_ast import PythonAstExtractor
from scout.extraction.registry import ExtractorRegistry, default_registry

__all__ = [
    "ExtractorRegistry",
    "FileStat",
    "PythonAstExtractor",
    "StatFunction",
    "SymbolExtractor",
    "default_registry",
    "stat_file",
]
