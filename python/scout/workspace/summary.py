"""
Aggregate statistics derived purely from an index's files.

Note the two different symbol measures:
- FileIndex.symbol_count counts top-level symbols only.
- IndexSummary.symbols_by_kind counts every symbol in the tree, children included.
"""

from datetime import datetime, timezone
from typing import Iterable

from scout.models import FileIndex, IndexSummary, SymbolInfo, parse_iso

TOP_N = 10
NO_EXTENSION = "no-extension"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def count_symbols_by_kind(symbols: Iterable[SymbolInfo], counts: dict[str, int]) -> dict[str, int]:
    """Add a recursive per-kind count of symbols into counts."""
    for symbol in symbols:
        for node in symbol.walk():
            kind = str(node.kind)
            counts[kind] = counts.get(kind, 0) + 1
    return counts


def total_symbols(files: Iterable[FileIndex]) -> int:
    """Sum of top-level symbol counts (metadata.totalSymbols)."""
    return sum(f.symbol_count for f in files)


def create_index_summary(files: list[FileIndex]) -> IndexSummary:
    """
    Build summary statistics from file entries.

    Args:
        files: File entries of one index

    Returns:
        IndexSummary with top-10 largest / most-symbols / most-recent lists
    """
    files_by_extension: dict[str, int] = {}
    symbols_by_kind: dict[str, int] = {}
    largest: list[dict] = []
    most_symbols: list[dict] = []
    recent: list[dict] = []
    error_files: list[dict] = []

    for file_index in files:
        ext = file_index.file_info.extension or NO_EXTENSION
        files_by_extension[ext] = files_by_extension.get(ext, 0) + 1

        count_symbols_by_kind(file_index.symbols, symbols_by_kind)

        if file_index.file_info.size > 0:
            largest.append({"path": file_index.relative_path, "size": file_index.file_info.size})

        if file_index.symbol_count > 0:
            most_symbols.append({"path": file_index.relative_path, "count": file_index.symbol_count})

        recent.append({"path": file_index.relative_path, "modified": file_index.file_info.modified})

        if file_index.errors:
            error_files.append({"path": file_index.relative_path, "errors": list(file_index.errors)})

    largest.sort(key=lambda e: e["size"], reverse=True)
    most_symbols.sort(key=lambda e: e["count"], reverse=True)
    recent.sort(key=lambda e: parse_iso(e["modified"]) or _EPOCH, reverse=True)

    return IndexSummary(
        files_by_extension=files_by_extension,
        symbols_by_kind=symbols_by_kind,
        largest_files=largest[:TOP_N],
        most_symbols=most_symbols[:TOP_N],
        recent_files=recent[:TOP_N],
        error_files=error_files,
    )
