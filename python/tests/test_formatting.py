"""
Tests for the plain-text report helpers.
"""

from scout.formatting import (
    format_export_result,
    format_index_summary,
    format_references,
    format_symbol_results,
    format_table_status,
    format_update_result,
    symbol_icon,
)
from scout.models import ExportResult, IndexUpdateResult, SymbolLocation, SymbolReference, TableStatus
from tests.fixtures.workspace import make_file, make_index, make_symbol


def test_symbol_icon():
    assert symbol_icon("Class") == "🏛️"
    assert symbol_icon(None) == "❓"
    assert symbol_icon("Widget") == "❓"


def test_index_summary():
    index = make_index(
        [
            make_file("a.py", [make_symbol("run"), make_symbol("Box", "Class")], size=4096),
            make_file("b.py", [], errors=["Failed to extract symbols: boom"]),
        ]
    )

    text = format_index_summary(index)

    assert "   Files: 2" in text
    assert "   Symbols: 2" in text
    assert "   py: 2" in text
    assert "   a.py (4 KB)" in text
    assert "   a.py (2 symbols)" in text
    assert "   b.py: Failed to extract symbols: boom" in text
    assert "Updated:" not in text


def test_update_result_preview():
    result = IndexUpdateResult(
        updated=[make_file(f"f{i}.py") for i in range(7)],
        removed=["gone.py"],
        unchanged=3,
    )

    text = format_update_result(result)

    assert "   Total changes: 8" in text
    assert "   Unchanged files: 3" in text
    assert "   f4.py (0 symbols)" in text
    assert "   f5.py" not in text
    assert "   ... and 2 more" in text
    assert "   gone.py" in text


class TestSymbolResults:
    def test_no_matches(self):
        assert format_symbol_results([], "zzz") == '❌ No symbols found matching "zzz"'

    def test_grouped_by_file(self):
        matches = [
            SymbolLocation("load", "a.py", 0, 4, kind="Function", detail="()"),
            SymbolLocation("reload", "b.py", 4, 8, kind="Method", container_name="Loader"),
            SymbolLocation("loader", "a.py", 9, 0, kind="Variable"),
        ]

        text = format_symbol_results(matches, "load")
        lines = text.splitlines()

        assert lines[0] == '🔍 **Found 3 symbols matching "load"**'
        assert lines.index("📄 **a.py**") < lines.index("📄 **b.py**")
        assert "  ⚡ load (()) - Line 1:5" in lines
        assert "  📊 loader - Line 10:1" in lines
        assert "  ⚡ reload in Loader - Line 5:9" in lines

    def test_without_details(self):
        matches = [SymbolLocation("load", "a.py", 0, 4, kind="Function", detail="()")]
        assert "(())" not in format_symbol_results(matches, "load", show_details=False)


def test_references():
    refs = [SymbolReference("/ws/a.py", "a.py", 2, 0, 2, 4, context="load()")]

    assert format_references([]) == "No references found."
    assert format_references(refs).splitlines()[2:] == ["   a.py:3:1", "      load()"]


def test_export_result():
    text = format_export_result(ExportResult("/out/index.json", "json", 3 * 1024 * 1024, 10, 40))

    assert "📏 **Size:** 3072 KB (3.0 MB)" in text
    assert "🔧 **Symbols:** 40" in text


def test_table_status():
    assert format_table_status(TableStatus(is_loaded=True, symbol_count=5, loaded_path="/x.json")) == (
        "📚 Index loaded from /x.json (5 symbols)"
    )
    assert format_table_status(TableStatus(is_loaded=False, was_loaded=True)) == (
        "🗑️ Cleared loaded index from memory"
    )
    assert format_table_status(TableStatus(is_loaded=False)) == "ℹ️ No index was loaded"
