"""
Workspace fixtures: temporary source trees and a canned symbol extractor.
"""
import json
import os
from pathlib import Path

import pytest

from scout.errors import NoProviderError
from scout.models import (
    FileIndex,
    FileInfo,
    IndexMetadata,
    IndexSummary,
    Position,
    Range,
    SymbolInfo,
    WorkspaceIndex,
)
from scout.workspace.summary import create_index_summary, total_symbols


def make_symbol(name, kind="Function", line=0, character=0, children=None, detail=None, level=0):
    """SymbolInfo on a single line; selection range starts at (line, character)."""
    start = Position(line, character)
    end = Position(line, character + len(name))
    return SymbolInfo(
        name=name,
        kind=kind,
        range=Range(start, end),
        selection_range=Range(start, end),
        level=level,
        detail=detail,
        children=children,
    )


def make_file(relative_path, symbols=None, size=100, modified="2024-01-01T00:00:00.000Z", errors=None, root="/ws"):
    basename = relative_path.rsplit("/", 1)[-1]
    directory = relative_path.rsplit("/", 1)[0] if "/" in relative_path else "."
    extension = os.path.splitext(basename)[1].lstrip(".").lower()
    return FileIndex(
        file_path=f"{root}/{relative_path}",
        relative_path=relative_path,
        file_info=FileInfo(
            size=size,
            modified=modified,
            extension=extension,
            basename=basename,
            directory=directory,
        ),
        symbols=list(symbols or []),
        errors=errors,
    )


def make_index(files, workspace_name="ws"):
    """WorkspaceIndex around hand-built FileIndex entries."""
    return WorkspaceIndex(
        metadata=IndexMetadata(
            version="1.0.0",
            created_at="2024-01-01T00:00:00.000Z",
            workspace_path=f"/{workspace_name}",
            workspace_name=workspace_name,
            total_files=len(files),
            total_symbols=total_symbols(files),
            index_options={"extensions": "code"},
        ),
        files=files,
        summary=create_index_summary(files),
    )


def write_index_document(path: Path, document) -> Path:
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class FakeExtractor:
    """
    SymbolExtractor returning canned trees keyed by file basename.

    Basenames listed in ``failures`` raise the given exception. Files with no
    canned tree raise NoProviderError unless they are ``.ts``/``.py``, which
    return an empty list.
    """

    def __init__(self, symbols_by_name=None, failures=None):
        self.symbols_by_name = dict(symbols_by_name or {})
        self.failures = dict(failures or {})
        self.calls = []

    async def extract_symbols(self, file_path, include_children=True, max_depth=10, kind_filter=None):
        self.calls.append(file_path)
        name = os.path.basename(file_path)
        if name in self.failures:
            raise self.failures[name]
        if name in self.symbols_by_name:
            return list(self.symbols_by_name[name])
        ext = os.path.splitext(name)[1]
        if ext in (".ts", ".py"):
            return []
        raise NoProviderError(f"No symbol provider available for file type: {ext}", file_path)


def ts_symbols():
    """a.ts: two top-level functions; b.ts: one class with a method."""
    return {
        "a.ts": [
            make_symbol("alpha", "Function", line=0, character=9),
            make_symbol("beta", "Function", line=4, character=9),
        ],
        "b.ts": [
            make_symbol(
                "Widget",
                "Class",
                line=0,
                character=6,
                children=[make_symbol("render", "Method", line=1, character=2, level=1)],
            ),
        ],
    }


@pytest.fixture
def ts_workspace(tmp_path):
    """Workspace with a.ts, b.ts and c.md at the root."""
    workspace = tmp_path / "project"
    workspace.mkdir()
    (workspace / "a.ts").write_text("function alpha() {}\n\n\n\nfunction beta() {}\n")
    (workspace / "b.ts").write_text("class Widget {\n  render() {}\n}\n")
    (workspace / "c.md").write_text("# Notes\n")
    return workspace


@pytest.fixture
def fake_extractor():
    return FakeExtractor(ts_symbols())


@pytest.fixture
def python_workspace(tmp_path):
    """Workspace with two Python modules that reference each other."""
    workspace = tmp_path / "pyproject"
    workspace.mkdir()
    (workspace / "a.py").write_text(
        "def load():\n"
        "    pass\n"
        "\n"
        "load()\n"
    )
    (workspace / "b.py").write_text(
        "from a import load\n"
        "load()\n"
        "\n"
        "class Loader:\n"
        "    def reload(self):\n"
        "        return load()\n"
    )
    return workspace
