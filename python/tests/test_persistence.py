"""
Tests for reading and writing persisted index documents.
"""

import gzip
import json

import pytest

from scout.errors import EINVAL, ENOENT, EWRITE, IndexOperationError
from scout.models import WorkspaceIndex
from scout.workspace.persistence import (
    load_workspace_index,
    read_index_document,
    save_index,
    validate_files_array,
)
from tests.fixtures.workspace import make_file, make_index, make_symbol


@pytest.fixture
def index():
    return make_index(
        [
            make_file("a.py", [make_symbol("alpha", children=[make_symbol("inner", level=1)])]),
            make_file("b.py", [], errors=["Failed to extract symbols: boom"]),
        ]
    )


class TestSaveIndex:
    def test_writes_pretty_json(self, index, tmp_path):
        path = tmp_path / "out" / "index.json"

        message = save_index(index, path)

        text = path.read_text(encoding="utf-8")
        assert text.startswith('{\n  "metadata": {')
        assert json.loads(text) == index.to_dict()
        assert message.startswith(f"✅ Index saved to {path}")
        assert message.endswith("KB)")

    def test_write_failure(self, index, tmp_path):
        target = tmp_path / "taken"
        target.mkdir()

        with pytest.raises(IndexOperationError) as exc_info:
            save_index(index, target)
        assert exc_info.value.code == EWRITE

    def test_optional_fields_are_omitted(self, index, tmp_path):
        path = tmp_path / "index.json"
        save_index(index, path)
        data = json.loads(path.read_text())

        assert "updatedAt" not in data["metadata"]
        assert "errors" not in data["files"][0]
        assert data["files"][1]["errors"] == ["Failed to extract symbols: boom"]
        assert "detail" not in data["files"][0]["symbols"][0]
        assert "children" not in data["files"][0]["symbols"][0]["children"][0]


class TestLoad:
    def test_load_round_trip(self, index, tmp_path):
        path = tmp_path / "index.json"
        save_index(index, path)

        loaded = load_workspace_index(path)

        assert isinstance(loaded, WorkspaceIndex)
        assert loaded.to_dict() == index.to_dict()

    def test_gzip_document(self, index, tmp_path):
        path = tmp_path / "index.json.gz"
        with gzip.open(path, "wt", encoding="utf-8") as f:
            json.dump(index.to_dict(), f)

        assert read_index_document(path)["metadata"]["totalFiles"] == 2

    def test_missing(self, tmp_path):
        with pytest.raises(IndexOperationError) as exc_info:
            read_index_document(tmp_path / "missing.json")
        assert exc_info.value.code == ENOENT

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(IndexOperationError) as exc_info:
            read_index_document(path)
        assert exc_info.value.code == EINVAL

    def test_file_entry_without_relative_path(self, tmp_path):
        with pytest.raises(IndexOperationError) as exc_info:
            validate_files_array({"files": [{"filePath": "/x"}]}, "index.json")
        assert exc_info.value.code == EINVAL

    def test_symbols_must_be_a_list(self):
        with pytest.raises(IndexOperationError) as exc_info:
            validate_files_array({"files": [{"relativePath": "a.py", "symbols": {}}]}, "index.json")
        assert exc_info.value.code == EINVAL
