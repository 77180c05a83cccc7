"""
Tests for IndexBuilder: discovery + stat + extraction into a WorkspaceIndex.

Covers:
1. The a.ts / b.ts / c.md scenario under the "code" alias
2. symbolCount / totalSymbols / summary counts
3. Per-file failures recorded inline instead of raised
4. Workspace-level failures (no workspace, nothing to index)
5. Batching
"""

import pytest
from unittest.mock import AsyncMock, patch

from scout.config import IndexOptions
from scout.errors import ENOENT, ENOWORKSPACE, IndexOperationError
from scout.extraction.registry import default_registry
from scout.workspace.builder import IndexBuilder, error_message
from tests.fixtures.workspace import FakeExtractor, make_symbol


class TestBuildScenario:
    """Indexing a.ts (2 functions), b.ts (1 class), c.md with the "code" alias."""

    @pytest.mark.asyncio
    async def test_only_code_files_are_indexed(self, ts_workspace, fake_extractor, fast_options):
        index = await IndexBuilder(ts_workspace, fake_extractor).build(fast_options)

        assert index.metadata.total_files == 2
        assert [f.relative_path for f in index.files] == ["a.ts", "b.ts"]
        assert all(f.relative_path != "c.md" for f in index.files)

    @pytest.mark.asyncio
    async def test_symbol_count_matches_top_level_symbols(self, ts_workspace, fake_extractor, fast_options):
        index = await IndexBuilder(ts_workspace, fake_extractor).build(fast_options)

        for f in index.files:
            assert f.symbol_count == len(f.symbols)
        assert index.metadata.total_symbols == 3
        assert index.metadata.total_files == len(index.files)

    @pytest.mark.asyncio
    async def test_summary_counts_kinds_recursively(self, ts_workspace, fake_extractor, fast_options):
        index = await IndexBuilder(ts_workspace, fake_extractor).build(fast_options)

        assert index.summary.files_by_extension == {"ts": 2}
        assert index.summary.symbols_by_kind == {"Function": 2, "Class": 1, "Method": 1}
        assert index.summary.error_files == []
        assert [e["path"] for e in index.summary.most_symbols] == ["a.ts", "b.ts"]

    @pytest.mark.asyncio
    async def test_metadata(self, ts_workspace, fake_extractor, fast_options):
        index = await IndexBuilder(ts_workspace, fake_extractor).build(fast_options)
        meta = index.metadata

        assert meta.version == "1.0.0"
        assert meta.workspace_name == "project"
        assert meta.workspace_path == str(ts_workspace.resolve())
        assert meta.created_at.endswith("Z")
        assert meta.updated_at is None
        assert meta.index_options["extensions"] == "code"
        assert meta.index_options["excludePatterns"] == fast_options.exclude_patterns

    @pytest.mark.asyncio
    async def test_file_info(self, ts_workspace, fake_extractor, fast_options):
        index = await IndexBuilder(ts_workspace, fake_extractor).build(fast_options)
        a = index.files[0]

        assert a.file_path == str(ts_workspace.resolve() / "a.ts")
        assert a.file_info.extension == "ts"
        assert a.file_info.basename == "a.ts"
        assert a.file_info.directory == "."
        assert a.file_info.size == (ts_workspace / "a.ts").stat().st_size
        assert a.file_info.modified.endswith("Z")

    @pytest.mark.asyncio
    async def test_nested_paths_use_forward_slashes(self, ts_workspace, fake_extractor, fast_options):
        nested = ts_workspace / "src" / "util"
        nested.mkdir(parents=True)
        (nested / "d.ts").write_text("export const d = 1;\n")

        index = await IndexBuilder(ts_workspace, fake_extractor).build(fast_options)
        d = next(f for f in index.files if f.file_info.basename == "d.ts")

        assert d.relative_path == "src/util/d.ts"
        assert d.file_info.directory == "src/util"


class TestPerFileFailures:
    """A failing file gets an entry with errors; the build still succeeds."""

    @pytest.mark.asyncio
    async def test_extraction_failure_is_recorded(self, ts_workspace, fast_options):
        extractor = FakeExtractor(
            {"a.ts": [make_symbol("alpha")]},
            failures={"b.ts": RuntimeError("parser crashed")},
        )
        index = await IndexBuilder(ts_workspace, extractor).build(fast_options)

        b = next(f for f in index.files if f.relative_path == "b.ts")
        assert b.errors == ["Failed to extract symbols: parser crashed"]
        assert b.symbols == []
        assert b.symbol_count == 0
        assert b.file_info.size > 0
        assert index.summary.error_files == [
            {"path": "b.ts", "errors": ["Failed to extract symbols: parser crashed"]}
        ]

    @pytest.mark.asyncio
    async def test_no_provider_is_a_per_file_error(self, ts_workspace, fast_options):
        # The built-in registry only knows Python
        index = await IndexBuilder(ts_workspace, default_registry()).build(fast_options)

        assert index.metadata.total_files == 2
        for f in index.files:
            assert f.errors == ["Failed to extract symbols: No symbol provider available for file type: .ts"]

    @pytest.mark.asyncio
    async def test_stat_failure_keeps_symbols(self, ts_workspace, fake_extractor, fast_options):
        stat = AsyncMock(side_effect=OSError("permission denied"))
        index = await IndexBuilder(ts_workspace, fake_extractor, stat=stat).build(fast_options)

        a = index.files[0]
        assert a.errors == ["Failed to get file info: permission denied"]
        assert [s.name for s in a.symbols] == ["alpha", "beta"]
        assert a.file_info.size == 0
        assert a.file_info.modified  # falls back to "now"

    @pytest.mark.asyncio
    async def test_both_failures_are_recorded(self, ts_workspace, fast_options):
        extractor = FakeExtractor(failures={"a.ts": ValueError("bad"), "b.ts": ValueError("bad")})
        stat = AsyncMock(side_effect=OSError("gone"))
        index = await IndexBuilder(ts_workspace, extractor, stat=stat).build(fast_options)

        assert index.files[0].errors == [
            "Failed to get file info: gone",
            "Failed to extract symbols: bad",
        ]

    @pytest.mark.asyncio
    async def test_index_file_never_raises(self, ts_workspace, fake_extractor, fast_options):
        builder = IndexBuilder(ts_workspace, fake_extractor)
        with patch.object(builder, "_base_info", side_effect=[RuntimeError("boom"), builder._base_info(
            str(ts_workspace / "a.ts"), "a.ts"
        )]):
            entry = await builder.index_file(str(ts_workspace / "a.ts"), fast_options)

        assert entry.errors == ["Failed to process file: boom"]
        assert entry.symbols == []


class TestOptions:
    @pytest.mark.asyncio
    async def test_without_symbols_extractor_is_not_called(self, ts_workspace, fake_extractor):
        options = IndexOptions(include_symbols=False, batch_delay=0)
        index = await IndexBuilder(ts_workspace, fake_extractor).build(options)

        assert fake_extractor.calls == []
        assert index.metadata.total_symbols == 0

    @pytest.mark.asyncio
    async def test_without_file_info_stat_is_not_called(self, ts_workspace, fake_extractor):
        stat = AsyncMock()
        options = IndexOptions(include_file_info=False, batch_delay=0)
        index = await IndexBuilder(ts_workspace, fake_extractor, stat=stat).build(options)

        stat.assert_not_called()
        assert index.files[0].file_info.size == 0
        assert index.files[0].file_info.modified == ""

    @pytest.mark.asyncio
    async def test_default_exclusions(self, ts_workspace, fake_extractor, fast_options):
        vendored = ts_workspace / "node_modules" / "lib"
        vendored.mkdir(parents=True)
        (vendored / "index.ts").write_text("export {}\n")

        index = await IndexBuilder(ts_workspace, fake_extractor).build(fast_options)

        assert all("node_modules" not in f.relative_path for f in index.files)

    @pytest.mark.asyncio
    async def test_max_files_caps_after_sorting(self, ts_workspace, fake_extractor):
        options = IndexOptions(max_files=1, batch_delay=0)
        index = await IndexBuilder(ts_workspace, fake_extractor).build(options)

        assert [f.relative_path for f in index.files] == ["a.ts"]

    @pytest.mark.asyncio
    async def test_explicit_extension_list(self, ts_workspace, fake_extractor, fast_options):
        fast_options.extensions = [".md"]
        index = await IndexBuilder(ts_workspace, fake_extractor).build(fast_options)

        assert [f.relative_path for f in index.files] == ["c.md"]
        assert index.files[0].errors[0].startswith("Failed to extract symbols: No symbol provider")


class TestWorkspaceFailures:
    @pytest.mark.asyncio
    async def test_no_workspace(self, fake_extractor):
        with pytest.raises(IndexOperationError) as exc_info:
            await IndexBuilder(None, fake_extractor).build()
        assert exc_info.value.code == ENOWORKSPACE

    @pytest.mark.asyncio
    async def test_nothing_to_index(self, tmp_path, fake_extractor, fast_options):
        (tmp_path / "notes.md").write_text("hi")
        with pytest.raises(IndexOperationError) as exc_info:
            await IndexBuilder(tmp_path, fake_extractor).build(fast_options)
        assert exc_info.value.code == ENOENT
        assert exc_info.value.message == "No files found to index"


class TestBatching:
    @pytest.mark.asyncio
    async def test_pause_only_between_batches(self, ts_workspace, fake_extractor):
        options = IndexOptions(batch_size=1, batch_delay=0.01)
        with patch("scout.workspace.builder.asyncio.sleep", new=AsyncMock()) as sleep:
            index = await IndexBuilder(ts_workspace, fake_extractor).build(options)

        assert index.metadata.total_files == 2
        sleep.assert_awaited_once_with(0.01)

    @pytest.mark.asyncio
    async def test_output_order_follows_input(self, ts_workspace, fake_extractor, fast_options):
        fast_options.batch_size = 5
        builder = IndexBuilder(ts_workspace, fake_extractor)
        from scout.workspace.discovery import collect_index_files

        entries = collect_index_files(builder.workspace_root, fast_options)
        results = await builder.process_files(list(reversed(entries)), fast_options)

        assert [f.relative_path for f in results] == ["b.ts", "a.ts"]


def test_error_message_strips_code():
    assert error_message(IndexOperationError("nope", ENOENT, "/x")) == "nope"
    assert error_message(ValueError("bad value")) == "bad value"
    assert error_message(KeyError()) == "KeyError"
