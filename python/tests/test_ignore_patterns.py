"""
Test exclusion rules: substring tokens, glob tokens and .gitignore.
"""

import warnings
from pathlib import Path

import pytest
from pathspec import GitIgnoreSpec

from scout.ignore_patterns import ExclusionFilter, is_glob_pattern, load_gitignore


class TestSubstringTokens:
    """Plain tokens match anywhere in the relative path or the basename."""

    def test_directory_token(self):
        f = ExclusionFilter(["node_modules"])
        assert f.is_excluded("web/node_modules/react/index.js") is True
        assert f.is_excluded("web/src/index.js") is False

    def test_token_matches_inside_names(self):
        f = ExclusionFilter(["build"])
        assert f.is_excluded("src/rebuild.ts") is True

    def test_basename_argument(self):
        f = ExclusionFilter(["secret"])
        assert f.is_excluded("config/app.py", basename="secret_app.py") is True

    def test_backslashes_are_normalized(self):
        f = ExclusionFilter(["dist/"])
        assert f.is_excluded("pkg\\dist\\bundle.js") is True

    def test_empty_patterns_are_ignored(self):
        f = ExclusionFilter(["", "dist"])
        assert f.patterns == ["dist"]
        assert f.is_excluded("src/app.py") is False


class TestGlobTokens:
    def test_is_glob_pattern(self):
        assert is_glob_pattern("*.min.js")
        assert is_glob_pattern("file?.py")
        assert is_glob_pattern("[ab].py")
        assert not is_glob_pattern("node_modules")

    def test_glob_uses_gitignore_semantics(self):
        f = ExclusionFilter(["*.min.js", "generated/**"])
        assert f.is_excluded("static/app.min.js") is True
        assert f.is_excluded("generated/deep/file.py") is True
        assert f.is_excluded("static/app.js") is False

    def test_glob_spec_builds_without_deprecation_warning(self, tmp_path):
        (tmp_path / ".gitignore").write_text("*.log\n")
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            f = ExclusionFilter(["*.min.js"], tmp_path, use_gitignore=True)
        assert isinstance(load_gitignore(tmp_path), GitIgnoreSpec)
        assert f.is_excluded("debug.log") is True


class TestGitignore:
    @pytest.fixture
    def workspace(self, tmp_path):
        (tmp_path / ".gitignore").write_text("# comment\n\n*.log\nout/\n")
        return tmp_path

    def test_load_gitignore(self, workspace):
        spec = load_gitignore(workspace)
        assert spec is not None
        assert spec.match_file("debug.log")
        assert spec.match_file("out/a.py")
        assert not spec.match_file("src/a.py")

    def test_missing_gitignore(self, tmp_path):
        assert load_gitignore(tmp_path) is None

    def test_gitignore_only_when_enabled(self, workspace):
        assert ExclusionFilter([], workspace, use_gitignore=False).is_excluded("out/a.py") is False
        assert ExclusionFilter([], workspace, use_gitignore=True).is_excluded("out/a.py") is True

    def test_filter(self, workspace):
        f = ExclusionFilter(["vendor"], workspace, use_gitignore=True)
        entries = [Path("src/a.py"), Path("vendor/b.py"), Path("out/c.py")]
        kept = f.filter(entries, lambda p: p.as_posix())
        assert kept == [Path("src/a.py")]
