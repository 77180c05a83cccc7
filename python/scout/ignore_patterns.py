"""
Exclusion rules applied to discovered files before indexing.

Two kinds of pattern are supported:

- Plain tokens ("node_modules", "dist") are substring-matched against the
  forward-slash relative path and against the basename. "build" therefore
  also excludes "rebuild.ts"; that is the long-standing behaviour of the
  index format and existing indexes depend on it.
- Tokens containing glob metacharacters (``*``, ``?``, ``[``) are matched with
  gitignore semantics through pathspec.

Optionally the workspace .gitignore is honoured as well.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from pathspec import GitIgnoreSpec

logger = logging.getLogger("scout.ignore_patterns")

GLOB_CHARS = ("*", "?", "[")


def is_glob_pattern(pattern: str) -> bool:
    return any(ch in pattern for ch in GLOB_CHARS)


def load_gitignore(workspace_root: Path) -> Optional[GitIgnoreSpec]:
    """
    Load .gitignore patterns from the workspace root.

    Args:
        workspace_root: Path to workspace directory

    Returns:
        GitIgnoreSpec for the .gitignore, or None when there is no readable file
    """
    gitignore = workspace_root / ".gitignore"
    if not gitignore.exists():
        return None

    try:
        lines = gitignore.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read .gitignore: {e}")
        return None

    patterns = [
        line for line in lines if line.strip() and not line.strip().startswith("#")
    ]
    return GitIgnoreSpec.from_lines(patterns)


class ExclusionFilter:
    """
    Decide whether a discovered file is excluded from the index.

    Example:
        >>> f = ExclusionFilter(["node_modules", "*.min.js"])
        >>> f.is_excluded("src/vendor/node_modules/x.js")
        True
        >>> f.is_excluded("static/app.min.js")
        True
    """

    def __init__(
        self,
        patterns: Iterable[str] = (),
        workspace_root: Optional[Path] = None,
        use_gitignore: bool = False,
    ):
        self.patterns = [p for p in patterns if p]
        self._substrings = [p for p in self.patterns if not is_glob_pattern(p)]
        globs = [p for p in self.patterns if is_glob_pattern(p)]
        self._glob_spec = GitIgnoreSpec.from_lines(globs) if globs else None

        self._gitignore_spec = None
        if use_gitignore and workspace_root is not None:
            self._gitignore_spec = load_gitignore(Path(workspace_root))
            if self._gitignore_spec is not None:
                logger.debug(f"Honouring .gitignore in {workspace_root}")

    def is_excluded(self, relative_path: str, basename: Optional[str] = None) -> bool:
        """
        Args:
            relative_path: Path relative to the workspace root (any separator)
            basename: File name; derived from relative_path when omitted

        Returns:
            True if any pattern matches
        """
        rel = relative_path.replace("\\", "/")
        if basename is None:
            basename = rel.rsplit("/", 1)[-1]

        for token in self._substrings:
            if token in rel or token in basename:
                return True

        if self._glob_spec is not None and self._glob_spec.match_file(rel):
            return True

        if self._gitignore_spec is not None and self._gitignore_spec.match_file(rel):
            return True

        return False

    def filter(self, entries, relative_path_of):
        """Return entries whose relative path is not excluded."""
        kept = []
        for entry in entries:
            if self.is_excluded(relative_path_of(entry)):
                continue
            kept.append(entry)
        return kept
