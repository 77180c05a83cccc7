"""
File discovery for workspace indexing.

Uses os.walk() with in-place directory pruning so hidden directories and
anything past max_depth are never descended into.

Depth semantics: files directly under the search root are at depth 0, files
in an immediate subdirectory at depth 1, and so on. Files at depth
``max_depth`` are still returned.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from scout.config import IndexOptions
from scout.errors import EINVAL, ENOENT, ENOTDIR, IndexOperationError
from scout.extensions import ExtensionSpec, expand_extensions, normalize_extension
from scout.ignore_patterns import ExclusionFilter

logger = logging.getLogger("scout.workspace")


@dataclass
class FileEntry:
    """A discovered file. Stat fields are None when the file could not be stat'ed."""

    name: str
    path: str  # absolute
    size: Optional[int] = None
    modified: Optional[float] = None  # POSIX mtime


def to_relative_path(file_path: Union[str, Path], workspace_root: Union[str, Path]) -> str:
    """Relative path with forward slashes regardless of OS."""
    rel = os.path.relpath(str(file_path), str(workspace_root))
    return rel.replace("\\", "/")


def _on_walk_error(error: OSError) -> None:
    # Unreadable directory: skip the subtree, keep walking
    logger.warning(f"Skipping unreadable directory {error.filename}: {error.strerror}")


def discover(
    root: Union[str, Path],
    extensions: ExtensionSpec,
    include_hidden: bool = False,
    max_depth: int = 10,
    case_sensitive: bool = False,
) -> list[FileEntry]:
    """
    Enumerate files under root whose extension is in the resolved set.

    Args:
        root: Directory to search
        extensions: Alias token, comma-separated string or list of extensions
        include_hidden: Include dotfiles and descend into dot-directories
        max_depth: Maximum directory depth below root
        case_sensitive: Compare extensions case-sensitively

    Returns:
        FileEntry list sorted by absolute path

    Raises:
        IndexOperationError: EINVAL with no extensions, ENOENT/ENOTDIR for a bad root
    """
    resolved = expand_extensions(extensions) if extensions else []
    if not resolved:
        raise IndexOperationError("No extensions provided", EINVAL)
    wanted = {normalize_extension(ext, case_sensitive) for ext in resolved}

    root_path = Path(root).resolve()
    if not root_path.exists():
        raise IndexOperationError(f"Path does not exist: {root_path}", ENOENT, str(root_path))
    if not root_path.is_dir():
        raise IndexOperationError(f"Path is not a directory: {root_path}", ENOTDIR, str(root_path))

    root_str = str(root_path)
    results: list[FileEntry] = []

    for current, dirs, files in os.walk(root_str, onerror=_on_walk_error):
        if current == root_str:
            depth = 0
        else:
            depth = len(os.path.relpath(current, root_str).split(os.sep))

        if depth >= max_depth:
            dirs[:] = []
        elif not include_hidden:
            dirs[:] = [d for d in dirs if not d.startswith(".")]

        for name in files:
            if not include_hidden and name.startswith("."):
                continue

            ext = os.path.splitext(name)[1]
            if not ext:
                continue
            check_ext = ext if case_sensitive else ext.lower()
            if check_ext not in wanted:
                continue

            file_path = os.path.join(current, name)
            if os.path.islink(file_path):
                continue

            try:
                st = os.stat(file_path)
                results.append(
                    FileEntry(name=name, path=file_path, size=st.st_size, modified=st.st_mtime)
                )
            except OSError as e:
                logger.warning(f"Could not get stats for {file_path}: {e}")
                results.append(FileEntry(name=name, path=file_path))

    results.sort(key=lambda entry: entry.path)
    return results


def collect_index_files(workspace_root: Union[str, Path], options: IndexOptions) -> list[FileEntry]:
    """
    Discovery as performed by the index builder and updater.

    Resolves options.search_path against the workspace root, discovers files,
    drops excluded paths (relative to the workspace root) and caps the result
    at options.max_files. Shared by build and update so both see the same
    file set for the same stored options.
    """
    workspace_root = Path(workspace_root)
    search_root = Path(options.search_path or ".")
    if not search_root.is_absolute():
        search_root = workspace_root / search_root

    entries = discover(
        search_root,
        options.extensions,
        include_hidden=options.include_hidden,
        max_depth=options.max_depth,
        case_sensitive=False,
    )

    exclusions = ExclusionFilter(
        options.exclude_patterns or [],
        workspace_root=workspace_root,
        use_gitignore=options.use_gitignore,
    )
    kept = exclusions.filter(entries, lambda entry: to_relative_path(entry.path, workspace_root))

    if len(kept) > options.max_files:
        logger.info(f"Capping {len(kept)} discovered files at max_files={options.max_files}")
        kept = kept[: options.max_files]

    logger.debug(
        f"Discovered {len(entries)} files under {search_root}, "
        f"{len(entries) - len(kept)} excluded or capped"
    )
    return kept
