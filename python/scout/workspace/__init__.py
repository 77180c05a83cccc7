"""
Workspace indexing: discovery, building, incremental updates, persistence.
"""

from scout.workspace.builder import IndexBuilder
from scout.workspace.discovery import FileEntry, collect_index_files, discover, to_relative_path
from scout.workspace.persistence import load_workspace_index, read_index_document, save_index
from scout.workspace.summary import create_index_summary
from scout.workspace.updater import IncrementalUpdater, has_file_changed

__all__ = [
    "FileEntry",
    "IncrementalUpdater",
    "IndexBuilder",
    "collect_index_files",
    "create_index_summary",
    "discover",
    "has_file_changed",
    "load_workspace_index",
    "read_index_document",
    "save_index",
    "to_relative_path",
]
