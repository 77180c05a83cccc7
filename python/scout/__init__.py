"""
Scout - workspace symbol indexing engine.

Builds a persistable index of a project's files and symbols, keeps it
current incrementally, and answers ranked name queries against it.
"""

__version__ = "0.1.0"

from scout.config import (
    ExportOptions,
    IndexOptions,
    ReferenceOptions,
    SearchOptions,
    Settings,
    UpdateOptions,
)
from scout.errors import IndexOperationError, NoProviderError
from scout.models import WorkspaceIndex
from scout.service import IndexService

__all__ = [
    "ExportOptions",
    "IndexOperationError",
    "IndexOptions",
    "IndexService",
    "NoProviderError",
    "ReferenceOptions",
    "SearchOptions",
    "Settings",
    "UpdateOptions",
    "WorkspaceIndex",
    "__version__",
]
