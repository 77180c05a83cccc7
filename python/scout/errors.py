"""
Error taxonomy for the indexing engine.

Two families of failure exist:

1. WORKSPACE-LEVEL (raised): no workspace root, nothing discovered, an update
   already running, a malformed persisted index. These carry a stable,
   machine-readable ``code`` and are surfaced verbatim to the caller.

2. PER-FILE (never raised by the builder/updater): a stat or extraction failure
   for one file. These are stored as strings in that file's ``errors`` list and
   the file still appears in the index.
"""

from typing import Optional

ENOWORKSPACE = "ENOWORKSPACE"
ENOENT = "ENOENT"
ENOTDIR = "ENOTDIR"
EBUSY = "EBUSY"
EINVAL = "EINVAL"
ENOINDEX = "ENOINDEX"
EWRITE = "EWRITE"
EUNKNOWN = "EUNKNOWN"
ENOSYMBOLPROVIDER = "ENOSYMBOLPROVIDER"


class IndexOperationError(Exception):
    """Workspace-level failure with a stable error code."""

    def __init__(self, message: str, code: str = EUNKNOWN, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"[{self.code}] {self.message} ({self.path})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"code": self.code, "message": self.message, "path": self.path}


class NoProviderError(IndexOperationError):
    """Raised by an extractor that has no symbol provider for a file type."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, ENOSYMBOLPROVIDER, path)
