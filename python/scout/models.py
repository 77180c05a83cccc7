"""
Data model for the persisted workspace index.

The JSON document written to disk is the durable contract, so every record
here converts to and from the exact camelCase field names used on disk:

    {
      "metadata": {version, createdAt, updatedAt?, workspacePath,
                   workspaceName, totalFiles, totalSymbols, indexOptions},
      "files":    [{filePath, relativePath, fileInfo, symbols,
                    symbolCount, errors?}],
      "summary":  {filesByExtension, symbolsByKind, largestFiles,
                   mostSymbols, recentFiles, errorFiles}
    }

Optional fields (updatedAt, errors, detail, children) are omitted from the
serialized form when absent rather than written as null.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

INDEX_VERSION = "1.0.0"


def to_iso(dt: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with millisecond precision and a Z suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


def timestamp_to_iso(timestamp: float) -> str:
    """Convert a POSIX timestamp (e.g. st_mtime) to the stored ISO form."""
    return to_iso(datetime.fromtimestamp(timestamp, tz=timezone.utc))


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp; returns None for empty or unparseable input."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# ═══════════════════════════════════════════════════════════════════════════════
# Symbols
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Position:
    line: int
    character: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Position":
        return cls(line=int(data["line"]), character=int(data["character"]))


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Range":
        return cls(start=Position.from_dict(data["start"]), end=Position.from_dict(data["end"]))


@dataclass
class SymbolInfo:
    """One node of a file's symbol tree. ``level`` is 0 for top-level symbols."""

    name: str
    kind: str
    range: Range
    selection_range: Range
    level: int = 0
    detail: Optional[str] = None
    children: Optional[list["SymbolInfo"]] = None

    def walk(self):
        """Yield this symbol and all of its descendants, depth-first."""
        yield self
        for child in self.children or []:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind,
            "range": self.range.to_dict(),
            "selectionRange": self.selection_range.to_dict(),
        }
        if self.detail is not None:
            result["detail"] = self.detail
        if self.children is not None:
            result["children"] = [child.to_dict() for child in self.children]
        result["level"] = self.level
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SymbolInfo":
        symbol_range = Range.from_dict(data["range"])
        selection = data.get("selectionRange")
        children = data.get("children")
        return cls(
            name=data["name"],
            kind=data.get("kind", ""),
            range=symbol_range,
            selection_range=Range.from_dict(selection) if selection else symbol_range,
            level=int(data.get("level", 0)),
            detail=data.get("detail"),
            children=[cls.from_dict(c) for c in children] if children is not None else None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Files
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class FileInfo:
    size: int
    modified: str  # ISO-8601, "" when unknown
    extension: str  # lowercase, no leading dot
    basename: str
    directory: str  # forward-slash, relative to the workspace

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "modified": self.modified,
            "extension": self.extension,
            "basename": self.basename,
            "directory": self.directory,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "FileInfo":
        data = data or {}
        return cls(
            size=int(data.get("size") or 0),
            modified=data.get("modified") or "",
            extension=data.get("extension", ""),
            basename=data.get("basename", ""),
            directory=data.get("directory", ""),
        )


@dataclass
class FileIndex:
    """Index entry for one file, keyed by ``relative_path`` when diffing."""

    file_path: str
    relative_path: str
    file_info: FileInfo
    symbols: list[SymbolInfo] = field(default_factory=list)
    symbol_count: int = 0
    errors: Optional[list[str]] = None

    def __post_init__(self):
        # symbolCount counts top-level symbols only
        self.symbol_count = len(self.symbols)

    def iter_symbols(self):
        """Every symbol in this file, descending into children."""
        for symbol in self.symbols:
            yield from symbol.walk()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "filePath": self.file_path,
            "relativePath": self.relative_path,
            "fileInfo": self.file_info.to_dict(),
            "symbols": [s.to_dict() for s in self.symbols],
            "symbolCount": self.symbol_count,
        }
        if self.errors:
            result["errors"] = list(self.errors)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileIndex":
        return cls(
            file_path=data.get("filePath", ""),
            relative_path=data["relativePath"],
            file_info=FileInfo.from_dict(data.get("fileInfo")),
            symbols=[SymbolInfo.from_dict(s) for s in data.get("symbols") or []],
            errors=list(data["errors"]) if data.get("errors") else None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Index
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class IndexMetadata:
    version: str
    created_at: str
    workspace_path: str
    workspace_name: str
    total_files: int
    total_symbols: int
    index_options: dict[str, Any] = field(default_factory=dict)
    updated_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "version": self.version,
            "createdAt": self.created_at,
        }
        if self.updated_at is not None:
            result["updatedAt"] = self.updated_at
        result.update(
            {
                "workspacePath": self.workspace_path,
                "workspaceName": self.workspace_name,
                "totalFiles": self.total_files,
                "totalSymbols": self.total_symbols,
                "indexOptions": dict(self.index_options),
            }
        )
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IndexMetadata":
        return cls(
            version=data.get("version", INDEX_VERSION),
            created_at=data.get("createdAt", ""),
            workspace_path=data.get("workspacePath", ""),
            workspace_name=data.get("workspaceName", ""),
            total_files=int(data.get("totalFiles", 0)),
            total_symbols=int(data.get("totalSymbols", 0)),
            index_options=dict(data.get("indexOptions") or {}),
            updated_at=data.get("updatedAt"),
        )


@dataclass
class IndexSummary:
    files_by_extension: dict[str, int] = field(default_factory=dict)
    symbols_by_kind: dict[str, int] = field(default_factory=dict)
    largest_files: list[dict[str, Any]] = field(default_factory=list)  # {path, size}
    most_symbols: list[dict[str, Any]] = field(default_factory=list)  # {path, count}
    recent_files: list[dict[str, Any]] = field(default_factory=list)  # {path, modified}
    error_files: list[dict[str, Any]] = field(default_factory=list)  # {path, errors}

    def to_dict(self) -> dict[str, Any]:
        return {
            "filesByExtension": dict(self.files_by_extension),
            "symbolsByKind": dict(self.symbols_by_kind),
            "largestFiles": [dict(e) for e in self.largest_files],
            "mostSymbols": [dict(e) for e in self.most_symbols],
            "recentFiles": [dict(e) for e in self.recent_files],
            "errorFiles": [dict(e) for e in self.error_files],
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "IndexSummary":
        data = data or {}
        return cls(
            files_by_extension=dict(data.get("filesByExtension") or {}),
            symbols_by_kind=dict(data.get("symbolsByKind") or {}),
            largest_files=list(data.get("largestFiles") or []),
            most_symbols=list(data.get("mostSymbols") or []),
            recent_files=list(data.get("recentFiles") or []),
            error_files=list(data.get("errorFiles") or []),
        )


@dataclass
class WorkspaceIndex:
    """
    Top-level versioned artifact.

    Treated as immutable once returned: an update produces a new
    WorkspaceIndex rather than mutating an existing one.
    """

    metadata: IndexMetadata
    files: list[FileIndex]
    summary: IndexSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "files": [f.to_dict() for f in self.files],
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkspaceIndex":
        return cls(
            metadata=IndexMetadata.from_dict(data.get("metadata") or {}),
            files=[FileIndex.from_dict(f) for f in data.get("files") or []],
            summary=IndexSummary.from_dict(data.get("summary")),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Query results
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class IndexedSymbol:
    """Flat symbol table element. ``file_path`` is the persisted relative path."""

    name: str
    file_path: str
    line: int
    character: int
    kind: Optional[str] = None
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "filePath": self.file_path,
            "line": self.line,
            "character": self.character,
            "kind": self.kind,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class SymbolLocation:
    """A ranked search hit, from either the flat table or a live provider."""

    name: str
    relative_path: str
    line: int
    character: int
    kind: Optional[str] = None
    detail: Optional[str] = None
    file_path: Optional[str] = None  # absolute, when known
    container_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "filePath": self.file_path,
            "relativePath": self.relative_path,
            "line": self.line,
            "character": self.character,
            "detail": self.detail,
            "containerName": self.container_name,
        }


@dataclass(frozen=True)
class SymbolReference:
    file_path: str
    relative_path: str
    line: int
    character: int
    end_line: int
    end_character: int
    context: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "filePath": self.file_path,
            "relativePath": self.relative_path,
            "range": {
                "start": {"line": self.line, "character": self.character},
                "end": {"line": self.end_line, "character": self.end_character},
            },
        }
        if self.context is not None:
            result["context"] = self.context
        return result


# ═══════════════════════════════════════════════════════════════════════════════
# Operation results
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class IndexUpdateResult:
    updated: list[FileIndex] = field(default_factory=list)
    added: list[FileIndex] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    unchanged: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)  # {path, error}

    @property
    def has_changes(self) -> bool:
        return bool(self.updated or self.added or self.removed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "updated": [f.to_dict() for f in self.updated],
            "added": [f.to_dict() for f in self.added],
            "removed": list(self.removed),
            "unchanged": self.unchanged,
            "errors": [dict(e) for e in self.errors],
        }


@dataclass
class ExportResult:
    output_path: str
    format: str
    size: int
    files_exported: int
    symbols_exported: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "outputPath": self.output_path,
            "format": self.format,
            "size": self.size,
            "filesExported": self.files_exported,
            "symbolsExported": self.symbols_exported,
        }


@dataclass
class TableStatus:
    """State of the flat symbol table after load/clear, or on inspection."""

    is_loaded: bool
    symbol_count: int = 0
    loaded_path: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    was_loaded: bool = False  # only meaningful for clear()

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata,
            "loadedPath": self.loaded_path,
            "symbolCount": self.symbol_count,
            "isLoaded": self.is_loaded,
        }
