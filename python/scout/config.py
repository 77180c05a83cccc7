"""
Option records and environment-driven settings.

Option dataclasses describe a single call (build, update, search, export).
Settings are process-wide tunables read from SCOUT_* environment variables.

IndexOptions is persisted inside every index (metadata.indexOptions) so that
an incremental update can re-discover files with exactly the same filters.
The persisted form uses camelCase keys.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Optional

from scout.extensions import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_EXTENSIONS, ExtensionSpec

logger = logging.getLogger("scout.config")

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY = 0.05  # seconds between batches
DEFAULT_DEBOUNCE_SECONDS = 2.0
DEFAULT_MAX_FILES = 5000
DEFAULT_MAX_DEPTH = 20
DEFAULT_SYMBOL_MAX_DEPTH = 10
DEFAULT_MAX_RESULTS = 100
DEFAULT_MAX_REFERENCES = 1000

# Mapping between dataclass attribute and persisted key
_INDEX_OPTION_KEYS = {
    "extensions": "extensions",
    "include_hidden": "includeHidden",
    "include_symbols": "includeSymbols",
    "include_file_info": "includeFileInfo",
    "max_files": "maxFiles",
    "max_depth": "maxDepth",
    "exclude_patterns": "excludePatterns",
    "use_gitignore": "useGitignore",
    "search_path": "searchPath",
}


@dataclass
class IndexOptions:
    """Filters and limits for building an index."""

    extensions: ExtensionSpec = DEFAULT_EXTENSIONS
    include_hidden: bool = False
    include_symbols: bool = True
    include_file_info: bool = True
    max_files: int = DEFAULT_MAX_FILES
    max_depth: int = DEFAULT_MAX_DEPTH
    exclude_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    use_gitignore: bool = False
    search_path: str = "."
    # Scheduling knobs (not persisted)
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay: float = DEFAULT_BATCH_DELAY
    symbol_max_depth: int = DEFAULT_SYMBOL_MAX_DEPTH

    def to_dict(self) -> dict[str, Any]:
        """Persisted (camelCase) form stored in metadata.indexOptions."""
        result = {}
        for attr, key in _INDEX_OPTION_KEYS.items():
            value = getattr(self, attr)
            if isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, list):
                value = list(value)
            result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "IndexOptions":
        """Rebuild options from a persisted block; unknown keys are ignored."""
        options = cls()
        if not data:
            return options
        for attr, key in _INDEX_OPTION_KEYS.items():
            if key in data and data[key] is not None:
                setattr(options, attr, data[key])
        return options


@dataclass
class UpdateOptions:
    """Options for an incremental update."""

    watch_files: bool = False
    refresh_all: bool = False
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay: float = DEFAULT_BATCH_DELAY


@dataclass
class SearchOptions:
    """Options for ranked name search."""

    case_sensitive: bool = False
    exact_match: bool = False
    max_results: int = DEFAULT_MAX_RESULTS
    kind_filter: list[str] = field(default_factory=list)


@dataclass
class ReferenceOptions:
    """Options for reference lookup."""

    include_declaration: bool = True
    max_results: int = DEFAULT_MAX_REFERENCES
    context_lines: int = 0


@dataclass
class ExportOptions:
    """Options for writing an index to disk in another format."""

    format: str = "json"
    compress: bool = False
    include_symbols: bool = True
    include_file_info: bool = True
    minify: bool = False
    split_by_extension: bool = False


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using default {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using default {default}")
        return default
    return value


@dataclass
class Settings:
    """
    Process-wide tunables.

    Environment Variables:
    - SCOUT_BATCH_SIZE: files processed per batch (default: 10)
    - SCOUT_BATCH_DELAY: seconds to pause between batches (default: 0.05)
    - SCOUT_DEBOUNCE_SECONDS: watcher debounce window (default: 2.0)
    - SCOUT_MAX_FILES: default cap on indexed files (default: 5000)
    - SCOUT_LOG_DIR: directory for rotating log files (default: .scout/logs)
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay: float = DEFAULT_BATCH_DELAY
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    max_files: int = DEFAULT_MAX_FILES
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            batch_size=_env_number("SCOUT_BATCH_SIZE", DEFAULT_BATCH_SIZE, int),
            batch_delay=_env_number("SCOUT_BATCH_DELAY", DEFAULT_BATCH_DELAY, float),
            debounce_seconds=_env_number("SCOUT_DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS, float),
            max_files=_env_number("SCOUT_MAX_FILES", DEFAULT_MAX_FILES, int),
            log_dir=os.getenv("SCOUT_LOG_DIR") or None,
        )

    def index_options(self, **overrides) -> IndexOptions:
        """IndexOptions seeded from these settings."""
        options = IndexOptions(
            max_files=self.max_files,
            batch_size=self.batch_size,
            batch_delay=self.batch_delay,
        )
        valid = {f.name for f in fields(IndexOptions)}
        for key, value in overrides.items():
            if key not in valid:
                raise TypeError(f"Unknown index option: {key}")
            setattr(options, key, value)
        return options

    def update_options(self, **overrides) -> UpdateOptions:
        """UpdateOptions seeded from these settings."""
        options = UpdateOptions(batch_size=self.batch_size, batch_delay=self.batch_delay)
        for key, value in overrides.items():
            if not hasattr(options, key):
                raise TypeError(f"Unknown update option: {key}")
            setattr(options, key, value)
        return options
