"""
Extension alias table and default exclusion constants.

Aliases are resolved once, at the API boundary, before a value reaches
FileDiscovery. Separated from ignore_patterns.py so the static tables can be
imported without pulling in pathspec.
"""

from typing import Union

ExtensionSpec = Union[str, list[str], tuple[str, ...]]

# ═══════════════════════════════════════════════════════════════════════════════
# Extension groups
# ═══════════════════════════════════════════════════════════════════════════════
EXTENSION_GROUPS: dict[str, list[str]] = {
    "code": [
        ".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".cpp", ".c",
        ".cs", ".php", ".rb", ".go", ".rs", ".swift", ".kt",
    ],
    "web": [".html", ".css", ".scss", ".sass", ".less", ".vue", ".svelte"],
    "docs": [".md", ".txt", ".doc", ".docx", ".pdf", ".rtf", ".odt"],
    "config": [".json", ".yaml", ".yml", ".toml", ".ini", ".conf", ".config"],
    "images": [".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".bmp", ".ico"],
    "media": [
        ".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm",
        ".mp3", ".wav", ".flac", ".ogg",
    ],
    "data": [".csv", ".xml", ".sql", ".db", ".sqlite", ".json", ".parquet"],
}

DEFAULT_EXTENSIONS = "code"

# Plain tokens are substring-matched against the relative path and basename
DEFAULT_EXCLUDE_PATTERNS = ["node_modules", ".git", "dist", "build", ".next", ".nuxt"]


def expand_extensions(extensions: ExtensionSpec) -> list[str]:
    """
    Resolve an extension spec to a concrete list of extensions.

    Accepts:
    - a list/tuple of extensions (returned as a list, unchanged)
    - an alias token ("code", "web", ...) from EXTENSION_GROUPS
    - a comma-separated string (".ts, .py")
    - a single extension (".ts" or "ts")

    Entries are returned as given; use normalize_extension() to canonicalize.
    """
    if isinstance(extensions, (list, tuple)):
        return list(extensions)

    token = extensions.strip()
    if token in EXTENSION_GROUPS:
        return list(EXTENSION_GROUPS[token])

    if "," in token:
        return [ext.strip() for ext in token.split(",") if ext.strip()]

    return [token] if token else []


def normalize_extension(ext: str, case_sensitive: bool = False) -> str:
    """Return ext with exactly one leading dot (lowercased unless case_sensitive)."""
    ext = ext.strip()
    normalized = ext if ext.startswith(".") else f".{ext}"
    return normalized if case_sensitive else normalized.lower()


def extension_label(ext: str) -> str:
    """Stored form of an extension: lowercase, no leading dot."""
    return ext.lower().lstrip(".")


def build_watch_glob(extensions: ExtensionSpec) -> str:
    """
    Build the ``**/*.{a,b}`` glob a watcher uses for the resolved extensions.

    Falls back to ``**/*`` when nothing usable is configured.
    """
    resolved = [extension_label(e) for e in expand_extensions(extensions) if e.strip()]
    if not resolved:
        return "**/*"
    if len(resolved) == 1:
        return f"**/*.{resolved[0]}"
    return "**/*.{" + ",".join(resolved) + "}"
