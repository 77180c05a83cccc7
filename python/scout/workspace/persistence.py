"""
Reading and writing the persisted index document.

The index is a single JSON file (optionally gzip-compressed when the name
ends in ``.gz``). Writes are pretty-printed with a 2-space indent.
"""

import gzip
import json
import logging
from pathlib import Path
from typing import Any, Union

from scout.errors import EINVAL, ENOENT, EWRITE, IndexOperationError
from scout.models import WorkspaceIndex

logger = logging.getLogger("scout.workspace")


def read_index_document(path: Union[str, Path]) -> dict[str, Any]:
    """
    Read and parse an index file without validating its structure.

    Raises:
        IndexOperationError: ENOENT if the file is missing, EINVAL for invalid JSON
    """
    path = Path(path)
    if not path.is_file():
        raise IndexOperationError(f"Index file not found: {path}", ENOENT, str(path))

    try:
        if path.suffix == ".gz":
            with gzip.open(path, "rt", encoding="utf-8") as f:
                raw = f.read()
        else:
            raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IndexOperationError(f"Failed to read index file: {e}", ENOENT, str(path)) from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise IndexOperationError(f"Invalid JSON in index file: {e}", EINVAL, str(path)) from e

    if not isinstance(data, dict):
        raise IndexOperationError("Invalid index format: expected a JSON object", EINVAL, str(path))
    return data


def validate_files_array(data: dict[str, Any], path: str) -> list[dict[str, Any]]:
    """Return data["files"], raising EINVAL when it is missing or malformed."""
    files = data.get("files")
    if not isinstance(files, list):
        raise IndexOperationError("Invalid index format: missing 'files' array", EINVAL, path)
    for entry in files:
        if not isinstance(entry, dict) or "relativePath" not in entry:
            raise IndexOperationError(
                "Invalid index format: file entry without 'relativePath'", EINVAL, path
            )
        symbols = entry.get("symbols", [])
        if not isinstance(symbols, list):
            raise IndexOperationError(
                f"Invalid index format: 'symbols' of {entry['relativePath']} is not an array",
                EINVAL,
                path,
            )
    return files


def load_workspace_index(path: Union[str, Path]) -> WorkspaceIndex:
    """Read a persisted index into model objects."""
    data = read_index_document(path)
    validate_files_array(data, str(path))
    try:
        return WorkspaceIndex.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise IndexOperationError(f"Invalid index format: {e}", EINVAL, str(path)) from e


def save_index(index: WorkspaceIndex, output_path: Union[str, Path]) -> str:
    """
    Write the index as pretty JSON.

    Returns:
        Confirmation message including the size in KB

    Raises:
        IndexOperationError: EWRITE on any failure
    """
    output_path = Path(output_path)
    try:
        content = json.dumps(index.to_dict(), indent=2, ensure_ascii=False)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
    except (OSError, TypeError, ValueError) as e:
        raise IndexOperationError(f"Failed to save index: {e}", EWRITE, str(output_path)) from e

    size_kb = round(len(content.encode("utf-8")) / 1024)
    logger.info(f"💾 Index saved to {output_path} ({size_kb} KB)")
    return f"✅ Index saved to {output_path} ({size_kb} KB)"
