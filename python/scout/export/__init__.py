"""Index export in JSON / CSV / Markdown / HTML."""

from scout.export.exporter import (
    SUPPORTED_FORMATS,
    escape_csv_field,
    export_index,
    filter_index,
    to_csv,
    to_html,
    to_markdown,
)

__all__ = [
    "SUPPORTED_FORMATS",
    "escape_csv_field",
    "export_index",
    "filter_index",
    "to_csv",
    "to_html",
    "to_markdown",
]
