"""
Write a WorkspaceIndex to disk as JSON, CSV, Markdown or HTML.

Formats:
- json:      the persisted document shape; optionally gzip'd (``.json.gz``)
             or split into one shard per extension
- csv:       one row per file; formula-injection safe
- markdown:  human-readable report (first 100 files)
- html:      standalone report page (first 200 files), all text entity-escaped

The include_symbols / include_file_info filters are applied once, before any
serialization, so every format sees the same filtered index.
"""

import csv
import gzip
import html
import io
import json
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional, Union

from scout.config import ExportOptions
from scout.errors import EINVAL, EWRITE, IndexOperationError
from scout.models import ExportResult, FileIndex, FileInfo, WorkspaceIndex
from scout.workspace.summary import NO_EXTENSION, total_symbols

logger = logging.getLogger("scout.export")

SUPPORTED_FORMATS = ("json", "csv", "markdown", "html")
CSV_HEADER = [
    "FilePath", "RelativePath", "Extension", "Size",
    "Modified", "SymbolCount", "SymbolKinds", "Errors",
]
MARKDOWN_FILE_LIMIT = 100
HTML_FILE_LIMIT = 200
FORMULA_PREFIXES = ("=", "+", "-", "@")


def escape_csv_field(value: str) -> str:
    """Neutralize spreadsheet formulas; quoting is left to the csv writer."""
    if value and value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


def escape_markdown(value: str) -> str:
    return value.replace("|", "\\|")


def replace_or_add_extension(file_path: str, new_ext: str) -> str:
    root, ext = os.path.splitext(file_path)
    return (root if ext else file_path) + new_ext


def filter_index(index: WorkspaceIndex, include_symbols: bool = True, include_file_info: bool = True) -> WorkspaceIndex:
    """Copy of index with symbols and/or file metadata stripped."""
    files = []
    for f in index.files:
        file_info = f.file_info
        if not include_file_info:
            file_info = FileInfo(
                size=0,
                modified="",
                extension=f.file_info.extension,
                basename=f.file_info.basename,
                directory=f.file_info.directory,
            )
        files.append(
            FileIndex(
                file_path=f.file_path,
                relative_path=f.relative_path,
                file_info=file_info,
                symbols=list(f.symbols) if include_symbols else [],
                errors=list(f.errors) if f.errors else None,
            )
        )

    metadata = replace(
        index.metadata,
        total_symbols=index.metadata.total_symbols if include_symbols else 0,
    )
    return WorkspaceIndex(metadata=metadata, files=files, summary=index.summary)


def _dump(document: dict[str, Any], minify: bool) -> str:
    if minify:
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(document, indent=2, ensure_ascii=False)


def _write(path: str, content: str, compress: bool) -> str:
    if compress:
        path = path + ".gz"
        Path(path).write_bytes(gzip.compress(content.encode("utf-8")))
    else:
        Path(path).write_text(content, encoding="utf-8")
    return path


def _distinct_kinds(file_index: FileIndex) -> list[str]:
    return list(dict.fromkeys(str(s.kind) for s in file_index.symbols))


# ═══════════════════════════════════════════════════════════════════════════════
# Renderers
# ═══════════════════════════════════════════════════════════════════════════════


def to_csv(index: WorkspaceIndex) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for f in index.files:
        writer.writerow(
            [
                escape_csv_field(f.file_path),
                escape_csv_field(f.relative_path),
                escape_csv_field(f.file_info.extension),
                str(f.file_info.size),
                escape_csv_field(f.file_info.modified),
                str(f.symbol_count),
                escape_csv_field(";".join(_distinct_kinds(f))),
                escape_csv_field(";".join(f.errors or [])),
            ]
        )
    return buffer.getvalue()


def _sorted_counts(counts: dict[str, int]) -> list[tuple[str, int]]:
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def to_markdown(index: WorkspaceIndex) -> str:
    meta = index.metadata
    lines = [
        f"# Workspace Index: {meta.workspace_name}",
        "",
        f"**Created:** {meta.created_at}",
        f"**Total Files:** {meta.total_files}",
        f"**Total Symbols:** {meta.total_symbols}",
        "",
        "## Files by Extension",
        "",
        "| Extension | Count |",
        "|-----------|-------|",
    ]
    for ext, count in _sorted_counts(index.summary.files_by_extension):
        lines.append(f"| {escape_markdown(ext)} | {count} |")
    lines += ["", "## Symbols by Kind", "", "| Symbol Kind | Count |", "|-------------|-------|"]
    for kind, count in _sorted_counts(index.summary.symbols_by_kind):
        lines.append(f"| {escape_markdown(kind)} | {count} |")
    lines += ["", "## File Details", ""]

    for f in index.files[:MARKDOWN_FILE_LIMIT]:
        lines.append(f"### {f.relative_path}")
        lines.append("")
        lines.append(f"- **Size:** {round(f.file_info.size / 1024)} KB")
        lines.append(f"- **Modified:** {f.file_info.modified or 'unknown'}")
        lines.append(f"- **Symbols:** {f.symbol_count}")
        if f.symbols:
            lines.append("- **Symbol Types:** " + ", ".join(_distinct_kinds(f)))
        if f.errors:
            lines.append("- **Errors:** " + ", ".join(f.errors))
        lines.append("")

    if len(index.files) > MARKDOWN_FILE_LIMIT:
        lines.append(f"*... and {len(index.files) - MARKDOWN_FILE_LIMIT} more files*")
    return "\n".join(lines)


_HTML_STYLE = """
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 40px; }
        .header { border-bottom: 2px solid #eee; padding-bottom: 20px; margin-bottom: 30px; }
        .stats { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; }
        .stat-card { background: #f8f9fa; padding: 15px; border-radius: 8px; }
        .stat-number { font-size: 2em; font-weight: bold; color: #0066cc; }
        table { width: 100%; border-collapse: collapse; margin: 20px 0; }
        th, td { padding: 12px; text-align: left; border-bottom: 1px solid #ddd; }
        th { background-color: #f8f9fa; font-weight: 600; }
        .symbol-count { background: #e3f2fd; padding: 2px 8px; border-radius: 12px; }
        .error { color: #d32f2f; }
"""


def _percentage(count: int, total: int) -> str:
    return "0.0" if total == 0 else f"{count / total * 100:.1f}"


def to_html(index: WorkspaceIndex) -> str:
    meta = index.metadata
    esc = html.escape
    name = esc(meta.workspace_name)

    ext_rows = "".join(
        f"<tr><td>{esc(ext)}</td><td>{count}</td><td>{_percentage(count, meta.total_files)}%</td></tr>"
        for ext, count in _sorted_counts(index.summary.files_by_extension)
    )
    kind_rows = "".join(
        f"<tr><td>{esc(kind)}</td><td>{count}</td><td>{_percentage(count, meta.total_symbols)}%</td></tr>"
        for kind, count in _sorted_counts(index.summary.symbols_by_kind)[:20]
    )

    file_rows = []
    for f in index.files[:HTML_FILE_LIMIT]:
        status = f'<span class="error">{len(f.errors)} errors</span>' if f.errors else "OK"
        file_rows.append(
            "<tr>"
            f"<td><code>{esc(f.relative_path)}</code></td>"
            f"<td>{round(f.file_info.size / 1024)} KB</td>"
            f"<td>{esc(f.file_info.modified[:10])}</td>"
            f'<td><span class="symbol-count">{f.symbol_count}</span></td>'
            f"<td>{status}</td>"
            "</tr>"
        )
    more = ""
    if len(index.files) > HTML_FILE_LIMIT:
        more = f"<p><em>... and {len(index.files) - HTML_FILE_LIMIT} more files</em></p>"

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Workspace Index: {name}</title>
    <style>{_HTML_STYLE}    </style>
</head>
<body>
    <div class="header">
        <h1>Workspace Index: {name}</h1>
        <p><strong>Created:</strong> {esc(meta.created_at)}</p>
    </div>
    <div class="stats">
        <div class="stat-card"><div class="stat-number">{meta.total_files}</div><div>Total Files</div></div>
        <div class="stat-card"><div class="stat-number">{meta.total_symbols}</div><div>Total Symbols</div></div>
        <div class="stat-card"><div class="stat-number">{len(index.summary.files_by_extension)}</div><div>File Types</div></div>
        <div class="stat-card"><div class="stat-number">{len(index.summary.error_files)}</div><div>Files with Errors</div></div>
    </div>
    <h2>Files by Extension</h2>
    <table>
        <thead><tr><th>Extension</th><th>Count</th><th>Percentage</th></tr></thead>
        <tbody>{ext_rows}</tbody>
    </table>
    <h2>Symbols by Kind</h2>
    <table>
        <thead><tr><th>Symbol Kind</th><th>Count</th><th>Percentage</th></tr></thead>
        <tbody>{kind_rows}</tbody>
    </table>
    <h2>File Details</h2>
    <table>
        <thead><tr><th>File</th><th>Size</th><th>Modified</th><th>Symbols</th><th>Status</th></tr></thead>
        <tbody>{"".join(file_rows)}</tbody>
    </table>
    {more}
</body>
</html>
"""


# ═══════════════════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════════════════


def _export_split(index: WorkspaceIndex, base_path: str, minify: bool, compress: bool) -> ExportResult:
    groups: dict[str, list[FileIndex]] = {}
    for f in index.files:
        groups.setdefault(f.file_info.extension or NO_EXTENSION, []).append(f)

    base_dir = os.path.dirname(base_path)
    base_name = os.path.splitext(os.path.basename(base_path))[0]
    output_paths = []

    main_document = index.to_dict()
    main_document["files"] = []
    main_document["extensions"] = list(groups)
    main_path = _write(os.path.join(base_dir, f"{base_name}.json"), _dump(main_document, minify), compress)
    output_paths.append(main_path)

    for ext, files in groups.items():
        shard_meta = replace(index.metadata, total_files=len(files), total_symbols=total_symbols(files))
        shard = {
            "metadata": shard_meta.to_dict(),
            "files": [f.to_dict() for f in files],
            "extension": ext,
        }
        shard_name = f"{base_name}_{ext.replace('.', '')}.json"
        output_paths.append(_write(os.path.join(base_dir, shard_name), _dump(shard, minify), compress))

    return ExportResult(
        output_path=", ".join(output_paths),
        format="json-split.gz" if compress else "json-split",
        size=sum(os.path.getsize(p) for p in output_paths),
        files_exported=len(index.files),
        symbols_exported=index.metadata.total_symbols,
    )


def export_index(
    index: WorkspaceIndex,
    output_path: Union[str, Path],
    options: Optional[ExportOptions] = None,
) -> ExportResult:
    """
    Serialize index to output_path.

    CSV/Markdown/HTML replace the file extension with .csv/.md/.html.
    Compression only applies to JSON.

    Raises:
        IndexOperationError: EINVAL for an unsupported format, EWRITE on write failure
    """
    options = options or ExportOptions()
    output_path = str(output_path)
    if options.format not in SUPPORTED_FORMATS:
        raise IndexOperationError(f"Unsupported export format: {options.format}", EINVAL, output_path)

    try:
        os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
        filtered = filter_index(index, options.include_symbols, options.include_file_info)

        if options.format == "json" and options.split_by_extension:
            result = _export_split(filtered, output_path, options.minify, options.compress)
        else:
            compress = False
            final_format = options.format
            if options.format == "json":
                content = _dump(filtered.to_dict(), options.minify)
                target = output_path
                compress = options.compress
                if compress:
                    final_format = "json.gz"
            elif options.format == "csv":
                content, target = to_csv(filtered), replace_or_add_extension(output_path, ".csv")
            elif options.format == "markdown":
                content, target = to_markdown(filtered), replace_or_add_extension(output_path, ".md")
            else:
                content, target = to_html(filtered), replace_or_add_extension(output_path, ".html")

            written = _write(target, content, compress)
            result = ExportResult(
                output_path=written,
                format=final_format,
                size=os.path.getsize(written),
                files_exported=len(filtered.files),
                symbols_exported=filtered.metadata.total_symbols,
            )
    except IndexOperationError:
        raise
    except Exception as e:
        raise IndexOperationError(f"Failed to export index: {e}", EWRITE, output_path) from e

    logger.info(f"📤 Exported {result.files_exported} files as {result.format} to {result.output_path}")
    return result
