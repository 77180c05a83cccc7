"""
Plain-text reports for index operations.

These are display helpers only; nothing in the engine parses their output.
"""

from scout.models import (
    ExportResult,
    IndexUpdateResult,
    SymbolLocation,
    SymbolReference,
    TableStatus,
    WorkspaceIndex,
)

SYMBOL_ICONS = {
    "File": "📄",
    "Module": "📦",
    "Namespace": "🏷️",
    "Package": "📦",
    "Class": "🏛️",
    "Method": "⚡",
    "Property": "🔧",
    "Field": "🔧",
    "Constructor": "🏗️",
    "Enum": "📋",
    "Interface": "🔌",
    "Function": "⚡",
    "Variable": "📊",
    "Constant": "🔒",
    "EnumMember": "📋",
    "Struct": "🏗️",
    "TypeParameter": "🏷️",
}


def symbol_icon(kind) -> str:
    return SYMBOL_ICONS.get(kind or "", "❓")


def _top_counts(counts: dict[str, int], limit: int = 10) -> list[tuple[str, int]]:
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]


def format_index_summary(index: WorkspaceIndex) -> str:
    meta, summary = index.metadata, index.summary
    lines = [
        "📊 **Workspace Index Summary**",
        f"   Workspace: {meta.workspace_name}",
        f"   Created: {meta.created_at}",
    ]
    if meta.updated_at:
        lines.append(f"   Updated: {meta.updated_at}")
    lines += [f"   Files: {meta.total_files}", f"   Symbols: {meta.total_symbols}", ""]

    lines.append("📁 **Files by Extension**")
    for ext, count in _top_counts(summary.files_by_extension):
        lines.append(f"   {ext}: {count}")
    lines.append("")

    lines.append("🔧 **Symbols by Kind**")
    for kind, count in _top_counts(summary.symbols_by_kind):
        lines.append(f"   {kind}: {count}")
    lines.append("")

    if summary.largest_files:
        lines.append("📈 **Largest Files**")
        for entry in summary.largest_files[:5]:
            lines.append(f"   {entry['path']} ({round(entry['size'] / 1024)} KB)")
        lines.append("")

    if summary.most_symbols:
        lines.append("🎯 **Most Symbols**")
        for entry in summary.most_symbols[:5]:
            lines.append(f"   {entry['path']} ({entry['count']} symbols)")
        lines.append("")

    if summary.error_files:
        lines.append(f"⚠️ **Files with Errors: {len(summary.error_files)}**")
        for entry in summary.error_files[:3]:
            lines.append(f"   {entry['path']}: {entry['errors'][0]}")
        if len(summary.error_files) > 3:
            lines.append(f"   ... and {len(summary.error_files) - 3} more")

    return "\n".join(lines).rstrip()


def _preview(lines: list[str], title: str, items: list[str], limit: int) -> None:
    if not items:
        return
    lines.append(f"{title} (showing first {limit})")
    for item in items[:limit]:
        lines.append(f"   {item}")
    if len(items) > limit:
        lines.append(f"   ... and {len(items) - limit} more")
    lines.append("")


def format_update_result(result: IndexUpdateResult) -> str:
    total = len(result.updated) + len(result.added) + len(result.removed)
    lines = [
        "🔄 **Index Update Summary**",
        f"   Total changes: {total}",
        f"   Updated files: {len(result.updated)}",
        f"   Added files: {len(result.added)}",
        f"   Removed files: {len(result.removed)}",
        f"   Unchanged files: {result.unchanged}",
    ]
    if result.errors:
        lines.append(f"   Errors: {len(result.errors)}")
    lines.append("")

    _preview(lines, "📝 **Updated Files**",
             [f"{f.relative_path} ({f.symbol_count} symbols)" for f in result.updated], 5)
    _preview(lines, "➕ **Added Files**",
             [f"{f.relative_path} ({f.symbol_count} symbols)" for f in result.added], 5)
    _preview(lines, "➖ **Removed Files**", list(result.removed), 5)
    _preview(lines, "⚠️ **Errors**", [f"{e['path']}: {e['error']}" for e in result.errors], 3)

    return "\n".join(lines).rstrip()


def format_symbol_results(matches: list[SymbolLocation], term: str, show_details: bool = True) -> str:
    """Group search hits by file, keeping ranked order within each file."""
    if not matches:
        return f'❌ No symbols found matching "{term}"'

    lines = [f'🔍 **Found {len(matches)} symbols matching "{term}"**', ""]
    by_file: dict[str, list[SymbolLocation]] = {}
    for match in matches:
        by_file.setdefault(match.relative_path, []).append(match)

    for relative_path, symbols in by_file.items():
        lines.append(f"📄 **{relative_path}**")
        for symbol in symbols:
            detail = f" ({symbol.detail})" if show_details and symbol.detail else ""
            container = f" in {symbol.container_name}" if symbol.container_name else ""
            lines.append(
                f"  {symbol_icon(symbol.kind)} {symbol.name}{detail}{container} - "
                f"Line {symbol.line + 1}:{symbol.character + 1}"
            )
        lines.append("")

    return "\n".join(lines).rstrip()


def format_references(references: list[SymbolReference]) -> str:
    if not references:
        return "No references found."
    lines = [f"🔗 **Found {len(references)} references**", ""]
    for ref in references:
        lines.append(f"   {ref.relative_path}:{ref.line + 1}:{ref.character + 1}")
        if ref.context:
            for context_line in ref.context.splitlines():
                lines.append(f"      {context_line}")
    return "\n".join(lines)


def format_export_result(result: ExportResult) -> str:
    size_kb = round(result.size / 1024)
    size_mb = f" ({result.size / (1024 * 1024):.1f} MB)" if result.size > 1024 * 1024 else ""
    return "\n".join(
        [
            "✅ **Index exported successfully**",
            "",
            f"📁 **Output:** {result.output_path}",
            f"📊 **Format:** {result.format}",
            f"📏 **Size:** {size_kb} KB{size_mb}",
            f"📄 **Files:** {result.files_exported}",
            f"🔧 **Symbols:** {result.symbols_exported}",
        ]
    )


def format_load_result(status: TableStatus, file_count: int) -> str:
    name = (status.loaded_path or "").replace("\\", "/").rsplit("/", 1)[-1]
    return "\n".join(
        [
            f"✅ **Loaded {name}**",
            "",
            "📊 **Statistics:**",
            f"- Files: {file_count}",
            f"- Symbols: {status.symbol_count}",
            f"- Path: `{status.loaded_path}`",
        ]
    )


def format_table_status(status: TableStatus) -> str:
    """Status line for the flat table; after clear() reports whether anything was dropped."""
    if status.is_loaded:
        return f"📚 Index loaded from {status.loaded_path} ({status.symbol_count} symbols)"
    if status.was_loaded:
        return "🗑️ Cleared loaded index from memory"
    return "ℹ️ No index was loaded"
