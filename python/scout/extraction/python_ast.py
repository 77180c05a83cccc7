"""
Symbol extraction for Python source using the standard ``ast`` module.

Produces the same hierarchical shape a language server's document-symbol
request would: classes contain methods and fields, functions contain nested
functions. Positions are 0-based lines and characters.

Kinds emitted:
    Class, Function, Method, Constructor (``__init__``), Field (class-level
    assignment), Variable, Constant (UPPER_CASE module-level assignment)
"""

import ast
import asyncio
import logging
from pathlib import Path
from typing import Optional

from scout.errors import EINVAL, ENOENT, IndexOperationError
from scout.models import Position, Range, SymbolInfo

logger = logging.getLogger("scout.extraction")

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef)


def _is_constant_name(name: str) -> bool:
    return name.isupper() and any(ch.isalpha() for ch in name)


class _SymbolBuilder:
    """Converts an ast.Module into SymbolInfo trees for one file."""

    def __init__(self, source: str, include_children: bool, max_depth: int, kind_filter):
        self.lines = source.splitlines()
        self.include_children = include_children
        self.max_depth = max_depth
        self.kind_filter = set(kind_filter) if kind_filter else None

    def build(self, module: ast.Module) -> list[SymbolInfo]:
        return self._convert_body(module.body, level=0, container=None)

    # ------------------------------------------------------------------

    def _convert_body(self, body, level: int, container: Optional[str]) -> list[SymbolInfo]:
        symbols = []
        for node in body:
            for name, kind, name_node in self._describe(node, container):
                if self.kind_filter and kind not in self.kind_filter:
                    continue
                symbols.append(self._convert(node, name, kind, name_node, level))
        return symbols

    def _describe(self, node, container: Optional[str]):
        """Yield (name, kind, node-for-selection) for symbols declared by node."""
        if isinstance(node, ast.ClassDef):
            yield node.name, "Class", node
        elif isinstance(node, _FUNCTION_NODES):
            if container == "Class":
                kind = "Constructor" if node.name == "__init__" else "Method"
            else:
                kind = "Function"
            yield node.name, kind, node
        elif container in (None, "Class") and isinstance(node, (ast.Assign, ast.AnnAssign)):
            targets = node.targets if isinstance(node, ast.Assign) else [node.target]
            for target in targets:
                for name_node in self._target_names(target):
                    if container == "Class":
                        kind = "Field"
                    elif _is_constant_name(name_node.id):
                        kind = "Constant"
                    else:
                        kind = "Variable"
                    yield name_node.id, kind, name_node

    def _target_names(self, target):
        if isinstance(target, ast.Name):
            yield target
        elif isinstance(target, (ast.Tuple, ast.List)):
            for element in target.elts:
                yield from self._target_names(element)

    def _convert(self, node, name: str, kind: str, name_node, level: int) -> SymbolInfo:
        if isinstance(name_node, ast.Name):
            full_range = self._range(name_node)
            selection = full_range
        else:
            full_range = self._range(node)
            selection = self._name_range(node, name)

        symbol = SymbolInfo(
            name=name,
            kind=kind,
            range=full_range,
            selection_range=selection,
            level=level,
            detail=self._detail(node),
        )

        if isinstance(node, (ast.ClassDef,) + _FUNCTION_NODES):
            body_container = "Class" if isinstance(node, ast.ClassDef) else "Function"
            has_children = any(
                isinstance(child, (ast.ClassDef,) + _FUNCTION_NODES)
                or (body_container == "Class" and isinstance(child, (ast.Assign, ast.AnnAssign)))
                for child in node.body
            )
            if self.include_children and has_children and level < self.max_depth:
                symbol.children = self._convert_body(node.body, level + 1, body_container)

        return symbol

    def _range(self, node) -> Range:
        end_line = getattr(node, "end_lineno", None) or node.lineno
        end_col = getattr(node, "end_col_offset", None)
        if end_col is None:
            end_col = node.col_offset
        return Range(
            start=Position(node.lineno - 1, node.col_offset),
            end=Position(end_line - 1, end_col),
        )

    def _name_range(self, node, name: str) -> Range:
        line_index = node.lineno - 1
        text = self.lines[line_index] if 0 <= line_index < len(self.lines) else ""
        column = text.find(name, node.col_offset)
        if column < 0:
            column = node.col_offset
        return Range(
            start=Position(line_index, column),
            end=Position(line_index, column + len(name)),
        )

    def _detail(self, node) -> Optional[str]:
        try:
            if isinstance(node, _FUNCTION_NODES):
                returns = f" -> {ast.unparse(node.returns)}" if node.returns else ""
                prefix = "async " if isinstance(node, ast.AsyncFunctionDef) else ""
                return f"{prefix}({ast.unparse(node.args)}){returns}"
            if isinstance(node, ast.ClassDef) and node.bases:
                return "(" + ", ".join(ast.unparse(b) for b in node.bases) + ")"
            if isinstance(node, ast.AnnAssign):
                return ast.unparse(node.annotation)
        except (ValueError, TypeError, AttributeError):
            # ast.unparse can fail on unusual nodes; detail is optional
            return None
        return None


class PythonAstExtractor:
    """SymbolExtractor for ``.py`` / ``.pyi`` files."""

    extensions = (".py", ".pyi")

    async def extract_symbols(
        self,
        file_path: str,
        include_children: bool = True,
        max_depth: int = 10,
        kind_filter: Optional[list[str]] = None,
    ) -> list[SymbolInfo]:
        return await asyncio.to_thread(
            self.extract_symbols_sync, file_path, include_children, max_depth, kind_filter
        )

    def extract_symbols_sync(
        self,
        file_path: str,
        include_children: bool = True,
        max_depth: int = 10,
        kind_filter: Optional[list[str]] = None,
    ) -> list[SymbolInfo]:
        path = Path(file_path)
        if not path.is_file():
            raise IndexOperationError(f"File not found: {file_path}", ENOENT, file_path)

        source = path.read_text(encoding="utf-8", errors="replace")
        try:
            module = ast.parse(source, filename=str(path))
        except SyntaxError as e:
            raise IndexOperationError(
                f"Syntax error at line {e.lineno}: {e.msg}", EINVAL, file_path
            ) from e

        symbols = _SymbolBuilder(source, include_children, max_depth, kind_filter).build(module)
        logger.debug(f"Extracted {len(symbols)} top-level symbols from {path.name}")
        return symbols
