"""Locating the function definitions of a parsed file."""

from dataclasses import dataclass
from typing import List, Optional

import libcst as cst
from libcst.metadata import CodeRange, PositionProvider

from buggenpy.parsing import ParsedFile


@dataclass(frozen=True)
class FunctionDeclaration:
    """A function or method definition together with its source line bounds.

    ``receiver`` is the dotted name of the enclosing class for methods and
    ``None`` for plain functions; every other shape (async, decorated) is
    handled through the same node.
    """

    node: cst.FunctionDef
    name: str
    receiver: Optional[str]
    line_start: int
    line_end: int

    @property
    def qualified_name(self) -> str:
        if self.receiver:
            return f"{self.receiver}.{self.name}"
        return self.name


def _end_line(pos: CodeRange) -> int:
    # A range that stops right after a newline ends on the previous line.
    if pos.end.column == 0 and pos.end.line > pos.start.line:
        return pos.end.line - 1
    return pos.end.line


class _FunctionCollector(cst.CSTVisitor):
    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(self) -> None:
        super().__init__()
        self.declarations: List[FunctionDeclaration] = []
        self._classes: List[str] = []

    def visit_ClassDef(self, node: cst.ClassDef) -> Optional[bool]:
        self._classes.append(node.name.value)
        return True

    def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
        self._classes.pop()

    def visit_FunctionDef(self, node: cst.FunctionDef) -> Optional[bool]:
        if node.decorators:
            first = self.get_metadata(PositionProvider, node.decorators[0].decorator)
        else:
            first = self.get_metadata(PositionProvider, node.name)
        pos = self.get_metadata(PositionProvider, node)
        line_start = first.start.line
        line_end = max(line_start, _end_line(pos))

        self.declarations.append(
            FunctionDeclaration(
                node=node,
                name=node.name.value,
                receiver=".".join(self._classes) or None,
                line_start=line_start,
                line_end=line_end,
            )
        )
        # Closures and nested defs are part of this function's body.
        return False


def discover_functions(parsed: ParsedFile) -> List[FunctionDeclaration]:
    """
    Returns every function definition of the file that is not nested inside
    another function, in declaration order.

    Methods (including those of nested classes) and definitions inside
    module-level ``if``/``try``/``with`` blocks are included.
    """
    collector = _FunctionCollector()
    parsed.wrapper.visit(collector)
    return collector.declarations
