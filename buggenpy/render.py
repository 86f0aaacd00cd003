"""Rendering of function definitions with their bodies elided or stubbed out.

All renders work on the shared tree of one parsed file. libcst nodes are
immutable, so every render builds a changed copy of the target definition
(and, for the whole-file render, of the path from the module down to it)
and leaves the parsed tree exactly as it was.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, cast

import libcst as cst

from buggenpy.discovery import FunctionDeclaration
from buggenpy.errors import RenderError
from buggenpy.parsing import ParsedFile

PLACEHOLDER_MESSAGE = "TODO: Implement this function"

PLACEHOLDER_STATEMENT = cst.parse_statement(
    f'raise NotImplementedError("{PLACEHOLDER_MESSAGE}")\n'
)

# Stand-in body for the signature render; stripped again after printing.
_SIGNATURE_SUITE = cst.SimpleStatementSuite(
    body=[cst.Expr(cst.Ellipsis())],
    leading_whitespace=cst.SimpleWhitespace(" "),
)
_SIGNATURE_TAIL = ": ..."


@contextmanager
def _rendering(parsed: ParsedFile, decl: FunctionDeclaration) -> Iterator[None]:
    try:
        yield
    except (cst.CSTValidationError, ValueError) as e:
        raise RenderError(parsed.path, decl.qualified_name, str(e)) from e


def _leading_docstring(body: cst.BaseSuite) -> Optional[cst.SimpleStatementLine]:
    """Returns the docstring statement that opens ``body``, if there is one."""
    if isinstance(body, cst.IndentedBlock):
        first = body.body[0]
        if not isinstance(first, cst.SimpleStatementLine):
            return None
        small = first.body[0]
    else:
        small = cast(cst.SimpleStatementSuite, body).body[0]

    if not (
        isinstance(small, cst.Expr)
        and isinstance(small.value, (cst.SimpleString, cst.ConcatenatedString))
    ):
        return None
    return cst.SimpleStatementLine(
        body=[small.with_changes(semicolon=cst.MaybeSentinel.DEFAULT)]
    )


def placeholder_body(
    body: cst.BaseSuite, keep_docstring: bool = False
) -> cst.IndentedBlock:
    """
    Builds the indented block that replaces ``body``.

    The block holds only the placeholder ``raise`` (optionally behind the
    original docstring). An existing block keeps its indentation unit, the
    trailing comment of the ``def`` line and the comments owned by its footer.
    """
    statements: List[cst.BaseStatement] = [PLACEHOLDER_STATEMENT]
    if keep_docstring:
        docstring = _leading_docstring(body)
        if docstring is not None:
            statements.insert(0, docstring)

    if isinstance(body, cst.IndentedBlock):
        return body.with_changes(body=statements)
    return cst.IndentedBlock(body=statements)


def render_signature(parsed: ParsedFile, decl: FunctionDeclaration) -> str:
    """Decorators and ``def`` header of the declaration, without colon or body."""
    with _rendering(parsed, decl):
        node = decl.node.with_changes(
            leading_lines=(),
            whitespace_before_colon=cst.SimpleWhitespace(""),
            body=_SIGNATURE_SUITE,
        )
        code = parsed.module.code_for_node(node).rstrip()
        if not code.endswith(_SIGNATURE_TAIL):
            raise ValueError(f"unexpected signature rendering: {code!r}")
        return code[: -len(_SIGNATURE_TAIL)]


def render_placeholder(
    parsed: ParsedFile, decl: FunctionDeclaration, keep_docstring: bool = False
) -> str:
    """The declaration on its own, with its body replaced by the placeholder."""
    with _rendering(parsed, decl):
        node = decl.node.with_changes(
            leading_lines=(),
            body=placeholder_body(decl.node.body, keep_docstring).with_changes(
                footer=()
            ),
        )
        return parsed.module.code_for_node(node).rstrip()


def render_file(
    parsed: ParsedFile, decl: FunctionDeclaration, keep_docstring: bool = False
) -> str:
    """The whole file, with only this declaration's body replaced."""
    with _rendering(parsed, decl):
        node = decl.node.with_changes(
            body=placeholder_body(decl.node.body, keep_docstring)
        )
        module = cast(cst.Module, parsed.module.deep_replace(decl.node, node))
        return module.code
