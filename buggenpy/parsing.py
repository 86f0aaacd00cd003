"""Reading and parsing of single source files."""

from dataclasses import dataclass

import libcst as cst
from libcst.metadata import MetadataWrapper

from buggenpy.errors import ParseError


@dataclass
class ParsedFile:
    path: str
    wrapper: MetadataWrapper

    @property
    def module(self) -> cst.Module:
        # Nodes handed out by the wrapper's visitors belong to this copy.
        return self.wrapper.module


def parse_source(path: str, source: bytes) -> ParsedFile:
    """Parses ``source`` into a concrete syntax tree that keeps all formatting.

    libcst detects the encoding from the bytes (coding cookie or BOM), the same
    way the interpreter does.
    """
    try:
        module = cst.parse_module(source)
    except (cst.ParserSyntaxError, UnicodeDecodeError, LookupError) as e:
        raise ParseError(path, str(e)) from e
    return ParsedFile(path=path, wrapper=MetadataWrapper(module))


def parse_file(path: str) -> ParsedFile:
    try:
        with open(path, "rb") as f:
            source = f.read()
    except OSError as e:
        raise ParseError(path, str(e)) from e
    return parse_source(path, source)
