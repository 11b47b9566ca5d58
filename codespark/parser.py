"""Tree-Sitter Parsing Layer — locates call tokens in lesson source lines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from . import constants


class ParserFactory(ABC):
    """Abstract factory for obtaining a language parser."""

    @abstractmethod
    def get_parser(self, language: str): ...


class TreeSitterParserFactory(ParserFactory):
    """Concrete factory that delegates to tree-sitter-language-pack."""

    def get_parser(self, language: str):
        import tree_sitter_language_pack as tslp

        return tslp.get_parser(language)


class Parser:
    """Thin wrapper around a parser factory."""

    def __init__(self, parser_factory: ParserFactory | None = None):
        self._factory = parser_factory or TreeSitterParserFactory()
        self._parsers: dict[str, object] = {}

    def parse(self, source: str, language: str = constants.PYTHON_LANGUAGE):
        parser = self._parsers.get(language)
        if parser is None:
            parser = self._factory.get_parser(language)
            self._parsers[language] = parser
        return parser.parse(source.encode("utf-8"))


@dataclass(frozen=True)
class CallSpan:
    """Character columns of a call's fixed tokens on one line.

    ``head`` covers the callee name through the opening parenthesis,
    ``close`` the closing parenthesis (None if the call is unterminated).
    """

    name: str
    head: tuple[int, int]
    close: tuple[int, int] | None


def _char_col(line_bytes: bytes, byte_col: int) -> int:
    return len(line_bytes[:byte_col].decode("utf-8", errors="replace"))


def _walk(node):
    yield node
    for child in node.children:
        yield from _walk(child)


def find_call_spans(
    parser: Parser, line: str, names: tuple[str, ...] = constants.LOCKABLE_CALLS
) -> list[CallSpan]:
    """Find calls to any of *names* in a single source line."""
    line_bytes = line.encode("utf-8")
    tree = parser.parse(line)
    spans: list[CallSpan] = []
    for node in _walk(tree.root_node):
        if node.type != "call":
            continue
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if function is None or arguments is None or function.type != "identifier":
            continue
        name = line_bytes[function.start_byte : function.end_byte].decode("utf-8")
        if name not in names or not arguments.children:
            continue
        open_paren = arguments.children[0]
        close_paren = arguments.children[-1]
        head = (
            _char_col(line_bytes, function.start_byte),
            _char_col(line_bytes, open_paren.end_byte),
        )
        close = None
        if close_paren.type == ")" and not close_paren.is_missing and close_paren is not open_paren:
            close = (
                _char_col(line_bytes, close_paren.start_byte),
                _char_col(line_bytes, close_paren.end_byte),
            )
        spans.append(CallSpan(name=name, head=head, close=close))
    return spans
