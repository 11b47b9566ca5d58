"""Line classifier — textual heuristic that picks a line's animation kind."""

from __future__ import annotations

import re

from .plan_types import LineKind
from . import constants

_INPUT_CALL = re.compile(constants.INPUT_CALL_PATTERN)
_PRINT_CALL = re.compile(constants.PRINT_CALL_PATTERN)


def _unquoted_text(line: str) -> str:
    """Return *line* with every quoted substring removed.

    Quotes are toggled naively: no escape handling, no triple quotes. An
    unterminated literal swallows the rest of the line.
    """
    kept: list[str] = []
    quote = ""
    for char in line:
        if quote:
            if char == quote:
                quote = ""
        elif char in constants.QUOTE_CHARS:
            quote = char
        else:
            kept.append(char)
    return "".join(kept)


def has_arithmetic(line: str) -> bool:
    """True if an arithmetic operator appears outside quoted substrings."""
    return any(op in constants.ARITHMETIC_OPERATORS for op in _unquoted_text(line))


def classify(line_text: str) -> LineKind:
    """Classify one source line.

    Priority: input call, print call, arithmetic, plain assignment.
    """
    if _INPUT_CALL.search(line_text):
        return LineKind.INPUT
    if _PRINT_CALL.search(line_text):
        return LineKind.PRINT
    if has_arithmetic(line_text):
        return LineKind.CALCULATION
    return LineKind.ASSIGNMENT
