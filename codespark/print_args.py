"""Print-argument scanner used to decide which print sub-animations to play.

The scanner never computes printed text: that always comes from captured
stdout. It only splits a ``print(...)`` argument list into string literals
and variable references so each can fly into the output line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

_PRINT_CONTENT = re.compile(r"print\((.*)\)")


class PartKind(str, Enum):
    STRING = "string"
    VARIABLE = "variable"


@dataclass(frozen=True)
class PrintPart:
    """One comma-separated print argument.

    For STRING parts ``value`` is the literal content; for VARIABLE parts
    ``name`` is the (space-stripped) token and ``value`` is filled in by
    :func:`resolve_print_parts`.
    """

    kind: PartKind
    value: str = ""
    name: str = ""


class _Lookup(Protocol):
    def get(self, name: str) -> str | None: ...


def extract_print_content(code: str) -> str | None:
    """Return the text between ``print(`` and the last ``)``, or None."""
    match = _PRINT_CONTENT.search(code)
    if match is None:
        return None
    return match.group(1)


def parse_print_arguments(content: str) -> list[PrintPart]:
    """Scan a print argument list into literal and variable parts.

    Quoted text is atomic (commas inside are kept). An opening quote discards
    any pending unquoted text, spaces outside quotes are dropped, and an
    unquoted comma ends a variable token.
    """
    parts: list[PrintPart] = []
    current = ""
    in_quote = False
    quote_char = ""

    for char in content:
        if char in ('"', "'") and not in_quote:
            in_quote = True
            quote_char = char
            current = ""
        elif in_quote and char == quote_char:
            in_quote = False
            parts.append(PrintPart(kind=PartKind.STRING, value=current))
            current = ""
        elif char == "," and not in_quote:
            if current.strip():
                parts.append(PrintPart(kind=PartKind.VARIABLE, name=current.strip()))
                current = ""
        elif in_quote:
            current += char
        elif char != " ":
            current += char

    if current.strip():
        parts.append(PrintPart(kind=PartKind.VARIABLE, name=current.strip()))
    return parts


def resolve_print_parts(parts: list[PrintPart], variables: _Lookup) -> list[PrintPart]:
    """Fill in variable values from *variables*, falling back to the token."""
    resolved: list[PrintPart] = []
    for part in parts:
        if part.kind == PartKind.VARIABLE:
            value = variables.get(part.name)
            resolved.append(
                PrintPart(
                    kind=part.kind,
                    name=part.name,
                    value=value if value else part.name,
                )
            )
        else:
            resolved.append(part)
    return resolved
