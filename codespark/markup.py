"""Parsing of the markup embedded in whole-program explanations."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

_VARS = re.compile(r"<VARS>(.*?)</VARS>", re.DOTALL)
_CHALKBOARD = re.compile(r"<CHALKBOARD>(.*?)</CHALKBOARD>", re.DOTALL)
_CHALKBOARD_TAGS = re.compile(r"</?CHALKBOARD>")
_LINE_MARKER = re.compile(r"^Line (\d+) →")


@dataclass(frozen=True)
class ExplanationLine:
    """One explanation with its markup pulled out.

    ``variables`` holds the parsed ``<VARS>`` JSON (None when absent),
    ``vars_error`` is set when the tag was present but did not parse.
    """

    text: str
    variables: dict[str, Any] | None = None
    vars_error: str | None = None
    chalkboard: str | None = None
    line_number: int | None = None
    raw: str = field(default="", compare=False)


def parse_explanation_line(raw: str) -> ExplanationLine:
    text = raw
    variables: dict[str, Any] | None = None
    vars_error: str | None = None

    vars_match = _VARS.search(text)
    if vars_match is not None:
        try:
            parsed = json.loads(vars_match.group(1))
        except json.JSONDecodeError as exc:
            vars_error = f"Variable data error: {exc.msg}"
            logger.debug("Unparseable <VARS> block: %r", vars_match.group(1))
        else:
            if isinstance(parsed, dict):
                variables = parsed
                text = _VARS.sub("", text, count=1)
            else:
                vars_error = "Variable data error: expected a JSON object"

    chalkboard: str | None = None
    chalk_match = _CHALKBOARD.search(text)
    if chalk_match is not None and chalk_match.group(1):
        chalkboard = chalk_match.group(1)
        text = _CHALKBOARD_TAGS.sub("", text)

    line_number: int | None = None
    line_match = _LINE_MARKER.match(text)
    if line_match is not None:
        line_number = int(line_match.group(1))

    return ExplanationLine(
        text=text.strip(),
        variables=variables,
        vars_error=vars_error,
        chalkboard=chalkboard,
        line_number=line_number,
        raw=raw,
    )


def highlight_output(output: str, chalkboard: str | None) -> list[tuple[int, int]]:
    """Return (start, end) spans of every occurrence of *chalkboard* in *output*."""
    if not chalkboard:
        return []
    return [
        (m.start(), m.end()) for m in re.finditer(re.escape(chalkboard), output)
    ]
