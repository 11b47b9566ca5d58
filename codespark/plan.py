"""Execution plan builder — source text to an ordered list of classified steps."""

from __future__ import annotations

import logging

from .classifier import classify
from .executor import CodeExecutor
from .plan_types import ExecutionPlan, SourceLine, Step

logger = logging.getLogger(__name__)


def split_source_lines(source: str) -> list[SourceLine]:
    """Split *source* into non-blank lines, keeping their 0-based indices."""
    return [
        SourceLine(index=i, text=text)
        for i, text in enumerate(source.splitlines())
        if text.strip()
    ]


def build_plan(source: str, executor: CodeExecutor) -> ExecutionPlan:
    """Validate *source* and turn it into an execution plan.

    Raises:
        SourceSyntaxError: if the executor rejects the combined source.
    """
    executor.validate(source)
    steps = tuple(
        Step(line_number=line.index, code=line.text, kind=classify(line.text))
        for line in split_source_lines(source)
    )
    logger.info("Built execution plan: %d steps", len(steps))
    for step in steps:
        logger.debug("  line %d [%s] %s", step.line_number, step.kind.value, step.code)
    return ExecutionPlan(steps=steps, source=source)
