"""Execution plan data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, overload


class LineKind(str, Enum):
    """Semantic category of a source line, used to pick an animation."""

    ASSIGNMENT = "assignment"
    CALCULATION = "calculation"
    PRINT = "print"
    INPUT = "input"


@dataclass(frozen=True)
class SourceLine:
    index: int
    text: str


@dataclass(frozen=True)
class Step:
    """One executable, classified source line.

    ``line_number`` is the 0-based index of the line in the submitted source,
    blank lines included.
    """

    line_number: int
    code: str
    kind: LineKind

    @property
    def display_line(self) -> int:
        return self.line_number + 1


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered, immutable sequence of steps built once per run."""

    steps: tuple[Step, ...] = field(default_factory=tuple)
    source: str = ""

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    @overload
    def __getitem__(self, index: int) -> Step: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Step, ...]: ...

    def __getitem__(self, index):
        return self.steps[index]
