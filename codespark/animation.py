"""Animation dispatch — maps an executed step to an abstract animation intent.

Rendering is external. A :class:`Renderer` turns intents into visual
transitions described as stages ("animate property P from A to B over D
seconds with easing E"); :class:`TimedRenderer` is the headless renderer that
honours stage durations and records what it played.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .errors import CodeSparkError
from .plan_types import LineKind, Step
from .print_args import (
    PartKind,
    PrintPart,
    extract_print_content,
    parse_print_arguments,
    resolve_print_parts,
)
from .variables import VariableChanges, VariableStore
from . import constants

logger = logging.getLogger(__name__)

_ASSIGNMENT = re.compile(r"(\w+)\s*=\s*(.+)")
_CALCULATION = re.compile(r"(\w+)\s*=\s*(\w+)\s*([*+\-/])\s*(\w+)")
_INPUT_TARGET = re.compile(r"(\w+)\s*=\s*(int\(|float\()?\s*input\s*\(")


class AnimationCancelled(CodeSparkError):
    """Raised inside a renderer when its in-flight animation was cancelled."""


class HistoryKind(str, Enum):
    MEMORY = "memory"
    OUTPUT = "output"


# ── Intents ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Operand:
    token: str
    value: str
    from_memory: bool


@dataclass(frozen=True)
class MemoryWriteIntent:
    """A value flies from the source line into a memory slot."""

    name: str
    value: str
    line_number: int
    is_new: bool


@dataclass(frozen=True)
class CalculationIntent:
    """Operands converge into a result slot."""

    name: str
    value: str
    operator: str
    operands: tuple[Operand, ...]
    line_number: int
    is_new: bool


@dataclass(frozen=True)
class InputCaptureIntent:
    """A typed value flies from the console into a memory slot."""

    name: str
    value: str
    prompt: str
    converted: bool
    line_number: int
    is_new: bool


@dataclass(frozen=True)
class PrintOutputIntent:
    """Each print argument flies into a fresh output line."""

    parts: tuple[PrintPart, ...]
    output_line: str
    line_number: int


@dataclass(frozen=True)
class NoopIntent:
    """The line changed nothing the learner can see."""

    line_number: int


AnimationIntent = Union[
    MemoryWriteIntent,
    CalculationIntent,
    InputCaptureIntent,
    PrintOutputIntent,
    NoopIntent,
]


def history_kind(intent: AnimationIntent) -> HistoryKind:
    if isinstance(intent, PrintOutputIntent):
        return HistoryKind.OUTPUT
    return HistoryKind.MEMORY


def intent_is_new(intent: AnimationIntent) -> bool:
    if isinstance(intent, PrintOutputIntent):
        return True
    return bool(getattr(intent, "is_new", False))


@dataclass(frozen=True)
class AnimationHistoryEntry:
    kind: HistoryKind
    handle: Any
    is_new: bool


# ── Dispatch ─────────────────────────────────────────────────────


def _operand(token: str, store: VariableStore) -> Operand:
    value = store.get(token)
    if value is None:
        return Operand(token=token, value=token, from_memory=False)
    return Operand(token=token, value=value, from_memory=True)


def _memory_write(step: Step, store: VariableStore, changes: VariableChanges) -> AnimationIntent:
    match = _ASSIGNMENT.search(step.code)
    if match is None:
        return NoopIntent(line_number=step.line_number)
    name = match.group(1)
    return MemoryWriteIntent(
        name=name,
        value=store.get(name) or "",
        line_number=step.line_number,
        is_new=changes.is_new(name),
    )


def _calculation(step: Step, store: VariableStore, changes: VariableChanges) -> AnimationIntent:
    match = _CALCULATION.search(step.code)
    if match is None:
        return _memory_write(step, store, changes)
    name, left, operator, right = match.groups()
    return CalculationIntent(
        name=name,
        value=store.get(name) or "",
        operator=operator,
        operands=(_operand(left, store), _operand(right, store)),
        line_number=step.line_number,
        is_new=changes.is_new(name),
    )


def _input_capture(
    step: Step, store: VariableStore, changes: VariableChanges, prompt: str
) -> AnimationIntent:
    match = _INPUT_TARGET.search(step.code)
    if match is None:
        return NoopIntent(line_number=step.line_number)
    name = match.group(1)
    return InputCaptureIntent(
        name=name,
        value=store.get(name) or "",
        prompt=prompt,
        converted=match.group(2) is not None,
        line_number=step.line_number,
        is_new=changes.is_new(name),
    )


def _print_output(step: Step, store: VariableStore, output_line: str) -> AnimationIntent:
    content = extract_print_content(step.code)
    parts = parse_print_arguments(content) if content is not None else []
    return PrintOutputIntent(
        parts=tuple(resolve_print_parts(parts, store)),
        output_line=output_line,
        line_number=step.line_number,
    )


def select_intent(
    step: Step,
    store: VariableStore,
    changes: VariableChanges,
    output_line: str = "",
    prompt: str = constants.DEFAULT_INPUT_PROMPT,
) -> AnimationIntent:
    """Pick the animation for *step* purely from its line kind."""
    if step.kind == LineKind.INPUT:
        return _input_capture(step, store, changes, prompt)
    if step.kind == LineKind.PRINT:
        return _print_output(step, store, output_line)
    if step.kind == LineKind.CALCULATION:
        return _calculation(step, store, changes)
    return _memory_write(step, store, changes)


# ── Rendering ────────────────────────────────────────────────────


@dataclass(frozen=True)
class AnimationStage:
    target: str
    prop: str
    start: Any
    end: Any
    duration: float
    easing: str = constants.EASE_LINEAR


def stages_for(intent: AnimationIntent) -> list[AnimationStage]:
    """Describe the tween sequence for *intent*."""
    if isinstance(intent, MemoryWriteIntent):
        slot = f"box-{intent.name}"
        return [
            AnimationStage("spark", "position", f"line-{intent.line_number}", slot,
                           constants.SPARK_FLIGHT_S, constants.EASE_SPARK),
            AnimationStage(slot, "scale", 0, 1, constants.BOX_POP_S, constants.EASE_BOX_POP),
        ]
    if isinstance(intent, CalculationIntent):
        slot = f"box-{intent.name}"
        stages = [
            AnimationStage(f"spark-{op.token}", "position",
                           f"box-{op.token}" if op.from_memory else f"line-{intent.line_number}",
                           slot, constants.SPARK_FLIGHT_S, constants.EASE_SPARK)
            for op in intent.operands
        ]
        stages.append(AnimationStage(slot, "value", "", intent.value,
                                     constants.BOX_POP_S, constants.EASE_BOX_POP))
        return stages
    if isinstance(intent, InputCaptureIntent):
        slot = f"box-{intent.name}"
        stages = [AnimationStage("console-input", "glow", 0, 1, constants.INPUT_GLOW_S)]
        if intent.converted:
            stages.append(AnimationStage("converter", "rotation", 0, 360,
                                         constants.CONVERTER_SPIN_S))
        stages.append(AnimationStage("spark", "position", "console-input", slot,
                                     constants.INPUT_FLIGHT_S))
        stages.append(AnimationStage(slot, "scale", 0, 1, constants.BOX_POP_S,
                                     constants.EASE_BOX_POP))
        return stages
    if isinstance(intent, PrintOutputIntent):
        stages = [
            AnimationStage(f"spark-{i}", "position",
                           f"box-{part.name}" if part.kind == PartKind.VARIABLE
                           else f"line-{intent.line_number}",
                           "output-line", constants.SPARK_FLIGHT_S)
            for i, part in enumerate(intent.parts)
        ]
        stages.append(AnimationStage("output-line", "opacity", 0, 1,
                                     constants.OUTPUT_SLIDE_S, constants.EASE_OUTPUT))
        return stages
    return []


def reverse_stage(entry: AnimationHistoryEntry) -> AnimationStage:
    return AnimationStage(
        str(entry.handle),
        "opacity",
        1,
        0,
        constants.REVERSE_S,
    )


class Renderer(ABC):
    """External rendering capability driven by the step controller."""

    @abstractmethod
    async def play(self, intent: AnimationIntent) -> Any:
        """Play *intent* to completion and return an opaque handle."""
        ...

    @abstractmethod
    async def reverse(self, entry: AnimationHistoryEntry) -> None:
        """Visually undo a previously played animation."""
        ...

    def cancel(self) -> None:
        """Abandon any in-flight animation (cooperative)."""


@dataclass
class RenderHandle:
    id: int
    intent: AnimationIntent

    def __str__(self) -> str:
        return f"anim-{self.id}"


class TimedRenderer(Renderer):
    """Headless renderer: sleeps each stage's duration and records the result.

    ``speed`` scales every duration; 0 plays instantly. Cancellation is
    checked between stages.
    """

    def __init__(self, speed: float = 1.0):
        self.speed = speed
        self.played: list[AnimationIntent] = []
        self.reversed: list[AnimationHistoryEntry] = []
        self.visible: dict[int, RenderHandle] = {}
        self._ids = itertools.count(1)
        self._epoch = 0

    async def _run_stages(self, stages: list[AnimationStage], epoch: int) -> None:
        for stage in stages:
            if epoch != self._epoch:
                raise AnimationCancelled("animation cancelled")
            logger.debug(
                "tween %s.%s %r -> %r over %.2fs (%s)",
                stage.target, stage.prop, stage.start, stage.end,
                stage.duration, stage.easing,
            )
            await asyncio.sleep(stage.duration * self.speed)
        if epoch != self._epoch:
            raise AnimationCancelled("animation cancelled")

    async def play(self, intent: AnimationIntent) -> RenderHandle:
        epoch = self._epoch
        await self._run_stages(stages_for(intent), epoch)
        handle = RenderHandle(id=next(self._ids), intent=intent)
        self.played.append(intent)
        self.visible[handle.id] = handle
        return handle

    async def reverse(self, entry: AnimationHistoryEntry) -> None:
        epoch = self._epoch
        await self._run_stages([reverse_stage(entry)], epoch)
        self.reversed.append(entry)
        handle = entry.handle
        if entry.is_new and isinstance(handle, RenderHandle):
            self.visible.pop(handle.id, None)

    def cancel(self) -> None:
        self._epoch += 1
        self.visible.clear()
