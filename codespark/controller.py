"""Step controller — the per-line state machine driving a lesson run.

Each transition (run, step, back) completes fully, animation and explanation
included, before another is accepted. ``reset`` is the only operation allowed
while a transition is in flight: it bumps a generation counter so the
abandoned transition stops at its next checkpoint without touching the fresh
state.
"""

from __future__ import annotations

import contextlib
import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator

from .animation import (
    AnimationCancelled,
    AnimationHistoryEntry,
    AnimationIntent,
    Renderer,
    history_kind,
    intent_is_new,
    select_intent,
)
from .classifier import has_arithmetic
from .errors import (
    CodeExecutionError,
    ControllerBusyError,
    InvalidTransitionError,
    SourceSyntaxError,
)
from .executor import CodeExecutor, latest_output_line
from .explainer import ExplanationRequester
from .lessons import Lesson
from .parser import Parser, find_call_spans
from .plan import build_plan
from .plan_types import ExecutionPlan, LineKind, Step
from .source_buffer import SourceBuffer
from .variables import VariableStore
from . import constants

logger = logging.getLogger(__name__)

InputProvider = Callable[[str], Awaitable[str]]

_PROMPT_LITERAL = re.compile(r"""^\s*(?:"([^"]*)"|'([^']*)')\s*$""")


class ControllerState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    READY = "ready"
    STEPPING = "stepping"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class RunOutcome:
    ok: bool
    message: str
    plan: ExecutionPlan | None = None
    error: str | None = None
    cancelled: bool = False


@dataclass(frozen=True)
class StepOutcome:
    step: Step
    ok: bool
    explanation: str = ""
    intent: AnimationIntent | None = None
    output_line: str = ""
    variables: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    complete: bool = False
    completion_message: str | None = None
    cancelled: bool = False


@dataclass(frozen=True)
class BackOutcome:
    current_step: int
    message: str
    cancelled: bool = False


class _Abandoned(Exception):
    """The transition was overtaken by a reset."""


@dataclass(frozen=True)
class InputCall:
    """Character columns of a real ``input(...)`` call and its prompt text."""

    start: int
    end: int
    prompt: str


def find_input_call(parser: Parser, code: str) -> InputCall | None:
    """Locate the outermost complete ``input(...)`` call on *code*.

    Text that merely looks like a call inside a string literal is not a call.
    Non-literal prompt arguments fall back to the default prompt.
    """
    for span in find_call_spans(parser, code, (constants.INPUT_CALL_NAME,)):
        if span.close is None:
            continue
        match = _PROMPT_LITERAL.match(code[span.head[1] : span.close[0]])
        prompt = (match.group(1) or match.group(2)) if match else ""
        return InputCall(
            start=span.head[0],
            end=span.close[1],
            prompt=prompt or constants.DEFAULT_INPUT_PROMPT,
        )
    return None


def substitute_input(code: str, call: InputCall, name: str = constants.INPUT_GLOBAL) -> str:
    """Replace *call* in *code* with a reference to *name*."""
    return code[: call.start] + name + code[call.end :]


def effective_kind(parser: Parser, step: Step) -> LineKind:
    """Re-derive an input-looking line's kind once no real ``input`` call is found."""
    if find_call_spans(parser, step.code, (constants.PRINT_CALL_NAME,)):
        return LineKind.PRINT
    if has_arithmetic(step.code):
        return LineKind.CALCULATION
    return LineKind.ASSIGNMENT


class StepController:
    """Drives one lesson: validate, step forward, step back, reset."""

    def __init__(
        self,
        lesson: Lesson,
        buffer: SourceBuffer,
        executor: CodeExecutor,
        store: VariableStore,
        renderer: Renderer,
        requester: ExplanationRequester,
        input_provider: InputProvider | None = None,
        parser: Parser | None = None,
    ):
        self.lesson = lesson
        self.buffer = buffer
        self.executor = executor
        self.store = store
        self.renderer = renderer
        self.requester = requester
        self.input_provider = input_provider
        self.parser = parser or Parser()

        self.state = ControllerState.IDLE
        self.current_step = 0
        self.last_error: str | None = None
        self._plan = ExecutionPlan()
        self._history: list[AnimationHistoryEntry] = []
        self._inputs: dict[int, str] = {}
        self._generation = 0
        self._in_flight: int | None = None

    # ── read-only views ──────────────────────────────────────────

    @property
    def plan(self) -> ExecutionPlan:
        return self._plan

    @property
    def total_steps(self) -> int:
        return self._plan.total_steps

    @property
    def history(self) -> tuple[AnimationHistoryEntry, ...]:
        return tuple(self._history)

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    @property
    def input_history(self) -> list[str]:
        return [self._inputs[i] for i in sorted(self._inputs)]

    def step_indicator(self) -> str:
        if self.state in (ControllerState.READY, ControllerState.STEPPING):
            return f"Step {self.current_step}/{self.total_steps}"
        if self.state == ControllerState.COMPLETE:
            return f"Step {self.total_steps}/{self.total_steps}"
        return "Ready to run..."

    # ── transitions ──────────────────────────────────────────────

    async def run(self) -> RunOutcome:
        """Validate the buffer and build a fresh plan."""
        with self._transition("run") as gen:
            self._require(
                ControllerState.IDLE, ControllerState.COMPLETE, ControllerState.FAILED
            )
            self._clear_run_state()
            source = self.buffer.text
            if not source.strip():
                self.state = ControllerState.IDLE
                self.last_error = "No code to run!"
                return RunOutcome(ok=False, message="❌ Error: No code to run!",
                                  error=self.last_error)

            self.state = ControllerState.VALIDATING
            self.buffer.read_only = True
            try:
                plan = build_plan(source, self.executor)
            except SourceSyntaxError as exc:
                try:
                    explanation = await self._fail(source, exc.message, gen)
                except _Abandoned:
                    return RunOutcome(ok=False, message="", cancelled=True)
                # Syntax errors hand the editor straight back to the learner.
                self.state = ControllerState.IDLE
                return RunOutcome(ok=False, message=explanation, error=exc.message)

            self._plan = plan
            self.state = ControllerState.READY
            logger.info("Run ready: %d steps", plan.total_steps)
            return RunOutcome(ok=True, message=self.lesson.validated_message, plan=plan)

    async def step(self) -> StepOutcome:
        """Execute, animate and explain the next line of the plan."""
        with self._transition("step") as gen:
            self._require(ControllerState.READY, ControllerState.STEPPING)
            if self.current_step >= self.total_steps:
                raise InvalidTransitionError("No steps left to run")

            index = self.current_step
            step = self._plan[index]
            logger.info("Step %d/%d: %s", index + 1, self.total_steps, step.code)
            try:
                step, prompt = await self._execute(index, step, gen)
                changes = self.store.apply_snapshot(self.executor.snapshot())
            except CodeExecutionError as exc:
                try:
                    explanation = await self._fail(step.code, str(exc), gen)
                except _Abandoned:
                    return StepOutcome(step=step, ok=False, cancelled=True)
                return StepOutcome(
                    step=step, ok=False, explanation=explanation, error=str(exc),
                    variables=self.store.as_dict(),
                )
            except _Abandoned:
                return StepOutcome(step=step, ok=False, cancelled=True)

            output_line = ""
            if step.kind == LineKind.PRINT:
                output_line = latest_output_line(self.executor.read_stdout())
            intent = select_intent(step, self.store, changes, output_line, prompt)
            variables = self.store.as_dict()
            context = output_line if step.kind == LineKind.PRINT else self.store.to_json()

            try:
                handle = await self.renderer.play(intent)
                self._check_alive(gen)
                explanation = await self.requester.explain_step(
                    step, context, variables, getattr(intent, "name", None)
                )
                self._check_alive(gen)
            except (AnimationCancelled, _Abandoned):
                return StepOutcome(step=step, ok=False, cancelled=True)

            self.current_step += 1
            self._history.append(
                AnimationHistoryEntry(
                    kind=history_kind(intent), handle=handle, is_new=intent_is_new(intent)
                )
            )

            completion_message = None
            if self.current_step == self.total_steps:
                self.state = ControllerState.COMPLETE
                self.buffer.read_only = False
                completion_message = self.lesson.completion_message
                logger.info("Run complete after %d steps", self.total_steps)
            else:
                self.state = ControllerState.STEPPING

            return StepOutcome(
                step=step,
                ok=True,
                explanation=explanation,
                intent=intent,
                output_line=output_line,
                variables=variables,
                complete=completion_message is not None,
                completion_message=completion_message,
            )

    async def back(self) -> BackOutcome:
        """Undo the last step's animation and rewind execution state to match."""
        with self._transition("back") as gen:
            self._require(ControllerState.STEPPING, ControllerState.COMPLETE)
            if self.current_step <= 0:
                raise InvalidTransitionError("Already at the first step")

            entry = self._history.pop()
            self.current_step -= 1
            try:
                await self.renderer.reverse(entry)
                self._check_alive(gen)
            except (AnimationCancelled, _Abandoned):
                return BackOutcome(current_step=self.current_step, message="", cancelled=True)

            self.state = ControllerState.STEPPING
            self.buffer.read_only = True
            try:
                self._replay(self.current_step)
            except CodeExecutionError as exc:
                self.state = ControllerState.FAILED
                self.last_error = str(exc)
                logger.warning("Replay to step %d failed: %s", self.current_step, exc)
                return BackOutcome(current_step=self.current_step, message=str(exc))

            return BackOutcome(
                current_step=self.current_step,
                message=constants.BACK_MESSAGE.format(step=self.current_step),
            )

    def reset(self) -> None:
        """Discard everything, cancel in-flight work and reload the lesson source."""
        self._generation += 1
        self._in_flight = None
        self.renderer.cancel()
        self._clear_run_state()
        self.buffer.set_text(self.lesson.source)
        apply_lesson_locks(self.buffer, self.lesson)
        self.buffer.read_only = False
        self.state = ControllerState.IDLE
        logger.info("Controller reset (generation %d)", self._generation)

    # ── internals ────────────────────────────────────────────────

    @contextlib.contextmanager
    def _transition(self, name: str) -> Iterator[int]:
        if self._in_flight is not None:
            raise ControllerBusyError(f"Cannot {name}: another transition is in flight")
        gen = self._generation
        self._in_flight = gen
        try:
            yield gen
        finally:
            if self._in_flight == gen:
                self._in_flight = None

    def _require(self, *states: ControllerState) -> None:
        if self.state not in states:
            raise InvalidTransitionError(
                f"Not allowed in state {self.state.value!r}; "
                f"expected one of {[s.value for s in states]}"
            )

    def _check_alive(self, gen: int) -> None:
        if gen != self._generation:
            raise _Abandoned()

    def _clear_run_state(self) -> None:
        self.current_step = 0
        self.last_error = None
        self._plan = ExecutionPlan()
        self._history = []
        self._inputs = {}
        self.executor.reset()
        self.store.clear()

    async def _execute(self, index: int, step: Step, gen: int) -> tuple[Step, str]:
        """Run one step against the executor.

        Returns the step as it actually ran, re-kinded when an input-looking
        line turns out to hold no real ``input`` call, and the prompt used.
        """
        if step.kind != LineKind.INPUT:
            self.executor.execute(step.code)
            return step, constants.DEFAULT_INPUT_PROMPT

        call = find_input_call(self.parser, step.code)
        if call is None:
            logger.debug("No input() call on %r; running it unchanged", step.code)
            self.executor.execute(step.code)
            ran_as = replace(step, kind=effective_kind(self.parser, step))
            return ran_as, constants.DEFAULT_INPUT_PROMPT

        if self.input_provider is None:
            raise CodeExecutionError("No input provider is connected", statement=step.code)
        value = await self.input_provider(call.prompt)
        self._check_alive(gen)
        self._inputs[index] = value
        self._run_input_line(step, call, value)
        return step, call.prompt

    def _run_input_line(self, step: Step, call: InputCall, value: Any) -> None:
        self.executor.set_global(constants.INPUT_GLOBAL, value)
        self.executor.execute(substitute_input(step.code, call))

    def _replay(self, upto: int) -> None:
        """Rebuild executor and store by re-running the first *upto* steps."""
        logger.debug("Replaying %d steps from a fresh namespace", upto)
        self._inputs = {i: v for i, v in self._inputs.items() if i < upto}
        self.executor.reset()
        self.store.clear()
        for index in range(upto):
            step = self._plan[index]
            call = find_input_call(self.parser, step.code) if index in self._inputs else None
            if call is not None:
                self._run_input_line(step, call, self._inputs[index])
            else:
                self.executor.execute(step.code)
        self.store.apply_snapshot(self.executor.snapshot())

    async def _fail(self, code: str, message: str, gen: int) -> str:
        self.state = ControllerState.FAILED
        self.last_error = message
        self.buffer.read_only = False
        logger.info("Run failed: %s", message)
        explanation = await self.requester.explain_error(
            code, message, self.lesson.error_hint
        )
        self._check_alive(gen)
        return explanation


def apply_lesson_locks(buffer: SourceBuffer, lesson: Lesson) -> None:
    """Lock the fixed tokens a lesson does not want the learner to edit."""
    buffer.clear_locks()
    if lesson.lock_string_body:
        buffer.lock_outside_string(0)
    if lesson.locked_calls:
        buffer.lock_call_tokens(lesson.locked_calls)
