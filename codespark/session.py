"""Session — wires one lesson load's collaborators together."""

from __future__ import annotations

import logging

from .animation import Renderer, TimedRenderer
from .config import ClientConfig
from .controller import InputProvider, StepController, apply_lesson_locks
from .executor import CodeExecutor, InProcessExecutor
from .explainer import ChatHistory, ExplanationRequester
from .lessons import Lesson, get_lesson
from .parser import Parser
from .source_buffer import SourceBuffer
from .variables import VariableStore

logger = logging.getLogger(__name__)


class Session:
    """Everything one lesson needs: buffer, executor, store, renderer,
    requester and the controller that drives them.

    Sessions own their collaborators; nothing is shared between two
    sessions, so several lessons can be open side by side.
    """

    def __init__(
        self,
        lesson: Lesson,
        requester: ExplanationRequester,
        renderer: Renderer,
        executor: CodeExecutor | None = None,
        parser: Parser | None = None,
        input_provider: InputProvider | None = None,
    ):
        self.lesson = lesson
        self.requester = requester
        self.renderer = renderer
        self.executor = executor or InProcessExecutor()
        self.store = VariableStore()
        self.parser = parser or Parser()
        self.buffer = SourceBuffer(lesson.source, parser=self.parser)
        apply_lesson_locks(self.buffer, lesson)
        self.chat_history = ChatHistory()
        self.controller = StepController(
            lesson=lesson,
            buffer=self.buffer,
            executor=self.executor,
            store=self.store,
            renderer=self.renderer,
            requester=self.requester,
            input_provider=input_provider,
            parser=self.parser,
        )

    @classmethod
    def open(
        cls,
        lesson_id: str = "1",
        mode: str = "problem",
        config: ClientConfig | None = None,
        renderer: Renderer | None = None,
        requester: ExplanationRequester | None = None,
        input_provider: InputProvider | None = None,
        lesson: Lesson | None = None,
    ) -> Session:
        """Load a catalogue lesson (or *lesson* when given) into a new session."""
        config = config or ClientConfig.from_env()
        lesson = lesson or get_lesson(lesson_id, mode)
        logger.info("Opening lesson %s (%s)", lesson.id, lesson.title)
        return cls(
            lesson=lesson,
            requester=requester
            or ExplanationRequester(config.service_url, timeout=config.timeout_s),
            renderer=renderer or TimedRenderer(speed=config.animation_speed),
            input_provider=input_provider,
        )

    async def explain_program(self) -> list[str]:
        """Line-by-line explanation of the current buffer and the inputs given."""
        return await self.requester.explain_program(
            self.buffer.text, self.controller.input_history
        )

    async def ask(self, query: str) -> str:
        """Ask the assistant about the current program and its output."""
        return await self.requester.chat(
            query,
            self.buffer.text,
            self.executor.read_stdout(),
            self.chat_history,
        )

    async def aclose(self) -> None:
        self.renderer.cancel()
        await self.requester.aclose()

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
