"""Command-line entry point: ``codespark serve`` and ``codespark step``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .animation import (
    AnimationHistoryEntry,
    AnimationIntent,
    CalculationIntent,
    InputCaptureIntent,
    MemoryWriteIntent,
    PrintOutputIntent,
    TimedRenderer,
)
from .config import ClientConfig, ServiceConfig
from .controller import ControllerState
from .errors import CodeSparkError
from .lessons import ADDITION_MODES, LESSONS, custom_lesson
from .markup import highlight_output, parse_explanation_line
from .session import Session

logger = logging.getLogger(__name__)

HELP = "[n]ext step  [b]ack  [r]eset  [e]xplain program  [q]uit"
HIGHLIGHT_OPEN, HIGHLIGHT_CLOSE = "»", "«"


def describe_intent(intent: AnimationIntent) -> str:
    """One-line text rendering of an animation intent."""
    if isinstance(intent, CalculationIntent):
        operands = f" {intent.operator} ".join(op.value for op in intent.operands)
        return f"  ⚡ {operands} → [{intent.name}] = {intent.value}"
    if isinstance(intent, InputCaptureIntent):
        return f"  ⌨  {intent.value!r} → [{intent.name}]"
    if isinstance(intent, MemoryWriteIntent):
        marker = "new box" if intent.is_new else "updated"
        return f"  ⚡ {intent.value} → [{intent.name}] ({marker})"
    if isinstance(intent, PrintOutputIntent):
        return f"  🖥  {intent.output_line}"
    return "  (nothing to show)"



def _mark_spans(text: str, spans: list[tuple[int, int]]) -> str:
    marked = []
    cursor = 0
    for start, end in spans:
        marked.append(text[cursor:start])
        marked.append(f"{HIGHLIGHT_OPEN}{text[start:end]}{HIGHLIGHT_CLOSE}")
        cursor = end
    marked.append(text[cursor:])
    return "".join(marked)


def render_explanation(lines: list[str], stdout: str) -> list[str]:
    """Terminal rendering of a program explanation.

    Markup is stripped from the text; ``<VARS>`` becomes a variable panel and
    ``<CHALKBOARD>`` marks the matching program output.
    """
    rendered: list[str] = []
    for raw in lines:
        line = parse_explanation_line(raw)
        rendered.append(line.text)
        if line.variables:
            rendered.extend(
                f"  📦 {name} = {value}" for name, value in line.variables.items()
            )
        elif line.vars_error:
            rendered.append(f"  ⚠  {line.vars_error}")
        spans = highlight_output(stdout, line.chalkboard)
        if spans:
            marked = _mark_spans(stdout, spans)
            rendered.extend(
                f"  🖥  {out}" for out in marked.splitlines() if HIGHLIGHT_OPEN in out
            )
        elif line.chalkboard:
            rendered.append(f"  🖥  {line.chalkboard}")
    return rendered


class ConsoleRenderer(TimedRenderer):
    """Timed renderer that also writes each animation to the terminal."""

    def __init__(self, speed: float = 1.0, stream=None):
        super().__init__(speed=speed)
        self.stream = stream or sys.stdout

    async def play(self, intent: AnimationIntent):
        handle = await super().play(intent)
        print(describe_intent(intent), file=self.stream)
        return handle

    async def reverse(self, entry: AnimationHistoryEntry) -> None:
        await super().reverse(entry)
        print(f"  ↩  undo {entry.kind.value}", file=self.stream)


async def _console_input(prompt: str) -> str:
    return await asyncio.to_thread(input, f"{prompt} ")


async def _step_loop(session: Session) -> None:
    controller = session.controller
    print(session.buffer.text)
    print(HELP)
    while True:
        command = (await asyncio.to_thread(input, f"{controller.step_indicator()}> ")).strip().lower()
        try:
            if command in ("q", "quit"):
                return
            if command in ("r", "reset"):
                controller.reset()
                print("Reset.")
            elif command in ("b", "back"):
                outcome = await controller.back()
                print(outcome.message)
            elif command in ("e", "explain"):
                lines = await session.explain_program()
                for text in render_explanation(lines, session.executor.read_stdout()):
                    print(text)
            elif command in ("n", "next", ""):
                if controller.state in (
                    ControllerState.IDLE, ControllerState.COMPLETE, ControllerState.FAILED
                ):
                    outcome = await controller.run()
                    print(outcome.message)
                    continue
                step_outcome = await controller.step()
                print(f"Line {step_outcome.step.display_line}: {step_outcome.step.code}")
                if step_outcome.error:
                    print(f"❌ {step_outcome.error}")
                print(step_outcome.explanation)
                if step_outcome.completion_message:
                    print(step_outcome.completion_message)
            else:
                print(HELP)
        except CodeSparkError as exc:
            print(f"⚠  {exc}")


async def _run_step(args: argparse.Namespace) -> None:
    config = ClientConfig.from_env()
    lesson = None
    if args.file:
        lesson = custom_lesson(Path(args.file).read_text(), title=Path(args.file).name)
    speed = config.animation_speed if args.speed is None else args.speed
    session = Session.open(
        args.lesson,
        mode=args.mode,
        config=config,
        renderer=ConsoleRenderer(speed=speed),
        input_provider=_console_input,
        lesson=lesson,
    )
    async with session:
        await _step_loop(session)


def _run_serve(args: argparse.Namespace) -> None:
    import uvicorn

    from .llm_client import get_llm_client
    from .server import create_app

    config = ServiceConfig.from_env()
    provider = args.provider or config.provider
    llm_client = get_llm_client(provider=provider, model=args.model or config.model)
    app = create_app(llm_client, config)
    host = args.host or config.host
    port = args.port or config.port
    logger.info("Serving explanations via %s on %s:%d", provider, host, port)
    uvicorn.run(app, host=host, port=port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codespark", description="Step through small Python programs, one line at a time"
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the explanation service")
    serve.add_argument("--provider", "-p", default=None,
                       choices=["claude", "openai", "groq", "ollama"],
                       help="LLM provider (default: CODESPARK_LLM_PROVIDER or groq)")
    serve.add_argument("--model", "-m", default=None, help="Model name override")
    serve.add_argument("--host", default=None, help="Bind address")
    serve.add_argument("--port", type=int, default=None, help="Bind port")

    step = sub.add_parser("step", help="Step through a lesson in the terminal")
    step.add_argument("file", nargs="?", help="Python file to step through")
    step.add_argument("--lesson", "-l", default="1", choices=sorted(LESSONS) + ["5"],
                      help="Lesson id (ignored when a file is given)")
    step.add_argument("--mode", default=ADDITION_MODES[0], choices=ADDITION_MODES,
                      help="Variant for lesson 5")
    step.add_argument("--speed", type=float, default=None,
                      help="Animation speed factor (0 = instant)")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command == "serve":
        _run_serve(args)
    else:
        asyncio.run(_run_step(args))


if __name__ == "__main__":
    main()
