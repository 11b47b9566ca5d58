"""Tests for codespark.cli."""

from __future__ import annotations

import asyncio
import io

import pytest

from codespark.animation import (
    AnimationHistoryEntry,
    CalculationIntent,
    HistoryKind,
    MemoryWriteIntent,
    NoopIntent,
    Operand,
    PrintOutputIntent,
)
from codespark.cli import ConsoleRenderer, build_parser, describe_intent, render_explanation


class TestBuildParser:
    def test_serve_options(self):
        args = build_parser().parse_args(["serve", "--provider", "claude", "--port", "8000"])
        assert args.command == "serve"
        assert args.provider == "claude"
        assert args.port == 8000

    def test_step_defaults(self):
        args = build_parser().parse_args(["step"])
        assert args.lesson == "1"
        assert args.mode == "problem"
        assert args.file is None

    def test_step_with_file(self):
        args = build_parser().parse_args(["-v", "step", "prog.py", "--speed", "0"])
        assert args.verbose
        assert args.file == "prog.py"
        assert args.speed == 0.0

    def test_unknown_provider_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["serve", "--provider", "gemini"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestDescribeIntent:
    def test_calculation(self):
        intent = CalculationIntent(
            name="area", value="200", operator="*",
            operands=(Operand("length", "10", True), Operand("breadth", "20", True)),
            line_number=2, is_new=True,
        )
        assert describe_intent(intent) == "  ⚡ 10 * 20 → [area] = 200"

    def test_memory_update(self):
        intent = MemoryWriteIntent(name="x", value="2", line_number=0, is_new=False)
        assert "updated" in describe_intent(intent)

    def test_noop(self):
        assert describe_intent(NoopIntent(line_number=0)) == "  (nothing to show)"


class TestConsoleRenderer:
    def test_play_and_reverse_write_to_stream(self):
        stream = io.StringIO()
        renderer = ConsoleRenderer(speed=0, stream=stream)
        intent = PrintOutputIntent(parts=(), output_line="200", line_number=3)

        async def scenario():
            handle = await renderer.play(intent)
            await renderer.reverse(AnimationHistoryEntry(HistoryKind.OUTPUT, handle, True))

        asyncio.run(scenario())
        assert stream.getvalue().splitlines() == ["  🖥  200", "  ↩  undo output"]


class TestRenderExplanation:
    def test_markup_is_stripped_and_vars_become_a_panel(self):
        lines = render_explanation(
            ['Line 2 → We print <CHALKBOARD>200</CHALKBOARD> <VARS>{"area": 200}</VARS>'],
            "200\n",
        )
        assert lines == ["Line 2 → We print 200", "  📦 area = 200", "  🖥  »200«"]
        assert not any("<VARS>" in line or "<CHALKBOARD>" in line for line in lines)

    def test_chalkboard_marks_only_matching_output(self):
        lines = render_explanation(
            ["Line 3 → Shows <CHALKBOARD>Hi Ada</CHALKBOARD>"], "Welcome\nHi Ada\n"
        )
        assert lines == ["Line 3 → Shows Hi Ada", "  🖥  »Hi Ada«"]

    def test_chalkboard_without_matching_output(self):
        lines = render_explanation(["Line 1 → <CHALKBOARD>7</CHALKBOARD>"], "")
        assert lines == ["Line 1 → 7", "  🖥  7"]

    def test_vars_error_is_reported(self):
        lines = render_explanation(["Line 1 → x <VARS>{n: 5}</VARS>"], "")
        assert lines[1].startswith("  ⚠  Variable data error")

    def test_plain_lines_pass_through(self):
        assert render_explanation(["Python reads the code."], "") == ["Python reads the code."]
