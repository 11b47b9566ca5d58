"""Tests for codespark.animation — intent selection and the timed renderer."""

from __future__ import annotations

import asyncio

import pytest

from codespark.animation import (
    AnimationCancelled,
    AnimationHistoryEntry,
    CalculationIntent,
    HistoryKind,
    InputCaptureIntent,
    MemoryWriteIntent,
    NoopIntent,
    PrintOutputIntent,
    RenderHandle,
    TimedRenderer,
    history_kind,
    intent_is_new,
    select_intent,
    stages_for,
)
from codespark.plan_types import LineKind, Step
from codespark.print_args import PartKind
from codespark.variables import VariableStore


def _store(**values: str) -> tuple[VariableStore, object]:
    store = VariableStore()
    changes = store.apply_snapshot(values)
    return store, changes


class TestSelectIntent:
    def test_assignment_new_slot(self):
        store, changes = _store(length="10")
        intent = select_intent(Step(0, "length = 10", LineKind.ASSIGNMENT), store, changes)
        assert intent == MemoryWriteIntent(name="length", value="10", line_number=0, is_new=True)

    def test_assignment_update(self):
        store = VariableStore()
        store.apply_snapshot({"x": "1"})
        changes = store.apply_snapshot({"x": "2"})
        intent = select_intent(Step(3, "x = 2", LineKind.ASSIGNMENT), store, changes)
        assert isinstance(intent, MemoryWriteIntent)
        assert intent.value == "2"
        assert not intent.is_new

    def test_calculation_operands_from_memory(self):
        store = VariableStore()
        store.apply_snapshot({"length": "10", "breadth": "20"})
        changes = store.apply_snapshot({"length": "10", "breadth": "20", "area": "200"})
        intent = select_intent(
            Step(2, "area = length * breadth", LineKind.CALCULATION), store, changes
        )
        assert isinstance(intent, CalculationIntent)
        assert intent.name == "area"
        assert intent.value == "200"
        assert intent.operator == "*"
        assert [(op.token, op.value, op.from_memory) for op in intent.operands] == [
            ("length", "10", True),
            ("breadth", "20", True),
        ]

    def test_calculation_literal_operand(self):
        store, changes = _store(x="5", y="6")
        intent = select_intent(Step(1, "y = x + 1", LineKind.CALCULATION), store, changes)
        assert isinstance(intent, CalculationIntent)
        assert intent.operands[1].from_memory is False
        assert intent.operands[1].value == "1"

    def test_complex_calculation_falls_back_to_memory_write(self):
        store, changes = _store(total="7")
        intent = select_intent(Step(0, "total = (3 + 4)", LineKind.CALCULATION), store, changes)
        assert isinstance(intent, MemoryWriteIntent)
        assert intent.name == "total"

    def test_input_capture(self):
        store, changes = _store(name="Ada")
        intent = select_intent(
            Step(0, 'name = input("Your name: ")', LineKind.INPUT),
            store,
            changes,
            prompt="Your name: ",
        )
        assert intent == InputCaptureIntent(
            name="name", value="Ada", prompt="Your name: ", converted=False,
            line_number=0, is_new=True,
        )

    def test_converted_input(self):
        store, changes = _store(a="3")
        intent = select_intent(Step(0, "a = int(input())", LineKind.INPUT), store, changes)
        assert isinstance(intent, InputCaptureIntent)
        assert intent.converted

    def test_bare_input_is_noop(self):
        store, changes = _store()
        intent = select_intent(Step(4, "input()", LineKind.INPUT), store, changes)
        assert intent == NoopIntent(line_number=4)

    def test_print_output(self):
        store, changes = _store(userNo="101")
        intent = select_intent(
            Step(3, 'print("User Number is", userNo)', LineKind.PRINT),
            store,
            changes,
            output_line="User Number is 101",
        )
        assert isinstance(intent, PrintOutputIntent)
        assert intent.output_line == "User Number is 101"
        assert [p.kind for p in intent.parts] == [PartKind.STRING, PartKind.VARIABLE]
        assert intent.parts[1].value == "101"


class TestHistoryHelpers:
    def test_print_is_output_and_new(self):
        intent = PrintOutputIntent(parts=(), output_line="x", line_number=0)
        assert history_kind(intent) == HistoryKind.OUTPUT
        assert intent_is_new(intent)

    def test_update_is_memory_not_new(self):
        intent = MemoryWriteIntent(name="x", value="2", line_number=0, is_new=False)
        assert history_kind(intent) == HistoryKind.MEMORY
        assert not intent_is_new(intent)

    def test_noop_not_new(self):
        assert not intent_is_new(NoopIntent(line_number=0))


class TestStages:
    def test_converted_input_spins_converter(self):
        intent = InputCaptureIntent("a", "3", "Enter value:", True, 0, True)
        assert "converter" in [stage.target for stage in stages_for(intent)]

    def test_plain_input_has_no_converter(self):
        intent = InputCaptureIntent("a", "3", "Enter value:", False, 0, True)
        assert "converter" not in [stage.target for stage in stages_for(intent)]

    def test_noop_has_no_stages(self):
        assert stages_for(NoopIntent(line_number=0)) == []


class TestTimedRenderer:
    def test_play_returns_visible_handle(self):
        renderer = TimedRenderer(speed=0)
        intent = MemoryWriteIntent(name="x", value="1", line_number=0, is_new=True)
        handle = asyncio.run(renderer.play(intent))
        assert isinstance(handle, RenderHandle)
        assert str(handle) == f"anim-{handle.id}"
        assert renderer.played == [intent]
        assert handle.id in renderer.visible

    def test_reverse_of_new_element_removes_it(self):
        renderer = TimedRenderer(speed=0)
        intent = MemoryWriteIntent(name="x", value="1", line_number=0, is_new=True)

        async def scenario():
            handle = await renderer.play(intent)
            await renderer.reverse(AnimationHistoryEntry(HistoryKind.MEMORY, handle, True))
            return handle

        handle = asyncio.run(scenario())
        assert handle.id not in renderer.visible
        assert len(renderer.reversed) == 1

    def test_reverse_of_update_keeps_element(self):
        renderer = TimedRenderer(speed=0)
        intent = MemoryWriteIntent(name="x", value="2", line_number=0, is_new=False)

        async def scenario():
            handle = await renderer.play(intent)
            await renderer.reverse(AnimationHistoryEntry(HistoryKind.MEMORY, handle, False))
            return handle

        handle = asyncio.run(scenario())
        assert handle.id in renderer.visible

    def test_cancel_interrupts_in_flight_play(self):
        renderer = TimedRenderer(speed=1.0)
        intent = MemoryWriteIntent(name="x", value="1", line_number=0, is_new=True)

        async def scenario():
            task = asyncio.create_task(renderer.play(intent))
            await asyncio.sleep(0)
            renderer.cancel()
            with pytest.raises(AnimationCancelled):
                await task

        asyncio.run(scenario())
        assert renderer.played == []
