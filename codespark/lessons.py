"""Lesson catalogue — starter programs and tutor messages per level."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class Lesson:
    id: str
    title: str
    source: str
    validated_message: str
    completion_message: str
    error_hint: str = constants.FALLBACK_ERROR
    locked_calls: tuple[str, ...] = constants.LOCKABLE_CALLS
    lock_string_body: bool = False
    mode: str = ""


_VALIDATED = "✅ Code validated! Click 'Next Step' to see how Python {topic}."

LESSONS: dict[str, Lesson] = {
    "1": Lesson(
        id="1",
        title="Hello World",
        source='print("Hello World!")',
        validated_message="Python is reading your code! Click 'Next Step' to see it move!",
        completion_message="Wow! You used the print command to send a message to the screen!",
        locked_calls=(),
        lock_string_body=True,
    ),
    "2": Lesson(
        id="2",
        title="Variables",
        source='message = "Keep Smiling"\nprint(message)\nuserNo = 101\nprint("User Number is", userNo)',
        validated_message=_VALIDATED.format(topic="executes it line by line"),
        completion_message=(
            "🎉 Excellent! You've seen how Python stores and uses variables! "
            "Try changing the values and running again."
        ),
        locked_calls=("print",),
    ),
    "3": Lesson(
        id="3",
        title="Rectangle Area",
        source="length = 10\nbreadth = 20\narea = length * breadth\nprint(area)",
        validated_message=_VALIDATED.format(topic="calculates the rectangle area"),
        completion_message="🎉 Excellent! You've learned how Python calculates area! Try changing values.",
        error_hint="❌ Check your code!",
        locked_calls=("print",),
    ),
    "4": Lesson(
        id="4",
        title="User Input",
        source='name = input("Enter your name: ")\nprint(name)',
        validated_message=_VALIDATED.format(topic="handles user input"),
        completion_message=(
            "🎉 Excellent! You've learned how Python gets input from users! "
            "Try changing the prompt message and run again."
        ),
    ),
}

_ADDITION_SOURCES = {
    "problem": "a = input()\nb = input()\nprint(a + b)",
    "solution": "a = int(input())\nb = int(input())\nprint(a + b)",
}

ADDITION_MODES: tuple[str, ...] = tuple(_ADDITION_SOURCES)


def _addition_lesson(mode: str) -> Lesson:
    return Lesson(
        id="5",
        title="Add 3+4 (String vs Int)",
        source=_ADDITION_SOURCES[mode],
        validated_message=_VALIDATED.format(topic="handles addition"),
        completion_message=(
            "🎉 Excellent! You've learned string vs number addition! "
            "Try switching modes and run again."
        ),
        error_hint="❌ There's an error in your code. Double-check your spelling!",
        mode=mode,
    )


def get_lesson(lesson_id: str, mode: str = "problem") -> Lesson:
    """Look up a lesson; *mode* only applies to the addition lesson.

    Raises:
        ValueError: for an unknown lesson id or addition mode.
    """
    if lesson_id == "5":
        if mode not in _ADDITION_SOURCES:
            raise ValueError(
                f"Unknown mode {mode!r} for lesson 5. Known: {list(ADDITION_MODES)}"
            )
        return _addition_lesson(mode)
    lesson = LESSONS.get(lesson_id)
    if lesson is None:
        raise ValueError(
            f"Unknown lesson: {lesson_id!r}. Known: {sorted([*LESSONS, '5'])}"
        )
    return lesson


def custom_lesson(source: str, title: str = "Your program") -> Lesson:
    """Wrap arbitrary source in a lesson with generic messages."""
    return Lesson(
        id="custom",
        title=title,
        source=source,
        validated_message=_VALIDATED.format(topic="executes it line by line"),
        completion_message="🎉 Excellent! You've stepped through the whole program!",
        locked_calls=(),
    )
