"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

# Globals the executor never reports as learner variables.
PLUMBING_NAMES: frozenset[str] = frozenset(
    {"output_buffer", "sys", "io", "__builtins__"}
)
PRIVATE_PREFIX = "_"

# Host-injected global carrying the value typed at an input() prompt.
INPUT_GLOBAL = "_temp_input"
DEFAULT_INPUT_PROMPT = "Enter value:"

# Wall-clock budget for a single executed statement.
STATEMENT_TIMEOUT_SECONDS = 5.0

INPUT_CALL_PATTERN = r"\binput\s*\("
PRINT_CALL_PATTERN = r"\bprint\s*\("
ARITHMETIC_OPERATORS: frozenset[str] = frozenset({"+", "-", "*", "/"})
QUOTE_CHARS: frozenset[str] = frozenset({'"', "'"})

PRINT_CALL_NAME = "print"
INPUT_CALL_NAME = "input"
LOCKABLE_CALLS: tuple[str, ...] = (PRINT_CALL_NAME, INPUT_CALL_NAME)
PYTHON_LANGUAGE = "python"

# Explanation service routes.
TUTORIAL_EXPLANATION_PATH = "/generate-tutorial-explanation"
PROGRAM_EXPLANATION_PATH = "/generate-explanation"
CHAT_PATH = "/chat-with-assistant"

DEFAULT_SERVICE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT_S = 15.0
CHAT_CONTEXT_TURNS = 4

# Animation stage timings (seconds) and easings.
SPARK_FLIGHT_S = 1.2
INPUT_FLIGHT_S = 1.5
CONVERTER_SPIN_S = 0.4
BOX_POP_S = 0.5
OUTPUT_SLIDE_S = 0.5
INPUT_GLOW_S = 0.3
REVERSE_S = 0.3

EASE_LINEAR = "none"
EASE_SPARK = "power2.out"
EASE_BOX_POP = "back.out(1.7)"
EASE_OUTPUT = "power2.out"

# Canned learner-facing messages.
FALLBACK_PRINT = "Perfect! Python calculated and printed the result!"
FALLBACK_INPUT = 'Great! Python stored "{value}" in the {name} variable!'
FALLBACK_LINE = "Line {line}: {code} - Executed successfully!"
FALLBACK_ERROR = "❌ There's an error in your code. Double-check your spelling and syntax!"
FALLBACK_CHAT = "Connection lost. Is the server running?"
FALLBACK_PROGRAM: tuple[str, ...] = (
    "Line 1 → Fallback: A secure connection error occurred, so this is a generic explanation.",
    "Line 2 → Please ensure the explanation service is running.",
    "Line 3 → The actual API key stays on the server side, where it belongs!",
)
BACK_MESSAGE = "Back to Step {step}. Click 'Next Step' to continue."
