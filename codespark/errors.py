"""Exception hierarchy shared by the lesson runtime and the explanation client."""

from __future__ import annotations


class CodeSparkError(Exception):
    """Base class for every error raised by codespark."""


class SourceSyntaxError(CodeSparkError):
    """The lesson source failed the pre-execution compile check.

    Attributes:
        line: 1-based line of the offending token, or None when unknown.
    """

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line


class CodeExecutionError(CodeSparkError):
    """A single statement raised while executing."""

    def __init__(self, message: str, error_type: str = "", statement: str = ""):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.statement = statement

    def __str__(self) -> str:
        if self.error_type:
            return f"{self.error_type}: {self.message}"
        return self.message


class TransportError(CodeSparkError):
    """The explanation service was unreachable or answered non-2xx."""


class MalformedResponseError(CodeSparkError):
    """The explanation service answered with an unexpected body."""


class ControllerBusyError(CodeSparkError):
    """A run/step/back transition is already in flight."""


class InvalidTransitionError(CodeSparkError):
    """The requested transition is not allowed from the current state."""


class BufferEditError(CodeSparkError):
    """An edit was rejected by the source buffer."""
