"""Code executor adapter — runs lesson statements one at a time in-process."""

from __future__ import annotations

import contextlib
import io
import logging
import sys
import time
from abc import ABC, abstractmethod
from typing import Any

from .errors import CodeExecutionError, SourceSyntaxError
from . import constants

logger = logging.getLogger(__name__)

_SOURCE_FILENAME = "<lesson>"


def latest_output_line(stdout: str) -> str:
    """Return the last non-blank line of accumulated stdout ('' if none)."""
    lines = [line for line in stdout.split("\n") if line.strip()]
    return lines[-1] if lines else ""


def is_learner_variable(name: str) -> bool:
    return not name.startswith(constants.PRIVATE_PREFIX) and (
        name not in constants.PLUMBING_NAMES
    )


class CodeExecutor(ABC):
    """Narrow protocol over an embedded Python runtime.

    Execution is stateful and ordered: every statement of a run shares one
    global namespace, and there is no transactional rollback. A statement that
    exits the interpreter (``exit()``, ``quit()``) fails like any other.
    """

    @abstractmethod
    def validate(self, code: str) -> None:
        """Compile *code* without running it; raise SourceSyntaxError on failure."""
        ...

    @abstractmethod
    def execute(self, statement: str) -> None:
        """Run one statement; raise CodeExecutionError on failure."""
        ...

    @abstractmethod
    def snapshot(self) -> dict[str, str]:
        """Return learner-visible globals as display strings."""
        ...

    @abstractmethod
    def read_stdout(self) -> str: ...

    @abstractmethod
    def reset_stdout(self) -> None: ...

    @abstractmethod
    def set_global(self, name: str, value: Any) -> None: ...

    @abstractmethod
    def reset(self) -> None:
        """Discard the namespace and the output buffer."""
        ...


class InProcessExecutor(CodeExecutor):
    """Executes statements with ``exec`` against a private globals dict.

    Each statement gets a wall-clock budget of *max_seconds*, enforced by a
    line tracer: a runaway loop fails with ``TimeoutError``. Blocking calls
    such as ``time.sleep`` or ``input`` are not interrupted, and ``reset``
    cannot cancel a statement that is already running.
    """

    def __init__(self, max_seconds: float = constants.STATEMENT_TIMEOUT_SECONDS):
        self.max_seconds = max_seconds
        self._namespace: dict[str, Any] = {}
        self._stdout = io.StringIO()
        self.reset()

    def validate(self, code: str) -> None:
        try:
            compile(code, _SOURCE_FILENAME, "exec")
        except SyntaxError as exc:
            message = f"{type(exc).__name__}: {exc.msg}"
            if exc.lineno:
                message += f" (line {exc.lineno})"
            logger.info("Validation failed: %s", message)
            raise SourceSyntaxError(message, line=exc.lineno) from exc

    def execute(self, statement: str) -> None:
        logger.debug("execute: %s", statement)
        try:
            code = compile(statement.strip(), _SOURCE_FILENAME, "exec")
            with contextlib.redirect_stdout(self._stdout):
                self._exec_with_deadline(code)
        except (Exception, SystemExit) as exc:
            logger.info("Statement failed: %s -> %r", statement, exc)
            message = str(exc)
            if isinstance(exc, SystemExit):
                message = "the program tried to exit"
            raise CodeExecutionError(
                message, error_type=type(exc).__name__, statement=statement
            ) from exc

    def _exec_with_deadline(self, code) -> None:
        deadline = time.monotonic() + self.max_seconds

        def trace_fn(frame, event, arg):
            if time.monotonic() > deadline:
                raise TimeoutError(f"statement ran longer than {self.max_seconds:g}s")
            return trace_fn

        old_trace = sys.gettrace()
        sys.settrace(trace_fn)
        try:
            exec(code, self._namespace)
        finally:
            sys.settrace(old_trace)

    def snapshot(self) -> dict[str, str]:
        return {
            name: str(value)
            for name, value in self._namespace.items()
            if is_learner_variable(name)
        }

    def read_stdout(self) -> str:
        return self._stdout.getvalue()

    def reset_stdout(self) -> None:
        self._stdout = io.StringIO()

    def set_global(self, name: str, value: Any) -> None:
        self._namespace[name] = value

    def get_global(self, name: str) -> Any:
        return self._namespace.get(name)

    def reset(self) -> None:
        self._namespace = {"__builtins__": __builtins__, "__name__": "__main__"}
        self.reset_stdout()
