"""Source buffer — the lesson's editing surface with line locking."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import BufferEditError
from .parser import Parser, find_call_spans
from . import constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockedRange:
    """Non-editable columns ``[start, end)`` of one line."""

    line: int
    start: int
    end: int

    def blocks_insert(self, line: int, column: int) -> bool:
        return line == self.line and self.start < column < self.end

    def blocks_delete(self, line: int, start: int, end: int) -> bool:
        return line == self.line and start < self.end and end > self.start

    def shifted(self, delta: int) -> LockedRange:
        return LockedRange(self.line, self.start + delta, self.end + delta)


class SourceBuffer:
    """Line-oriented text buffer.

    Edits are restricted to a single line: multi-line inserts and pastes,
    and deletions spanning lines, are rejected. While ``read_only`` is set
    (during a run) every edit is rejected.
    """

    def __init__(self, text: str = "", parser: Parser | None = None):
        self._lines: list[str] = text.split("\n")
        self._locks: list[LockedRange] = []
        self._parser = parser
        self.read_only = False

    # ── reads ────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, line: int) -> str:
        self._check_line(line)
        return self._lines[line]

    def locks(self) -> list[LockedRange]:
        return list(self._locks)

    def is_editable(self, line: int, column: int) -> bool:
        return not self.read_only and not any(
            lock.blocks_insert(line, column) for lock in self._locks
        )

    # ── host writes ──────────────────────────────────────────────

    def set_text(self, text: str) -> None:
        """Replace the whole buffer; clears every lock."""
        self._lines = text.split("\n")
        self._locks = []

    def set_line(self, line: int, text: str) -> None:
        """Replace one line; clears the locks on that line."""
        self._check_line(line)
        if "\n" in text:
            raise BufferEditError("set_line: text must be a single line")
        self._lines[line] = text
        self._locks = [lock for lock in self._locks if lock.line != line]

    # ── learner edits ────────────────────────────────────────────

    def insert(self, line: int, column: int, text: str) -> None:
        self._check_editable()
        self._check_line(line)
        if "\n" in text or "\r" in text:
            raise BufferEditError("Multi-line insert is not allowed")
        current = self._lines[line]
        if not 0 <= column <= len(current):
            raise BufferEditError(f"Column {column} out of range on line {line}")
        if any(lock.blocks_insert(line, column) for lock in self._locks):
            raise BufferEditError(f"Line {line}, column {column} is locked")
        self._lines[line] = current[:column] + text + current[column:]
        self._shift_locks(line, column, len(text))

    def paste(self, line: int, column: int, text: str) -> None:
        self.insert(line, column, text)

    def delete(self, line: int, start: int, end: int) -> None:
        self._check_editable()
        self._check_line(line)
        current = self._lines[line]
        if not 0 <= start <= end <= len(current):
            raise BufferEditError(f"Range {start}:{end} out of range on line {line}")
        if any(lock.blocks_delete(line, start, end) for lock in self._locks):
            raise BufferEditError(f"Line {line}, columns {start}:{end} are locked")
        self._lines[line] = current[:start] + current[end:]
        self._shift_locks(line, end, start - end)

    def delete_range(
        self, from_line: int, from_col: int, to_line: int, to_col: int
    ) -> None:
        """Delete between two positions, which must be on the same line."""
        if from_line != to_line:
            raise BufferEditError("Deleting across lines is not allowed")
        self.delete(from_line, from_col, to_col)

    # ── locking ──────────────────────────────────────────────────

    def lock(self, line: int, start: int, end: int) -> LockedRange:
        self._check_line(line)
        locked = LockedRange(line, start, end)
        if locked not in self._locks:
            self._locks.append(locked)
        return locked

    def lock_call_tokens(
        self, names: tuple[str, ...] = constants.LOCKABLE_CALLS
    ) -> list[LockedRange]:
        """Lock the name, opening and closing parenthesis of calls to *names*."""
        if self._parser is None:
            self._parser = Parser()
        added: list[LockedRange] = []
        for index, text in enumerate(self._lines):
            if not text.strip():
                continue
            for span in find_call_spans(self._parser, text, names):
                added.append(self.lock(index, *span.head))
                if span.close is not None:
                    added.append(self.lock(index, *span.close))
        logger.debug("Locked %d call-token ranges", len(added))
        return added

    def lock_outside_string(self, line: int = 0) -> list[LockedRange]:
        """Lock everything on *line* except the body of its string literal."""
        text = self.get_line(line)
        start = text.find('"') + 1
        end = text.rfind('"')
        if start <= 0 or end < start:
            return []
        return [self.lock(line, 0, start), self.lock(line, end, len(text))]

    def clear_locks(self) -> None:
        self._locks = []

    # ── internals ────────────────────────────────────────────────

    def _check_line(self, line: int) -> None:
        if not 0 <= line < len(self._lines):
            raise BufferEditError(f"Line {line} does not exist")

    def _check_editable(self) -> None:
        if self.read_only:
            raise BufferEditError("Buffer is read-only while the lesson runs")

    def _shift_locks(self, line: int, column: int, delta: int) -> None:
        self._locks = [
            lock.shifted(delta) if lock.line == line and lock.start >= column else lock
            for lock in self._locks
        ]
