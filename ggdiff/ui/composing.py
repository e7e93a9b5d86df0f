"""State of the comment being typed in the review panel."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ReplyMode(Enum):
    """Where a reply is sent: to the coding agent or to GitHub."""

    COPILOT = "copilot"
    GITHUB = "github"


def cursor_row_col(text: str, cursor: int) -> tuple[int, int]:
    """Zero-based line and column of the character offset ``cursor``."""
    before = text[:cursor]
    row = before.count("\n")
    line_start = before.rfind("\n") + 1
    return row, len(before) - line_start


def offset_from_row_col(text: str, row: int, col: int) -> int:
    """Character offset of ``(row, col)``, with ``col`` clamped to the line."""
    offset = 0
    for index, line in enumerate(text.split("\n")):
        if index == row:
            return offset + min(col, len(line))
        offset += len(line) + 1
    return len(text)


@dataclass
class ComposingState:
    """An editable multi-line comment with a cursor, and where it will go."""

    input: str = ""
    cursor: int = 0
    path: str = ""
    line: int = 0
    side: str = ""
    reply_to: str | None = None
    reply_mode: ReplyMode = ReplyMode.COPILOT
    _active: bool = field(default=False, init=False, repr=False)

    def is_active(self) -> bool:
        """True while a comment is being composed."""
        return self._active

    def _begin(self, path: str, line: int, side: str) -> None:
        self._active = True
        self.input = ""
        self.cursor = 0
        self.path = path
        self.line = line
        self.side = side

    def start_new(self, path: str, line: int, side: str) -> None:
        """Begin a new thread on ``path`` at ``line``."""
        self._begin(path, line, side)
        self.reply_to = None
        self.reply_mode = ReplyMode.COPILOT

    def start_reply_with_mode(
        self, reply_to: str, path: str, line: int, side: str, mode: ReplyMode
    ) -> None:
        """Begin a reply to the comment ``reply_to``."""
        self._begin(path, line, side)
        self.reply_to = reply_to
        self.reply_mode = mode

    def toggle_reply_mode(self) -> None:
        """Switch between replying to the agent and replying on GitHub."""
        self.reply_mode = (
            ReplyMode.GITHUB if self.reply_mode is ReplyMode.COPILOT else ReplyMode.COPILOT
        )

    def _reset(self) -> None:
        self._active = False
        self.cursor = 0
        self.reply_to = None
        self.reply_mode = ReplyMode.COPILOT

    def cancel(self) -> None:
        """Abandon the comment."""
        self._reset()
        self.input = ""

    def take_input(self) -> str:
        """Finish composing and return the text."""
        text = self.input
        self._reset()
        self.input = ""
        return text

    def move_left(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def move_right(self) -> None:
        if self.cursor < len(self.input):
            self.cursor += 1

    def move_up(self) -> None:
        """Move to the previous line, keeping the column where possible."""
        row, col = cursor_row_col(self.input, self.cursor)
        if row > 0:
            self.cursor = offset_from_row_col(self.input, row - 1, col)

    def move_down(self) -> None:
        """Move to the next line, keeping the column where possible."""
        row, col = cursor_row_col(self.input, self.cursor)
        if row + 1 < self.input.count("\n") + 1:
            self.cursor = offset_from_row_col(self.input, row + 1, col)

    def move_home(self) -> None:
        """Move to the start of the current line."""
        self.cursor = self.input.rfind("\n", 0, self.cursor) + 1

    def move_end(self) -> None:
        """Move to the end of the current line."""
        end = self.input.find("\n", self.cursor)
        self.cursor = len(self.input) if end == -1 else end

    def insert_char(self, c: str) -> None:
        self.input = self.input[: self.cursor] + c + self.input[self.cursor :]
        self.cursor += len(c)

    def insert_newline(self) -> None:
        self.insert_char("\n")

    def delete_back(self) -> None:
        """Delete the character before the cursor."""
        if self.cursor > 0:
            self.input = self.input[: self.cursor - 1] + self.input[self.cursor :]
            self.cursor -= 1

    def delete_forward(self) -> None:
        """Delete the character under the cursor."""
        if self.cursor < len(self.input):
            self.input = self.input[: self.cursor] + self.input[self.cursor + 1 :]

    def write_to_temp(self) -> str:
        """Write the text to a temporary file for an editor and return its path."""
        path = Path(tempfile.gettempdir()) / f"ghq-comment-{os.getpid()}.txt"
        try:
            path.write_text(self.input, encoding="utf-8")
        except OSError:
            pass
        return str(path)

    def read_from_temp(self, path: str | os.PathLike[str]) -> None:
        """Load the edited text from ``path`` and delete the file."""
        target = Path(path)
        try:
            content = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            pass
        else:
            self.input = content.rstrip()
            self.cursor = len(self.input)
        try:
            target.unlink()
        except OSError:
            pass