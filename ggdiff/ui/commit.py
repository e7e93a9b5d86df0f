"""The commit overlay: generating, editing and running a commit action."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Optional

from wcwidth import wcswidth, wcwidth

from ggdiff.git import commit as git_commit
from ggdiff.git.repo import GitError, PathLike
from ggdiff.git.stage import stage_all
from ggdiff.ui.composing import cursor_row_col, offset_from_row_col

COMMIT_GEN_PREFIX = "commit-gen"

SPINNER = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")

# A rendered line is a list of (text, style) spans. Styles: "accent", "hint",
# "cursor" (character under the cursor), "cursor_end" (block after the text)
# or None for plain text.
Span = tuple[str, Optional[str]]
Line = list[Span]


class CommitAction(Enum):
    """What the overlay does once a message is ready."""

    COMMIT = "Commit"
    COMMIT_AND_PUSH = "Commit & Push"
    PUSH = "Push"
    OPEN_PR = "Open PR"
    COMMIT_ALL = "Commit All"
    COMMIT_ALL_AND_PUSH = "Commit All & Push"

    def label(self) -> str:
        """Title shown for the action."""
        return self.value

    def needs_message(self) -> bool:
        """True unless the action is a plain push."""
        return self is not CommitAction.PUSH


class CommitPhase(Enum):
    """Stage the overlay is in."""

    GENERATING = "generating"
    EDITING = "editing"
    EXECUTING = "executing"


@dataclass(frozen=True)
class Key:
    """A key press: a single character or a named key such as ``"enter"``."""

    code: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False


@dataclass(frozen=True)
class KeyResult:
    """What the caller should do after a key press."""

    kind: str
    editor_path: str | None = None

    CONTINUE: ClassVar[KeyResult]
    EXECUTE: ClassVar[KeyResult]
    CANCEL: ClassVar[KeyResult]


KeyResult.CONTINUE = KeyResult("continue")
KeyResult.EXECUTE = KeyResult("execute")
KeyResult.CANCEL = KeyResult("cancel")


@dataclass(frozen=True)
class CommitOutcome:
    """Result of running a commit action."""

    ok: bool
    message: str


def _width(text: str) -> int:
    width = wcswidth(text)
    if width >= 0:
        return width
    return sum(max(wcwidth(c), 0) for c in text)


def wrap_text(text: str, max_width: int) -> list[str]:
    """Word-wrap ``text`` to ``max_width`` columns (at least 10)."""
    max_width = max(max_width, 10)
    result: list[str] = []
    for line in text.split("\n"):
        if not line:
            result.append("")
            continue
        current = ""
        current_w = 0
        for word in line.split():
            word_w = _width(word)
            if not current:
                current, current_w = word, word_w
            elif current_w + 1 + word_w <= max_width:
                current += " " + word
                current_w += 1 + word_w
            else:
                result.append(current)
                current, current_w = word, word_w
        if current:
            result.append(current)
    return result or [""]


@dataclass
class CommitOverlay:
    """Modal that produces a commit or PR message and confirms the action."""

    action: CommitAction
    phase: CommitPhase = field(init=False)
    input: str = ""
    cursor: int = 0
    generating_message: str = ""
    spinner_frame: int = 0

    def __post_init__(self) -> None:
        self.phase = (
            CommitPhase.GENERATING if self.action.needs_message() else CommitPhase.EXECUTING
        )

    def handle_key(self, key: Key) -> KeyResult:
        """Apply a key press and say what should happen next."""
        if self.phase is CommitPhase.GENERATING:
            return KeyResult.CANCEL if key.code == "esc" else KeyResult.CONTINUE
        if self.phase is CommitPhase.EXECUTING:
            return KeyResult.CONTINUE

        code = key.code
        if code == "esc":
            return KeyResult.CANCEL
        if code == "g" and key.ctrl:
            path = Path(tempfile.gettempdir()) / f"ghq-commit-{os.getpid()}.txt"
            try:
                path.write_text(self.input, encoding="utf-8")
            except OSError:
                pass
            return KeyResult("open_editor", str(path))
        if (code == "a" and key.ctrl) or code == "home":
            self.cursor = self.input.rfind("\n", 0, self.cursor) + 1
        elif code == "end":
            end = self.input.find("\n", self.cursor)
            self.cursor = len(self.input) if end == -1 else end
        elif code == "enter":
            if key.shift or key.alt:
                self._insert("\n")
            elif self.input.strip():
                self.phase = CommitPhase.EXECUTING
                return KeyResult.EXECUTE
        elif code == "backspace":
            if self.cursor > 0:
                self.input = self.input[: self.cursor - 1] + self.input[self.cursor :]
                self.cursor -= 1
        elif code == "delete":
            if self.cursor < len(self.input):
                self.input = self.input[: self.cursor] + self.input[self.cursor + 1 :]
        elif code == "left":
            if self.cursor > 0:
                self.cursor -= 1
        elif code == "right":
            if self.cursor < len(self.input):
                self.cursor += 1
        elif code == "up":
            row, col = cursor_row_col(self.input, self.cursor)
            if row > 0:
                self.cursor = offset_from_row_col(self.input, row - 1, col)
        elif code == "down":
            row, col = cursor_row_col(self.input, self.cursor)
            if row + 1 < self.input.count("\n") + 1:
                self.cursor = offset_from_row_col(self.input, row + 1, col)
        elif len(code) == 1:
            self._insert(code)
        return KeyResult.CONTINUE

    def _insert(self, text: str) -> None:
        self.input = self.input[: self.cursor] + text + self.input[self.cursor :]
        self.cursor += len(text)

    def append_token(self, token: str) -> None:
        """Add streamed text to the message being generated."""
        self.generating_message += token

    def finish_generation(self) -> None:
        """Take the generated message, minus code fences, into the editor."""
        msg = self.generating_message.strip()
        if msg.startswith("```"):
            newline = msg.find("\n")
            if newline != -1:
                msg = msg[newline + 1 :]
            fence = msg.rfind("```")
            if fence != -1:
                msg = msg[:fence]
            msg = msg.strip()
        self.input = msg
        self.cursor = len(msg)
        self.phase = CommitPhase.EDITING

    def generation_error(self) -> None:
        """Fall back to an empty message the user can type."""
        self.input = ""
        self.cursor = 0
        self.phase = CommitPhase.EDITING

    def tick(self) -> None:
        """Advance the spinner."""
        self.spinner_frame += 1

    def build_lines(self, max_width: int) -> list[Line]:
        """The overlay's content as styled lines for a box ``max_width`` wide."""
        spinner = SPINNER[self.spinner_frame % len(SPINNER)]
        if self.phase is CommitPhase.GENERATING:
            lines: list[Line] = [
                [(spinner, "accent"), (" ", None), ("Generating message...", "hint")]
            ]
            if self.generating_message:
                lines.append([("", None)])
                lines.extend([(w, None)] for w in wrap_text(self.generating_message, max_width))
            return lines
        if self.phase is CommitPhase.EXECUTING:
            if self.action in (CommitAction.COMMIT, CommitAction.COMMIT_ALL):
                desc = "Committing..."
            elif self.action is CommitAction.PUSH:
                desc = "Pushing..."
            elif self.action is CommitAction.OPEN_PR:
                desc = "Creating PR..."
            else:
                desc = "Committing and pushing..."
            return [[(spinner, "accent"), (" ", None), (desc, None)]]
        return self._editing_lines(max_width)

    def _editing_lines(self, max_width: int) -> list[Line]:
        lines: list[Line] = []
        before = self.input[: self.cursor]
        cursor_line_idx = before.count("\n")
        cursor_col = len(before) - (before.rfind("\n") + 1)

        for index, line in enumerate(self.input.split("\n")):
            wrapped = wrap_text(line, max_width)
            if index != cursor_line_idx:
                lines.extend([(w, None)] for w in wrapped)
                continue

            remaining = cursor_col
            vis_row = max(len(wrapped) - 1, 0)
            vis_col = 0
            for wi, segment in enumerate(wrapped):
                if remaining <= len(segment):
                    vis_row, vis_col = wi, remaining
                    break
                remaining -= len(segment)
                if line[cursor_col - remaining :].startswith(" "):
                    remaining = max(remaining - 1, 0)

            for wi, segment in enumerate(wrapped):
                if wi != vis_row:
                    lines.append([(segment, None)])
                    continue
                head, tail = segment[:vis_col], segment[vis_col:]
                if not tail:
                    lines.append([(head, None), ("█", "cursor_end")])
                else:
                    lines.append([(head, None), (tail[0], "cursor"), (tail[1:], None)])

        lines.append([("", None)])
        left: Line = [
            ("esc", "accent"),
            (" cancel  ", "hint"),
            ("ctrl+g", "accent"),
            (" editor  ", "hint"),
            ("shift+↵", "accent"),
            (" newline", "hint"),
        ]
        right: Line = [("↵", "accent"), (" submit", "hint")]
        used = sum(_width(text) for text, _ in left) + sum(_width(text) for text, _ in right)
        pad = max(max_width - used, 0)
        lines.append([*left, (" " * pad, None), *right])
        return lines


def _message_lines(message: str) -> list[str]:
    parts = message.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [p.removesuffix("\r") for p in parts]


def execute_commit_action(
    action: CommitAction, message: str, directory: PathLike
) -> CommitOutcome:
    """Run ``action`` in the repository at ``directory``."""
    try:
        if action is CommitAction.COMMIT:
            git_commit.commit(directory, message)
            text = "Committed successfully"
        elif action is CommitAction.COMMIT_AND_PUSH:
            git_commit.commit(directory, message)
            git_commit.push(directory)
            text = "Committed and pushed"
        elif action is CommitAction.PUSH:
            git_commit.push(directory)
            text = "Pushed successfully"
        elif action is CommitAction.OPEN_PR:
            lines = _message_lines(message)
            title = lines[0].strip() if lines else ""
            body = "\n".join(lines[1:]).strip()
            git_commit.create_pr(directory, title, body)
            text = "PR created successfully"
        elif action is CommitAction.COMMIT_ALL:
            stage_all(directory)
            git_commit.commit(directory, message)
            text = "Committed all changes"
        else:
            stage_all(directory)
            git_commit.commit(directory, message)
            git_commit.push(directory)
            text = "Committed all and pushed"
    except GitError as exc:
        return CommitOutcome(False, str(exc))
    return CommitOutcome(True, text)


def build_commit_prompt(diff: str, branch: str, extra: str | None = None) -> str:
    """Prompt asking for a commit message for ``diff``."""
    parts = [f"Here is a diff for a branch called `{branch}`.\n\n"]
    if extra is not None:
        parts.append(f"{extra}\n\n")
    parts.append(
        "Write a clear, conventional commit message summarizing the changes. "
        "Use a concise subject line (max 72 chars). If needed, include a brief body "
        "after a blank line. Output only the commit message, no explanations.\n\n"
    )
    parts.append(diff)
    return "".join(parts)


def build_pr_prompt(diff: str, log: str, branch: str, extra: str | None = None) -> str:
    """Prompt asking for a pull request title and description."""
    parts = [f"Here is a diff and commit log for a branch called `{branch}`.\n\n"]
    if extra is not None:
        parts.append(f"{extra}\n\n")
    parts.append(
        "Write a clear pull request description. Start with a brief title on the first line, "
        "then a blank line, then the body. Output only the title and description, "
        "no explanations.\n\nDiff:\n"
    )
    parts.append(diff)
    parts.append("\n\nCommit log:\n")
    parts.append(log)
    return "".join(parts)