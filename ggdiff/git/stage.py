"""Staging and unstaging single lines or hunks of a file's changes."""

from __future__ import annotations

import os
import re
from typing import Iterable

from ggdiff.git.repo import GitError, PathLike, _git, _run, _text

_NUMBER = re.compile(r"[+-]?[0-9]+")
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


def stage_lines(
    directory: PathLike,
    filename: str,
    file_status: str,
    full_patch: str,
    new_line_nos: Iterable[int],
    old_line_nos: Iterable[int],
    unstage: bool = False,
) -> None:
    """Stage (or unstage) only the selected added and removed lines."""
    if file_status == "added" and not unstage:
        _ensure_tracked(directory, filename)
    patch = build_partial_patch(
        filename, file_status, full_patch, new_line_nos, old_line_nos
    )
    if patch:
        _apply_patch(directory, patch, unstage)


def stage_hunk(
    directory: PathLike,
    filename: str,
    file_status: str,
    full_patch: str,
    line_no: int,
    side: str,
    unstage: bool = False,
) -> None:
    """Stage (or unstage) the hunk containing ``line_no`` on ``side``."""
    if file_status == "added" and not unstage:
        _ensure_tracked(directory, filename)
    patch = build_hunk_patch(filename, file_status, full_patch, line_no, side)
    if patch:
        _apply_patch(directory, patch, unstage)


def stage_all(directory: PathLike) -> None:
    """Stage every change in the working tree."""
    output = _git(directory, "add", "-A")
    if output.returncode != 0:
        raise GitError(f"git add -A: {_text(output.stderr)}")


def _ensure_tracked(directory: PathLike, filename: str) -> None:
    try:
        if _git(directory, "ls-files", "--error-unmatch", filename).returncode == 0:
            return
        _git(directory, "add", "--intent-to-add", filename)
    except GitError:
        pass


def _apply_patch(directory: PathLike, patch: str, unstage: bool) -> None:
    args = ["-C", os.fspath(directory), "apply", "--cached", "--allow-empty"]
    if unstage:
        args.append("--reverse")
    args.append("-")
    output = _run("git", args, stdin=patch.encode("utf-8"))
    if output.returncode != 0:
        raise GitError(f"git apply: {_text(output.stderr)}")


def _file_header(filename: str, file_status: str) -> list[str]:
    lines = [f"diff --git a/{filename} b/{filename}"]
    if file_status == "added":
        lines += ["new file mode 100644", "--- /dev/null"]
    else:
        lines.append(f"--- a/{filename}")
    lines.append(f"+++ b/{filename}")
    return lines


def build_partial_patch(
    filename: str,
    file_status: str,
    full_patch: str,
    new_line_nos: Iterable[int],
    old_line_nos: Iterable[int],
) -> str:
    """A patch keeping only the selected lines; other changes become context.

    Unselected additions are dropped and unselected removals are kept as
    context. Returns an empty string when nothing is left to apply.
    """
    new_set = set(new_line_nos)
    old_set = set(old_line_nos)

    hunks: list[str] = []
    current: list[str] = []
    old_start = new_start = old_count = new_count = 0
    old_num = new_num = 0
    in_hunk = False

    def flush() -> None:
        if current and any(l.startswith(("+", "-")) for l in current):
            hunks.append(f"@@ -{old_start},{old_count} +{new_start},{new_count} @@")
            hunks.extend(current)
        current.clear()

    for line in full_patch.split("\n"):
        if not line:
            continue
        if line.startswith("@@"):
            flush()
            old_num, new_num = parse_hunk_nums(line)
            old_start, new_start = old_num, new_num
            old_count = new_count = 0
            in_hunk = True
            continue
        if not in_hunk:
            continue

        if line.startswith("+"):
            if new_num in new_set:
                current.append(line)
                new_count += 1
            new_num += 1
        elif line.startswith("-"):
            if old_num in old_set:
                current.append(line)
            else:
                current.append(f" {line[1:]}")
                new_count += 1
            old_count += 1
            old_num += 1
        else:
            current.append(line if line.startswith(" ") else f" {line}")
            old_count += 1
            new_count += 1
            old_num += 1
            new_num += 1

    flush()

    if not hunks:
        return ""
    return "".join(f"{l}\n" for l in [*_file_header(filename, file_status), *hunks])


def build_hunk_patch(
    filename: str, file_status: str, full_patch: str, line_no: int, side: str
) -> str:
    """A patch holding the single hunk that contains ``line_no`` on ``side``.

    ``side`` is ``"RIGHT"`` for new line numbers and ``"LEFT"`` for old ones.
    Returns an empty string when no hunk contains the line.
    """
    hunk_header = ""
    hunk_lines: list[str] = []
    found = False
    old_num = new_num = 0

    for line in full_patch.split("\n"):
        if not line:
            continue
        if line.startswith("@@"):
            if found:
                break
            hunk_header = line
            hunk_lines = []
            old_num, new_num = parse_hunk_nums(line)
            continue
        if not hunk_header:
            continue

        hunk_lines.append(line)
        if line.startswith("+"):
            if side == "RIGHT" and new_num == line_no:
                found = True
            new_num += 1
        elif line.startswith("-"):
            if side == "LEFT" and old_num == line_no:
                found = True
            old_num += 1
        else:
            if side == "RIGHT" and new_num == line_no:
                found = True
            if side == "LEFT" and old_num == line_no:
                found = True
            old_num += 1
            new_num += 1

    if not found or not hunk_header:
        return ""
    lines = [*_file_header(filename, file_status), hunk_header, *hunk_lines]
    return "".join(f"{l}\n" for l in lines)


def _parse_i32(text: str) -> int:
    if _NUMBER.fullmatch(text):
        value = int(text)
        if _I32_MIN <= value <= _I32_MAX:
            return value
    return 0


def parse_hunk_nums(header: str) -> tuple[int, int]:
    """Old and new start line numbers from a ``@@ -a,b +c,d @@`` header."""
    parts = header.split()
    if len(parts) < 3:
        return (0, 0)
    old = parts[1].lstrip("-").split(",")[0]
    new = parts[2].lstrip("+").split(",")[0]
    return (_parse_i32(old), _parse_i32(new))