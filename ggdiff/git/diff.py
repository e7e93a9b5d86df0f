"""Producing diffs of the working tree and splitting them into files."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Iterable

from ggdiff.git.repo import (
    GitError,
    PathLike,
    _git,
    _text,
    has_commits,
    resolve_merge_base,
    untracked_files,
)
from ggdiff.github.types import PullRequestFile

_DIFF_HEADER = re.compile(r"^diff --git a/(.*) b/(.*)")
_NO_NEWLINE = "\\ No newline at end of file"


class DiffMode(Enum):
    """Which changes a diff shows."""

    WORKING = "Unstaged"
    STAGED = "Staged"
    BRANCH = "Branch"

    def __str__(self) -> str:
        return self.value


def diff(directory: PathLike, mode: DiffMode, base_branch: str = "") -> str:
    """Raw diff text for ``mode``; the working mode includes untracked files."""
    commits = has_commits(directory)
    if mode is DiffMode.WORKING:
        args = ["diff", "--no-color"] if commits else ["diff", "--cached", "--no-color"]
    elif mode is DiffMode.STAGED:
        args = ["diff", "--cached", "--no-color"]
    else:
        if not commits:
            return ""
        base = resolve_merge_base(directory, base_branch)
        args = ["diff", f"{base}..HEAD", "--no-color"]

    output = _git(directory, *args)
    if output.returncode not in (0, 1):
        raise GitError(f"git diff: {_text(output.stderr)}")
    result = _text(output.stdout)

    if mode is DiffMode.WORKING:
        try:
            untracked = untracked_files(directory)
        except GitError:
            untracked = []
        if untracked:
            result += untracked_diff(directory, untracked)
    return result


def untracked_diff(directory: PathLike, files: Iterable[str]) -> str:
    """Diff text presenting each readable file as newly added."""
    parts: list[str] = []
    for name in files:
        try:
            content = (Path(directory) / name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        lines = content.split("\n")
        if lines[-1] == "":
            lines.pop()
        parts.append(f"diff --git a/{name} b/{name}\n")
        parts.append("new file mode 100644\n")
        parts.append(f"--- /dev/null\n+++ b/{name}\n")
        parts.append(f"@@ -0,0 +1,{len(lines)} @@\n")
        parts.extend(f"+{line}\n" for line in lines)
    return "".join(parts)


def _finish(file: PullRequestFile, patch_lines: list[str]) -> PullRequestFile:
    for line in patch_lines:
        if line.startswith("+") and not line.startswith("+++"):
            file.additions += 1
        elif line.startswith("-") and not line.startswith("---"):
            file.deletions += 1
    file.patch = "\n".join(patch_lines)
    return file


def parse_diff_to_files(raw_diff: str) -> list[PullRequestFile]:
    """Split a unified diff into one entry per file with its hunks and counts."""
    if not raw_diff:
        return []

    files: list[PullRequestFile] = []
    current: PullRequestFile | None = None
    patch_lines: list[str] = []
    in_header = False

    for line in raw_diff.split("\n"):
        match = _DIFF_HEADER.match(line)
        if match:
            if current is not None:
                files.append(_finish(current, patch_lines))
                patch_lines = []
            a_path, b_path = match.group(1), match.group(2)
            status = "renamed" if a_path != b_path else "modified"
            current = PullRequestFile(filename=b_path, status=status)
            in_header = True
            continue

        if current is None:
            continue

        if in_header:
            if line.startswith("@@"):
                in_header = False
                patch_lines.append(line)
            elif line.startswith("new file"):
                current.status = "added"
            elif line.startswith("deleted file"):
                current.status = "removed"
            elif line.startswith("Binary files"):
                current.patch = ""
            continue

        if line.startswith(("@@", "+", "-", " ")) or line == _NO_NEWLINE:
            patch_lines.append(line)

    if current is not None:
        files.append(_finish(current, patch_lines))
    return files