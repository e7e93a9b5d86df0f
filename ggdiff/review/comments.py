"""Local review comments, threading, and merging of GitHub review comments."""

from __future__ import annotations

import os
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Union

from ggdiff import persist
from ggdiff.github.types import ReviewComment

_GH_PREFIX = "gh-"
_U64_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")

_YOU = "You"
_COPILOT = "Copilot"
_GITHUB = "GitHub"


def gh_id(id: int) -> str:
    """Local ID string for a GitHub comment ID."""
    return f"{_GH_PREFIX}{id}"


def is_gh_id(id: str) -> bool:
    """True if ``id`` names a comment that came from GitHub."""
    return id.startswith(_GH_PREFIX)


def parse_gh_id(id: str) -> int | None:
    """Turn ``gh-N`` back into the numeric GitHub ID, or ``None``."""
    if not is_gh_id(id):
        return None
    rest = id[len(_GH_PREFIX):]
    if not _UNSIGNED.fullmatch(rest):
        return None
    value = int(rest)
    return value if value <= _U64_MAX else None


@dataclass(frozen=True)
class CommentAuthor:
    """Who wrote a comment: you, Copilot, or a GitHub user."""

    kind: str
    login: str | None = None

    @classmethod
    def you(cls) -> CommentAuthor:
        return cls(_YOU)

    @classmethod
    def copilot(cls) -> CommentAuthor:
        return cls(_COPILOT)

    @classmethod
    def github(cls, login: str) -> CommentAuthor:
        return cls(_GITHUB, login)

    def _to_json(self) -> Any:
        if self.kind == _GITHUB:
            return {_GITHUB: self.login}
        return self.kind

    @classmethod
    def _from_json(cls, value: Any) -> CommentAuthor:
        if value in (_YOU, _COPILOT):
            return cls(value)
        if (
            isinstance(value, dict)
            and len(value) == 1
            and isinstance(value.get(_GITHUB), str)
        ):
            return cls.github(value[_GITHUB])
        raise ValueError(f"unknown comment author: {value!r}")


@dataclass
class TextBlock:
    """Plain text content."""

    content: str


@dataclass
class ToolEntry:
    """One tool call made by the agent."""

    name: str
    args: str
    result: str | None = None
    done: bool = False


@dataclass
class ToolGroupBlock:
    """A labelled group of tool calls."""

    label: str
    tools: list[ToolEntry] = field(default_factory=list)


ContentBlock = Union[TextBlock, ToolGroupBlock]


def _block_to_json(block: ContentBlock) -> dict[str, Any]:
    if isinstance(block, TextBlock):
        return {"type": "Text", "content": block.content}
    return {
        "type": "ToolGroup",
        "label": block.label,
        "tools": [
            {"name": t.name, "args": t.args, "result": t.result, "done": t.done}
            for t in block.tools
        ],
    }


def _require(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


def _block_from_json(data: Mapping[str, Any]) -> ContentBlock:
    kind = _require(data, "type")
    if kind == "Text":
        return TextBlock(_require(data, "content"))
    if kind == "ToolGroup":
        tools = [
            ToolEntry(
                name=_require(t, "name"),
                args=_require(t, "args"),
                result=t.get("result"),
                done=_require(t, "done"),
            )
            for t in _require(data, "tools")
        ]
        return ToolGroupBlock(_require(data, "label"), tools)
    raise ValueError(f"unknown content block type: {kind!r}")


@dataclass
class LocalComment:
    """A review comment held in the local store, possibly fetched from GitHub."""

    id: str
    body: str
    author: CommentAuthor
    in_reply_to_id: str | None
    path: str
    line: int
    side: str
    resolved: bool
    created_at: str
    blocks: list[ContentBlock] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        return {
            "id": self.id,
            "body": self.body,
            "author": self.author._to_json(),
            "in_reply_to_id": self.in_reply_to_id,
            "path": self.path,
            "line": self.line,
            "side": self.side,
            "resolved": self.resolved,
            "created_at": self.created_at,
            "blocks": [_block_to_json(b) for b in self.blocks],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LocalComment:
        """Build from the representation produced by :meth:`to_dict`."""
        return cls(
            id=_require(data, "id"),
            body=_require(data, "body"),
            author=CommentAuthor._from_json(_require(data, "author")),
            in_reply_to_id=data.get("in_reply_to_id"),
            path=_require(data, "path"),
            line=_require(data, "line"),
            side=_require(data, "side"),
            resolved=_require(data, "resolved"),
            created_at=_require(data, "created_at"),
            blocks=[_block_from_json(b) for b in _require(data, "blocks")],
        )


class CommentStore:
    """The comments of one repository and branch, saved as JSON."""

    def __init__(
        self,
        repo_root: str,
        branch: str,
        directory: str | os.PathLike[str] | None = None,
    ) -> None:
        self.comments: list[LocalComment] = []
        self._repo_key = f"{repo_root.replace('/', '_')}-{branch.replace('/', '_')}"
        self._directory = directory

    def save(self) -> Path:
        """Write all comments to disk and return the file path."""
        return persist.save(
            f"comments-{self._repo_key}.json",
            [c.to_dict() for c in self.comments],
            self._directory,
        )

    def add(self, comment: LocalComment) -> None:
        """Append a comment and save."""
        self.comments.append(comment)
        self.save()

    def _thread_ids(self, root_id: str) -> set[str]:
        ids = {root_id}
        added = True
        while added:
            added = False
            for c in self.comments:
                if c.id in ids:
                    continue
                if c.in_reply_to_id is not None and c.in_reply_to_id in ids:
                    ids.add(c.id)
                    added = True
        return ids

    def resolve(self, root_id: str, resolved: bool) -> None:
        """Mark a whole thread, nested replies included, and save."""
        ids = self._thread_ids(root_id)
        for c in self.comments:
            if c.id in ids:
                c.resolved = resolved
        self.save()

    def find_thread_root(self, comment_id: str) -> LocalComment | None:
        """Follow the reply chain up to the thread's first comment."""
        seen: set[str] = set()
        current = comment_id
        while current not in seen:
            seen.add(current)
            comment = next((c for c in self.comments if c.id == current), None)
            if comment is None:
                return None
            if comment.in_reply_to_id is None:
                return comment
            current = comment.in_reply_to_id
        return None

    def thread_comments(self, root_id: str) -> list[LocalComment]:
        """All comments of a thread, ordered by creation time."""
        ids = self._thread_ids(root_id)
        return sorted(
            (c for c in self.comments if c.id in ids), key=lambda c: c.created_at
        )

    def thread_has_copilot_comment(self, root_id: str) -> bool:
        copilot = CommentAuthor.copilot()
        return any(c.author == copilot for c in self.thread_comments(root_id))

    def root_threads_for_file(self, path: str) -> list[LocalComment]:
        """Unresolved thread roots on ``path``."""
        return [
            c
            for c in self.comments
            if c.path == path and not c.resolved and c.in_reply_to_id is None
        ]

    def thread_counts_by_file(self) -> dict[str, int]:
        """Number of unresolved threads per file."""
        return dict(
            Counter(
                c.path
                for c in self.comments
                if not c.resolved and c.in_reply_to_id is None
            )
        )

    def import_gh(self, gh_comments: Iterable[ReviewComment]) -> None:
        """Replace comments previously taken from GitHub; local ones are kept."""
        self.comments = [c for c in self.comments if not is_gh_id(c.id)]
        self.comments.extend(_gh_review_to_local(gc) for gc in gh_comments)


def _gh_review_to_local(c: ReviewComment) -> LocalComment:
    if c.line is not None:
        line = c.line
    elif c.original_line is not None:
        line = c.original_line
    else:
        line = 0
    return LocalComment(
        id=gh_id(c.id),
        body=c.body,
        author=CommentAuthor.github(c.user.login),
        in_reply_to_id=None if c.in_reply_to_id is None else gh_id(c.in_reply_to_id),
        path=c.path,
        line=line,
        side=c.side if c.side is not None else "RIGHT",
        resolved=False,
        created_at=c.updated_at if c.updated_at is not None else c.created_at,
        blocks=[TextBlock(c.body)],
    )