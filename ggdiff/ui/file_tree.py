"""Turning a flat list of changed files into an indented directory tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from ggdiff.github.types import PullRequestFile


@dataclass
class FileTreeEntry:
    """One row of the tree: a directory or a file."""

    file_index: int
    display: str
    depth: int
    is_dir: bool
    status: str


@dataclass
class _Node:
    children: dict[str, _Node] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)
    files: list[tuple[str, int]] = field(default_factory=list)


def _collapse(node: _Node) -> None:
    for key in list(node.order):
        child = node.children.get(key)
        if child is not None:
            _collapse(child)

    while len(node.order) == 1 and not node.files:
        child_key = node.order[0]
        child = node.children.pop(child_key)
        if len(child.order) == 1 and not child.files:
            new_key = f"{child_key}/{child.order[0]}"
            node.children[new_key] = next(iter(child.children.values()))
            node.order = [new_key]
        else:
            node.children[child_key] = child
            node.order = [child_key]
            break


def _aggregate_status(node: _Node, files: Sequence[PullRequestFile]) -> str:
    statuses = [files[idx].status for _, idx in node.files]
    statuses += [
        _aggregate_status(node.children[key], files)
        for key in node.order
        if key in node.children
    ]
    all_added = all(s == "added" for s in statuses)
    all_removed = all(s == "removed" for s in statuses)
    if not all_added and not all_removed:
        return "modified"
    return "added" if all_added else "removed"


def _walk(
    node: _Node,
    depth: int,
    entries: list[FileTreeEntry],
    files: Sequence[PullRequestFile],
) -> None:
    for key in sorted(node.order):
        child = node.children.get(key)
        if child is None:
            continue
        entries.append(
            FileTreeEntry(-1, f"{key}/", depth, True, _aggregate_status(child, files))
        )
        _walk(child, depth + 1, entries, files)
    for name, idx in node.files:
        entries.append(FileTreeEntry(idx, name, depth, False, files[idx].status))


def build_file_tree(files: Sequence[PullRequestFile]) -> list[FileTreeEntry]:
    """Directory rows (sorted, single-child chains merged) followed by their files."""
    root = _Node()
    for index, f in enumerate(files):
        dir_part, _, file_name = f.filename.rpartition("/")
        node = root
        if dir_part:
            for part in dir_part.split("/"):
                if part not in node.children:
                    node.order.append(part)
                    node.children[part] = _Node()
                node = node.children[part]
        node.files.append((file_name, index))

    _collapse(root)
    entries: list[FileTreeEntry] = []
    _walk(root, 0, entries, files)
    return entries