"""Watching a repository for file edits and branch switches."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Union

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

DEBOUNCE = 0.5

SKIP_DIRS = frozenset(
    {".git", "node_modules", "vendor", ".next", "dist", "build", "__pycache__", "target"}
)

_HEAD_REF_PREFIX = "ref: refs/heads/"
_RELEVANT = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_DELETED, EVENT_TYPE_MOVED}
)


class PathKind(Enum):
    """How a changed path is treated."""

    HEAD = "head"
    FILE = "file"
    IGNORED = "ignored"


@dataclass(frozen=True)
class FilesChanged:
    """Files in the working tree, or branch refs, changed."""


@dataclass(frozen=True)
class BranchChanged:
    """HEAD now points at another branch."""

    branch: str


WatchEvent = Union[FilesChanged, BranchChanged]


def classify_path(path: str | os.PathLike[str], repo_root: str | os.PathLike[str]) -> PathKind:
    """Decide whether a change at ``path`` is a branch switch, an edit, or noise."""
    path = Path(path)
    git_dir = Path(repo_root) / ".git"
    if path == git_dir / "HEAD":
        return PathKind.HEAD
    if path.is_relative_to(git_dir / "refs" / "heads"):
        return PathKind.FILE
    if path.is_relative_to(git_dir):
        return PathKind.IGNORED
    name = path.name
    if name and (name.startswith(".") or name.endswith(("~", ".swp", ".swo"))):
        return PathKind.IGNORED
    if any(p.name in SKIP_DIRS for p in (path, *path.parents)):
        return PathKind.IGNORED
    return PathKind.FILE


def read_branch(repo_root: str | os.PathLike[str]) -> str | None:
    """Branch named by ``.git/HEAD``, or ``None`` when detached or unreadable."""
    try:
        data = (Path(repo_root) / ".git" / "HEAD").read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    data = data.strip()
    if data.startswith(_HEAD_REF_PREFIX):
        return data[len(_HEAD_REF_PREFIX):]
    return None


class _Handler(FileSystemEventHandler):
    def __init__(self, watcher: RepoWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _RELEVANT:
            return
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)
        self._watcher.handle_paths(os.fsdecode(p) for p in paths)


class RepoWatcher:
    """Reports debounced file and branch changes in a repository to ``send``."""

    def __init__(
        self,
        repo_root: str | os.PathLike[str],
        send: Callable[[WatchEvent], object],
        debounce: float = DEBOUNCE,
    ) -> None:
        self.repo_root = Path(repo_root).resolve(strict=True)
        self._send = send
        self._debounce = debounce
        self._cond = threading.Condition()
        self._file_pending = False
        self._head_pending = False
        self._activity = 0
        self._stopped = False
        self._observer: Observer | None = None
        self._thread: threading.Thread | None = None

    def handle_paths(self, paths: Iterable[str | os.PathLike[str]]) -> None:
        """Record changed paths; they are reported after a quiet period."""
        with self._cond:
            for path in paths:
                kind = classify_path(path, self.repo_root)
                if kind is PathKind.HEAD:
                    self._head_pending = True
                elif kind is PathKind.FILE:
                    self._file_pending = True
            self._activity += 1
            self._cond.notify_all()

    def flush(self) -> list[WatchEvent]:
        """Send and return the events for everything recorded so far."""
        with self._cond:
            head, files = self._head_pending, self._file_pending
            self._head_pending = self._file_pending = False
        events: list[WatchEvent] = []
        if head:
            branch = read_branch(self.repo_root)
            if branch is not None:
                events.append(BranchChanged(branch))
        if files:
            events.append(FilesChanged())
        for event in events:
            self._send(event)
        return events

    def _worker(self) -> None:
        while True:
            with self._cond:
                while not self._stopped and not (self._file_pending or self._head_pending):
                    self._cond.wait()
                if self._stopped:
                    return
                seen = self._activity
                self._cond.wait(self._debounce)
                if self._stopped:
                    return
                if self._activity != seen:
                    continue
            self.flush()

    def start(self) -> RepoWatcher:
        """Begin watching the file system."""
        if self._observer is not None:
            return self
        self._stopped = False
        observer = Observer()
        observer.schedule(_Handler(self), str(self.repo_root), recursive=True)
        observer.start()
        self._observer = observer
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        """Stop watching; pending changes are dropped."""
        with self._cond:
            self._stopped = True
            self._cond.notify_all()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self) -> RepoWatcher:
        return self.start()

    def __exit__(self, *args: object) -> None:
        self.stop()