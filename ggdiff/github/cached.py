"""A GitHub client that caches review comments for a short time."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from ggdiff.github.client import Client
from ggdiff.github.types import PullRequest, ReviewComment, User

GC_INTERVAL = 30.0
STALE_TIME = 30.0
GC_TIME = 300.0

T = TypeVar("T")


@dataclass
class _Entry(Generic[T]):
    data: T
    fetched_at: float
    last_accessed: float


class TtlCache(Generic[T]):
    """Entries are fresh for ``stale_time`` seconds and collected after
    ``gc_time`` seconds without access."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        stale_time: float = STALE_TIME,
        gc_time: float = GC_TIME,
    ) -> None:
        self._clock = clock
        self._stale_time = stale_time
        self._gc_time = gc_time
        self._entries: dict[str, _Entry[T]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> T | None:
        """The fresh value for ``key``, or ``None``."""
        with self._lock:
            entry = self._entries.get(key)
            now = self._clock()
            if entry is not None and now - entry.fetched_at < self._stale_time:
                entry.last_accessed = now
                return entry.data
            return None

    def set(self, key: str, data: T) -> None:
        now = self._clock()
        with self._lock:
            self._entries[key] = _Entry(data, now, now)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def gc(self) -> None:
        """Drop entries not accessed within ``gc_time``."""
        now = self._clock()
        with self._lock:
            self._entries = {
                k: v for k, v in self._entries.items() if now - v.last_accessed < self._gc_time
            }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _comments_key(owner: str, repo: str, number: int) -> str:
    return f"{owner}/{repo}/pulls/{number}/comments"


class CachedClient:
    """Wraps a :class:`Client`, caching review comments per pull request."""

    def __init__(self, client: Client, clock: Callable[[], float] = time.monotonic) -> None:
        self._client = client
        self._review_comments: TtlCache[list[ReviewComment]] = TtlCache(clock)

    def gc_interval(self) -> float:
        """Seconds between cache collections."""
        return GC_INTERVAL

    def gc(self) -> None:
        self._review_comments.gc()

    def invalidate_all(self) -> None:
        self._review_comments.clear()

    def authenticated_user(self) -> User:
        return self._client.authenticated_user()

    def review_comments(self, owner: str, repo: str, number: int) -> list[ReviewComment]:
        """Review comments, served from the cache while fresh."""
        key = _comments_key(owner, repo, number)
        cached = self._review_comments.get(key)
        if cached is not None:
            return list(cached)
        data = self._client.review_comments(owner, repo, number)
        self._review_comments.set(key, list(data))
        return data

    def pull_request_by_branch(
        self, owner: str, repo: str, branch: str
    ) -> PullRequest | None:
        return self._client.pull_request_by_branch(owner, repo, branch)

    def create_review_comment(
        self,
        owner: str,
        repo: str,
        number: int,
        body: str,
        commit_id: str,
        path: str,
        line: int,
        side: str,
    ) -> ReviewComment:
        comment = self._client.create_review_comment(
            owner, repo, number, body, commit_id, path, line, side
        )
        self._review_comments.invalidate(_comments_key(owner, repo, number))
        return comment

    def reply_to_comment(
        self, owner: str, repo: str, number: int, comment_id: int, body: str
    ) -> ReviewComment:
        comment = self._client.reply_to_comment(owner, repo, number, comment_id, body)
        self._review_comments.invalidate(_comments_key(owner, repo, number))
        return comment