"""Data returned by the GitHub REST API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


def _require(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


@dataclass(frozen=True)
class User:
    """A GitHub account."""

    login: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        return cls(login=_require(data, "login"))


@dataclass(frozen=True)
class BranchRepo:
    """The repository a branch belongs to."""

    name: str
    owner: User

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BranchRepo:
        return cls(
            name=_require(data, "name"),
            owner=User.from_dict(_require(data, "owner")),
        )


@dataclass(frozen=True)
class Branch:
    """One side of a pull request."""

    ref_name: str
    sha: str
    repo: BranchRepo

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Branch:
        return cls(
            ref_name=_require(data, "ref"),
            sha=_require(data, "sha"),
            repo=BranchRepo.from_dict(_require(data, "repo")),
        )


@dataclass(frozen=True)
class PullRequest:
    """A pull request."""

    number: int
    head: Branch
    base: Branch
    html_url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PullRequest:
        return cls(
            number=_require(data, "number"),
            head=Branch.from_dict(_require(data, "head")),
            base=Branch.from_dict(_require(data, "base")),
            html_url=data.get("html_url"),
        )

    def repo_owner(self) -> str:
        """Login of the owner of the base repository."""
        return self.base.repo.owner.login

    def repo_name(self) -> str:
        """Name of the base repository."""
        return self.base.repo.name


@dataclass(frozen=True)
class ReviewComment:
    """A review comment on a pull request."""

    id: int
    user: User
    body: str
    path: str
    line: int | None
    original_line: int | None
    side: str | None
    in_reply_to_id: int | None
    created_at: str
    updated_at: str | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReviewComment:
        return cls(
            id=_require(data, "id"),
            user=User.from_dict(_require(data, "user")),
            body=_require(data, "body"),
            path=_require(data, "path"),
            line=data.get("line"),
            original_line=data.get("original_line"),
            side=data.get("side"),
            in_reply_to_id=data.get("in_reply_to_id"),
            created_at=_require(data, "created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class PullRequestFile:
    """A changed file with its patch and line counts."""

    filename: str
    status: str
    patch: str = ""
    additions: int = 0
    deletions: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PullRequestFile:
        return cls(
            filename=_require(data, "filename"),
            status=_require(data, "status"),
            patch=data.get("patch") or "",
            additions=data.get("additions") or 0,
            deletions=data.get("deletions") or 0,
        )