"""A small client for the parts of the GitHub REST API the review tools use."""

from __future__ import annotations

import os
import subprocess
from typing import Any, Callable, Mapping, TypeVar

import httpx

from ggdiff.github.types import PullRequest, ReviewComment, User

API_URL = "https://api.github.com"

T = TypeVar("T")


class GitHubError(RuntimeError):
    """A GitHub API request failed or returned data that could not be used."""


class _ApiError(Exception):
    """GitHub answered with an error status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"{status} {message}")
        self.status = status
        self.message = message


def _check(response: httpx.Response) -> None:
    if not response.is_error:
        return
    message = ""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        message = data["message"]
    else:
        message = response.text or response.reason_phrase
    raise _ApiError(response.status_code, message)


def resolve_token() -> str | None:
    """Token from ``GITHUB_TOKEN``, ``GH_TOKEN`` or ``gh auth token``."""
    for name in ("GITHUB_TOKEN", "GH_TOKEN"):
        value = os.environ.get(name)
        if value is not None:
            return value
    try:
        output = subprocess.run(["gh", "auth", "token"], capture_output=True, check=False)
    except OSError:
        return None
    if output.returncode != 0:
        return None
    return output.stdout.decode("utf-8", errors="replace").strip()


class Client:
    """Authenticated access to pull requests and their review comments."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = API_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._http = httpx.Client(
            base_url=base_url,
            transport=transport,
            timeout=30.0,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "ggdiff",
            },
        )

    @classmethod
    def from_environment(cls) -> Client:
        """Build a client with the token found by :func:`resolve_token`."""
        token = resolve_token()
        if token is None:
            raise GitHubError("no GitHub token found")
        return cls(token)

    def close(self) -> None:
        """Release the underlying connections."""
        self._http.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _get(
        self,
        url: str,
        params: Mapping[str, str] | None,
        context: str,
        parse: Callable[[Any], T],
    ) -> T:
        try:
            response = self._http.get(url, params=params)
            _check(response)
            return parse(response.json())
        except (httpx.HTTPError, _ApiError, ValueError, TypeError) as exc:
            raise GitHubError(f"{context}: {exc}") from exc

    def _post(self, url: str, payload: Mapping[str, Any]) -> ReviewComment:
        response = self._http.post(url, json=dict(payload))
        _check(response)
        return ReviewComment.from_dict(response.json())

    def authenticated_user(self) -> User:
        """The user the token belongs to."""
        return self._get("/user", None, "failed to fetch authenticated user", User.from_dict)

    def pull_request_by_branch(
        self, owner: str, repo: str, branch: str
    ) -> PullRequest | None:
        """The open pull request whose head is ``branch``, if any."""
        prs = self._get(
            f"/repos/{owner}/{repo}/pulls",
            {"head": f"{owner}:{branch}", "state": "open"},
            "failed to search PRs by branch",
            lambda data: [PullRequest.from_dict(item) for item in data],
        )
        return prs[0] if prs else None

    def review_comments(self, owner: str, repo: str, number: int) -> list[ReviewComment]:
        """Review comments of pull request ``number``."""
        return self._get(
            f"/repos/{owner}/{repo}/pulls/{number}/comments",
            {"per_page": "100"},
            "failed to fetch review comments",
            lambda data: [ReviewComment.from_dict(item) for item in data],
        )

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
        """Start a new review thread on ``path`` at ``line``."""
        url = f"/repos/{owner}/{repo}/pulls/{number}/comments"
        payload = {
            "body": body,
            "commit_id": commit_id,
            "path": path,
            "line": line,
            "side": side,
        }
        try:
            return self._post(url, payload)
        except (httpx.HTTPError, _ApiError, ValueError, TypeError) as exc:
            raise GitHubError(f"POST {url}: {exc}") from exc

    def reply_to_comment(
        self, owner: str, repo: str, number: int, comment_id: int, body: str
    ) -> ReviewComment:
        """Reply to the review comment ``comment_id``."""
        url = f"/repos/{owner}/{repo}/pulls/comments/{comment_id}/replies"
        try:
            return self._post(url, {"body": body})
        except _ApiError as exc:
            raise GitHubError(f"{exc.status} {url}: {exc.message}") from exc
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            raise GitHubError(f"POST {url}: {exc}") from exc