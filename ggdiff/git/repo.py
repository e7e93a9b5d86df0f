"""Queries against a git repository, run through the git command line."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Sequence, Union

PathLike = Union[str, "os.PathLike[str]"]

_SSH_USER = "git"
_GITHUB_HOST = "github.com"
_HEAD_REF_PREFIX = "ref: refs/heads/"


class GitError(RuntimeError):
    """A git or gh command failed, or its output could not be used."""


def _run(
    program: str,
    args: Sequence[str],
    cwd: PathLike | None = None,
    stdin: bytes | None = None,
) -> subprocess.CompletedProcess[bytes]:
    try:
        return subprocess.run(
            [program, *args],
            cwd=None if cwd is None else os.fspath(cwd),
            input=stdin,
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        raise GitError(f"failed to run {program}: {exc}") from exc


def _git(directory: PathLike, *args: str) -> subprocess.CompletedProcess[bytes]:
    return _run("git", ["-C", os.fspath(directory), *args])


def _text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _lines(text: str) -> list[str]:
    return [line.removesuffix("\r") for line in text.split("\n")]


def _succeeds(directory: PathLike, *args: str) -> bool:
    try:
        return _git(directory, *args).returncode == 0
    except GitError:
        return False


def repo_root(directory: PathLike) -> str:
    """Top-level directory of the repository containing ``directory``."""
    output = _git(directory, "rev-parse", "--show-toplevel")
    if output.returncode != 0:
        raise GitError("not inside a git repository")
    return _text(output.stdout).strip()


def current_branch(directory: PathLike) -> str:
    """Name of the checked-out branch, also for branches without commits."""
    output = _git(directory, "rev-parse", "--abbrev-ref", "HEAD")
    if output.returncode == 0:
        branch = _text(output.stdout).strip()
        if branch != "HEAD":
            return branch
    head_file = Path(directory) / ".git" / "HEAD"
    try:
        data = head_file.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        data = ""
    if data.startswith(_HEAD_REF_PREFIX):
        return data[len(_HEAD_REF_PREFIX):]
    return "main"


def has_commits(directory: PathLike) -> bool:
    """True if HEAD points at a commit."""
    return _succeeds(directory, "rev-parse", "HEAD")


def default_branch(directory: PathLike) -> str:
    """The repository's default branch, preferring the remote's."""
    output = _git(directory, "symbolic-ref", "refs/remotes/origin/HEAD")
    if output.returncode == 0:
        ref = _text(output.stdout).strip()
        return f"origin/{ref.rsplit('/', 1)[-1]}"
    for branch in ("main", "master"):
        if _succeeds(directory, "rev-parse", "--verify", f"refs/remotes/origin/{branch}"):
            return f"origin/{branch}"
    for branch in ("main", "master"):
        if _succeeds(directory, "rev-parse", "--verify", f"refs/heads/{branch}"):
            return branch
    return "main"


def default_branch_short(directory: PathLike) -> str:
    """The default branch without its ``origin/`` prefix."""
    return default_branch(directory).removeprefix("origin/")


def merge_base(directory: PathLike, branch: str) -> str:
    """Commit where ``branch`` and HEAD diverged."""
    output = _git(directory, "merge-base", branch, "HEAD")
    if output.returncode != 0:
        raise GitError(f"git merge-base: {_text(output.stderr)}")
    return _text(output.stdout).strip()


def resolve_merge_base(directory: PathLike, base_branch: str) -> str:
    """Merge base against ``base_branch``, or the default branch when empty."""
    branch = base_branch or default_branch(directory)
    return merge_base(directory, branch)


def local_branches(directory: PathLike) -> list[str]:
    """Names of all local branches."""
    output = _git(directory, "for-each-ref", "--format=%(refname:short)", "refs/heads/")
    raw = _text(output.stdout).strip()
    return _lines(raw) if raw else []


def file_content(directory: PathLike, path: str) -> str:
    """Contents of ``path`` in the working tree."""
    return (Path(directory) / path).read_text(encoding="utf-8")


def file_content_at_ref(directory: PathLike, path: str, git_ref: str) -> str:
    """Contents of ``path`` as of ``git_ref``."""
    output = _git(directory, "show", f"{git_ref}:{path}")
    if output.returncode != 0:
        raise GitError(f"git show {git_ref}:{path} failed")
    return _text(output.stdout)


def repo_owner_and_name(directory: PathLike) -> tuple[str, str]:
    """Owner and repository name taken from the ``origin`` remote."""
    output = _git(directory, "remote", "get-url", "origin")
    return parse_remote_url(_text(output.stdout).strip())


def parse_remote_url(url: str) -> tuple[str, str]:
    """Split a GitHub SSH or HTTPS remote URL into owner and name."""
    ssh_prefix = f"{_SSH_USER}@{_GITHUB_HOST}:"
    if url.startswith(ssh_prefix):
        rest = url[len(ssh_prefix):].removesuffix(".git")
        owner, sep, repo = rest.partition("/")
        if not sep:
            raise GitError("missing repo")
        return owner, repo
    if _GITHUB_HOST in url:
        pieces = url.removesuffix(".git").rsplit("/", 2)
        if len(pieces) >= 2:
            return pieces[-2], pieces[-1]
    raise GitError(f"could not parse remote URL: {url}")


def untracked_files(directory: PathLike) -> list[str]:
    """Untracked files that are not ignored."""
    output = _git(directory, "ls-files", "--others", "--exclude-standard")
    raw = _text(output.stdout).strip()
    return _lines(raw) if raw else []