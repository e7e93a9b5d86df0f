"""Committing, pushing, opening pull requests and related checks."""

from __future__ import annotations

from ggdiff.git.repo import GitError, PathLike, _git, _run, _text


def _check(output, label: str) -> None:
    if output.returncode != 0:
        raise GitError(f"{label}: {_text(output.stderr)}")


def commit(directory: PathLike, message: str) -> None:
    """Commit the staged changes with ``message``."""
    _check(_git(directory, "commit", "-m", message), "git commit")


def push(directory: PathLike) -> None:
    """Push HEAD to origin and set its upstream."""
    _check(_git(directory, "push", "-u", "origin", "HEAD"), "git push")


def create_pr(directory: PathLike, title: str, body: str) -> None:
    """Open a pull request for the current branch with the gh tool."""
    output = _run("gh", ["pr", "create", "--title", title, "--body", body], cwd=directory)
    _check(output, "gh pr create")


def has_staged_changes(directory: PathLike) -> bool:
    """True if the index differs from HEAD."""
    try:
        return _git(directory, "diff", "--cached", "--quiet").returncode != 0
    except GitError:
        return False


def has_unstaged_changes(directory: PathLike) -> bool:
    """True if the working tree has any change at all."""
    try:
        output = _git(directory, "status", "--porcelain")
    except GitError:
        return False
    return bool(_text(output.stdout).strip())


def has_unpushed_commits(directory: PathLike) -> bool:
    """True if HEAD has commits its upstream lacks, or there is no upstream."""
    try:
        output = _git(directory, "log", "--oneline", "@{u}..HEAD")
    except GitError:
        return True
    if output.returncode != 0:
        return True
    return bool(_text(output.stdout).strip())


def has_open_pr(directory: PathLike) -> bool:
    """True if the current branch has an open pull request."""
    try:
        output = _run("gh", ["pr", "view", "--json", "state", "-q", ".state"], cwd=directory)
    except GitError:
        return False
    return _text(output.stdout).strip() == "OPEN"


def staged_diff(directory: PathLike) -> str:
    """Diff of the index against HEAD."""
    return _text(_git(directory, "diff", "--cached").stdout)


def working_diff(directory: PathLike) -> str:
    """All changes, staged and unstaged, relative to HEAD."""
    return _text(_git(directory, "diff", "HEAD").stdout)


def branch_diff(directory: PathLike) -> str:
    """Diff of the branch against the repository's default branch."""
    base = _default_branch_via_gh(directory)
    output = _git(directory, "diff", f"{base}...HEAD")
    _check(output, "git diff branch")
    return _text(output.stdout)


def branch_log(directory: PathLike) -> str:
    """One-line log of commits on the branch but not on the default branch."""
    base = _default_branch_via_gh(directory)
    output = _git(directory, "log", "--oneline", f"{base}..HEAD")
    _check(output, "git log branch")
    return _text(output.stdout)


def _default_branch_via_gh(directory: PathLike) -> str:
    try:
        output = _run(
            "gh",
            ["repo", "view", "--json", "defaultBranchRef", "-q", ".defaultBranchRef.name"],
            cwd=directory,
        )
    except GitError:
        return "main"
    return _text(output.stdout).strip() or "main"