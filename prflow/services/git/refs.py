"""Read-only repository queries: current branch, latest tag, origin remote."""

import logging
import re
from pathlib import Path

from prflow.services.git._run import GitRunnerError, _run_git

_SCP_REMOTE_RE = re.compile(r"^[\w.-]+@[\w.-]+:(?P<path>.+)$")
_URL_REMOTE_RE = re.compile(r"^(?:https?|ssh|git)://(?:[^@/]+@)?[^/]+/(?P<path>.+)$")


def current_branch(repo_dir: Path | None = None, log: logging.Logger | None = None) -> str:
    """Return the checked-out branch name (git rev-parse --abbrev-ref HEAD)."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    return _run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd, log=log)


def latest_tag(repo_dir: Path | None = None, log: logging.Logger | None = None) -> str | None:
    """Return the most recent tag reachable from HEAD, or None if there is none."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    try:
        tag = _run_git(["describe", "--tags", "--abbrev=0"], cwd=cwd)
    except GitRunnerError as e:
        if log:
            log.debug("No reachable tag: %s", e)
        return None
    return tag or None


def remote_url(remote: str = "origin", repo_dir: Path | None = None, log: logging.Logger | None = None) -> str:
    """Return the URL of a remote."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    return _run_git(["remote", "get-url", remote], cwd=cwd, log=log)


def repository_from_remote(url: str) -> str | None:
    """Parse ``owner/repo`` from a remote URL.

    Accepts scp-like (``git@github.com:owner/repo.git``) and URL forms
    (``https://github.com/owner/repo``). Returns None when the URL does not
    end in an owner/repo pair.
    """
    cleaned = url.strip().removesuffix("/").removesuffix(".git")
    match = _SCP_REMOTE_RE.match(cleaned) or _URL_REMOTE_RE.match(cleaned)
    if not match:
        return None
    parts = match.group("path").strip("/").split("/")
    if len(parts) != 2 or not all(parts):
        return None
    return "/".join(parts)
