"""Local branch operations: fetch, checkout, create."""

import logging
from pathlib import Path

from prflow.services.git._run import GitRunnerError, _run_git


def fetch_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Fetch origin/<branch> into the local branch of the same name."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    _run_git(["fetch", "origin", f"{branch_name}:{branch_name}"], cwd=cwd, log=log)


def checkout_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Checkout the given branch (must exist locally or on remote)."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    try:
        _run_git(["checkout", branch_name], cwd=cwd, log=log)
    except GitRunnerError:
        _run_git(["fetch", "origin", branch_name], cwd=cwd, log=log)
        _run_git(["checkout", branch_name], cwd=cwd, log=log)
    if log:
        log.info("Checked out branch %s", branch_name)


def create_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Create and checkout a new branch from HEAD."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    _run_git(["checkout", "-b", branch_name], cwd=cwd, log=log)
    if log:
        log.info("Created branch %s", branch_name)
