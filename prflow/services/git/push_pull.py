"""Pull from and push to remote (origin)."""

import logging
from pathlib import Path

from prflow.services.git._run import _run_git


def run_git_pull(
    branch: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Run git pull origin <branch> in the repository."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    _run_git(["pull", "origin", branch], cwd=cwd, log=log)
    if log:
        log.info("Pulled origin/%s", branch)


def push_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Push the given branch to origin and set it as upstream."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    _run_git(["push", "-u", "origin", branch_name], cwd=cwd, log=log)
    if log:
        log.info("Pushed branch %s to origin", branch_name)
