"""Stage and commit changes."""

import logging
from pathlib import Path

from prflow.services.git._run import GitRunnerError, _run_git


def has_staged_changes(repo_dir: Path | None = None, log: logging.Logger | None = None) -> bool:
    """True if the index differs from HEAD (git diff --staged --quiet exits 1)."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    try:
        _run_git(["diff", "--staged", "--quiet"], cwd=cwd)
    except GitRunnerError:
        return True
    return False


def add_all_and_commit(
    commit_message: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> bool:
    """Stage all changes and commit.

    If there is nothing to commit (working tree clean), returns False without
    raising. Returns True if a commit was made. Raises GitRunnerError on failure.

    Args:
        commit_message: Commit message.
        repo_dir: Repository directory; uses cwd if None.
        log: Optional logger.

    Returns:
        True if a commit was made, False if nothing to commit.
    """
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    _run_git(["add", "-A"], cwd=cwd, log=log)
    if not has_staged_changes(repo_dir=cwd, log=log):
        if log:
            log.info("Nothing to commit, working tree clean")
        return False
    _run_git(["commit", "-m", commit_message], cwd=cwd, log=log)
    return True
