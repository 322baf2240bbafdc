"""Git operations: refs, branches, commits, push/pull."""

from prflow.services.git._run import GitRunnerError
from prflow.services.git.branches import checkout_branch, create_branch, fetch_branch
from prflow.services.git.commits import add_all_and_commit, has_staged_changes
from prflow.services.git.push_pull import push_branch, run_git_pull
from prflow.services.git.refs import current_branch, latest_tag, remote_url, repository_from_remote

__all__ = [
    "GitRunnerError",
    "add_all_and_commit",
    "checkout_branch",
    "create_branch",
    "current_branch",
    "fetch_branch",
    "has_staged_changes",
    "latest_tag",
    "push_branch",
    "remote_url",
    "repository_from_remote",
    "run_git_pull",
]
