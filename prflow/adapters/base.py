"""Abstract base for Git platform adapters."""

from abc import ABC, abstractmethod
from typing import Any, List

from prflow.models import CIRun, Milestone, PullRequest

MERGE_METHODS = ("merge", "squash", "rebase")


class GitPlatformError(Exception):
    """Raised when a Git platform API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def already_exists(self) -> bool:
        """True for validation errors caused by an existing resource."""
        return self.status_code == 422 and "already_exists" in str(self)


class GitPlatformAdapter(ABC):
    """Abstract interface for Git hosting platforms.

    Covers the pull request, label, milestone, issue and CI-run operations
    the flows need. ``repo`` is always ``owner/name``.
    """

    # Pull requests

    @abstractmethod
    def find_pull_request(self, repo: str, head: str, base: str) -> PullRequest | None:
        """Return the PR (any state) from head into base, or None."""
        ...

    @abstractmethod
    def get_pull_request(self, repo: str, pr_number: int) -> PullRequest:
        """Fetch PR by number."""
        ...

    @abstractmethod
    def create_pull_request(
        self,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequest:
        """Create a pull request."""
        ...

    @abstractmethod
    def update_pull_request(self, repo: str, pr_number: int, title: str, body: str) -> PullRequest:
        """Update title and body of a pull request."""
        ...

    @abstractmethod
    def reopen_pull_request(self, repo: str, pr_number: int) -> PullRequest:
        """Reopen a closed pull request."""
        ...

    @abstractmethod
    def search_open_pull_requests(self, repo: str, query: str) -> List[int]:
        """Numbers of open PRs whose title matches query."""
        ...

    @abstractmethod
    def merge_pull_request(
        self,
        repo: str,
        pr_number: int,
        method: str,
        commit_message: str = "",
        delete_branch: str | None = None,
    ) -> None:
        """Merge using one of MERGE_METHODS and delete the head branch."""
        ...

    # Labels, milestone, people on a PR

    @abstractmethod
    def list_labels(self, repo: str) -> List[str]:
        """Names of all repository labels."""
        ...

    @abstractmethod
    def create_label(self, repo: str, name: str, color: str, description: str = "") -> None:
        """Create a repository label."""
        ...

    @abstractmethod
    def add_label(self, repo: str, pr_number: int, label: str) -> None:
        """Attach an existing label to a PR."""
        ...

    @abstractmethod
    def get_pr_milestone_title(self, repo: str, pr_number: int) -> str | None:
        """Current milestone title of a PR, or None."""
        ...

    @abstractmethod
    def set_pr_milestone(self, repo: str, pr_number: int, title: str) -> None:
        """Set PR milestone by title."""
        ...

    @abstractmethod
    def add_assignee(self, repo: str, pr_number: int, login: str) -> None:
        """Add an assignee to a PR."""
        ...

    @abstractmethod
    def request_reviewer(self, repo: str, pr_number: int, login: str) -> None:
        """Request a review from a user."""
        ...

    # Milestones and issues

    @abstractmethod
    def list_milestones(self, repo: str) -> List[Milestone]:
        """All milestones in any state."""
        ...

    @abstractmethod
    def create_milestone(
        self,
        repo: str,
        title: str,
        description: str = "",
        due_on: str | None = None,
        state: str = "open",
    ) -> Milestone:
        """Create a milestone."""
        ...

    @abstractmethod
    def update_milestone(self, repo: str, number: int, **fields: Any) -> Milestone:
        """Partial update: any of title, description, due_on, state."""
        ...

    @abstractmethod
    def list_milestone_issue_states(self, repo: str, milestone_number: int) -> List[str]:
        """State ("open"/"closed") of every issue in the milestone."""
        ...

    @abstractmethod
    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        """Post a comment on an issue."""
        ...

    # CI

    @abstractmethod
    def get_latest_workflow_run(self, repo: str, branch: str) -> CIRun | None:
        """Most recent workflow run on branch, or None."""
        ...

    @abstractmethod
    def count_workflows(self, repo: str) -> int:
        """Number of workflows defined in the repository."""
        ...
