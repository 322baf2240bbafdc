"""
Version bump pull request: prepare it after a release PR and try to merge it.

The bump branch is cut from the release base branch, the configured bump
command rewrites the project version to the next snapshot, and the result is
pushed and opened as a PR labelled for automation. Merging is retried with a
fixed delay; every attempt tries each merge method in turn.
"""

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from prflow.adapters.base import MERGE_METHODS, GitPlatformAdapter, GitPlatformError
from prflow.models import PullRequest
from prflow.services.git import (
    GitRunnerError,
    add_all_and_commit,
    checkout_branch,
    create_branch,
    fetch_branch,
    push_branch,
    run_git_pull,
)
from prflow.services.reconcile import Reconciler
from prflow.services.report import RunReport
from prflow.services.retry import RetryPolicy, retry_until

BUMP_LABELS = ("automated", "version-bump")
BRANCH_PREFIX = "version-bump/"
DEFAULT_MERGE_POLICY = RetryPolicy(max_attempts=6, delay_seconds=5)


def bump_title(snapshot: str) -> str:
    return f"Version bump to {snapshot}"


def bump_commit_message(snapshot: str) -> str:
    return f"chore: bump version to {snapshot} [skip ci]"


def bump_body(snapshot: str, release_tag: str) -> str:
    return (
        f"Automated version bump to `{snapshot}` after release `{release_tag}`.\n\n"
        "This pull request was created by the release flow and is merged automatically."
    )


class VersionBumper:
    """Creates the version bump PR for the next development snapshot."""

    def __init__(
        self,
        adapter: GitPlatformAdapter,
        repo: str,
        base_branch: str,
        repo_dir: Path | None = None,
        bump_command: Sequence[str] = (),
        merge_policy: RetryPolicy = DEFAULT_MERGE_POLICY,
        report: RunReport | None = None,
        reconciler: Reconciler | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._adapter = adapter
        self._repo = repo
        self._base_branch = base_branch
        self._repo_dir = Path(repo_dir) if repo_dir is not None else Path.cwd()
        self._bump_command = list(bump_command)
        self._merge_policy = merge_policy
        self._log = log or logging.getLogger("prflow.services.version_bump")
        self.report = report or RunReport(self._log)
        self._reconciler = reconciler or Reconciler(adapter, repo, report=self.report, log=self._log)

    def run(self, snapshot: str, release_tag: str) -> bool:
        """Prepare the bump PR and auto-merge it. Returns True when merged."""
        pr = self.prepare(snapshot, release_tag)
        if pr is None:
            return False
        return self.auto_merge(pr)

    def prepare(self, snapshot: str, release_tag: str) -> PullRequest | None:
        """Open the bump PR, or return None when it is not needed or not possible.

        Raises:
            FatalError: the base branch cannot be checked out or the bump branch created.
        """
        title = bump_title(snapshot)
        try:
            existing = self._adapter.search_open_pull_requests(self._repo, title)
        except GitPlatformError as e:
            self.report.warn("Could not search for an existing version bump PR: %s", e)
            existing = []
        if existing:
            self.report.warn("Version bump PR already open (#%s), skipping", existing[0])
            return None

        branch = f"{BRANCH_PREFIX}{snapshot}"
        try:
            fetch_branch(self._base_branch, repo_dir=self._repo_dir, log=self._log)
        except GitRunnerError as e:
            self._log.debug("Fetch of %s failed, checking out as is: %s", self._base_branch, e)
        try:
            checkout_branch(self._base_branch, repo_dir=self._repo_dir, log=self._log)
            run_git_pull(self._base_branch, repo_dir=self._repo_dir, log=self._log)
        except GitRunnerError as e:
            raise self.report.fatal("Failed to check out %s: %s", self._base_branch, e) from e
        try:
            create_branch(branch, repo_dir=self._repo_dir, log=self._log)
        except GitRunnerError as e:
            raise self.report.fatal("Failed to create branch %s: %s", branch, e) from e

        if not self.apply_bump(snapshot):
            return None
        try:
            if not add_all_and_commit(bump_commit_message(snapshot), repo_dir=self._repo_dir, log=self._log):
                self.report.warn("No version changes to commit, skipping version bump PR")
                return None
            push_branch(branch, repo_dir=self._repo_dir, log=self._log)
        except GitRunnerError as e:
            self.report.fail("Failed to commit or push %s: %s", branch, e)
            return None

        try:
            pr = self._adapter.create_pull_request(
                self._repo,
                title=title,
                body=bump_body(snapshot, release_tag),
                head=branch,
                base=self._base_branch,
            )
        except GitPlatformError as e:
            self.report.fail("Failed to create version bump PR: %s", e)
            return None
        self.report.passed("Version bump PR created: %s", pr.url or f"#{pr.number}")
        self._reconciler.reconcile_labels(pr.number, list(BUMP_LABELS), pr.labels)
        return pr

    def apply_bump(self, snapshot: str) -> bool:
        """Run the bump command with ``{version}`` replaced by snapshot.

        Returns False when the command ran and failed; a missing or
        unavailable command is only a warning.
        """
        if not self._bump_command:
            self.report.warn("No bump command configured, version files left unchanged")
            return True
        cmd = [part.replace("{version}", snapshot) for part in self._bump_command]
        try:
            subprocess.run(cmd, cwd=self._repo_dir, check=True, capture_output=True, text=True)
        except FileNotFoundError:
            self.report.warn("Bump command %s not available, version files left unchanged", cmd[0])
            return True
        except subprocess.CalledProcessError as e:
            self.report.fail("Bump command failed: %s", (e.stderr or e.stdout or "").strip())
            return False
        self.report.passed("Version updated to %s", snapshot)
        return True

    def mergeable_state(self, pr_number: int) -> str:
        """``true``/``false`` from the platform, ``unknown`` while it is still computing or unreadable."""
        try:
            mergeable = self._adapter.get_pull_request(self._repo, pr_number).mergeable
        except GitPlatformError as e:
            self._log.debug("Could not read PR #%s: %s", pr_number, e)
            return "unknown"
        return "unknown" if mergeable is None else str(mergeable).lower()

    def auto_merge(self, pr: PullRequest) -> bool:
        """Try every merge method per attempt until one succeeds.

        Exhaustion leaves the PR open and is recorded as a warning.
        """

        def attempt(n: int) -> bool:
            self._log.info(
                "PR mergeable state: %s (attempt %d/%d)",
                self.mergeable_state(pr.number),
                n,
                self._merge_policy.max_attempts,
            )
            for method in MERGE_METHODS:
                try:
                    self._adapter.merge_pull_request(
                        self._repo,
                        pr.number,
                        method,
                        delete_branch=pr.head_branch or None,
                    )
                except GitPlatformError as e:
                    self._log.debug("Merge method %s failed: %s", method, e)
                    continue
                self.report.passed("Version bump PR #%s merged (%s)", pr.number, method)
                return True
            return False

        result = retry_until(attempt, bool, self._merge_policy, log=self._log)
        if not result.done:
            self.report.warn(
                "Could not auto-merge version bump PR #%s after %d attempts; merge it manually",
                pr.number,
                result.attempts,
            )
        return result.done
