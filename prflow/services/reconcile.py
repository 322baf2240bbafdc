"""Reconcile a pull request's labels, milestone, assignees and reviewers.

Additive and best-effort: every missing item is applied on its own and a
failure on one item is recorded in the run report without stopping the rest.
Nothing present on the PR is ever removed.
"""

import logging
from typing import Callable, Iterable, List

from prflow.adapters.base import GitPlatformAdapter, GitPlatformError
from prflow.models import PullRequest
from prflow.services.differ import diff
from prflow.services.report import RunReport

DEFAULT_LABEL_COLOR = "0366d6"


class Reconciler:
    """Applies desired PR metadata against the platform, one category at a time."""

    def __init__(
        self,
        adapter: GitPlatformAdapter,
        repo: str,
        report: RunReport | None = None,
        label_color: str = DEFAULT_LABEL_COLOR,
        label_description: str = "Automatically created",
        log: logging.Logger | None = None,
    ) -> None:
        self._adapter = adapter
        self._repo = repo
        self._log = log or logging.getLogger("prflow.services.reconcile")
        self.report = report or RunReport(self._log)
        self._label_color = label_color
        self._label_description = label_description

    def reconcile(
        self,
        pr_number: int,
        observed: PullRequest,
        labels: Iterable[str],
        milestone: str | None,
        assignees: Iterable[str],
        reviewers: Iterable[str],
        milestone_required: bool = False,
    ) -> RunReport:
        """Apply every category and return the (shared) run report.

        Raises:
            FatalError: only when milestone_required and the milestone cannot be set.
        """
        self.reconcile_labels(pr_number, list(labels), observed.labels)
        self.reconcile_milestone(pr_number, milestone, observed.milestone_title, required=milestone_required)
        self.reconcile_assignees(pr_number, list(assignees), observed.assignees)
        self.reconcile_reviewers(pr_number, list(reviewers), observed.reviewers)
        return self.report

    def reconcile_labels(self, pr_number: int, desired: List[str], existing: List[str]) -> List[str]:
        """Create missing repository labels, then attach missing PR labels.

        Returns the labels successfully attached.
        """
        if not desired:
            self.report.skip("No labels specified in metadata")
            return []
        self.report.info("Processing labels...")
        for label in desired:
            if label in existing:
                self.report.skip("Label '%s' already exists on PR", label)

        additions = diff(desired, existing)
        if not additions:
            return []
        try:
            repo_labels = set(self._adapter.list_labels(self._repo))
        except GitPlatformError as e:
            self.report.warn("Failed to list repository labels: %s", e)
            repo_labels = set()

        attached: List[str] = []
        for label in additions:
            if label not in repo_labels:
                self._ensure_repo_label(label)
            try:
                self._adapter.add_label(self._repo, pr_number, label)
            except GitPlatformError as e:
                self.report.fail("Failed to add label '%s': %s", label, e)
                continue
            self.report.passed("Added label '%s'", label)
            attached.append(label)
        return attached

    def _ensure_repo_label(self, label: str) -> None:
        self.report.info("Creating label '%s'", label)
        try:
            self._adapter.create_label(self._repo, label, self._label_color, self._label_description)
        except GitPlatformError as e:
            if e.already_exists:
                self.report.warn("Label '%s' already exists in repository", label)
            else:
                self.report.warn("Failed to create label '%s': %s", label, e)

    def reconcile_milestone(
        self,
        pr_number: int,
        desired: str | None,
        observed: str | None = None,
        required: bool = False,
    ) -> bool:
        """Set the PR milestone unless it already matches.

        Returns True when the milestone is (now) set to desired.

        Raises:
            FatalError: when required and the milestone is missing or cannot be set.
        """
        if not desired:
            if required:
                raise self.report.fatal("Required field 'milestone' is missing or empty in metadata")
            self.report.skip("No milestone specified in metadata")
            return False
        try:
            current = self._adapter.get_pr_milestone_title(self._repo, pr_number)
        except GitPlatformError as e:
            self._log.debug("Could not read milestone of PR #%s: %s", pr_number, e)
            current = observed
        if current == desired:
            self.report.skip("Milestone '%s' already set", desired)
            return True

        self.report.info("Setting milestone '%s'", desired)
        try:
            self._adapter.set_pr_milestone(self._repo, pr_number, desired)
        except GitPlatformError as e:
            if required:
                raise self.report.fatal("Failed to set milestone '%s': %s", desired, e) from e
            self.report.warn("Failed to set milestone '%s': %s", desired, e)
            return False
        self.report.passed("Milestone set to '%s'", desired)
        return True

    def reconcile_assignees(self, pr_number: int, desired: List[str], existing: List[str]) -> List[str]:
        """Add missing assignees; returns the ones added."""
        return self._add_people(
            pr_number,
            desired,
            existing,
            kind="Assignee",
            apply=self._adapter.add_assignee,
            done="Assigned '%s'",
            failed="Failed to assign '%s': %s",
            present="Assignee '%s' already assigned",
        )

    def reconcile_reviewers(self, pr_number: int, desired: List[str], existing: List[str]) -> List[str]:
        """Request missing reviewers; returns the ones requested."""
        return self._add_people(
            pr_number,
            desired,
            existing,
            kind="Reviewer",
            apply=self._adapter.request_reviewer,
            done="Review requested from '%s'",
            failed="Failed to request review from '%s': %s",
            present="Reviewer '%s' already requested",
        )

    def _add_people(
        self,
        pr_number: int,
        desired: List[str],
        existing: List[str],
        kind: str,
        apply: Callable[[str, int, str], None],
        done: str,
        failed: str,
        present: str,
    ) -> List[str]:
        if not desired:
            self.report.skip("No %ss specified in metadata", kind.lower())
            return []
        self.report.info("Processing %ss...", kind.lower())
        for login in desired:
            if login in existing:
                self.report.skip(present, login)

        added: List[str] = []
        for login in diff(desired, existing):
            try:
                apply(self._repo, pr_number, login)
            except GitPlatformError as e:
                self.report.fail(failed, login, e)
                continue
            self.report.passed(done, login)
            added.append(login)
        return added
