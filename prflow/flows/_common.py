"""Helpers shared by the flows: repository identity, CI policy, PR upsert."""

import logging
from pathlib import Path

from prflow.adapters.base import GitPlatformAdapter, GitPlatformError
from prflow.config import AppConfig
from prflow.models import CIOutcome, CIResult, PullRequest
from prflow.services.git import GitRunnerError, remote_url, repository_from_remote
from prflow.services.report import FatalError, RunReport
from prflow.services.retry import RetryPolicy


def repo_dir(config: AppConfig) -> Path:
    return Path(config.repo.path or ".")


def resolve_repository(config: AppConfig, report: RunReport, log: logging.Logger | None = None) -> str:
    """owner/repo from config, else parsed from the origin remote.

    Raises:
        FatalError: neither source yields a repository.
    """
    if config.repo.repository:
        return config.repo.repository
    try:
        url = remote_url(repo_dir=repo_dir(config), log=log)
    except GitRunnerError as e:
        raise report.fatal("Cannot determine repository from origin remote: %s", e) from e
    repository = repository_from_remote(url)
    if not repository:
        raise report.fatal("Cannot parse owner/repo from remote URL: %s", url)
    return repository


def ci_policy(config: AppConfig) -> RetryPolicy:
    return RetryPolicy(max_attempts=config.ci.max_attempts, delay_seconds=config.ci.retry_delay)


def apply_ci_outcome(result: CIResult, report: RunReport, timeout_is_fatal: bool) -> None:
    """Record a CI result; failed CI (and a release timeout) aborts the run.

    Raises:
        FatalError: CI failed, or timed out when timeout_is_fatal.
    """
    if result.outcome == CIOutcome.PASSED:
        report.passed("CI checks passed successfully")
    elif result.outcome == CIOutcome.FAILED:
        raise report.fatal("CI checks failed with conclusion: %s", result.conclusion or "unknown")
    elif result.outcome == CIOutcome.NO_RUN_FOUND:
        report.warn("No CI runs found for this branch")
    elif timeout_is_fatal:
        raise report.fatal("CI did not complete after %d attempts", result.attempts)
    else:
        report.warn("CI did not complete after %d attempts, continuing", result.attempts)


def find_existing_pr(
    adapter: GitPlatformAdapter,
    repo: str,
    head: str,
    base: str,
    report: RunReport,
    reopen: bool = True,
) -> PullRequest | None:
    """Look up the PR from head into base and reopen it when closed.

    Raises:
        FatalError: the lookup or the reopen fails.
    """
    try:
        pr = adapter.find_pull_request(repo, head, base)
    except GitPlatformError as e:
        raise report.fatal("Failed to look up pull request for %s: %s", head, e) from e
    if pr is None:
        report.info("No existing PR found")
        return None
    report.passed("Found existing Pull Request #%s (%s)", pr.number, pr.state)
    if pr.is_closed and reopen:
        try:
            pr = adapter.reopen_pull_request(repo, pr.number)
        except GitPlatformError as e:
            raise report.fatal("Failed to reopen PR #%s: %s", pr.number, e) from e
        report.passed("Reopened PR #%s", pr.number)
    return pr


def upsert_pr(
    adapter: GitPlatformAdapter,
    repo: str,
    existing: PullRequest | None,
    title: str,
    body: str,
    head: str,
    base: str,
    report: RunReport,
) -> PullRequest:
    """Create the PR or update title and body of the existing one.

    Returns the PR as observed before reconciliation.

    Raises:
        FatalError: the create or update call fails.
    """
    try:
        if existing is None:
            report.info("Creating new PR...")
            pr = adapter.create_pull_request(repo, title=title, body=body, head=head, base=base)
            report.passed("Created PR: %s", pr.url)
            return pr
        report.info("Updating PR #%s...", existing.number)
        adapter.update_pull_request(repo, existing.number, title=title, body=body)
    except GitPlatformError as e:
        raise report.fatal("Failed to create or update pull request: %s", e) from e
    report.passed("Updated PR: %s", existing.url)
    return existing


def finish(report: RunReport, title: str, log: logging.Logger, fatal: FatalError | None = None) -> int:
    """Log the tally and return the process exit code."""
    if fatal is not None:
        log.error("%s aborted: %s", title, fatal)
    report.log_summary(title)
    if fatal is not None or report.has_failures:
        log.error("%s completed with errors", title)
        return 1
    return 0
