"""Feature flow: create or update the PR of the current feature branch."""

import logging

from prflow.adapters.base import GitPlatformAdapter, GitPlatformError
from prflow.config import AppConfig
from prflow.flows._common import (
    apply_ci_outcome,
    ci_policy,
    find_existing_pr,
    finish,
    repo_dir,
    resolve_repository,
    upsert_pr,
)
from prflow.services.ci_monitor import await_completion
from prflow.services.git import GitRunnerError, current_branch
from prflow.services.metadata import MetadataError, load_metadata, metadata_path
from prflow.services.pr_body import render_feature_body
from prflow.services.reconcile import Reconciler
from prflow.services.report import FatalError, RunReport

TITLE = "Feature PR"


def run_feature(config: AppConfig, adapter: GitPlatformAdapter, log: logging.Logger | None = None) -> int:
    """Run the feature flow; returns the process exit code."""
    log = log or logging.getLogger("prflow.flows.feature")
    report = RunReport(log)
    try:
        process_feature(config, adapter, report, log)
    except FatalError as e:
        return finish(report, TITLE, log, fatal=e)
    return finish(report, TITLE, log)


def process_feature(
    config: AppConfig,
    adapter: GitPlatformAdapter,
    report: RunReport,
    log: logging.Logger,
) -> None:
    """Metadata -> PR lookup -> CI -> create/update -> reconcile.

    Raises:
        FatalError: any condition that aborts the run.
    """
    feature = config.feature
    cwd = repo_dir(config)
    try:
        branch = current_branch(repo_dir=cwd, log=log)
    except GitRunnerError as e:
        raise report.fatal("Cannot determine current branch: %s", e) from e
    repo = resolve_repository(config, report, log)
    log.info("Current branch detected: %s", branch)
    log.info("Target branch for PR: %s", feature.target_branch)

    try:
        path = metadata_path(branch, feature.metadata_dir, feature.branch_prefix, repo_dir=cwd)
        document = load_metadata(path)
    except MetadataError as e:
        raise report.fatal("%s", e) from e
    report.passed("Found metadata file: %s", path)
    desired = document.desired
    log.info("Title: %s", desired.title)
    log.info("Milestone: %s", desired.milestone or "none")
    log.info("Linked Issue: %s", desired.linked_issue or "none")
    log.info("Assignees: %s", ", ".join(desired.assignees) or "none")
    log.info("Reviewers: %s", ", ".join(desired.reviewers) or "none")
    log.info("Labels: %s", ", ".join(desired.labels))

    existing = find_existing_pr(adapter, repo, branch, feature.target_branch, report)

    if config.ci.enabled:
        try:
            result = await_completion(adapter, repo, branch, ci_policy(config), log=log)
        except GitPlatformError as e:
            report.warn("Could not check CI status: %s", e)
        else:
            apply_ci_outcome(result, report, timeout_is_fatal=False)
    else:
        report.skip("CI check disabled")

    body = render_feature_body(
        document.body,
        desired,
        source_branch=branch,
        target_branch=feature.target_branch,
        pr_number=existing.number if existing else None,
        pr_url=existing.url if existing else "",
        footer=feature.footer,
    )
    pr = upsert_pr(adapter, repo, existing, desired.title, body, branch, feature.target_branch, report)

    reconciler = Reconciler(
        adapter,
        repo,
        report=report,
        label_color=config.labels.color,
        label_description=config.labels.description,
        log=log,
    )
    reconciler.reconcile(
        pr.number,
        observed=pr,
        labels=desired.labels,
        milestone=desired.milestone,
        assignees=desired.assignees,
        reviewers=desired.reviewers,
    )
    if not report.has_failures:
        log.info("Feature Pull Request processed successfully: %s", pr.url)
