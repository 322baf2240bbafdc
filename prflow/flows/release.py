"""Release flow: create or update the release PR and optionally bump the version."""

import logging
from typing import List

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
from prflow.models import VersionError
from prflow.services.ci_monitor import await_completion
from prflow.services.git import GitRunnerError, current_branch, latest_tag
from prflow.services.metadata import MetadataError, load_metadata, metadata_path
from prflow.services.pr_body import release_title, render_release_body
from prflow.services.reconcile import Reconciler
from prflow.services.report import FatalError, RunReport
from prflow.services.retry import RetryPolicy
from prflow.services.version_bump import VersionBumper
from prflow.services.versioning import bump_snapshot, get_current_version, release_versions

TITLE = "Release PR"


def release_labels(labels: List[str], release_label: str) -> List[str]:
    """Document labels plus the release label, ordered and without duplicates."""
    result = list(labels)
    if release_label and release_label not in result:
        result.append(release_label)
    return result


def run_release(
    config: AppConfig,
    adapter: GitPlatformAdapter,
    auto_version_bump: bool | None = None,
    dry_run: bool = False,
    log: logging.Logger | None = None,
) -> int:
    """Run the release flow; returns the process exit code.

    auto_version_bump overrides ``release.auto_version_bump`` when not None.
    """
    log = log or logging.getLogger("prflow.flows.release")
    report = RunReport(log)
    bump = config.release.auto_version_bump if auto_version_bump is None else auto_version_bump
    log.info("Auto-version-bump: %s", bump)
    log.info("Dry-run: %s", dry_run)
    try:
        process_release(config, adapter, report, log, auto_version_bump=bump, dry_run=dry_run)
    except FatalError as e:
        return finish(report, TITLE, log, fatal=e)
    return finish(report, TITLE, log)


def process_release(
    config: AppConfig,
    adapter: GitPlatformAdapter,
    report: RunReport,
    log: logging.Logger,
    auto_version_bump: bool = False,
    dry_run: bool = False,
) -> None:
    """Metadata -> versions -> PR lookup -> CI -> body -> create/update ->
    reconcile -> issue comment -> version bump.

    Raises:
        FatalError: any condition that aborts the run.
    """
    release = config.release
    cwd = repo_dir(config)
    try:
        branch = current_branch(repo_dir=cwd, log=log)
    except GitRunnerError as e:
        raise report.fatal("Cannot determine current branch: %s", e) from e
    repo = resolve_repository(config, report, log)
    log.info("Release branch: %s", branch)
    log.info("Target branch: %s", release.target_branch)

    try:
        path = metadata_path(
            branch,
            release.metadata_dir,
            release.branch_prefix,
            repo_dir=cwd,
            fallback_file=release.fallback_file,
        )
        document = load_metadata(path, require_milestone=True)
    except MetadataError as e:
        raise report.fatal("%s", e) from e
    report.passed("Found release metadata file: %s", path)
    desired = document.desired
    log.info("Title: %s", desired.title)
    log.info("Milestone: %s", desired.milestone)
    log.info("Linked Issue: %s", desired.linked_issue or "none")
    log.info("Labels: %s", ", ".join(desired.labels))

    tag = latest_tag(repo_dir=cwd, log=log)
    try:
        current, is_initial = get_current_version(tag)
        release_tag, next_dev = release_versions(current, is_initial)
    except VersionError as e:
        raise report.fatal("%s", e) from e
    if is_initial:
        report.info("No previous release found, treating %s as the initial release", current)
    report.passed("Release version %s, next development version %s", release_tag, next_dev)

    existing = find_existing_pr(adapter, repo, branch, release.target_branch, report, reopen=not dry_run)
    if dry_run and existing is not None and existing.is_closed:
        log.info("[dry run] would reopen PR #%s", existing.number)

    wait_for_release_ci(adapter, repo, branch, config, report, log)

    title = release_title(desired.title, str(release_tag))
    body = render_release_body(
        document.body,
        desired,
        source_branch=branch,
        target_branch=release.target_branch,
        release_tag=str(release_tag),
        next_dev=str(next_dev),
        footer=release.footer,
    )
    if dry_run:
        print(f"DRY RUN - PR title: {title}")
        print("DRY RUN - PR body:")
        print("--------------------")
        print(body)
        print("--------------------")
        return

    pr = upsert_pr(adapter, repo, existing, title, body, branch, release.target_branch, report)

    reconciler = Reconciler(
        adapter,
        repo,
        report=report,
        label_color=config.labels.color,
        label_description=release.label_description,
        log=log,
    )
    reconciler.reconcile(
        pr.number,
        observed=pr,
        labels=release_labels(desired.labels, release.release_label),
        milestone=desired.milestone,
        assignees=desired.assignees,
        reviewers=desired.reviewers,
        milestone_required=True,
    )

    if desired.linked_issue:
        log.info("Linking release to issue #%s", desired.linked_issue)
        try:
            adapter.create_comment(repo, desired.linked_issue, f"Release PR created: {pr.url}")
        except GitPlatformError as e:
            report.warn("Failed to link to issue #%s: %s", desired.linked_issue, e)
        else:
            report.passed("Linked to issue #%s", desired.linked_issue)

    if auto_version_bump:
        bumper = VersionBumper(
            adapter,
            repo,
            base_branch=release.target_branch,
            repo_dir=cwd,
            bump_command=release.bump_command,
            merge_policy=RetryPolicy(max_attempts=release.merge_attempts, delay_seconds=release.merge_retry_delay),
            report=report,
            reconciler=reconciler,
            log=log,
        )
        bumper.run(bump_snapshot(current, is_initial), str(release_tag))


def wait_for_release_ci(
    adapter: GitPlatformAdapter,
    repo: str,
    branch: str,
    config: AppConfig,
    report: RunReport,
    log: logging.Logger,
) -> None:
    """Wait for CI; skipped with a warning when the repository has no workflows.

    Raises:
        FatalError: CI failed, timed out, or its status cannot be read.
    """
    try:
        if adapter.count_workflows(repo) == 0:
            report.warn("Skipping CI checks (no workflows detected)")
            return
        result = await_completion(adapter, repo, branch, ci_policy(config), log=log)
    except GitPlatformError as e:
        raise report.fatal("Could not check CI status: %s", e) from e
    apply_ci_outcome(result, report, timeout_is_fatal=True)
