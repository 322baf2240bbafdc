"""Milestone flow: create declared milestones, sync their state and health."""

import logging
from pathlib import Path

from prflow.adapters.base import GitPlatformAdapter, GitPlatformError
from prflow.config import AppConfig
from prflow.flows._common import finish, resolve_repository
from prflow.services.milestones import MilestoneFileError, MilestoneManager, load_milestone_specs, schedule_specs
from prflow.services.report import FatalError, RunReport

TITLE = "Milestone run"


def run_milestones(
    config: AppConfig,
    adapter: GitPlatformAdapter,
    dry_run: bool = False,
    log: logging.Logger | None = None,
) -> int:
    """Run the milestone manager from ``config.milestones``; returns the exit code."""
    log = log or logging.getLogger("prflow.flows.milestones")
    report = RunReport(log)
    try:
        process_milestones(config, adapter, report, log, dry_run=dry_run)
    except FatalError as e:
        return finish(report, TITLE, log, fatal=e)
    return finish(report, TITLE, log)


def process_milestones(
    config: AppConfig,
    adapter: GitPlatformAdapter,
    report: RunReport,
    log: logging.Logger,
    dry_run: bool = False,
) -> None:
    settings = config.milestones
    if not settings.file:
        raise report.fatal("No milestones file given (-m FILE or milestones.file)")
    try:
        specs = load_milestone_specs(Path(settings.file))
    except MilestoneFileError as e:
        raise report.fatal("%s", e) from e
    repo = resolve_repository(config, report, log)
    log.info("Processing %d milestones for %s", len(specs), repo)

    if settings.auto_schedule:
        log.info("Auto-scheduling from %s every %d days", settings.start_date, settings.spacing_days)
        specs = schedule_specs(specs, settings.start_date, settings.spacing_days)

    manager = MilestoneManager(
        adapter,
        repo,
        report=report,
        default_due_time=settings.default_due_time,
        dry_run=dry_run,
        log=log,
    )
    try:
        manager.run(specs)
    except GitPlatformError as e:
        raise report.fatal("Failed to list milestones: %s", e) from e
