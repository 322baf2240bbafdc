"""Wait for the latest CI workflow run on a branch to reach a terminal state."""

import logging

from prflow.adapters.base import GitPlatformAdapter
from prflow.models import CIOutcome, CIResult, CIRun
from prflow.services.retry import RetryPolicy, retry_until

DEFAULT_POLICY = RetryPolicy(max_attempts=10, delay_seconds=10)


def await_completion(
    adapter: GitPlatformAdapter,
    repo: str,
    branch: str,
    policy: RetryPolicy = DEFAULT_POLICY,
    log: logging.Logger | None = None,
) -> CIResult:
    """Poll the most recent workflow run on branch until it completes.

    Blocks for at most ``policy.max_attempts * policy.delay_seconds``; the
    external run is never cancelled. Platform errors propagate.

    Returns:
        PASSED on completed/success, FAILED (with conclusion) on any other
        completed conclusion, NO_RUN_FOUND when the branch has no runs and
        TIMED_OUT when the budget runs out before a terminal status.
    """
    logger = log or logging.getLogger("prflow.services.ci_monitor")

    def poll(attempt: int) -> CIRun | None:
        run = adapter.get_latest_workflow_run(repo, branch)
        if run is not None and not run.is_terminal:
            logger.info(
                "CI status: %s (attempt %d/%d)",
                run.status or "unknown",
                attempt,
                policy.max_attempts,
            )
        return run

    result = retry_until(poll, lambda run: run is None or run.is_terminal, policy, log=logger)
    run = result.value
    if run is None:
        return CIResult(outcome=CIOutcome.NO_RUN_FOUND, attempts=result.attempts)
    if not result.done:
        return CIResult(outcome=CIOutcome.TIMED_OUT, attempts=result.attempts)
    if run.succeeded:
        return CIResult(outcome=CIOutcome.PASSED, attempts=result.attempts)
    return CIResult(outcome=CIOutcome.FAILED, conclusion=run.conclusion, attempts=result.attempts)
