"""Tests for prflow.services.ci_monitor (await_completion)."""

from unittest.mock import Mock, patch

import pytest

from prflow.adapters.base import GitPlatformError
from prflow.models import CIOutcome, CIRun
from prflow.services.ci_monitor import await_completion
from prflow.services.retry import RetryPolicy

POLICY = RetryPolicy(max_attempts=3, delay_seconds=10)


def _adapter(*runs: CIRun | None) -> Mock:
    adapter = Mock()
    adapter.get_latest_workflow_run.side_effect = list(runs)
    return adapter


def test_passed_on_completed_success() -> None:
    adapter = _adapter(CIRun(status="completed", conclusion="success"))
    with patch("prflow.services.retry.time.sleep") as sleep:
        result = await_completion(adapter, "owner/repo", "feature/x", POLICY)
    assert result.outcome == CIOutcome.PASSED
    assert result.attempts == 1
    sleep.assert_not_called()
    adapter.get_latest_workflow_run.assert_called_once_with("owner/repo", "feature/x")


def test_failed_carries_conclusion() -> None:
    adapter = _adapter(CIRun(status="completed", conclusion="failure"))
    with patch("prflow.services.retry.time.sleep"):
        result = await_completion(adapter, "owner/repo", "feature/x", POLICY)
    assert result.outcome == CIOutcome.FAILED
    assert result.conclusion == "failure"


def test_no_run_found_immediately() -> None:
    """A branch without runs does not wait."""
    adapter = _adapter(None)
    with patch("prflow.services.retry.time.sleep") as sleep:
        result = await_completion(adapter, "owner/repo", "feature/x", POLICY)
    assert result.outcome == CIOutcome.NO_RUN_FOUND
    sleep.assert_not_called()


def test_polls_until_terminal() -> None:
    adapter = _adapter(
        CIRun(status="queued"),
        CIRun(status="in_progress"),
        CIRun(status="completed", conclusion="success"),
    )
    with patch("prflow.services.retry.time.sleep") as sleep:
        result = await_completion(adapter, "owner/repo", "feature/x", POLICY)
    assert result.outcome == CIOutcome.PASSED
    assert result.attempts == 3
    assert sleep.call_count == 2


def test_timed_out_after_budget() -> None:
    """In-progress for max_attempts polls gives TIMED_OUT."""
    adapter = Mock()
    adapter.get_latest_workflow_run.return_value = CIRun(status="in_progress")
    with patch("prflow.services.retry.time.sleep"):
        result = await_completion(adapter, "owner/repo", "feature/x", POLICY)
    assert result.outcome == CIOutcome.TIMED_OUT
    assert adapter.get_latest_workflow_run.call_count == 3


def test_platform_error_propagates() -> None:
    adapter = Mock()
    adapter.get_latest_workflow_run.side_effect = GitPlatformError("500: boom", status_code=500)
    with pytest.raises(GitPlatformError):
        await_completion(adapter, "owner/repo", "feature/x", POLICY)
