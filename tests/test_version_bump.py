"""Tests for prflow.services.version_bump (bump PR and auto-merge loop)."""

import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from prflow.adapters.base import GitPlatformError
from prflow.models import PullRequest
from prflow.services.git import GitRunnerError
from prflow.services.report import FAIL, WARN, FatalError
from prflow.services.retry import RetryPolicy
from prflow.services.version_bump import VersionBumper, bump_commit_message, bump_title

MODULE = "prflow.services.version_bump"


@pytest.fixture
def adapter() -> Mock:
    adapter = Mock()
    adapter.search_open_pull_requests.return_value = []
    adapter.list_labels.return_value = ["automated"]
    adapter.create_pull_request.return_value = PullRequest(
        number=31,
        url="https://github.com/owner/repo/pull/31",
        head_branch="version-bump/0.3.0-SNAPSHOT",
    )
    return adapter


def _bumper(adapter: Mock, tmp_path: Path, **kwargs) -> VersionBumper:
    return VersionBumper(
        adapter,
        "owner/repo",
        base_branch="main",
        repo_dir=tmp_path,
        merge_policy=RetryPolicy(max_attempts=2, delay_seconds=5),
        **kwargs,
    )


class TestPrepare:
    def test_duplicate_guard(self, adapter: Mock, tmp_path: Path) -> None:
        """An open bump PR with the same title stops the bump."""
        adapter.search_open_pull_requests.return_value = [30]
        bumper = _bumper(adapter, tmp_path)
        with patch(f"{MODULE}.checkout_branch") as checkout:
            assert bumper.prepare("0.3.0-SNAPSHOT", "v0.2.0") is None
        adapter.search_open_pull_requests.assert_called_once_with("owner/repo", "Version bump to 0.3.0-SNAPSHOT")
        checkout.assert_not_called()
        assert bumper.report.count(WARN) == 1

    def test_creates_branch_commits_and_opens_pr(self, adapter: Mock, tmp_path: Path) -> None:
        bumper = _bumper(adapter, tmp_path, bump_command=["mvn", "versions:set", "-DnewVersion={version}"])
        with (
            patch(f"{MODULE}.fetch_branch"),
            patch(f"{MODULE}.checkout_branch") as checkout,
            patch(f"{MODULE}.run_git_pull") as pull,
            patch(f"{MODULE}.create_branch") as create,
            patch(f"{MODULE}.add_all_and_commit", return_value=True) as commit,
            patch(f"{MODULE}.push_branch") as push,
            patch(f"{MODULE}.subprocess.run") as run,
        ):
            pr = bumper.prepare("0.3.0-SNAPSHOT", "v0.2.0")

        assert pr is not None and pr.number == 31
        assert checkout.call_args[0][0] == "main"
        assert pull.call_args[0][0] == "main"
        assert create.call_args[0][0] == "version-bump/0.3.0-SNAPSHOT"
        assert run.call_args[0][0] == ["mvn", "versions:set", "-DnewVersion=0.3.0-SNAPSHOT"]
        assert commit.call_args[0][0] == "chore: bump version to 0.3.0-SNAPSHOT [skip ci]"
        assert push.call_args[0][0] == "version-bump/0.3.0-SNAPSHOT"
        kwargs = adapter.create_pull_request.call_args.kwargs
        assert kwargs["title"] == "Version bump to 0.3.0-SNAPSHOT"
        assert kwargs["head"] == "version-bump/0.3.0-SNAPSHOT"
        assert kwargs["base"] == "main"
        labels = [c.args[2] for c in adapter.add_label.call_args_list]
        assert labels == ["automated", "version-bump"]
        adapter.create_label.assert_called_once()

    def test_checkout_failure_is_fatal(self, adapter: Mock, tmp_path: Path) -> None:
        bumper = _bumper(adapter, tmp_path)
        with (
            patch(f"{MODULE}.fetch_branch"),
            patch(f"{MODULE}.checkout_branch", side_effect=GitRunnerError("git checkout main: error")),
        ):
            with pytest.raises(FatalError):
                bumper.prepare("0.3.0-SNAPSHOT", "v0.2.0")

    def test_nothing_to_commit_skips_pr(self, adapter: Mock, tmp_path: Path) -> None:
        bumper = _bumper(adapter, tmp_path)
        with (
            patch(f"{MODULE}.fetch_branch"),
            patch(f"{MODULE}.checkout_branch"),
            patch(f"{MODULE}.run_git_pull"),
            patch(f"{MODULE}.create_branch"),
            patch(f"{MODULE}.add_all_and_commit", return_value=False),
            patch(f"{MODULE}.push_branch") as push,
        ):
            assert bumper.prepare("0.3.0-SNAPSHOT", "v0.2.0") is None
        push.assert_not_called()
        adapter.create_pull_request.assert_not_called()

    def test_missing_bump_tool_is_warning(self, adapter: Mock, tmp_path: Path) -> None:
        bumper = _bumper(adapter, tmp_path, bump_command=["mvn", "versions:set"])
        with patch(f"{MODULE}.subprocess.run", side_effect=FileNotFoundError("mvn")):
            assert bumper.apply_bump("0.3.0-SNAPSHOT") is True
        assert bumper.report.count(WARN) == 1

    def test_bump_command_failure(self, adapter: Mock, tmp_path: Path) -> None:
        bumper = _bumper(adapter, tmp_path, bump_command=["mvn", "versions:set"])
        error = subprocess.CalledProcessError(1, ["mvn"], stderr="BUILD FAILURE")
        with patch(f"{MODULE}.subprocess.run", side_effect=error):
            assert bumper.apply_bump("0.3.0-SNAPSHOT") is False
        assert bumper.report.count(FAIL) == 1


class TestAutoMerge:
    def test_tries_methods_in_order(self, adapter: Mock, tmp_path: Path) -> None:
        """merge fails, squash succeeds: rebase is never tried."""
        adapter.merge_pull_request.side_effect = [GitPlatformError("405: Not allowed", status_code=405), None]
        bumper = _bumper(adapter, tmp_path)
        pr = adapter.create_pull_request.return_value
        with patch("prflow.services.retry.time.sleep") as sleep:
            assert bumper.auto_merge(pr) is True
        methods = [c.args[2] for c in adapter.merge_pull_request.call_args_list]
        assert methods == ["merge", "squash"]
        assert adapter.merge_pull_request.call_args.kwargs["delete_branch"] == "version-bump/0.3.0-SNAPSHOT"
        sleep.assert_not_called()

    def test_exhaustion_is_warning(self, adapter: Mock, tmp_path: Path) -> None:
        """All methods fail on every attempt: PR left open, warning recorded, no raise."""
        adapter.merge_pull_request.side_effect = GitPlatformError("405: Not mergeable", status_code=405)
        bumper = _bumper(adapter, tmp_path)
        pr = adapter.create_pull_request.return_value
        with patch("prflow.services.retry.time.sleep") as sleep:
            assert bumper.auto_merge(pr) is False
        methods = [c.args[2] for c in adapter.merge_pull_request.call_args_list]
        assert methods == ["merge", "squash", "rebase", "merge", "squash", "rebase"]
        sleep.assert_called_once_with(5)
        assert bumper.report.count(WARN) == 1
        assert not bumper.report.has_failures

    def test_reads_mergeable_each_attempt(self, adapter: Mock, tmp_path: Path) -> None:
        adapter.get_pull_request.return_value = PullRequest(number=31, mergeable=False)
        adapter.merge_pull_request.side_effect = GitPlatformError("405: Not mergeable", status_code=405)
        bumper = _bumper(adapter, tmp_path)
        with patch("prflow.services.retry.time.sleep"):
            bumper.auto_merge(adapter.create_pull_request.return_value)
        assert adapter.get_pull_request.call_count == 2
        adapter.get_pull_request.assert_called_with("owner/repo", 31)

    def test_mergeable_state(self, adapter: Mock, tmp_path: Path) -> None:
        bumper = _bumper(adapter, tmp_path)
        adapter.get_pull_request.return_value = PullRequest(number=31, mergeable=True)
        assert bumper.mergeable_state(31) == "true"
        adapter.get_pull_request.return_value = PullRequest(number=31)
        assert bumper.mergeable_state(31) == "unknown"
        adapter.get_pull_request.side_effect = GitPlatformError("502: Bad Gateway", status_code=502)
        assert bumper.mergeable_state(31) == "unknown"


def test_titles() -> None:
    assert bump_title("1.2.0-SNAPSHOT") == "Version bump to 1.2.0-SNAPSHOT"
    assert bump_commit_message("1.2.0-SNAPSHOT").endswith("[skip ci]")
