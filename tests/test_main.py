"""Tests for prflow.main (CLI parsing, config check and dispatch)."""

from datetime import date, time
from pathlib import Path
from unittest.mock import patch

import pytest

from prflow.config import AppConfig, RepoConfig
from prflow.main import apply_milestone_args, main, parse_args


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("GH_PAT", "GITHUB_TOKEN", "GH_TOKEN", "GITHUB_TOKEN_FILE"):
        monkeypatch.delenv(key, raising=False)


class TestParseArgs:
    def test_subcommand_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([])

    def test_check_without_subcommand(self) -> None:
        args = parse_args(["--check"])
        assert args.check is True
        assert args.subcommand is None

    def test_release_bump_flags(self) -> None:
        assert parse_args(["release"]).auto_version_bump is None
        assert parse_args(["release", "--auto-version-bump"]).auto_version_bump is True
        assert parse_args(["release", "--no-auto-bump"]).auto_version_bump is False
        with pytest.raises(SystemExit):
            parse_args(["release", "--auto-version-bump", "--no-auto-bump"])

    def test_owner_requires_repo(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["milestones", "-o", "octo-org"])

    def test_bad_due_time(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["milestones", "-t", "late"])


def test_apply_milestone_args() -> None:
    args = parse_args(
        [
            "milestones",
            "-m",
            "ms.yaml",
            "-o",
            "octo-org",
            "-r",
            "service",
            "-s",
            "14",
            "-t",
            "12:00:00",
            "--start-date",
            "2026-11-02",
            "--auto-schedule",
        ]
    )
    config = apply_milestone_args(AppConfig(repo=RepoConfig(repository="old/repo")), args)
    assert config.repo.repository == "octo-org/service"
    assert config.milestones.file == "ms.yaml"
    assert config.milestones.spacing_days == 14
    assert config.milestones.default_due_time == time(12, 0, 0)
    assert config.milestones.start_date == date(2026, 11, 2)
    assert config.milestones.auto_schedule is True


def test_apply_milestone_args_keeps_config_values() -> None:
    config = AppConfig(repo=RepoConfig(repository="old/repo"))
    updated = apply_milestone_args(config, parse_args(["milestones"]))
    assert updated.repo.repository == "old/repo"
    assert updated.milestones.spacing_days == config.milestones.spacing_days
    assert updated.milestones.auto_schedule is False


def test_check_prints_ok(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    assert main(["--config", str(tmp_path / "missing.yaml"), "--check"]) == 0
    assert "Config OK" in capsys.readouterr().out


def test_missing_token_exits_1(tmp_path: Path) -> None:
    with patch("prflow.flows.run_feature") as run_feature:
        assert main(["--config", str(tmp_path / "missing.yaml"), "feature"]) == 1
    run_feature.assert_not_called()


def test_dispatches_release(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GH_PAT", "pat")
    with patch("prflow.flows.run_release", return_value=0) as run_release:
        assert main(["--config", str(tmp_path / "missing.yaml"), "release", "--dry-run", "--no-auto-bump"]) == 0
    assert run_release.call_args.kwargs == {"auto_version_bump": False, "dry_run": True}


def test_unexpected_error_exits_1(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GH_PAT", "pat")
    with patch("prflow.flows.run_feature", side_effect=RuntimeError("boom")):
        assert main(["--config", str(tmp_path / "missing.yaml"), "feature"]) == 1
