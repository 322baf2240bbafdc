"""Configuration loading from YAML and environment.

Secrets (tokens) are taken from environment variables or from files
(Docker secrets). Never put real tokens in config files committed to the
repo.
"""

from datetime import date, time, timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path("prflow.yaml")

# Personal access token; takes precedence over github.token
PAT_ENV_KEY = "GH_PAT"
# Checked in order after github.token
TOKEN_ENV_KEYS = ("GITHUB_TOKEN", "GH_TOKEN")


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so validators can read env/file
_current_env: dict[str, str] = {}


def _next_monday(today: date | None = None) -> date:
    today = today or date.today()
    return today + timedelta(days=(7 - today.weekday()) or 7)


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT or app token; use env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")


class RepoConfig(BaseSettings):
    """Target repository; falls back to the origin remote when unset."""

    model_config = SettingsConfigDict(env_prefix="REPO_", extra="ignore")

    repository: str | None = Field(default=None, description="owner/repo, e.g. octo-org/service")
    path: str = Field(default=".", description="Local checkout used for git commands")


class CIConfig(BaseSettings):
    """CI completion polling."""

    model_config = SettingsConfigDict(env_prefix="CI_", extra="ignore")

    enabled: bool = Field(default=True, description="Wait for CI in the feature flow")
    max_attempts: int = Field(default=10, ge=1, description="Polls before giving up")
    retry_delay: float = Field(default=10, ge=0, description="Seconds between polls")


class LabelConfig(BaseSettings):
    """Repository labels created on demand."""

    model_config = SettingsConfigDict(env_prefix="LABEL_", extra="ignore")

    color: str = Field(default="0366d6", description="Hex color without '#'")
    description: str = Field(default="Automatically created", description="Label description")


class FeatureConfig(BaseSettings):
    """Feature pull request flow."""

    model_config = SettingsConfigDict(env_prefix="FEATURE_", extra="ignore")

    target_branch: str = Field(default="dev", description="Base branch of feature PRs")
    metadata_dir: str = Field(default=".github/features", description="Directory of metadata documents")
    branch_prefix: str = Field(default="feature/", description="Stripped from the branch to find the document")
    footer: str = Field(default="", description="Markdown appended to every PR body")


class ReleaseConfig(BaseSettings):
    """Release pull request flow and version bump."""

    model_config = SettingsConfigDict(env_prefix="RELEASE_", extra="ignore")

    target_branch: str = Field(default="main", description="Base branch of release PRs")
    metadata_dir: str = Field(default=".github/releases", description="Directory of metadata documents")
    branch_prefix: str = Field(default="release/", description="Stripped from the branch to find the document")
    fallback_file: str = Field(default="release.md", description="Document used when no branch document exists")
    release_label: str = Field(default="release", description="Label always put on release PRs")
    label_description: str = Field(default="Release automation", description="Description for created labels")
    footer: str = Field(default="", description="Markdown appended to the release notes")
    auto_version_bump: bool = Field(default=False, description="Open and auto-merge a version bump PR")
    bump_command: list[str] = Field(
        default_factory=list,
        description="Command updating project files; '{version}' is replaced, e.g. mvn versions:set",
    )
    merge_attempts: int = Field(default=6, ge=1, description="Auto-merge attempts")
    merge_retry_delay: float = Field(default=5, ge=0, description="Seconds between auto-merge attempts")


class MilestonesConfig(BaseSettings):
    """Milestone manager."""

    model_config = SettingsConfigDict(env_prefix="MILESTONES_", extra="ignore")

    file: str | None = Field(default=None, description="JSON or YAML list of milestone definitions")
    spacing_days: int = Field(default=7, ge=1, description="Days between auto-scheduled milestones")
    default_due_time: time = Field(default=time(23, 59, 59), description="Due time for date-only due_on (UTC)")
    start_date: date = Field(default_factory=_next_monday, description="First auto-scheduled due date")
    auto_schedule: bool = Field(default=False, description="Schedule milestones without due_on")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    repo: RepoConfig = Field(default_factory=RepoConfig)
    ci: CIConfig = Field(default_factory=CIConfig)
    labels: LabelConfig = Field(default_factory=LabelConfig)
    feature: FeatureConfig = Field(default_factory=FeatureConfig)
    release: ReleaseConfig = Field(default_factory=ReleaseConfig)
    milestones: MilestonesConfig = Field(default_factory=MilestonesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from GH_PAT, config, env or Docker secret file."""
        pat = _current_env.get(PAT_ENV_KEY)
        if pat:
            return pat.strip()
        t = self.github.token
        if t and not t.startswith("${"):
            return t
        for key in TOKEN_ENV_KEYS:
            value = _current_env.get(key)
            if value:
                return value.strip()
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        # Simple $VAR
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Missing file means defaults plus environment. Secrets: GH_PAT,
    GITHUB_TOKEN, GH_TOKEN or GITHUB_TOKEN_FILE.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or DEFAULT_CONFIG_PATH
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    return AppConfig(
        github=GitHubConfig(**(raw.get("github") or {})),
        repo=RepoConfig(**(raw.get("repo") or {})),
        ci=CIConfig(**(raw.get("ci") or {})),
        labels=LabelConfig(**(raw.get("labels") or {})),
        feature=FeatureConfig(**(raw.get("feature") or {})),
        release=ReleaseConfig(**(raw.get("release") or {})),
        milestones=MilestonesConfig(**(raw.get("milestones") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
