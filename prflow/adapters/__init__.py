"""Git platform adapters (GitHub)."""

from prflow.adapters.base import MERGE_METHODS, GitPlatformAdapter, GitPlatformError
from prflow.adapters.github import GitHubAdapter

__all__ = ["MERGE_METHODS", "GitHubAdapter", "GitPlatformAdapter", "GitPlatformError"]
