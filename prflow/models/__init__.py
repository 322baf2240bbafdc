"""Data models for pull requests, milestones, CI runs and desired state (Pydantic)."""

from prflow.models.ci import CIOutcome, CIResult, CIRun
from prflow.models.desired import DesiredState
from prflow.models.milestone import HealthCategory, IssueCounts, Milestone, MilestoneSpec
from prflow.models.pr import PullRequest
from prflow.models.version import SemVer, VersionError

__all__ = [
    "CIOutcome",
    "CIResult",
    "CIRun",
    "DesiredState",
    "HealthCategory",
    "IssueCounts",
    "Milestone",
    "MilestoneSpec",
    "PullRequest",
    "SemVer",
    "VersionError",
]
