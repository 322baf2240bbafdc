"""Entry-point flows: feature PR, release PR, milestones."""

from prflow.flows.feature import run_feature
from prflow.flows.milestones import run_milestones
from prflow.flows.release import run_release

__all__ = ["run_feature", "run_milestones", "run_release"]
