"""Pull request as observed on the platform."""

from typing import List

from pydantic import BaseModel, Field


class PullRequest(BaseModel):
    """Pull request with the metadata categories that get reconciled."""

    number: int
    state: str = "open"
    url: str = ""
    title: str = ""
    head_branch: str = ""
    base_branch: str = ""
    labels: List[str] = Field(default_factory=list)
    assignees: List[str] = Field(default_factory=list)
    reviewers: List[str] = Field(default_factory=list)
    milestone_title: str | None = None
    mergeable: bool | None = None

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"
