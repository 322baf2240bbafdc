"""Milestone models: platform record, declared spec, issue counts, health."""

from datetime import datetime, time, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, field_validator

OPEN = "open"
CLOSED = "closed"


def _parse_iso(value: Any) -> datetime | None:
    """Coerce an ISO date or datetime string to an aware datetime (UTC if naive)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class Milestone(BaseModel):
    """Milestone as stored on the platform."""

    number: int
    title: str
    state: str = OPEN
    due_on: Annotated[datetime | None, BeforeValidator(_parse_iso)] = None
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: Any) -> str:
        return value or ""

    @property
    def is_open(self) -> bool:
        return self.state == OPEN


class MilestoneSpec(BaseModel):
    """Milestone declared in the milestone file.

    ``due_on`` may be a full ISO datetime or a plain date; plain dates are
    completed with the configured default due time by the engine.
    """

    model_config = {"extra": "ignore"}

    title: str = Field(..., min_length=1)
    description: str = ""
    due_on: str | None = None
    state: str = OPEN

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: Any) -> str:
        return value or ""

    @field_validator("due_on", mode="before")
    @classmethod
    def _due_on_text(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value.isoformat()
        return str(value)

    @field_validator("state")
    @classmethod
    def _known_state(cls, value: str) -> str:
        if value not in (OPEN, CLOSED):
            raise ValueError(f"state must be 'open' or 'closed', got {value!r}")
        return value

    def resolved_due_on(self, default_time: time) -> str | None:
        """Return due_on as an ISO 8601 UTC timestamp for the API."""
        if not self.due_on:
            return None
        text = self.due_on.strip()
        if len(text) == 10:
            text = f"{text}T{default_time.isoformat()}"
        dt = _parse_iso(text)
        return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ") if dt else None


class IssueCounts(BaseModel):
    """Open/closed issue counts for one milestone (recomputed every run)."""

    open_count: int = Field(default=0, ge=0)
    closed_count: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.open_count + self.closed_count


class HealthCategory(str, Enum):
    CLOSED = "Closed"
    OVERDUE = "Overdue"
    UPCOMING = "Upcoming"
    ON_TRACK = "On track"
