"""
Milestone health engine.

Pass 1 creates the milestones declared in the milestone file that do not
exist yet (matched by exact title; existing ones are left untouched).

Pass 2 re-fetches every milestone, counts its issues, reopens closed
milestones that still have open issues (or no issues at all), auto-closes
open milestones whose issues are all closed, then classifies each milestone
and marks the category with a leading emoji in its description.

Classification is two-phase because the single "Upcoming" milestone depends
on every other milestone's due date: phase one computes day differences for
all milestones, phase two picks the nearest non-negative one and classifies.
"""

import logging
import math
import re
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import List, Sequence, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError

from prflow.adapters.base import GitPlatformAdapter, GitPlatformError
from prflow.models import HealthCategory, IssueCounts, Milestone, MilestoneSpec
from prflow.models.milestone import CLOSED, OPEN
from prflow.services.report import RunReport

SECONDS_PER_DAY = 86400

GLYPHS = {
    HealthCategory.UPCOMING: "🟠",
    HealthCategory.ON_TRACK: "⚪",
    HealthCategory.CLOSED: "🟢",
    HealthCategory.OVERDUE: "🟣",
}
# Older descriptions may carry the reopened marker; stripped like the others
REOPENED_GLYPH = "🔵"

_GLYPH_PREFIX_RE = re.compile("^[" + "".join(GLYPHS.values()) + REOPENED_GLYPH + "] ?")


class MilestoneFileError(Exception):
    """Raised when the milestone file is missing, empty or invalid."""

    pass


class Transition(str, Enum):
    NONE = "none"
    REOPEN = "reopen"
    AUTO_CLOSE = "auto_close"


class MilestoneHealth(BaseModel):
    """One row of the health review."""

    number: int
    title: str
    state: str
    due_on: datetime | None = None
    counts: IssueCounts = Field(default_factory=IssueCounts)
    day_difference: int | None = None
    category: HealthCategory
    transition: Transition = Transition.NONE


class MilestoneRunResult(BaseModel):
    """Counters and per-milestone health of one milestone manager run."""

    created: int = 0
    skipped: int = 0
    failed: int = 0
    reopened: int = 0
    auto_closed: int = 0
    health: List[MilestoneHealth] = Field(default_factory=list)

    def count_category(self, category: HealthCategory) -> int:
        return sum(1 for h in self.health if h.category == category)

    @property
    def open_milestones(self) -> int:
        return sum(1 for h in self.health if h.state == OPEN)

    @property
    def closed_milestones(self) -> int:
        return sum(1 for h in self.health if h.state == CLOSED)

    @property
    def issues_tracked(self) -> int:
        return sum(h.counts.total for h in self.health)

    @property
    def open_issues(self) -> int:
        return sum(h.counts.open_count for h in self.health)


# ---------------------------------------------------------------------------
# Milestone file
# ---------------------------------------------------------------------------


def load_milestone_specs(path: Path) -> List[MilestoneSpec]:
    """Load milestone definitions from a JSON or YAML list.

    A mapping with a ``milestones`` key is accepted as well.

    Raises:
        MilestoneFileError: file missing, empty, not a list, or an entry is invalid.
    """
    if not path.is_file():
        raise MilestoneFileError(f"Milestones file not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise MilestoneFileError(f"Milestones file is not valid JSON/YAML: {path}: {e}") from e
    if isinstance(raw, dict):
        raw = raw.get("milestones")
    if not raw or not isinstance(raw, list):
        raise MilestoneFileError(f"Milestones file is empty or invalid: {path}")
    try:
        return [MilestoneSpec.model_validate(item) for item in raw]
    except ValidationError as e:
        raise MilestoneFileError(f"Invalid milestone definition in {path}: {e}") from e


def schedule_specs(specs: Sequence[MilestoneSpec], start_date: date, spacing_days: int) -> List[MilestoneSpec]:
    """Give every spec without a due date the slot start_date + index * spacing_days."""
    scheduled = []
    for index, spec in enumerate(specs):
        if spec.due_on:
            scheduled.append(spec)
            continue
        due = start_date + timedelta(days=index * spacing_days)
        scheduled.append(spec.model_copy(update={"due_on": due.isoformat()}))
    return scheduled


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


def decide_transition(state: str, counts: IssueCounts) -> Transition:
    """Reopen closed milestones with open or no issues; auto-close finished open ones.

    A milestone with zero issues is never auto-closed.
    """
    if state == CLOSED and (counts.open_count > 0 or counts.total == 0):
        return Transition.REOPEN
    if state == OPEN and counts.open_count == 0 and counts.total > 0:
        return Transition.AUTO_CLOSE
    return Transition.NONE


def day_difference(due_on: datetime | None, now: datetime) -> int | None:
    """Whole days from now until due_on, floored (any past instant is negative)."""
    if due_on is None:
        return None
    return math.floor((due_on - now).total_seconds() / SECONDS_PER_DAY)


def nearest_upcoming_index(diffs: Sequence[int | None]) -> int | None:
    """Index of the smallest non-negative day difference over all milestones.

    Closed milestones take part too; when one of them is nearest, no
    milestone is Upcoming. Ties go to the first one encountered.
    """
    best_index = None
    best_diff = None
    for index, diff in enumerate(diffs):
        if diff is None or diff < 0:
            continue
        if best_diff is None or diff < best_diff:
            best_index, best_diff = index, diff
    return best_index


def classify(state: str, diff: int | None, is_nearest: bool) -> HealthCategory:
    if state == CLOSED:
        return HealthCategory.CLOSED
    if diff is not None and diff < 0:
        return HealthCategory.OVERDUE
    if diff is not None and is_nearest:
        return HealthCategory.UPCOMING
    return HealthCategory.ON_TRACK


def classify_all(milestones: Sequence[Milestone], now: datetime) -> List[Tuple[int | None, HealthCategory]]:
    """Two-phase classification: day differences first, then categories."""
    diffs = [day_difference(m.due_on, now) for m in milestones]
    nearest = nearest_upcoming_index(diffs)
    return [(diff, classify(m.state, diff, index == nearest)) for index, (m, diff) in enumerate(zip(milestones, diffs))]


def strip_glyph(description: str) -> str:
    return _GLYPH_PREFIX_RE.sub("", description or "", count=1)


def with_glyph(description: str, category: HealthCategory) -> str:
    """Replace any leading category glyph with the one for category."""
    clean = strip_glyph(description)
    glyph = GLYPHS[category]
    return f"{glyph} {clean}" if clean else glyph


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class MilestoneManager:
    """Creates, transitions and classifies the milestones of one repository."""

    def __init__(
        self,
        adapter: GitPlatformAdapter,
        repo: str,
        report: RunReport | None = None,
        default_due_time: time = time(23, 59, 59),
        dry_run: bool = False,
        log: logging.Logger | None = None,
    ) -> None:
        self._adapter = adapter
        self._repo = repo
        self._log = log or logging.getLogger("prflow.services.milestones")
        self.report = report or RunReport(self._log)
        self._default_due_time = default_due_time
        self._dry_run = dry_run

    def run(self, specs: Sequence[MilestoneSpec], now: datetime | None = None) -> MilestoneRunResult:
        """Run both passes; platform errors are recorded per milestone, never raised.

        Raises:
            GitPlatformError: only when the milestone list itself cannot be fetched.
        """
        result = MilestoneRunResult()
        planned = self.create_missing(specs, self._adapter.list_milestones(self._repo), result)

        milestones = list(self._adapter.list_milestones(self._repo))
        if self._dry_run:
            titles = {m.title for m in milestones}
            milestones.extend(m for m in planned if m.title not in titles)
        counts: List[IssueCounts] = []
        transitions: List[Transition] = []
        updated: List[Milestone] = []
        for milestone in milestones:
            milestone_counts = self.count_issues(milestone)
            milestone, transition = self.apply_transition(milestone, milestone_counts, result)
            counts.append(milestone_counts or IssueCounts())
            transitions.append(transition)
            updated.append(milestone)

        now = now or datetime.now(timezone.utc)
        for milestone, milestone_counts, transition, (diff, category) in zip(
            updated, counts, transitions, classify_all(updated, now)
        ):
            self.sync_description(milestone, category)
            result.health.append(
                MilestoneHealth(
                    number=milestone.number,
                    title=milestone.title,
                    state=milestone.state,
                    due_on=milestone.due_on,
                    counts=milestone_counts,
                    day_difference=diff,
                    category=category,
                    transition=transition,
                )
            )
            self._log.info(
                "%s %s => %s %s [%d open / %d closed]",
                milestone.title,
                _due_info(milestone.due_on, diff),
                GLYPHS[category],
                category.value,
                milestone_counts.open_count,
                milestone_counts.closed_count,
            )
        self.log_summary(result, len(specs))
        return result

    def create_missing(
        self,
        specs: Sequence[MilestoneSpec],
        existing: Sequence[Milestone],
        result: MilestoneRunResult,
    ) -> List[Milestone]:
        """Pass 1: create every declared milestone whose title does not exist yet.

        Returns the milestones created; in dry run these are local stand-ins
        numbered 0 that were never sent to the platform.
        """
        titles = {m.title for m in existing}
        created: List[Milestone] = []
        for spec in specs:
            if spec.title in titles:
                result.skipped += 1
                self.report.skip("%s => Existing", spec.title)
                continue
            due_on = spec.resolved_due_on(self._default_due_time)
            if self._dry_run:
                titles.add(spec.title)
                result.created += 1
                self.report.info("[dry run] would create milestone %s (state=%s, due_on=%s)", spec.title, spec.state, due_on)
                created.append(
                    Milestone(number=0, title=spec.title, state=spec.state, due_on=due_on, description=spec.description)
                )
                continue
            try:
                milestone = self._adapter.create_milestone(
                    self._repo,
                    spec.title,
                    description=spec.description,
                    due_on=due_on,
                    state=spec.state,
                )
            except GitPlatformError as e:
                result.failed += 1
                self.report.fail("%s => Failed: %s", spec.title, e)
                continue
            titles.add(spec.title)
            result.created += 1
            created.append(milestone)
            self.report.passed("%s => Created", spec.title)
        return created

    def count_issues(self, milestone: Milestone) -> IssueCounts | None:
        """Open/closed counts over every issue in the milestone, or None on error."""
        if self._dry_run and milestone.number == 0:
            return IssueCounts()
        try:
            states = self._adapter.list_milestone_issue_states(self._repo, milestone.number)
        except GitPlatformError as e:
            self.report.fail("%s => Failed to count issues: %s", milestone.title, e)
            return None
        return IssueCounts(
            open_count=sum(1 for s in states if s == OPEN),
            closed_count=sum(1 for s in states if s == CLOSED),
        )

    def apply_transition(
        self,
        milestone: Milestone,
        counts: IssueCounts | None,
        result: MilestoneRunResult,
    ) -> Tuple[Milestone, Transition]:
        """Reopen or auto-close when the rules say so; unknown counts never transition.

        Returns the milestone with its post-transition state and the transition applied.
        """
        if counts is None:
            return milestone, Transition.NONE
        transition = decide_transition(milestone.state, counts)
        if transition == Transition.NONE:
            return milestone, transition

        new_state = OPEN if transition == Transition.REOPEN else CLOSED
        label = "Reopened" if transition == Transition.REOPEN else "Auto-Closed"
        if not self._dry_run:
            try:
                self._adapter.update_milestone(self._repo, milestone.number, state=new_state)
            except GitPlatformError as e:
                self.report.fail("%s => Failed to %s: %s", milestone.title, transition.value.replace("_", "-"), e)
                return milestone, Transition.NONE
        if transition == Transition.REOPEN:
            result.reopened += 1
        else:
            result.auto_closed += 1
        self.report.passed("%s => %s", milestone.title, label)
        return milestone.model_copy(update={"state": new_state}), transition

    def sync_description(self, milestone: Milestone, category: HealthCategory) -> bool:
        """Prefix the description with the category glyph; write only when it changes.

        Returns True when an update was issued (or would be, in dry run).
        """
        new_description = with_glyph(milestone.description, category)
        if new_description == milestone.description:
            return False
        if self._dry_run:
            self._log.info("[dry run] would mark %s as %s", milestone.title, category.value)
            return True
        try:
            self._adapter.update_milestone(self._repo, milestone.number, description=new_description)
        except GitPlatformError as e:
            self.report.fail("%s => Failed to update description: %s", milestone.title, e)
            return False
        return True

    def log_summary(self, result: MilestoneRunResult, total_declared: int) -> None:
        self._log.info(
            "Creation: created=%d skipped=%d failed=%d",
            result.created,
            result.skipped,
            result.failed,
        )
        self._log.info(
            "Synchronization: open=%d closed=%d reopened=%d auto-closed=%d",
            result.open_milestones,
            result.closed_milestones,
            result.reopened,
            result.auto_closed,
        )
        self._log.info(
            "Health: upcoming=%d on-track=%d overdue=%d closed=%d",
            result.count_category(HealthCategory.UPCOMING),
            result.count_category(HealthCategory.ON_TRACK),
            result.count_category(HealthCategory.OVERDUE),
            result.count_category(HealthCategory.CLOSED),
        )
        self._log.info(
            "Milestones declared=%d evaluated=%d, issues tracked=%d",
            total_declared,
            len(result.health),
            result.issues_tracked,
        )
        if result.open_issues:
            self._log.warning("Attention: %d open issues across all milestones", result.open_issues)


def _due_info(due_on: datetime | None, diff: int | None) -> str:
    if due_on is None:
        return "-> No due date"
    return f"-> {due_on:%d %b %Y} (due in {diff} days)"
