"""CI workflow run and the monitor's outcome."""

from enum import Enum

from pydantic import BaseModel

COMPLETED = "completed"
SUCCESS = "success"


class CIRun(BaseModel):
    """Most recent workflow run on a branch."""

    status: str = ""
    conclusion: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status == COMPLETED

    @property
    def succeeded(self) -> bool:
        return self.is_terminal and self.conclusion == SUCCESS


class CIOutcome(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    NO_RUN_FOUND = "no_run_found"
    TIMED_OUT = "timed_out"


class CIResult(BaseModel):
    """Result of waiting for CI; conclusion is set only for FAILED."""

    outcome: CIOutcome
    conclusion: str | None = None
    attempts: int = 0
