"""Run report: pass/warn/fail/info/skip tallies threaded through a run.

Each flow creates one RunReport, passes it to the components it drives and
reads the tally at the end. Nothing here is global: two reports never share
counters unless one is merged into the other.
"""

import logging
from typing import Dict, List

PASS = "pass"
WARN = "warn"
FAIL = "fail"
INFO = "info"
SKIP = "skip"

KINDS = (PASS, WARN, FAIL, INFO, SKIP)

_LEVELS = {
    PASS: logging.INFO,
    WARN: logging.WARNING,
    FAIL: logging.ERROR,
    INFO: logging.INFO,
    SKIP: logging.INFO,
}

_BLOCKS = {PASS: "🟩", WARN: "🟧", FAIL: "🟥", INFO: "🟦", SKIP: "⬛"}


class FatalError(Exception):
    """Aborts the whole run (missing metadata, failed CI, bad version tag, ...)."""

    pass


class RunReport:
    """Ordered record of check outcomes, logged as they are recorded."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logging.getLogger("prflow.report")
        self.results: List[str] = []

    def _record(self, kind: str, msg: str, *args: object) -> None:
        self.results.append(kind)
        self._log.log(_LEVELS[kind], msg, *args)

    def passed(self, msg: str, *args: object) -> None:
        self._record(PASS, msg, *args)

    def warn(self, msg: str, *args: object) -> None:
        self._record(WARN, msg, *args)

    def fail(self, msg: str, *args: object) -> None:
        """Record a soft failure: the run continues but will exit non-zero."""
        self._record(FAIL, msg, *args)

    def info(self, msg: str, *args: object) -> None:
        self._record(INFO, msg, *args)

    def skip(self, msg: str, *args: object) -> None:
        self._record(SKIP, msg, *args)

    def fatal(self, msg: str, *args: object) -> FatalError:
        """Record a failure and return the FatalError for the caller to raise."""
        self._record(FAIL, msg, *args)
        return FatalError(msg % args if args else msg)

    def count(self, kind: str) -> int:
        return self.results.count(kind)

    @property
    def counts(self) -> Dict[str, int]:
        return {kind: self.count(kind) for kind in KINDS}

    @property
    def has_failures(self) -> bool:
        return FAIL in self.results

    def progress_bar(self) -> str:
        blocks = "".join(_BLOCKS[r] for r in self.results)
        total = len(self.results)
        return f"Progress: [{blocks}] 100% ({total}/{total} checks)"

    def log_summary(self, title: str = "Summary") -> None:
        """Log the progress bar and the tally."""
        self._log.info(self.progress_bar())
        c = self.counts
        self._log.info(
            "%s: passed=%d warnings=%d failures=%d info=%d skipped=%d",
            title,
            c[PASS],
            c[WARN],
            c[FAIL],
            c[INFO],
            c[SKIP],
        )
