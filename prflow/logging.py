"""Root logger setup for a prflow run.

Run reports log pass/info/skip at INFO, warnings at WARNING and failures at
ERROR; adapter and git calls log at DEBUG. ``logging.level`` and
``logging.format`` come from prflow.yaml or LOGGING_LEVEL / LOGGING_FORMAT.
"""

import logging

from prflow.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP client loggers; DEBUG only when prflow itself runs at DEBUG
QUIET_LOGGERS = ("urllib3", "requests")


def _resolve_level(level: str) -> int:
    """Level constant for a name; unknown names give INFO."""
    return LEVELS.get(level.upper().strip(), logging.INFO)


class PrflowLogging:
    """Applies a LoggingConfig to the root logger once per run."""

    def __init__(self, config: LoggingConfig) -> None:
        self._level = _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT

    def setup(self) -> None:
        logging.basicConfig(level=self._level, format=self._format, force=True)
        http_level = logging.DEBUG if self._level == logging.DEBUG else logging.WARNING
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(http_level)
