"""Running download log: implements the LogSink port."""

from __future__ import annotations

import logging

from repo_zipper.domain.entities import LogEntry, Severity

logger = logging.getLogger(__name__)

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class RunLog:
    """Keeps the entries of one download run and mirrors them to ``logging``."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def record(self, entry: LogEntry) -> None:
        self.entries.append(entry)
        logger.log(_LEVELS[entry.severity], "%s", entry.message)

    def lines(self, *, include_info: bool = True) -> list[str]:
        return [
            entry.render()
            for entry in self.entries
            if include_info or entry.severity is not Severity.INFO
        ]
