"""Port: log sink receiving the user-visible progress log."""

from __future__ import annotations

from typing import Protocol

from repo_zipper.domain.entities import LogEntry


class LogSink(Protocol):
    def record(self, entry: LogEntry) -> None:
        """Append one entry to the running log."""
        ...
