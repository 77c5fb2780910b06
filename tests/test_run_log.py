from __future__ import annotations

import logging

import pytest

from repo_zipper.domain.entities import LogEntry, Severity
from repo_zipper.infrastructure.run_log import RunLog


def test_entries_render_with_severity_tag() -> None:
    log = RunLog()
    log.record(LogEntry(Severity.INFO, "Processing folder: docs"))
    log.record(LogEntry(Severity.ERROR, "Error fetching file: docs/a.md"))

    assert log.lines() == [
        "[INFO] Processing folder: docs",
        "[ERROR] Error fetching file: docs/a.md",
    ]


def test_entries_are_mirrored_to_logging(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="repo_zipper.infrastructure.run_log"):
        RunLog().record(LogEntry(Severity.WARNING, "Skipping symlink: docs/link"))

    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.WARNING, "Skipping symlink: docs/link")
    ]


def test_lines_can_leave_out_progress() -> None:
    log = RunLog()
    log.record(LogEntry(Severity.INFO, "Processing folder: docs"))
    log.record(LogEntry(Severity.WARNING, "Skipping symlink: docs/link"))
    log.record(LogEntry(Severity.ERROR, "Error fetching folder: docs/gone (Not found)"))

    assert log.lines(include_info=False) == [
        "[WARNING] Skipping symlink: docs/link",
        "[ERROR] Error fetching folder: docs/gone (Not found)",
    ]
