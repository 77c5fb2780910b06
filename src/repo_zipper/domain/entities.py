"""Domain entities: pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from repo_zipper.domain.value_objects import NodeKind, RepoLocator


@dataclass(frozen=True, slots=True)
class SelectionRef:
    """A user-checked row: a file or directory plus the name it was shown as."""

    kind: NodeKind
    locator: RepoLocator
    display_name: str


# ── Remote metadata ─────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ChildNode:
    """One entry of a directory listing, in the order the remote returned it."""

    name: str
    kind: str  # "file", "dir", or whatever else the remote reports


@dataclass(frozen=True, slots=True)
class DirectoryListing:
    children: list[ChildNode]


@dataclass(frozen=True, slots=True)
class FileMetadata:
    """File info from the contents API.

    ``inline_content`` is only trusted when ``encoding`` is ``"base64"``;
    otherwise the bytes must be fetched from ``download_url``.
    """

    encoding: str | None
    inline_content: str | None = None
    download_url: str | None = None


# ── Collected content ───────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class TextPayload:
    """Base64 text as returned inline by the API; decoded at assembly time."""

    base64_content: str


@dataclass(frozen=True, slots=True)
class BinaryPayload:
    data: bytes


Payload = Union[TextPayload, BinaryPayload]


@dataclass(frozen=True, slots=True)
class ContentEntry:
    """A resolved file, placed at ``relative_path`` in the output."""

    relative_path: str
    payload: Payload


@dataclass(frozen=True, slots=True)
class FetchFailure:
    """A file or directory that could not be read."""

    locator: RepoLocator
    reason: str


@dataclass(slots=True)
class CollectionResult:
    """Everything one pipeline run gathered, in traversal order.

    ``aborted_by`` is set when a directly selected file failed; such a
    result is reported but never assembled.
    """

    entries: list[ContentEntry] = field(default_factory=list)
    failures: list[FetchFailure] = field(default_factory=list)
    aborted_by: FetchFailure | None = None

    @property
    def is_aborted(self) -> bool:
        return self.aborted_by is not None


@dataclass(frozen=True, slots=True)
class DownloadArtifact:
    """The blob handed to the save step, with its suggested filename."""

    filename: str
    data: bytes
    media_type: str
    is_archive: bool


@dataclass(frozen=True, slots=True)
class DownloadOutcome:
    artifact: DownloadArtifact
    failures: list[FetchFailure]


@dataclass(frozen=True, slots=True)
class SelectedRow:
    """A checked row as the page showed it: its link target and label."""

    url: str
    title: str


# ── Run log ─────────────────────────────────────────────────────────────────


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LogEntry:
    severity: Severity
    message: str

    def render(self) -> str:
        return f"[{self.severity.value.upper()}] {self.message}"
