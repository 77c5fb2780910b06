"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repo_zipper.domain.entities import CollectionResult
    from repo_zipper.domain.value_objects import RepoLocator


class RepoZipperError(Exception):
    """Base exception for the entire application."""


# ── Run preconditions ───────────────────────────────────────────────────────


class EmptySelectionError(RepoZipperError):
    """Nothing was selected; the download action is a no-op."""


class AuthRequiredError(RepoZipperError):
    """No GitHub token is available, so the pipeline does not start."""


class InvalidRepositoryError(RepoZipperError):
    """A page or selection URL does not resolve to a repository node."""


# ── Remote reads ────────────────────────────────────────────────────────────


class FetchError(RepoZipperError):
    """One metadata or byte read could not be completed."""

    def __init__(self, locator: RepoLocator | None, reason: str) -> None:
        super().__init__(reason)
        self.locator = locator
        self.reason = reason


class TraversalTooDeepError(FetchError):
    """Directory expansion went deeper than the configured limit."""


class SelectionFetchError(FetchError):
    """A directly selected file failed and aborted the download.

    ``partial`` holds whatever was collected before the abort; it is never
    assembled.
    """

    def __init__(
        self,
        locator: RepoLocator | None,
        reason: str,
        partial: CollectionResult,
    ) -> None:
        super().__init__(locator, reason)
        self.partial = partial


# ── Assembly ────────────────────────────────────────────────────────────────


class ArchiveError(RepoZipperError):
    """Building the output archive failed; nothing is saved."""
