"""Port: content fetcher, defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from repo_zipper.domain.entities import DirectoryListing, FileMetadata
from repo_zipper.domain.value_objects import Credentials, RepoLocator


class ContentFetcher(Protocol):
    """Abstract contract for single remote reads.

    Implementations raise :class:`~repo_zipper.domain.exceptions.FetchError`
    on network failure, non-2xx status or a malformed body, and never retry.
    """

    async def fetch_metadata(
        self, locator: RepoLocator, credentials: Credentials
    ) -> FileMetadata | DirectoryListing:
        """Return a directory listing or file metadata for *locator*."""
        ...

    async def fetch_bytes(
        self, url: str, credentials: Credentials, locator: RepoLocator | None = None
    ) -> bytes:
        """Return the raw bytes behind a ``download_url``."""
        ...
