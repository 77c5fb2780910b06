"""Recursive directory expansion over the contents API.

Walks one directory locator and lazily yields ``(relative_path, locator)``
for every file it transitively contains, in the order the remote lists
them (pre-order, no re-sorting).  A directory whose listing cannot be read
is reported through ``on_failure`` and skipped; its siblings and ancestors
keep expanding.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Callable

from repo_zipper.domain.entities import (
    DirectoryListing,
    FetchFailure,
    LogEntry,
    Severity,
)
from repo_zipper.domain.exceptions import FetchError, TraversalTooDeepError
from repo_zipper.domain.ports.content_fetcher import ContentFetcher
from repo_zipper.domain.ports.log_sink import LogSink
from repo_zipper.domain.value_objects import Credentials, NodeKind, RepoLocator

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

_FILE = "file"
_DIR = "dir"


class TreeExpander:
    """Turns a directory locator into a flat stream of file locators."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        log_sink: LogSink,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._fetcher = fetcher
        self._log = log_sink
        self._max_depth = max_depth

    async def expand(
        self,
        directory: RepoLocator,
        path_prefix: str,
        credentials: Credentials,
        on_failure: Callable[[FetchFailure], None],
    ) -> AsyncIterator[tuple[str, RepoLocator]]:
        """Yield every file under *directory*, named ``path_prefix/<tree path>``."""
        async for pair in self._walk(directory, path_prefix, credentials, on_failure, 0):
            yield pair

    async def _walk(
        self,
        directory: RepoLocator,
        path_prefix: str,
        credentials: Credentials,
        on_failure: Callable[[FetchFailure], None],
        depth: int,
    ) -> AsyncIterator[tuple[str, RepoLocator]]:
        self._log.record(LogEntry(Severity.INFO, f"Processing folder: {path_prefix}"))
        try:
            listing = await self._list(directory, credentials, depth)
        except FetchError as exc:
            self._log.record(
                LogEntry(Severity.ERROR, f"Error fetching folder: {path_prefix} ({exc.reason})")
            )
            on_failure(FetchFailure(locator=directory, reason=exc.reason))
            return

        for child in listing.children:
            child_path = f"{path_prefix}/{child.name}"
            if child.kind == _FILE:
                yield child_path, directory.child(child.name, NodeKind.FILE)
            elif child.kind == _DIR:
                sub = directory.child(child.name, NodeKind.DIRECTORY)
                async for pair in self._walk(sub, child_path, credentials, on_failure, depth + 1):
                    yield pair
            else:
                # symlinks and submodules have no fetchable content here
                self._log.record(
                    LogEntry(Severity.WARNING, f"Skipping {child.kind or 'unknown'}: {child_path}")
                )

    async def _list(
        self, directory: RepoLocator, credentials: Credentials, depth: int
    ) -> DirectoryListing:
        if depth > self._max_depth:
            raise TraversalTooDeepError(
                directory,
                f"Directory nesting exceeds {self._max_depth} levels at {directory.path}",
            )
        listing = await self._fetcher.fetch_metadata(directory, credentials)
        if not isinstance(listing, DirectoryListing):
            raise FetchError(directory, f"Expected a directory listing for {directory.path}")
        logger.debug("%s: %d entries", directory, len(listing.children))
        return listing
