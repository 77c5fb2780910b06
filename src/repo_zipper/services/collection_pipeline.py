"""Collection pipeline: selected files and directories → ordered entries.

Directories are expanded first, in selection order, then directly selected
files are fetched in selection order.  Every fetch is awaited before the
next one starts, so log order and archive member order follow the
traversal exactly.

Failure policy differs by origin.  A file or subdirectory that fails inside
a directory expansion is recorded and skipped.  A directly selected file that
fails stops the run: the remaining selected files are not fetched, the
failure is stored as ``aborted_by``, and entries collected so far are kept.
"""

from __future__ import annotations

import logging
from typing import Sequence

from repo_zipper.domain.entities import (
    BinaryPayload,
    CollectionResult,
    ContentEntry,
    FetchFailure,
    FileMetadata,
    LogEntry,
    SelectionRef,
    Severity,
    TextPayload,
)
from repo_zipper.domain.exceptions import (
    AuthRequiredError,
    EmptySelectionError,
    FetchError,
    InvalidRepositoryError,
)
from repo_zipper.domain.ports.content_fetcher import ContentFetcher
from repo_zipper.domain.ports.log_sink import LogSink
from repo_zipper.domain.value_objects import Credentials, NodeKind, RepoLocator
from repo_zipper.services.tree_expander import DEFAULT_MAX_DEPTH, TreeExpander

logger = logging.getLogger(__name__)

_DIRECTORY_KINDS = (NodeKind.DIRECTORY, NodeKind.ROOT)


class CollectionPipeline:
    """Runs one collection over a fixed selection.

    Parameters
    ----------
    fetcher:
        Adapter performing the individual remote reads.
    log_sink:
        Receives the human-readable progress and error log.
    max_tree_depth:
        Nesting limit passed to the :class:`TreeExpander`.
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        log_sink: LogSink,
        max_tree_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._fetcher = fetcher
        self._log = log_sink
        self._expander = TreeExpander(fetcher, log_sink, max_tree_depth)

    # ── Public entry point ──────────────────────────────────────────────

    async def collect(
        self,
        selected_files: Sequence[SelectionRef],
        selected_directories: Sequence[SelectionRef],
        credentials: Credentials | None,
    ) -> CollectionResult:
        """Fetch everything selected and return entries plus failures."""
        if not selected_files and not selected_directories:
            raise EmptySelectionError("No files or folders selected.")
        if credentials is None or not credentials.token:
            raise AuthRequiredError("A GitHub API token is required.")
        _check_kinds(selected_files, (NodeKind.FILE,))
        _check_kinds(selected_directories, _DIRECTORY_KINDS)

        result = CollectionResult()

        # 1. Directory expansions: failures are recorded, never fatal
        for directory in selected_directories:
            async for relative_path, locator in self._expander.expand(
                directory.locator,
                directory.display_name,
                credentials,
                result.failures.append,
            ):
                self._info(f"Processing file: {relative_path}")
                try:
                    entry = await self.fetch_entry(locator, relative_path, credentials)
                except FetchError as exc:
                    self._error(f"Error fetching file: {relative_path} ({exc.reason})")
                    result.failures.append(FetchFailure(locator=locator, reason=exc.reason))
                    continue
                result.entries.append(entry)

        # 2. Directly selected files: the first failure aborts the rest
        for selected in selected_files:
            self._info(f"Processing file: {selected.display_name}")
            try:
                entry = await self.fetch_entry(
                    selected.locator, selected.display_name, credentials
                )
            except FetchError as exc:
                self._error(f"Error fetching file: {selected.display_name} ({exc.reason})")
                failure = FetchFailure(locator=selected.locator, reason=exc.reason)
                result.failures.append(failure)
                result.aborted_by = failure
                break
            result.entries.append(entry)

        logger.info(
            "Collected %d entries, %d failures%s",
            len(result.entries),
            len(result.failures),
            " (aborted)" if result.is_aborted else "",
        )
        return result

    # ── Single file ─────────────────────────────────────────────────────

    async def fetch_entry(
        self, locator: RepoLocator, relative_path: str, credentials: Credentials
    ) -> ContentEntry:
        """Resolve one file locator into an entry.

        Inline base64 content is used as-is; otherwise the raw bytes are
        downloaded from the file's ``download_url``.
        """
        metadata = await self._fetcher.fetch_metadata(locator, credentials)
        if not isinstance(metadata, FileMetadata):
            raise FetchError(locator, f"{locator.path} is a directory, not a file")

        if metadata.encoding == "base64" and metadata.inline_content is not None:
            return ContentEntry(relative_path, TextPayload(metadata.inline_content))

        if metadata.download_url:
            logger.debug("No inline content for %s, downloading raw bytes", locator)
            data = await self._fetcher.fetch_bytes(metadata.download_url, credentials, locator)
            return ContentEntry(relative_path, BinaryPayload(data))

        raise FetchError(
            locator, f"No inline content and no download URL for {locator.path}"
        )

    # ── Helpers ─────────────────────────────────────────────────────────

    def _info(self, message: str) -> None:
        self._log.record(LogEntry(Severity.INFO, message))

    def _error(self, message: str) -> None:
        self._log.record(LogEntry(Severity.ERROR, message))


def _check_kinds(refs: Sequence[SelectionRef], allowed: tuple[NodeKind, ...]) -> None:
    for ref in refs:
        if ref.locator.kind not in allowed:
            raise InvalidRepositoryError(
                f"'{ref.display_name}' points at a {ref.locator.kind.value}, "
                f"expected {' or '.join(k.value for k in allowed)}."
            )
