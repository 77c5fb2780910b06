"""Download-selection use case: the main orchestration entry point.

Depends only on the :class:`ContentFetcher` and :class:`LogSink` ports and
the pure service modules.  The interface layer injects concrete adapters at
runtime.
"""

from __future__ import annotations

import logging
from typing import Sequence

from repo_zipper.domain.entities import (
    DownloadOutcome,
    LogEntry,
    SelectedRow,
    SelectionRef,
    Severity,
)
from repo_zipper.domain.exceptions import (
    ArchiveError,
    SelectionFetchError,
)
from repo_zipper.domain.ports.content_fetcher import ContentFetcher
from repo_zipper.domain.ports.log_sink import LogSink
from repo_zipper.domain.value_objects import (
    Credentials,
    NodeKind,
    RepoLocator,
    parse_repo_url,
)
from repo_zipper.services.archive_assembler import assemble
from repo_zipper.services.collection_pipeline import CollectionPipeline
from repo_zipper.services.tree_expander import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)


def classify_selection(
    rows: Sequence[SelectedRow],
) -> tuple[list[SelectionRef], list[SelectionRef]]:
    """Split checked rows into (files, directories), keeping their order.

    ``blob`` links are files, ``tree`` links are directories; rows whose link
    does not parse, or has neither marker, are skipped.
    """
    files: list[SelectionRef] = []
    directories: list[SelectionRef] = []

    for row in rows:
        locator = parse_repo_url(row.url)
        if locator is None:
            logger.warning("Skipping selection with unrecognised link: %s", row.url)
            continue
        if locator.kind is NodeKind.ROOT and locator.branch is None:
            # bare repository link, neither tree nor blob
            logger.warning("Skipping selection that is not a file or folder: %s", row.url)
            continue
        name = _display_name(row.title, locator)
        if locator.kind is NodeKind.FILE:
            files.append(SelectionRef(NodeKind.FILE, locator, name))
        else:
            directories.append(SelectionRef(NodeKind.DIRECTORY, locator, name))

    return files, directories


def _display_name(title: str, locator: RepoLocator) -> str:
    """The row title, unless it is empty or not a single plain path segment."""
    name = title.strip()
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        if name:
            logger.warning("Ignoring unsafe selection title %r", name)
        return locator.segments[-1] if locator.segments else locator.project
    return name


class DownloadSelectionUseCase:
    """Orchestrates selection → collection → assembly for one download.

    Parameters
    ----------
    fetcher:
        Adapter that reads metadata and bytes from GitHub.
    credentials:
        Token for this run, or ``None`` if the caller has none.
    max_tree_depth:
        Nesting limit for directory expansion.
    archive_delimiter / archive_extension:
        Shape of the suggested archive filename.
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        credentials: Credentials | None,
        max_tree_depth: int = DEFAULT_MAX_DEPTH,
        archive_delimiter: str = "-",
        archive_extension: str = ".zip",
    ) -> None:
        self._fetcher = fetcher
        self._credentials = credentials
        self._max_depth = max_tree_depth
        self._delimiter = archive_delimiter
        self._extension = archive_extension

    async def execute(
        self,
        page_url: str,
        rows: Sequence[SelectedRow],
        log_sink: LogSink,
    ) -> DownloadOutcome | None:
        """Run the download.  Returns ``None`` when nothing was selected."""
        files, directories = classify_selection(rows)
        if not files and not directories:
            logger.debug("No files or folders selected.")
            return None

        page = RepoLocator.from_url(page_url)
        logger.info(
            "Downloading %d file(s) and %d folder(s) from %s",
            len(files),
            len(directories),
            page.full_name,
        )

        pipeline = CollectionPipeline(self._fetcher, log_sink, self._max_depth)
        result = await pipeline.collect(files, directories, self._credentials)

        if result.aborted_by is not None:
            raise SelectionFetchError(
                result.aborted_by.locator,
                f"Error fetching file: {result.aborted_by.locator.path} "
                f"({result.aborted_by.reason})",
                partial=result,
            )

        try:
            artifact = assemble(
                result,
                page,
                delimiter=self._delimiter,
                extension=self._extension,
            )
        except ArchiveError as exc:
            log_sink.record(LogEntry(Severity.ERROR, f"Error zipping files: {exc}"))
            raise

        log_sink.record(LogEntry(Severity.INFO, "Download complete."))
        return DownloadOutcome(artifact=artifact, failures=list(result.failures))
