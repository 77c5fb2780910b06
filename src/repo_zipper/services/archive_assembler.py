"""Archive assembler: builds the downloadable blob from a collection result.

A single entry with no failures is returned as its own bytes.  Anything
else becomes a zip archive whose members all carry the same timestamp.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import zipfile
from datetime import datetime

from repo_zipper.domain.entities import (
    BinaryPayload,
    CollectionResult,
    ContentEntry,
    DownloadArtifact,
    TextPayload,
)
from repo_zipper.domain.exceptions import ArchiveError
from repo_zipper.domain.value_objects import RepoLocator

logger = logging.getLogger(__name__)

ZIP_MEDIA_TYPE = "application/zip"
RAW_MEDIA_TYPE = "application/octet-stream"

_DIR_ATTR = (0o40755 << 16) | 0x10
_FILE_ATTR = 0o100644 << 16


def assemble(
    result: CollectionResult,
    origin: RepoLocator,
    *,
    captured_at: datetime | None = None,
    delimiter: str = "-",
    extension: str = ".zip",
) -> DownloadArtifact:
    """Produce the single-file blob or zip archive for *result*.

    *origin* is the page the selection was made on; it names the archive.
    *captured_at* defaults to the local wall-clock time at call.
    """
    if result.is_aborted:
        raise ArchiveError("The download was aborted and cannot be assembled.")

    if len(result.entries) == 1 and not result.failures:
        entry = result.entries[0]
        return DownloadArtifact(
            filename=entry.relative_path,
            data=_decode(entry),
            media_type=RAW_MEDIA_TYPE,
            is_archive=False,
        )

    if not result.entries:
        logger.warning("No entries collected; producing an empty archive")

    stamp = captured_at or datetime.now()
    return DownloadArtifact(
        filename=archive_name(origin, delimiter, extension),
        data=_build_zip(result.entries, stamp),
        media_type=ZIP_MEDIA_TYPE,
        is_archive=True,
    )


def archive_name(origin: RepoLocator, delimiter: str = "-", extension: str = ".zip") -> str:
    """``<project>-<path segments...>.zip`` for the page the selection came from."""
    return delimiter.join([origin.project, *origin.segments]) + extension


def _build_zip(entries: list[ContentEntry], stamp: datetime) -> bytes:
    date_time = stamp.timetuple()[:6]
    buffer = io.BytesIO()
    seen_dirs: set[str] = set()

    try:
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
            for entry in entries:
                _check_member_path(entry.relative_path)
                for directory in _parent_dirs(entry.relative_path):
                    if directory in seen_dirs:
                        continue
                    seen_dirs.add(directory)
                    info = zipfile.ZipInfo(f"{directory}/", date_time=date_time)
                    info.external_attr = _DIR_ATTR
                    zf.writestr(info, b"")

                info = zipfile.ZipInfo(entry.relative_path, date_time=date_time)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = _FILE_ATTR
                zf.writestr(info, _decode(entry))
    except (ValueError, OSError, zipfile.LargeZipFile) as exc:
        raise ArchiveError(f"Failed to build archive: {exc}") from exc

    logger.info("Built archive with %d files (%d bytes)", len(entries), buffer.tell())
    return buffer.getvalue()


def _check_member_path(relative_path: str) -> None:
    parts = relative_path.split("/")
    if relative_path.startswith("/") or "\\" in relative_path or ".." in parts:
        raise ArchiveError(f"Refusing archive member outside the archive root: {relative_path!r}")


def _parent_dirs(relative_path: str) -> list[str]:
    """``a/b/c.txt`` → ``["a", "a/b"]``."""
    parts = relative_path.split("/")[:-1]
    return ["/".join(parts[: i + 1]) for i in range(len(parts)) if parts[i]]


def _decode(entry: ContentEntry) -> bytes:
    payload = entry.payload
    if isinstance(payload, BinaryPayload):
        return payload.data
    if isinstance(payload, TextPayload):
        try:
            # GitHub wraps base64 at 60 columns; non-alphabet chars are dropped.
            return base64.b64decode(payload.base64_content)
        except binascii.Error as exc:
            raise ArchiveError(
                f"Invalid base64 content for {entry.relative_path}: {exc}"
            ) from exc
    raise ArchiveError(f"Unknown payload type for {entry.relative_path}")
