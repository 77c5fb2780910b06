from __future__ import annotations

import base64
import io
import zipfile
from datetime import datetime

import pytest

from repo_zipper.domain.entities import (
    BinaryPayload,
    CollectionResult,
    ContentEntry,
    FetchFailure,
    TextPayload,
)
from repo_zipper.domain.exceptions import ArchiveError
from repo_zipper.domain.value_objects import NodeKind, RepoLocator
from repo_zipper.services.archive_assembler import (
    RAW_MEDIA_TYPE,
    ZIP_MEDIA_TYPE,
    archive_name,
    assemble,
)

PAGE = RepoLocator("octo", "hello", "docs/guide", NodeKind.DIRECTORY, "main")
STAMP = datetime(2024, 5, 17, 9, 30, 12)


def _text(path: str, data: bytes) -> ContentEntry:
    return ContentEntry(path, TextPayload(base64.encodebytes(data).decode()))


def _zip(data: bytes) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(data))


def test_single_text_entry_is_returned_unwrapped() -> None:
    result = CollectionResult(entries=[_text("notes.md", b"hello\nworld\n")])
    artifact = assemble(result, PAGE)

    assert artifact.data == b"hello\nworld\n"
    assert artifact.filename == "notes.md"
    assert artifact.media_type == RAW_MEDIA_TYPE
    assert not artifact.is_archive


def test_single_binary_entry_is_returned_unwrapped() -> None:
    result = CollectionResult(entries=[ContentEntry("logo.png", BinaryPayload(b"\x89PNG\x00"))])
    artifact = assemble(result, PAGE)
    assert artifact.data == b"\x89PNG\x00"
    assert not artifact.is_archive


def test_single_entry_with_failure_is_still_an_archive() -> None:
    failed = RepoLocator("octo", "hello", "docs/gone.md", NodeKind.FILE)
    result = CollectionResult(
        entries=[_text("docs/a.md", b"a")],
        failures=[FetchFailure(failed, "Not found")],
    )
    artifact = assemble(result, PAGE, captured_at=STAMP)

    assert artifact.is_archive
    names = _zip(artifact.data).namelist()
    assert "docs/a.md" in names
    assert "docs/gone.md" not in names


def test_archive_members_paths_and_bytes() -> None:
    result = CollectionResult(
        entries=[
            _text("docs/a.md", b"# A"),
            _text("docs/sub/b.md", b"# B"),
            ContentEntry("logo.png", BinaryPayload(b"\x89PNG")),
        ]
    )
    artifact = assemble(result, PAGE, captured_at=STAMP)

    assert artifact.is_archive
    assert artifact.media_type == ZIP_MEDIA_TYPE
    assert artifact.filename == "hello-docs-guide.zip"

    zf = _zip(artifact.data)
    assert zf.namelist() == ["docs/", "docs/a.md", "docs/sub/", "docs/sub/b.md", "logo.png"]
    assert zf.read("docs/a.md") == b"# A"
    assert zf.read("docs/sub/b.md") == b"# B"
    assert zf.read("logo.png") == b"\x89PNG"
    assert {info.date_time for info in zf.infolist()} == {(2024, 5, 17, 9, 30, 12)}


def test_same_input_and_timestamp_gives_identical_bytes() -> None:
    def run() -> bytes:
        result = CollectionResult(
            entries=[_text("a/x.txt", b"x"), ContentEntry("b.bin", BinaryPayload(b"\x00\x01"))]
        )
        return assemble(result, PAGE, captured_at=STAMP).data

    assert run() == run()


def test_archive_name_for_repository_root() -> None:
    root = RepoLocator("octo", "hello", "", NodeKind.ROOT)
    assert archive_name(root) == "hello.zip"
    assert archive_name(PAGE, delimiter="_", extension=".zip") == "hello_docs_guide.zip"


def test_empty_result_produces_empty_archive() -> None:
    artifact = assemble(CollectionResult(), PAGE, captured_at=STAMP)
    assert artifact.is_archive
    assert _zip(artifact.data).namelist() == []


def test_invalid_base64_raises_archive_error() -> None:
    result = CollectionResult(
        entries=[ContentEntry("a.txt", TextPayload("abc")), _text("b.txt", b"b")]
    )
    with pytest.raises(ArchiveError, match="a.txt"):
        assemble(result, PAGE, captured_at=STAMP)


def test_aborted_result_is_not_assembled() -> None:
    failed = FetchFailure(RepoLocator("octo", "hello", "x", NodeKind.FILE), "boom")
    result = CollectionResult(entries=[_text("a.txt", b"a")], failures=[failed], aborted_by=failed)
    with pytest.raises(ArchiveError):
        assemble(result, PAGE)


def test_timestamp_before_zip_epoch_is_archive_error() -> None:
    result = CollectionResult(entries=[_text("a.txt", b"a"), _text("b.txt", b"b")])
    with pytest.raises(ArchiveError):
        assemble(result, PAGE, captured_at=datetime(1975, 1, 1))


@pytest.mark.parametrize("path", ["../evil.sh", "docs/../../evil.sh", "/etc/passwd", "a\\..\\b"])
def test_member_outside_archive_root_is_rejected(path: str) -> None:
    result = CollectionResult(entries=[_text(path, b"x"), _text("ok.txt", b"ok")])
    with pytest.raises(ArchiveError, match="outside the archive root"):
        assemble(result, PAGE, captured_at=STAMP)
