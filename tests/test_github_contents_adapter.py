from __future__ import annotations

import httpx
import pytest

from repo_zipper.domain.entities import DirectoryListing, FileMetadata
from repo_zipper.domain.exceptions import FetchError
from repo_zipper.domain.value_objects import (
    Credentials,
    NodeKind,
    RepoLocator,
    parse_repo_url,
)
from repo_zipper.infrastructure.github_contents_adapter import (
    GitHubContentsAdapter,
    contents_url,
)

TOKEN = Credentials("ghp_abc")
DOCS = RepoLocator("octo", "hello", "docs", NodeKind.DIRECTORY, "main")
LOGO = RepoLocator("octo", "hello", "img/logo.png", NodeKind.FILE, None)


def _adapter(handler) -> GitHubContentsAdapter:  # type: ignore[no-untyped-def]
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubContentsAdapter(client)


def test_contents_url_with_and_without_branch() -> None:
    assert (
        contents_url("octo", "hello", "docs/a b.md", "main")
        == "https://api.github.com/repos/octo/hello/contents/docs/a%20b.md?ref=main"
    )
    assert contents_url("octo", "hello", "") == "https://api.github.com/repos/octo/hello/contents/"


async def test_directory_listing_keeps_remote_order() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"name": "z.md", "type": "file"},
                {"name": "a", "type": "dir"},
                {"name": "mod", "type": "submodule"},
            ],
        )

    result = await _adapter(handler).fetch_metadata(DOCS, TOKEN)

    assert isinstance(result, DirectoryListing)
    assert [(c.name, c.kind) for c in result.children] == [
        ("z.md", "file"),
        ("a", "dir"),
        ("mod", "submodule"),
    ]
    request = seen[0]
    assert request.url.path == "/repos/octo/hello/contents/docs"
    assert request.url.params["ref"] == "main"
    assert request.headers["Authorization"] == "token ghp_abc"
    assert request.headers["Accept"] == "application/vnd.github.v3+json"


async def test_file_metadata_with_inline_content() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"type": "file", "encoding": "base64", "content": "aGk=\n", "download_url": "x"},
        )

    meta = await _adapter(handler).fetch_metadata(LOGO, TOKEN)

    assert isinstance(meta, FileMetadata)
    assert meta.encoding == "base64"
    assert meta.inline_content == "aGk=\n"


async def test_file_metadata_without_inline_content() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "type": "file",
                "encoding": "none",
                "content": "",
                "download_url": "https://raw.githubusercontent.com/octo/hello/main/img/logo.png",
            },
        )

    meta = await _adapter(handler).fetch_metadata(LOGO, TOKEN)

    assert isinstance(meta, FileMetadata)
    assert meta.encoding == "none"
    assert meta.download_url is not None


async def test_fetch_bytes_requests_octet_stream() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"\x89PNG\r\n")

    data = await _adapter(handler).fetch_bytes("https://raw.example/logo.png", TOKEN, LOGO)

    assert data == b"\x89PNG\r\n"
    assert seen[0].headers["Accept"] == "application/octet-stream"


@pytest.mark.parametrize(
    ("status", "headers", "fragment"),
    [
        (404, {}, "Not found"),
        (403, {}, "Access denied"),
        (403, {"x-ratelimit-remaining": "0", "x-ratelimit-reset": "0"}, "rate limit"),
        (429, {}, "rate limit"),
        (500, {}, "HTTP 500"),
    ],
)
async def test_error_statuses_become_fetch_errors(
    status: int, headers: dict[str, str], fragment: str
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, headers=headers, json={"message": "nope"})

    with pytest.raises(FetchError) as excinfo:
        await _adapter(handler).fetch_metadata(DOCS, TOKEN)

    assert fragment in excinfo.value.reason
    assert excinfo.value.locator == DOCS


async def test_network_error_becomes_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError, match="Network error"):
        await _adapter(handler).fetch_metadata(DOCS, TOKEN)


async def test_malformed_body_becomes_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(FetchError, match="Malformed JSON"):
        await _adapter(handler).fetch_metadata(DOCS, TOKEN)


async def test_percent_encoded_link_requests_the_file_once_encoded() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"type": "file", "encoding": "base64", "content": "aGk="})

    locator = parse_repo_url("https://github.com/o/p/blob/main/docs/my%20notes.md")
    assert locator is not None

    meta = await _adapter(handler).fetch_metadata(locator, TOKEN)

    assert isinstance(meta, FileMetadata)
    assert seen[0].url.raw_path == b"/repos/o/p/contents/docs/my%20notes.md?ref=main"
