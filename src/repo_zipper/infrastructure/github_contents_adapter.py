"""GitHub contents API adapter: implements the ContentFetcher port."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from repo_zipper.domain.entities import ChildNode, DirectoryListing, FileMetadata
from repo_zipper.domain.exceptions import FetchError
from repo_zipper.domain.value_objects import Credentials, RepoLocator

logger = logging.getLogger(__name__)

_GITHUB_API = "https://api.github.com"
_USER_AGENT = "repo-zipper/1.0"


def contents_url(
    owner: str,
    project: str,
    path: str,
    branch: str | None = None,
    api_base: str = _GITHUB_API,
) -> str:
    """Build the ``/repos/{owner}/{project}/contents/{path}`` endpoint URL."""
    url = f"{api_base}/repos/{owner}/{project}/contents/{quote(path)}"
    if branch:
        url += f"?ref={quote(branch, safe='')}"
    return url


class GitHubContentsAdapter:
    """Concrete ContentFetcher backed by the GitHub v3 contents API."""

    def __init__(self, client: httpx.AsyncClient, api_base: str = _GITHUB_API) -> None:
        self._client = client
        self._api_base = api_base.rstrip("/")

    async def fetch_metadata(
        self, locator: RepoLocator, credentials: Credentials
    ) -> FileMetadata | DirectoryListing:
        """GET /repos/{owner}/{repo}/contents/{path}?ref={branch}."""
        url = contents_url(
            locator.owner, locator.project, locator.path, locator.branch, self._api_base
        )
        resp = await self._get(
            url,
            locator,
            headers=self._headers(credentials, "application/vnd.github.v3+json"),
        )
        try:
            data: Any = resp.json()
        except ValueError as exc:
            raise FetchError(locator, f"Malformed JSON from {url}: {exc}") from exc

        if isinstance(data, list):
            return self._parse_listing(data, locator)
        if isinstance(data, dict) and data.get("type", "file") == "file":
            return FileMetadata(
                encoding=data.get("encoding"),
                inline_content=data.get("content"),
                download_url=data.get("download_url"),
            )
        raise FetchError(locator, f"Unexpected contents payload for {locator.path or '/'}")

    async def fetch_bytes(
        self, url: str, credentials: Credentials, locator: RepoLocator | None = None
    ) -> bytes:
        """GET the raw ``download_url`` (no JSON envelope)."""
        resp = await self._get(
            url,
            locator,
            headers=self._headers(credentials, "application/octet-stream"),
        )
        return resp.content

    # ── Helpers ─────────────────────────────────────────────────────────

    @staticmethod
    def _headers(credentials: Credentials, accept: str) -> dict[str, str]:
        headers = {"Accept": accept, "User-Agent": _USER_AGENT}
        if credentials.token:
            headers["Authorization"] = f"token {credentials.token}"
        return headers

    @staticmethod
    def _parse_listing(data: list[Any], locator: RepoLocator) -> DirectoryListing:
        children: list[ChildNode] = []
        for item in data:
            if not isinstance(item, dict) or "name" not in item:
                raise FetchError(locator, f"Malformed listing entry under {locator.path or '/'}")
            children.append(ChildNode(name=item["name"], kind=item.get("type", "")))
        return DirectoryListing(children=children)

    async def _get(
        self,
        url: str,
        locator: RepoLocator | None,
        headers: dict[str, str],
    ) -> httpx.Response:
        """Perform a GET request with error translation."""
        try:
            resp = await self._client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise FetchError(locator, f"Network error fetching {url}: {exc}") from exc

        if resp.is_success:
            return resp

        logger.debug("GET %s -> HTTP %d", url, resp.status_code)

        if resp.status_code == 404:
            raise FetchError(locator, f"Not found: {url}")

        if resp.status_code in (401, 403):
            remaining = resp.headers.get("x-ratelimit-remaining", "")
            if remaining == "0":
                reset_raw = resp.headers.get("x-ratelimit-reset", "")
                try:
                    reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                except (ValueError, OSError):
                    reset_str = reset_raw or "unknown"
                raise FetchError(
                    locator, f"GitHub API rate limit exceeded. Resets at {reset_str}."
                )
            raise FetchError(
                locator, f"Access denied (HTTP {resp.status_code}). Check the GitHub token."
            )

        if resp.status_code == 429:
            raise FetchError(locator, "GitHub API rate limit exceeded (HTTP 429).")

        raise FetchError(locator, f"GitHub API returned HTTP {resp.status_code} for {url}")
