"""FastAPI dependency injection wiring."""

from __future__ import annotations

from functools import lru_cache

import httpx
from fastapi import Header

from repo_zipper.domain.value_objects import Credentials
from repo_zipper.infrastructure.config import Settings, get_settings
from repo_zipper.infrastructure.github_contents_adapter import GitHubContentsAdapter
from repo_zipper.services.download_selection import DownloadSelectionUseCase

_http_client: httpx.AsyncClient | None = None


async def startup() -> None:
    """Initialise shared resources, called from the lifespan context manager."""
    global _http_client  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout_s),
        follow_redirects=True,
    )


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None


@lru_cache(maxsize=1)
def _settings() -> Settings:
    return get_settings()


def get_use_case(
    x_github_token: str | None = Header(default=None),
) -> DownloadSelectionUseCase:
    """Build a use case for this request; a header token beats the configured one."""
    settings = _settings()

    assert _http_client is not None, "startup() was not called"

    token = x_github_token or (
        settings.github_token.get_secret_value() if settings.github_token else None
    )
    return DownloadSelectionUseCase(
        fetcher=GitHubContentsAdapter(client=_http_client, api_base=settings.github_api_url),
        credentials=Credentials(token) if token else None,
        max_tree_depth=settings.max_tree_depth,
        archive_delimiter=settings.archive_delimiter,
        archive_extension=settings.archive_extension,
    )
