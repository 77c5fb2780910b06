"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class SelectionItem(BaseModel):
    """One checked row: the link it points at and the label shown for it."""

    url: str
    title: str = ""


class DownloadRequest(BaseModel):
    """Request body for ``POST /download``."""

    page_url: str
    selections: list[SelectionItem] = Field(default_factory=list)

    @field_validator("page_url")
    @classmethod
    def _must_be_github(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "page_url must not be empty."
            raise ValueError(msg)
        if "github.com" not in stripped.lower():
            msg = f"Invalid URL: '{stripped}'. Only GitHub repository pages are supported."
            raise ValueError(msg)
        return stripped


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
    log: list[str] = Field(default_factory=list)
    collected: list[str] = Field(default_factory=list)
