"""API routes: thin controllers that delegate to the use case."""

from __future__ import annotations

import json
import posixpath
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response

from repo_zipper.domain.entities import SelectedRow
from repo_zipper.infrastructure.run_log import RunLog
from repo_zipper.interface.dependencies import get_use_case
from repo_zipper.interface.schemas import DownloadRequest, ErrorResponse
from repo_zipper.services.download_selection import DownloadSelectionUseCase

router = APIRouter()


@router.post(
    "/download",
    response_class=Response,
    responses={
        200: {"description": "Single file bytes or a zip archive, run log in X-Download-Log"},
        204: {"description": "Nothing was selected"},
        401: {"model": ErrorResponse, "description": "No GitHub token available"},
        422: {"model": ErrorResponse, "description": "Invalid repository URL"},
        500: {"model": ErrorResponse, "description": "Archive could not be built"},
        502: {"model": ErrorResponse, "description": "A selected file could not be fetched"},
    },
)
async def download(
    body: DownloadRequest,
    request: Request,
    use_case: DownloadSelectionUseCase = Depends(get_use_case),
) -> Response:
    """Download the selected files and folders as one file or zip."""
    rows = [SelectedRow(url=item.url, title=item.title) for item in body.selections]
    run_log = RunLog()
    # Error handlers read the log from here to fill the envelope
    request.state.run_log = run_log
    outcome = await use_case.execute(body.page_url, rows, run_log)
    if outcome is None:
        return Response(status_code=204)

    artifact = outcome.artifact
    return Response(
        content=artifact.data,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": _content_disposition(artifact.filename),
            "X-Fetch-Failures": str(len(outcome.failures)),
            "X-Download-Log": json.dumps(run_log.lines(include_info=False)),
        },
    )


def _content_disposition(filename: str) -> str:
    name = posixpath.basename(filename) or "download"
    ascii_name = name.encode("ascii", "replace").decode("ascii").replace('"', "_")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(name)}"
