"""File operation API routes: owned files, uploads and favorites."""

import re
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from server import service_locator
from server.auth import get_current_user
from server.schemas.common import ErrorResponse
from server.schemas.files import FavoriteResponse, FileSummaryResponse, UploadResponse

router = APIRouter(tags=["Files"], responses={401: {"model": ErrorResponse}})


def content_disposition(file_name: str) -> str:
    """
    Attachment header safe for any file name: a plain ASCII ``filename``
    for old clients plus the UTF-8 ``filename*`` form (RFC 5987).
    """
    fallback = re.sub(r'[^\x20-\x7e]|["\\]', "_", file_name) or "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name, safe='')}"


def attachment_response(downloaded) -> Response:
    return Response(
        content=downloaded.data,
        media_type=downloaded.mime_type,
        headers={
            "Content-Disposition": content_disposition(downloaded.name),
            "Cache-Control": "no-cache",
        },
    )


@router.get("/files", response_model=List[FileSummaryResponse])
async def list_files(
    subject: Optional[str] = Query(None),
    type: Optional[str] = Query(None, description="Category, e.g. Theory or Practical"),
    current_user: str = Depends(get_current_user),
):
    """
    List the caller's uploads in one (subject, type) channel.

    Raises:
        - 400: Unknown subject or type
        - 503: Blob store unavailable
    """
    files = await service_locator.get_file_service().list_files(current_user, subject, type)
    return [FileSummaryResponse(**vars(f)) for f in files]


@router.get("/files/{file_id}/download")
async def download_file(file_id: str, current_user: str = Depends(get_current_user)):
    """
    Download an owned file by its "<subject>-<category>-<message id>" id.

    Raises:
        - 400: Malformed file id
        - 404: File not found or not owned by the caller
        - 503: Blob store unavailable
    """
    downloaded = await service_locator.get_file_service().download_file(current_user, file_id)
    return attachment_response(downloaded)


@router.post("/files/{file_id}/favorite", response_model=FavoriteResponse)
async def toggle_favorite(file_id: str, current_user: str = Depends(get_current_user)):
    is_favorite = service_locator.get_file_service().toggle_favorite(current_user, file_id)
    return FavoriteResponse(is_favorite=is_favorite)


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    staged_url: Optional[str] = Form(None),
    file_name: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    current_user: str = Depends(get_current_user),
):
    """
    Upload a file into a (subject, type) channel.

    The bytes come either from the multipart `file` field or from a
    `staged_url` returned by the staging service.

    Raises:
        - 400: Missing fields, unknown subject/type, empty or oversized file
        - 503: Blob store or staging service unavailable
    """
    data = await file.read() if file is not None else None
    name = file_name or (file.filename if file is not None else None)

    result = await service_locator.get_file_service().upload_file(
        owner_id=current_user,
        subject=subject,
        category=type,
        file_name=name,
        data=data,
        staged_url=staged_url,
    )
    return UploadResponse(
        success=True,
        message_id=result.message_id,
        file_name=result.file_name,
        file_url=result.file_url,
    )
