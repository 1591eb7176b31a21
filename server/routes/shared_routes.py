"""Routes for files shared through the Public channels."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from server import service_locator
from server.auth import get_current_user
from server.routes.file_routes import attachment_response
from server.schemas.common import ErrorResponse
from server.schemas.files import SharedFileResponse, UploadResponse

router = APIRouter(tags=["Shared"], responses={401: {"model": ErrorResponse}})


@router.get("/shared-files", response_model=List[SharedFileResponse])
async def list_shared_files(
    subject: Optional[str] = Query(None),
    current_user: str = Depends(get_current_user),
):
    files = await service_locator.get_shared_file_service().list_shared_files(subject)
    return [SharedFileResponse(**vars(f)) for f in files]


@router.get("/shared-files/{subject}/{message_id}/download")
async def download_shared_file(
    subject: str,
    message_id: int,
    current_user: str = Depends(get_current_user),
):
    """
    Raises:
        - 400: Unknown subject
        - 404: Message missing or not a document
    """
    downloaded = await service_locator.get_shared_file_service().download_shared_file(subject, message_id)
    return attachment_response(downloaded)


@router.post("/shared-upload", response_model=UploadResponse)
async def upload_shared_file(
    file: Optional[UploadFile] = File(None),
    staged_url: Optional[str] = Form(None),
    file_name: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    current_user: str = Depends(get_current_user),
):
    data = await file.read() if file is not None else None
    name = file_name or (file.filename if file is not None else None)

    result = await service_locator.get_shared_file_service().upload_shared_file(
        user_id=current_user,
        subject=subject,
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
