from fastapi import APIRouter, Depends, File as FileParam, Form, Request, Response, UploadFile, status
from typing import Annotated, Optional
from datetime import datetime, timezone
import logging

from coursefiles.api.deps import get_current_professor, get_file_service
from coursefiles.core.config import Settings
from coursefiles.core.identity import Identity
from coursefiles.schemas.file import (
    DownloadUrlResponse,
    FileDetailResponse,
    HealthResponse,
    MessageResponse,
)
from coursefiles.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    settings: Settings = request.app.state.settings
    return HealthResponse(
        status="healthy",
        service=settings.PROJECT_NAME,
        timestamp=datetime.now(timezone.utc),
    )


@router.post(
    "/upload",
    response_model=FileDetailResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    request: Request,
    response: Response,
    module_id: Annotated[int, Form(alias="moduleId")],
    file: Annotated[UploadFile, FileParam()],
    current_user: Annotated[Identity, Depends(get_current_professor)],
    file_service: Annotated[FileService, Depends(get_file_service)],
    custom_name: Annotated[Optional[str], Form(alias="customName", max_length=255)] = None,
):
    """Upload a file (up to 15MB) to a module."""
    size = file.size
    if size is None:
        # Spooled to disk by the multipart parser; measure it
        file.file.seek(0, 2)
        size = file.file.tell()
        file.file.seek(0)
    
    created = await file_service.upload_file(
        module_id=module_id,
        file_stream=file.file,
        original_filename=file.filename or "",
        content_type=file.content_type or "application/octet-stream",
        file_size=size,
        custom_name=custom_name,
        current_user=current_user,
    )
    
    logger.info(f"Uploaded file {created.file_name} for module {module_id}")
    response.headers["Location"] = str(request.url_for("get_file", file_id=created.id))
    return FileDetailResponse.from_file(created)


@router.get("/{file_id}", response_model=FileDetailResponse)
async def get_file(
    file_id: int,
    current_user: Annotated[Identity, Depends(get_current_professor)],
    file_service: Annotated[FileService, Depends(get_file_service)],
):
    file = await file_service.get_file(file_id, current_user)
    return FileDetailResponse.from_file(file)


@router.get("/{file_id}/download", response_model=DownloadUrlResponse)
async def get_download_url(
    file_id: int,
    current_user: Annotated[Identity, Depends(get_current_professor)],
    file_service: Annotated[FileService, Depends(get_file_service)],
):
    download_url = await file_service.get_download_url(file_id, current_user)
    logger.info(f"Generated download URL for file {file_id}")
    return DownloadUrlResponse(download_url=download_url)


@router.delete("/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: int,
    current_user: Annotated[Identity, Depends(get_current_professor)],
    file_service: Annotated[FileService, Depends(get_file_service)],
):
    await file_service.delete_file(file_id, current_user)
    logger.info(f"Deleted file with ID {file_id}")
    return MessageResponse(message="File deleted successfully")
