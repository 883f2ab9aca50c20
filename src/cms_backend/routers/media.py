"""Media library endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from ..repository import Record
from ..schemas.common import ListResponse, MessageResponse
from ..schemas.content import MediaResource
from ..services.media import MediaService
from ..services.uploads import UploadService
from .dependencies import get_media_service, get_upload_service, present_uploads, require_admin

router = APIRouter(prefix="/api/media", tags=["media"])


class MediaUploadResponse(ListResponse[MediaResource]):
    message: Optional[str] = None


@router.post("/upload", response_model=MediaUploadResponse, status_code=201)
async def upload_media(
    files: Optional[list[UploadFile]] = File(None),
    _: Record = Depends(require_admin),
    service: MediaService = Depends(get_media_service),
    uploads: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    staged = await uploads.stage_many(present_uploads(files))
    records = await service.upload(staged)
    return {"data": records, "message": f"{len(records)} file(s) uploaded successfully"}


@router.get("", response_model=ListResponse[MediaResource])
async def list_media(
    page: int = 1,
    limit: int = 50,
    _: Record = Depends(require_admin),
    service: MediaService = Depends(get_media_service),
) -> dict[str, Any]:
    records, pagination = await service.list(page=page, limit=limit)
    return {"data": records, "pagination": pagination}


@router.delete("/{media_id}", response_model=MessageResponse)
async def delete_media(
    media_id: str,
    _: Record = Depends(require_admin),
    service: MediaService = Depends(get_media_service),
) -> dict[str, str]:
    await service.delete(media_id)
    return {"message": "Media deleted successfully"}
