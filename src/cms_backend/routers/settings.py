"""Site settings endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from ..errors import ValidationError
from ..repository import Record
from ..schemas.common import DataResponse
from ..schemas.content import ImageReference, SiteSettingsResource, SiteSettingsUpdate
from ..services.site_settings import SiteSettingsService
from ..services.uploads import UploadService
from .dependencies import (
    get_site_settings_service,
    get_upload_service,
    present_uploads,
    require_admin,
    stage_single,
)

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=DataResponse[SiteSettingsResource])
async def get_site_settings(
    service: SiteSettingsService = Depends(get_site_settings_service),
) -> dict[str, Any]:
    return {"data": await service.get(), "message": "Settings retrieved successfully"}


@router.put("/admin", response_model=DataResponse[SiteSettingsResource])
async def update_site_settings(
    body: SiteSettingsUpdate,
    _: Record = Depends(require_admin),
    service: SiteSettingsService = Depends(get_site_settings_service),
) -> dict[str, Any]:
    return {"data": await service.update(body), "message": "Settings updated successfully"}


@router.post("/admin/logo", response_model=DataResponse[SiteSettingsResource])
async def upload_logo(
    logo: Optional[UploadFile] = File(None),
    _: Record = Depends(require_admin),
    service: SiteSettingsService = Depends(get_site_settings_service),
    uploads: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    staged = await stage_single(uploads, logo)
    if staged is None:
        raise ValidationError("No logo uploaded")
    return {"data": await service.set_logo(staged), "message": "Logo updated successfully"}


@router.delete("/admin/logo", response_model=DataResponse[SiteSettingsResource])
async def remove_logo(
    _: Record = Depends(require_admin),
    service: SiteSettingsService = Depends(get_site_settings_service),
) -> dict[str, Any]:
    return {"data": await service.remove_logo(), "message": "Logo removed successfully"}


@router.post("/admin/hero-images", response_model=DataResponse[SiteSettingsResource])
async def add_hero_images(
    images: Optional[list[UploadFile]] = File(None),
    _: Record = Depends(require_admin),
    service: SiteSettingsService = Depends(get_site_settings_service),
    uploads: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    staged = await uploads.stage_many(present_uploads(images))
    settings = await service.add_hero_images(staged)
    return {"data": settings, "message": "Hero images added successfully"}


@router.delete("/admin/hero-images", response_model=DataResponse[SiteSettingsResource])
async def remove_hero_image(
    body: ImageReference,
    _: Record = Depends(require_admin),
    service: SiteSettingsService = Depends(get_site_settings_service),
) -> dict[str, Any]:
    settings = await service.remove_hero_image(body.image_url)
    return {"data": settings, "message": "Hero image removed successfully"}
