"""Project category endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..repository import Record
from ..schemas.common import DataResponse, ListResponse, MessageResponse
from ..schemas.content import CategoryRequest, CategoryResource
from ..services.categories import CategoryService
from .dependencies import get_category_service, require_admin

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=ListResponse[CategoryResource])
async def list_categories(
    service: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    return {"data": await service.list()}


@router.post("/admin", response_model=DataResponse[CategoryResource], status_code=201)
async def create_category(
    body: CategoryRequest,
    _: Record = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    category = await service.create(body.name)
    return {"data": category, "message": "Category created successfully"}


@router.put("/admin/{category_id}", response_model=DataResponse[CategoryResource])
async def rename_category(
    category_id: str,
    body: CategoryRequest,
    _: Record = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
) -> dict[str, Any]:
    category = await service.rename(category_id, body.name)
    return {"data": category, "message": "Category updated successfully"}


@router.delete("/admin/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    _: Record = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
) -> dict[str, str]:
    await service.delete(category_id)
    return {"message": "Category deleted successfully"}
