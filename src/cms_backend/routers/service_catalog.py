"""Offered-service endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..repository import Record
from ..schemas.common import DataResponse, ListResponse, MessageResponse
from ..schemas.content import ServiceCreateRequest, ServiceResource, ServiceUpdateRequest
from ..services.service_catalog import ServiceCatalog
from .dependencies import get_service_catalog, require_admin

router = APIRouter(prefix="/api/services", tags=["services"])


@router.get("", response_model=ListResponse[ServiceResource])
async def list_services(catalog: ServiceCatalog = Depends(get_service_catalog)) -> dict[str, Any]:
    return {"data": await catalog.list(active_only=True)}


@router.get("/admin/all", response_model=ListResponse[ServiceResource])
async def list_all_services(
    _: Record = Depends(require_admin),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> dict[str, Any]:
    return {"data": await catalog.list(active_only=False)}


@router.get("/admin/{service_id}", response_model=DataResponse[ServiceResource])
async def get_service(
    service_id: str,
    _: Record = Depends(require_admin),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> dict[str, Any]:
    return {"data": await catalog.get(service_id), "message": "Service retrieved successfully"}


@router.post("/admin", response_model=DataResponse[ServiceResource], status_code=201)
async def create_service(
    body: ServiceCreateRequest,
    _: Record = Depends(require_admin),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> dict[str, Any]:
    return {"data": await catalog.create(body), "message": "Service created successfully"}


@router.put("/admin/{service_id}", response_model=DataResponse[ServiceResource])
async def update_service(
    service_id: str,
    body: ServiceUpdateRequest,
    _: Record = Depends(require_admin),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> dict[str, Any]:
    service = await catalog.update(service_id, body)
    return {"data": service, "message": "Service updated successfully"}


@router.delete("/admin/{service_id}", response_model=MessageResponse)
async def delete_service(
    service_id: str,
    _: Record = Depends(require_admin),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> dict[str, str]:
    await catalog.delete(service_id)
    return {"message": "Service deleted successfully"}
