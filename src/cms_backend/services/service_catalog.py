"""Offered services (text only)."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import NotFoundError
from ..repository import ContentRepository, Record
from ..schemas.content import ServiceCreateRequest, ServiceUpdateRequest
from ..utils.forms import parse_string_list, require_text

logger = logging.getLogger(__name__)


class ServiceCatalog:
    def __init__(self, repository: ContentRepository) -> None:
        self._repository = repository

    async def list(self, *, active_only: bool) -> list[Record]:
        return await self._repository.list_records(
            "services",
            where="is_active = 1" if active_only else "",
            order_by="sort_order ASC, created_at ASC",
        )

    async def get(self, service_id: str) -> Record:
        service = await self._repository.get("services", service_id)
        if service is None:
            raise NotFoundError("Service not found")
        return service

    async def create(self, payload: ServiceCreateRequest) -> Record:
        values = {
            "title": require_text(payload.title, "Title"),
            "description": require_text(payload.description, "Description"),
            "features": parse_string_list(payload.features, "features"),
            "is_active": payload.is_active,
            "sort_order": payload.sort_order,
        }
        service = await self._repository.create("services", values)
        logger.info("Created service %s", service["id"])
        return service

    async def update(self, service_id: str, payload: ServiceUpdateRequest) -> Record:
        await self.get(service_id)
        values: dict[str, Any] = {}
        if payload.title is not None:
            values["title"] = require_text(payload.title, "Title")
        if payload.description is not None:
            values["description"] = require_text(payload.description, "Description")
        if payload.features is not None:
            values["features"] = parse_string_list(payload.features, "features")
        if payload.is_active is not None:
            values["is_active"] = payload.is_active
        if payload.sort_order is not None:
            values["sort_order"] = payload.sort_order
        return await self._repository.update("services", service_id, values)

    async def delete(self, service_id: str) -> None:
        if not await self._repository.delete("services", service_id):
            raise NotFoundError("Service not found")
        logger.info("Deleted service %s", service_id)


__all__ = ["ServiceCatalog"]
