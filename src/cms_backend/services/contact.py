"""Contact form submissions."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..errors import NotFoundError, ValidationError
from ..repository import ContentRepository, Record
from ..schemas.common import Pagination, page_window
from ..schemas.content import ContactRequest
from ..utils.forms import is_valid_email, optional_text

logger = logging.getLogger(__name__)


class ContactService:
    def __init__(self, repository: ContentRepository) -> None:
        self._repository = repository

    async def submit(self, payload: ContactRequest) -> Record:
        name = optional_text(payload.name)
        email = optional_text(payload.email)
        message = optional_text(payload.message)
        if not name or not email or not message:
            raise ValidationError("Name, email, and message are required")
        if not is_valid_email(email):
            raise ValidationError("Invalid email format")

        submission = await self._repository.create(
            "contact_submissions",
            {
                "name": name,
                "email": email,
                "phone": optional_text(payload.phone),
                "company": optional_text(payload.company),
                "project_type": optional_text(payload.project_type),
                "message": message,
                "is_read": False,
            },
        )
        logger.info("Received contact submission %s", submission["id"])
        return submission

    async def list(
        self, *, is_read: Optional[bool] = None, page: int = 1, limit: int = 50
    ) -> tuple[list[Record], Pagination]:
        where = ""
        params: list[Any] = []
        if is_read is not None:
            where = "is_read = ?"
            params.append(1 if is_read else 0)
        page, limit, offset = page_window(page, limit, max_limit=100)
        total = await self._repository.count("contact_submissions", where, params)
        records = await self._repository.list_records(
            "contact_submissions", where=where, params=params, limit=limit, offset=offset
        )
        return records, Pagination.build(total=total, page=page, limit=limit)

    async def mark_read(self, submission_id: str, *, is_read: bool = True) -> Record:
        if await self._repository.get("contact_submissions", submission_id) is None:
            raise NotFoundError("Contact submission not found")
        return await self._repository.update(
            "contact_submissions", submission_id, {"is_read": is_read}
        )

    async def delete(self, submission_id: str) -> None:
        if not await self._repository.delete("contact_submissions", submission_id):
            raise NotFoundError("Contact submission not found")


__all__ = ["ContactService"]
