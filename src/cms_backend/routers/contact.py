"""Contact form endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from ..repository import Record
from ..schemas.common import DataResponse, ListResponse, MessageResponse
from ..schemas.content import ContactReadUpdate, ContactRequest, ContactSubmissionResource
from ..services.contact import ContactService
from .dependencies import get_contact_service, require_admin

router = APIRouter(prefix="/api/contact", tags=["contact"])


@router.post("/submit", response_model=DataResponse[ContactSubmissionResource], status_code=201)
async def submit_contact(
    body: ContactRequest,
    service: ContactService = Depends(get_contact_service),
) -> dict[str, Any]:
    submission = await service.submit(body)
    return {"data": submission, "message": "Thank you for your message. We will get back to you soon."}


@router.get("/admin", response_model=ListResponse[ContactSubmissionResource])
async def list_submissions(
    is_read: Optional[bool] = Query(None, alias="isRead"),
    page: int = 1,
    limit: int = 50,
    _: Record = Depends(require_admin),
    service: ContactService = Depends(get_contact_service),
) -> dict[str, Any]:
    records, pagination = await service.list(is_read=is_read, page=page, limit=limit)
    return {"data": records, "pagination": pagination}


@router.put("/admin/{submission_id}/read", response_model=DataResponse[ContactSubmissionResource])
async def mark_submission_read(
    submission_id: str,
    body: Optional[ContactReadUpdate] = None,
    _: Record = Depends(require_admin),
    service: ContactService = Depends(get_contact_service),
) -> dict[str, Any]:
    is_read = body.is_read if body is not None else True
    submission = await service.mark_read(submission_id, is_read=is_read)
    return {"data": submission, "message": "Contact submission updated successfully"}


@router.delete("/admin/{submission_id}", response_model=MessageResponse)
async def delete_submission(
    submission_id: str,
    _: Record = Depends(require_admin),
    service: ContactService = Depends(get_contact_service),
) -> dict[str, str]:
    await service.delete(submission_id)
    return {"message": "Contact submission deleted successfully"}
