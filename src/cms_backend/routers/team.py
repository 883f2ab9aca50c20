"""Team member endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..repository import Record
from ..schemas.common import DataResponse, ListResponse, MessageResponse
from ..schemas.content import TeamMemberResource
from ..services.team import TeamMemberForm, TeamService
from ..services.uploads import UploadService
from .dependencies import get_team_service, get_upload_service, require_admin, stage_single

router = APIRouter(prefix="/api/team", tags=["team"])


def team_member_form(
    name: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    department: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    linkedin: Optional[str] = Form(None),
    order: Optional[str] = Form(None),
    remove_photo: Optional[str] = Form(None, alias="removePhoto"),
) -> TeamMemberForm:
    return TeamMemberForm(
        name=name,
        title=title,
        department=department,
        bio=bio,
        email=email,
        linkedin=linkedin,
        order=order,
        remove_photo=remove_photo,
    )


@router.get("", response_model=ListResponse[TeamMemberResource])
async def list_team_members(service: TeamService = Depends(get_team_service)) -> dict[str, Any]:
    return {"data": await service.list()}


@router.get("/{member_id}", response_model=DataResponse[TeamMemberResource])
async def get_team_member(
    member_id: str,
    service: TeamService = Depends(get_team_service),
) -> dict[str, Any]:
    return {"data": await service.get(member_id), "message": "Team member retrieved successfully"}


@router.post("/admin", response_model=DataResponse[TeamMemberResource], status_code=201)
async def create_team_member(
    form: TeamMemberForm = Depends(team_member_form),
    image: Optional[UploadFile] = File(None),
    _: Record = Depends(require_admin),
    service: TeamService = Depends(get_team_service),
    uploads: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    staged = await stage_single(uploads, image)
    member = await service.create(form, staged)
    return {"data": member, "message": "Team member created successfully"}


@router.put("/admin/{member_id}", response_model=DataResponse[TeamMemberResource])
async def update_team_member(
    member_id: str,
    form: TeamMemberForm = Depends(team_member_form),
    image: Optional[UploadFile] = File(None),
    _: Record = Depends(require_admin),
    service: TeamService = Depends(get_team_service),
    uploads: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    staged = await stage_single(uploads, image)
    member = await service.update(member_id, form, staged)
    return {"data": member, "message": "Team member updated successfully"}


@router.delete("/admin/{member_id}", response_model=MessageResponse)
async def delete_team_member(
    member_id: str,
    _: Record = Depends(require_admin),
    service: TeamService = Depends(get_team_service),
) -> dict[str, str]:
    await service.delete(member_id)
    return {"message": "Team member deleted successfully"}
