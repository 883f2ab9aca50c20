"""Team members and their portrait photos."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import NotFoundError, ValidationError
from ..repository import ContentRepository, Record
from ..utils.forms import is_valid_email, optional_text, parse_bool, require_text
from .images import ImageProcessor, ProcessedImage
from .uploads import StagedUpload, discard_on_error

logger = logging.getLogger(__name__)

TEAM_PHOTO_PROFILE = "team"


@dataclass
class TeamMemberForm:
    name: Optional[str] = None
    title: Optional[str] = None
    department: Optional[str] = None
    bio: Optional[str] = None
    email: Optional[str] = None
    linkedin: Optional[str] = None
    order: Optional[str] = None
    remove_photo: Optional[str] = None


def _parse_order(raw: Optional[str]) -> int:
    text = optional_text(raw)
    if text is None:
        return 0
    try:
        return int(text)
    except ValueError as exc:
        raise ValidationError("order must be an integer") from exc


class TeamService:
    def __init__(self, repository: ContentRepository, images: ImageProcessor) -> None:
        self._repository = repository
        self._images = images

    async def list(self) -> list[Record]:
        return await self._repository.list_records(
            "team_members", order_by="sort_order ASC, created_at ASC"
        )

    async def get(self, member_id: str) -> Record:
        member = await self._repository.get("team_members", member_id)
        if member is None:
            raise NotFoundError("Team member not found")
        return member

    async def create(self, form: TeamMemberForm, photo: StagedUpload | None = None) -> Record:
        staged = [photo] if photo else []
        with discard_on_error(staged):
            values = self._parse_form(form, partial=False)

        processed = await self._process(photo)
        values["photo"] = processed.original if processed else None
        try:
            member = await self._repository.create("team_members", values)
        except Exception:
            await self._discard(processed)
            raise
        logger.info("Created team member %s", member["id"])
        return member

    async def update(
        self,
        member_id: str,
        form: TeamMemberForm,
        photo: StagedUpload | None = None,
    ) -> Record:
        staged = [photo] if photo else []
        with discard_on_error(staged):
            existing = await self.get(member_id)
            values = self._parse_form(form, partial=True)
            remove_photo = parse_bool(form.remove_photo)

        old_photo = existing.get("photo")
        processed = await self._process(photo)
        if processed is not None:
            values["photo"] = processed.original
        elif remove_photo:
            values["photo"] = None

        try:
            member = await self._repository.update("team_members", member_id, values)
        except Exception:
            await self._discard(processed)
            raise

        if old_photo and "photo" in values and values["photo"] != old_photo:
            await self._images.cleanup(old_photo)
        return member

    async def delete(self, member_id: str) -> None:
        member = await self.get(member_id)
        await self._repository.delete("team_members", member_id)
        await self._images.cleanup(member.get("photo"))
        logger.info("Deleted team member %s", member_id)

    async def _process(self, photo: StagedUpload | None) -> ProcessedImage | None:
        if photo is None:
            return None
        return await self._images.process(photo.path, profile=TEAM_PHOTO_PROFILE)

    async def _discard(self, processed: ProcessedImage | None) -> None:
        if processed is not None:
            await self._images.discard([processed])

    @staticmethod
    def _parse_form(form: TeamMemberForm, *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name, label in (("name", "Name"), ("title", "Title")):
            raw = getattr(form, name)
            if partial and raw is None:
                continue
            values[name] = require_text(raw, label)
        for name in ("department", "bio", "linkedin"):
            raw = getattr(form, name)
            if partial and raw is None:
                continue
            values[name] = optional_text(raw)
        if not partial or form.email is not None:
            email = optional_text(form.email)
            if email is not None and not is_valid_email(email):
                raise ValidationError("Invalid email format")
            values["email"] = email
        if not partial or form.order is not None:
            values["sort_order"] = _parse_order(form.order)
        return values


__all__ = ["TEAM_PHOTO_PROFILE", "TeamMemberForm", "TeamService"]
