"""The single site settings row, including logo and hero images."""

from __future__ import annotations

import copy
import logging
from typing import Any

from ..errors import NotFoundError, ValidationError
from ..repository import ContentRepository, Record
from ..schemas.content import SiteSettingsUpdate
from ..utils.forms import is_valid_email
from .images import ImageProcessor
from .uploads import StagedUpload, discard_on_error

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: dict[str, Any] = {
    "company_name": "Ace Consult",
    "tagline": "Building Dreams, Creating Futures",
    "description": "Professional architecture, construction and consultancy services",
    "contact_email": "info@example.com",
    "phone": "+1 234 567 8900",
    "address": "123 Business Street, City, Country",
    "social_links": {
        "facebook": "",
        "twitter": "",
        "instagram": "",
        "linkedin": "",
        "youtube": "",
    },
    "hero_images": [],
    "hero_title": "Transforming Spaces, Building Dreams",
    "hero_subtitle": "Professional architecture, construction and consultancy services",
    "seo_default_title": "Ace Consult - Architecture, Construction & Consultancy",
    "seo_default_desc": (
        "Leading architecture, construction and consultancy firm delivering "
        "innovative and sustainable design solutions."
    ),
}

MAX_HERO_IMAGES = 10


def _default_values() -> dict[str, Any]:
    return copy.deepcopy(DEFAULT_SETTINGS)


class SiteSettingsService:
    def __init__(
        self,
        repository: ContentRepository,
        images: ImageProcessor,
        *,
        profile: str | None = None,
    ) -> None:
        self._repository = repository
        self._images = images
        self._profile = profile

    async def get(self) -> Record:
        settings = await self._repository.first("site_settings")
        if settings is None:
            raise NotFoundError("Settings not found")
        return settings

    async def ensure_defaults(self) -> tuple[Record, bool]:
        """Create the default settings row unless one exists."""

        existing = await self._repository.first("site_settings")
        if existing is not None:
            return existing, False
        created = await self._repository.create("site_settings", _default_values())
        logger.info("Created default site settings")
        return created, True

    async def update(self, payload: SiteSettingsUpdate) -> Record:
        values = payload.model_dump(exclude_unset=True)
        if values.get("contact_email") is not None and not is_valid_email(values["contact_email"]):
            raise ValidationError("Invalid email format")
        for key in ("company_name", "contact_email"):
            if key in values and values[key] is None:
                del values[key]

        existing = await self._repository.first("site_settings")
        if existing is None:
            return await self._repository.create("site_settings", {**_default_values(), **values})
        return await self._repository.update("site_settings", existing["id"], values)

    async def set_logo(self, upload: StagedUpload) -> Record:
        with discard_on_error([upload]):
            existing = await self._ensure_row()
        processed = await self._images.process(upload.path, profile=self._profile)
        try:
            settings = await self._repository.update(
                "site_settings", existing["id"], {"logo": processed.original}
            )
        except Exception:
            await self._images.discard([processed])
            raise
        await self._images.cleanup(existing.get("logo"))
        return settings

    async def remove_logo(self) -> Record:
        existing = await self.get()
        settings = await self._repository.update("site_settings", existing["id"], {"logo": None})
        await self._images.cleanup(existing.get("logo"))
        return settings

    async def add_hero_images(self, uploads: list[StagedUpload]) -> Record:
        with discard_on_error(uploads):
            if not uploads:
                raise ValidationError("No files uploaded")
            existing = await self._ensure_row()
            current: list[str] = existing.get("hero_images") or []
            if len(current) + len(uploads) > MAX_HERO_IMAGES:
                raise ValidationError(f"At most {MAX_HERO_IMAGES} hero images are allowed")

        processed = await self._images.process_many(
            [upload.path for upload in uploads], profile=self._profile
        )
        try:
            return await self._repository.update(
                "site_settings",
                existing["id"],
                {"hero_images": current + [result.original for result in processed]},
            )
        except Exception:
            await self._images.discard(processed)
            raise

    async def remove_hero_image(self, image_url: str) -> Record:
        existing = await self.get()
        current: list[str] = existing.get("hero_images") or []
        if image_url not in current:
            raise NotFoundError("Hero image not found")
        settings = await self._repository.update(
            "site_settings",
            existing["id"],
            {"hero_images": [image for image in current if image != image_url]},
        )
        await self._images.cleanup(image_url)
        return settings

    async def _ensure_row(self) -> Record:
        existing = await self._repository.first("site_settings")
        if existing is not None:
            return existing
        return await self._repository.create("site_settings", _default_values())


__all__ = ["DEFAULT_SETTINGS", "MAX_HERO_IMAGES", "SiteSettingsService"]
