"""Media library: standalone uploaded images."""

from __future__ import annotations

import logging
from typing import Sequence

from ..errors import ContentError, NotFoundError, ValidationError
from ..repository import ContentRepository, Record
from ..schemas.common import Pagination, page_window
from .images import ImageProcessor
from .uploads import StagedUpload

logger = logging.getLogger(__name__)

MAX_MEDIA_FILES = 20


class MediaService:
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

    async def upload(self, uploads: Sequence[StagedUpload]) -> list[Record]:
        """Process and record every upload, skipping the ones that fail."""

        if not uploads:
            raise ValidationError("No files uploaded")
        if len(uploads) > MAX_MEDIA_FILES:
            raise ValidationError(f"At most {MAX_MEDIA_FILES} files can be uploaded at once")

        records: list[Record] = []
        for upload in uploads:
            try:
                processed = await self._images.process(upload.path, profile=self._profile)
            except ContentError:
                logger.error("Skipping media upload %s", upload.original_filename, exc_info=True)
                continue
            try:
                record = await self._repository.create(
                    "media",
                    {
                        "filename": upload.original_filename,
                        "filepath": processed.original,
                        "mimetype": upload.mime_type,
                        "size": upload.size_bytes,
                        "variants": sorted(set(processed.paths.values())),
                    },
                )
            except ContentError:
                logger.error(
                    "Failed to record media upload %s", upload.original_filename, exc_info=True
                )
                await self._images.discard([processed])
                continue
            records.append(record)
        logger.info("Stored %d of %d media upload(s)", len(records), len(uploads))
        return records

    async def list(self, *, page: int = 1, limit: int = 50) -> tuple[list[Record], Pagination]:
        page, limit, offset = page_window(page, limit, max_limit=100)
        total = await self._repository.count("media")
        records = await self._repository.list_records("media", limit=limit, offset=offset)
        return records, Pagination.build(total=total, page=page, limit=limit)

    async def delete(self, media_id: str) -> None:
        media = await self._repository.get("media", media_id)
        if media is None:
            raise NotFoundError("Media not found")
        await self._repository.delete("media", media_id)
        await self._images.cleanup(media["filepath"], recorded=media.get("variants") or [])
        logger.info("Deleted media %s", media_id)


__all__ = ["MAX_MEDIA_FILES", "MediaService"]
