"""Validation and staging of incoming image uploads."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Iterator
from uuid import uuid4

from fastapi import UploadFile

from ..errors import UnsupportedUploadType, UploadTooLarge, ValidationError
from ..utils.filenames import build_storage_name

logger = logging.getLogger(__name__)


ALLOWED_IMAGE_EXTENSIONS: frozenset[str] = frozenset({".jpg", ".jpeg", ".png", ".webp"})

ALLOWED_IMAGE_MIME_TYPES: frozenset[str] = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
    }
)


@dataclass(frozen=True)
class StagedUpload:
    """An accepted upload waiting in the staging directory."""

    original_filename: str
    path: Path
    mime_type: str
    size_bytes: int


class UploadService:
    """Validate uploaded images and write them to the staging directory."""

    def __init__(self, staging_dir: Path, *, max_size_bytes: int) -> None:
        self._staging_dir = staging_dir
        self._max_size_bytes = max_size_bytes

    @property
    def staging_dir(self) -> Path:
        return self._staging_dir

    async def stage(self, upload: UploadFile) -> StagedUpload:
        """Validate an upload and persist it under a unique staged name."""

        filename = upload.filename or ""
        extension = Path(filename).suffix.lower()
        mime_type = (upload.content_type or "").lower()
        if extension not in ALLOWED_IMAGE_EXTENSIONS or mime_type not in ALLOWED_IMAGE_MIME_TYPES:
            await upload.close()
            raise UnsupportedUploadType(
                "Only image files are allowed (jpeg, jpg, png, webp)"
            )

        data = await self._read_upload(upload)
        if not data:
            raise ValidationError("Uploaded file was empty")

        self._staging_dir.mkdir(parents=True, exist_ok=True)
        target = self._staging_dir / build_storage_name(uuid4().hex, extension, filename)
        await asyncio.to_thread(target.write_bytes, data)

        logger.info("Staged upload %s (%s, %d bytes)", target.name, mime_type, len(data))
        return StagedUpload(
            original_filename=filename,
            path=target,
            mime_type=mime_type,
            size_bytes=len(data),
        )

    async def stage_many(self, uploads: list[UploadFile]) -> list[StagedUpload]:
        """Stage every upload, discarding the already staged ones on failure."""

        staged: list[StagedUpload] = []
        try:
            for upload in uploads:
                staged.append(await self.stage(upload))
        except Exception:
            self.discard(staged)
            raise
        return staged

    def discard(self, staged: Iterable[StagedUpload]) -> None:
        discard_staged(staged)

    async def _read_upload(self, upload: UploadFile) -> bytes:
        chunk_size = 1024 * 1024  # 1 MiB
        size = 0
        chunks: list[bytes] = []
        try:
            while True:
                chunk = await upload.read(chunk_size)
                if not chunk:
                    break
                size += len(chunk)
                if size > self._max_size_bytes:
                    raise UploadTooLarge(
                        f"Upload exceeded {self._max_size_bytes} bytes limit"
                    )
                chunks.append(chunk)
        finally:
            await upload.close()
        return b"".join(chunks)


def discard_staged(staged: Iterable[StagedUpload]) -> None:
    for item in staged:
        try:
            item.path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to discard staged upload %s", item.path, exc_info=True)


@contextmanager
def discard_on_error(staged: Iterable[StagedUpload]) -> Iterator[None]:
    """Remove staged uploads when the guarded block raises."""

    items = list(staged)
    try:
        yield
    except BaseException:
        discard_staged(items)
        raise


def cleanup_stale_uploads(
    staging_dir: Path,
    *,
    max_age_hours: int,
    now: datetime | None = None,
) -> int:
    """Delete staged uploads older than ``max_age_hours`` (0 disables)."""

    if max_age_hours <= 0 or not staging_dir.exists():
        return 0

    reference = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    cutoff = reference - timedelta(hours=max_age_hours)
    removed = 0
    for path in staging_dir.iterdir():
        if not path.is_file():
            continue
        try:
            mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            if mtime < cutoff:
                path.unlink()
                removed += 1
        except OSError:
            logger.warning("Failed to remove stale upload %s", path, exc_info=True)

    if removed:
        logger.info("Cleaned up %d stale staged upload(s)", removed)
    return removed


__all__ = [
    "ALLOWED_IMAGE_EXTENSIONS",
    "ALLOWED_IMAGE_MIME_TYPES",
    "StagedUpload",
    "UploadService",
    "cleanup_stale_uploads",
    "discard_on_error",
    "discard_staged",
]
