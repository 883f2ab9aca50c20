"""Image variant generation and variant cleanup for stored uploads.

An uploaded image is turned into a fixed set of derived files named
``<base>_<suffix>.<ext>`` inside the upload root, where ``<base>`` is the
staged upload's filename stem. The set depends on the processing profile of
the call site. When Pillow cannot produce the set, the untouched upload is
moved into the upload root instead and its path fills every variant slot.

Cleanup works backwards from any one stored reference: it derives the base
stem and removes every filename any profile (current or historical) could
have produced for it.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable

from PIL import Image, ImageOps

from ..errors import CleanupError, ImageProcessingError
from ..utils.filenames import public_upload_path, stored_filename
from .uploads import ALLOWED_IMAGE_EXTENSIONS

logger = logging.getLogger(__name__)


class Fit(str, Enum):
    """How a variant is fitted into its bounding box."""

    CONTAIN = "contain"  # shrink to fit inside, never upscale
    COVER = "cover"  # fill the box, center crop


@dataclass(frozen=True)
class VariantSpec:
    name: str
    suffix: str
    extension: str
    box: tuple[int, int]
    fit: Fit
    format: str
    quality: int = 85


PROFILES: dict[str, tuple[VariantSpec, ...]] = {
    "optimized": (
        VariantSpec("original", "_opt", ".webp", (1200, 900), Fit.CONTAIN, "WEBP"),
    ),
    "responsive": (
        VariantSpec("original", "_original", ".jpg", (2048, 2048), Fit.CONTAIN, "JPEG", 90),
        VariantSpec("thumbnail", "_thumb", ".webp", (300, 300), Fit.COVER, "WEBP", 80),
        VariantSpec("medium", "_medium", ".webp", (800, 800), Fit.CONTAIN, "WEBP"),
        VariantSpec("large", "_large", ".webp", (1600, 1600), Fit.CONTAIN, "WEBP"),
    ),
    "team": (
        VariantSpec("original", "_team", ".jpg", (400, 400), Fit.COVER, "JPEG"),
    ),
}

# Every suffix/extension pair any processing mode has ever written.
LEGACY_VARIANT_FILES: tuple[tuple[str, str], ...] = (
    ("_opt", ".webp"),
    ("_original", ".jpg"),
    ("_thumb", ".webp"),
    ("_medium", ".webp"),
    ("_large", ".webp"),
    ("_team", ".jpg"),
)

VARIANT_SUFFIXES: tuple[str, ...] = ("_original", "_thumb", "_medium", "_large", "_opt", "_team")


@dataclass
class ProcessedImage:
    """Web paths for one processed upload."""

    paths: dict[str, str]
    files: list[str] = field(default_factory=list)
    fallback: bool = False

    @property
    def original(self) -> str:
        return self.paths["original"]

    @property
    def thumbnail(self) -> str:
        return self.paths["thumbnail"]


def variant_base(filename: str) -> str:
    """Return the base stem shared by all variants of ``filename``."""

    stem = Path(filename).stem
    for suffix in VARIANT_SUFFIXES:
        if stem.endswith(suffix) and len(stem) > len(suffix):
            return stem[: -len(suffix)]
    return stem


def variant_candidates(filename: str) -> list[str]:
    """Return every sibling filename that may belong to the same image."""

    base = variant_base(filename)
    pairs: list[tuple[str, str]] = list(LEGACY_VARIANT_FILES)
    for specs in PROFILES.values():
        pairs.extend((spec.suffix, spec.extension) for spec in specs)

    candidates = [filename]
    candidates.extend(f"{base}{suffix}{extension}" for suffix, extension in pairs)
    candidates.extend(f"{base}{extension}" for extension in sorted(ALLOWED_IMAGE_EXTENSIONS))
    return list(dict.fromkeys(candidates))


def _unlink(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise CleanupError(f"Could not delete {path.name}: {exc}") from exc
    return True


def delete_image_variants(
    upload_dir: Path,
    reference: str | None,
    *,
    recorded: Iterable[str] = (),
    public_prefix: str = "/uploads",
) -> int:
    """Delete all files derived from the image ``reference`` points at.

    ``recorded`` may list variant paths known to have been produced; they are
    removed along with the conventional candidates. Missing files are skipped.
    Never raises; returns the number of files removed.
    """

    filename = stored_filename(reference, public_prefix)
    if not filename:
        return 0

    names = variant_candidates(filename)
    for item in recorded:
        name = stored_filename(item, public_prefix)
        if name and name not in names:
            names.append(name)

    removed = 0
    failures = 0
    for name in names:
        try:
            if _unlink(upload_dir / name):
                removed += 1
                logger.debug("Deleted image file %s", name)
        except CleanupError as exc:
            failures += 1
            logger.warning("%s", exc)

    logger.info(
        "Image cleanup for %s removed %d file(s), %d failure(s)",
        reference,
        removed,
        failures,
    )
    return removed


def _prepare_mode(image: Image.Image, image_format: str) -> Image.Image:
    if image_format == "JPEG":
        if image.mode in ("RGB", "L"):
            return image
        return image.convert("RGB")
    if image.mode in ("RGB", "RGBA"):
        return image
    if image.mode in ("P", "LA", "PA") or "transparency" in image.info:
        return image.convert("RGBA")
    return image.convert("RGB")


def _render(image: Image.Image, spec: VariantSpec) -> Image.Image:
    if spec.fit is Fit.COVER:
        return ImageOps.fit(image, spec.box, Image.Resampling.LANCZOS, centering=(0.5, 0.5))
    rendered = image.copy()
    rendered.thumbnail(spec.box, Image.Resampling.LANCZOS)
    return rendered


class ImageProcessor:
    """Produce and remove image variants inside the upload root."""

    def __init__(
        self,
        upload_dir: Path,
        *,
        default_profile: str = "optimized",
        public_prefix: str = "/uploads",
    ) -> None:
        if default_profile not in PROFILES:
            raise ValueError(f"Unknown image profile: {default_profile}")
        self._upload_dir = upload_dir
        self._default_profile = default_profile
        self._public_prefix = public_prefix

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    async def process(self, source: Path, *, profile: str | None = None) -> ProcessedImage:
        """Generate the variants of ``source`` and delete it afterwards.

        Raises ``ImageProcessingError`` only when the fallback move failed
        too; the staged source is then left in place.
        """

        specs = PROFILES[profile or self._default_profile]
        return await asyncio.to_thread(self._process_sync, source, specs)

    async def process_many(
        self, sources: Iterable[Path], *, profile: str | None = None
    ) -> list[ProcessedImage]:
        """Process several uploads; on failure undo the ones already done."""

        pending = list(sources)
        results: list[ProcessedImage] = []
        try:
            for source in pending:
                results.append(await self.process(source, profile=profile))
        except Exception:
            await self.discard(results)
            for leftover in pending[len(results) + 1 :]:
                leftover.unlink(missing_ok=True)
            raise
        return results

    async def discard(self, results: Iterable[ProcessedImage]) -> None:
        """Remove the files of results that will not be persisted."""

        for result in results:
            await self.cleanup(result.original, recorded=result.files)

    async def cleanup(self, reference: str | None, *, recorded: Iterable[str] = ()) -> int:
        """Best-effort removal of every variant of ``reference``."""

        if not reference:
            return 0
        return await asyncio.to_thread(
            delete_image_variants,
            self._upload_dir,
            reference,
            recorded=list(recorded),
            public_prefix=self._public_prefix,
        )

    async def cleanup_many(self, references: Iterable[str | None]) -> int:
        removed = 0
        for reference in references:
            removed += await self.cleanup(reference)
        return removed

    def _process_sync(self, source: Path, specs: tuple[VariantSpec, ...]) -> ProcessedImage:
        base = source.stem
        written: list[tuple[VariantSpec, Path]] = []
        try:
            self._upload_dir.mkdir(parents=True, exist_ok=True)
            with Image.open(source) as raw:
                raw.load()
                logger.debug(
                    "Processing %s: %dx%d %s", source.name, raw.width, raw.height, raw.format
                )
                image = ImageOps.exif_transpose(raw)
                for spec in specs:
                    target = self._upload_dir / f"{base}{spec.suffix}{spec.extension}"
                    self._write_variant(image, spec, target)
                    written.append((spec, target))
        except Exception as exc:
            logger.warning(
                "Image processing failed for %s, keeping the original upload",
                source.name,
                exc_info=True,
            )
            for _, target in written:
                try:
                    target.unlink(missing_ok=True)
                except OSError:
                    logger.warning("Failed to remove partial variant %s", target.name)
            return self._fallback(source, specs, exc)

        try:
            source.unlink()
        except OSError:
            logger.warning("Failed to remove processed upload %s", source, exc_info=True)

        paths = {
            spec.name: public_upload_path(target.name, self._public_prefix)
            for spec, target in written
        }
        paths.setdefault("thumbnail", paths["original"])
        logger.info("Processed image %s into %d variant(s)", source.name, len(written))
        return ProcessedImage(paths=paths, files=[target.name for _, target in written])

    def _write_variant(self, image: Image.Image, spec: VariantSpec, target: Path) -> None:
        rendered = _prepare_mode(_render(image, spec), spec.format)
        partial = target.with_name(f"{target.name}.part")
        try:
            rendered.save(partial, format=spec.format, quality=spec.quality)
            os.replace(partial, target)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise

    def _fallback(
        self,
        source: Path,
        specs: tuple[VariantSpec, ...],
        error: Exception,
    ) -> ProcessedImage:
        target = self._upload_dir / source.name
        try:
            if source.resolve() != target.resolve():
                shutil.move(str(source), str(target))
        except OSError as move_error:
            logger.error("Fallback for %s failed: %s", source, move_error)
            raise ImageProcessingError(f"Failed to process image {source.name}") from error

        path = public_upload_path(target.name, self._public_prefix)
        paths = {spec.name: path for spec in specs}
        paths["original"] = path
        paths["thumbnail"] = path
        return ProcessedImage(paths=paths, files=[target.name], fallback=True)


__all__ = [
    "Fit",
    "ImageProcessor",
    "LEGACY_VARIANT_FILES",
    "PROFILES",
    "ProcessedImage",
    "VARIANT_SUFFIXES",
    "VariantSpec",
    "delete_image_variants",
    "variant_base",
    "variant_candidates",
]
