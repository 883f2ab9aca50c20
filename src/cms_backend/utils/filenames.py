"""Filename normalization utilities for upload storage."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Optional

from .slugs import slugify


def slugify_filename(name: str | None, *, max_length: int = 60) -> str:
    """Return a filesystem-friendly slug derived from the original filename.

    Parameters
    ----------
    name:
        Original filename (may be None or empty).
    max_length:
        Maximum length of the resulting slug (excluding extension). Must be positive.

    Returns
    -------
    str
        Lowercase slug comprised of ASCII letters, numbers, and hyphens. Empty when no
        reasonable slug can be produced.
    """

    if not name:
        return ""

    slug = slugify(Path(name).stem)
    if max_length > 0 and len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug


def build_storage_name(
    upload_id: str,
    extension: str,
    original_filename: Optional[str],
) -> str:
    """Construct the stored filename for an upload.

    The name starts with the unique ``upload_id`` so two uploads of the same
    file never collide. When a slug can be derived from the original file
    name, it is appended after a ``__`` separator for readability.
    """

    ext = (extension or "").lower()
    slug = slugify_filename(original_filename)
    if slug:
        return f"{upload_id}__{slug}{ext}"
    return f"{upload_id}{ext}"


def public_upload_path(filename: str, prefix: str = "/uploads") -> str:
    """Return the web path under which a stored upload is served."""

    return f"{prefix.rstrip('/')}/{filename}"


def stored_filename(reference: str | None, prefix: str = "/uploads") -> str:
    """Return the bare filename a stored reference points at.

    Accepts ``/uploads/<name>`` web paths as well as plain filenames. Any
    directory component is dropped so the result always names a file
    directly inside the upload root. Returns an empty string when nothing
    usable remains.
    """

    if not reference:
        return ""
    value = reference.strip()
    marker = prefix.rstrip("/") + "/"
    if value.startswith(marker):
        value = value[len(marker):]
    name = PurePosixPath(value.replace("\\", "/")).name
    if name in {"", ".", ".."}:
        return ""
    return name


__all__ = [
    "build_storage_name",
    "public_upload_path",
    "slugify_filename",
    "stored_filename",
]
