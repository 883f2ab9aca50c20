"""Utility helpers for backend services."""

from .filenames import (
    build_storage_name,
    public_upload_path,
    slugify_filename,
    stored_filename,
)
from .slugs import resolve_unique_slug, slugify

__all__ = [
    "build_storage_name",
    "public_upload_path",
    "resolve_unique_slug",
    "slugify",
    "slugify_filename",
    "stored_filename",
]
