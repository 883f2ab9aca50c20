"""Slug derivation and best-effort uniqueness resolution."""

from __future__ import annotations

import logging
import re
from typing import Any, Awaitable, Callable, Mapping, Optional

from ..errors import SlugAllocationExhausted, ValidationError

logger = logging.getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")

DEFAULT_MAX_ATTEMPTS = 100

SlugLookup = Callable[[str], Awaitable[Optional[Mapping[str, Any]]]]


def slugify(text: str | None) -> str:
    """Return a URL-safe slug for ``text``.

    The text is lower-cased, every run of characters outside ``[a-z0-9]``
    becomes a single hyphen, and hyphens at either end are trimmed. Input
    without any ASCII letter or digit yields an empty string.
    """

    if not text:
        return ""
    return _NON_SLUG.sub("-", text.lower()).strip("-")


async def resolve_unique_slug(
    base: str,
    lookup: SlugLookup,
    *,
    exclude_id: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Return the first free slug among ``base``, ``base-1``, ``base-2``, ...

    ``lookup`` is called once per candidate and returns the record currently
    holding that slug, if any. A record whose ``id`` equals ``exclude_id`` is
    the one being renamed and does not count as a collision.

    The check is not atomic. A concurrent writer can still claim the slug
    before the caller inserts it; the store's unique constraint decides.
    """

    root = slugify(base)
    if not root:
        raise ValidationError("A slug needs at least one letter or digit")

    slug = root
    counter = 1
    while True:
        existing = await lookup(slug)
        if existing is None:
            return slug
        if exclude_id is not None and existing.get("id") == exclude_id:
            return slug
        if counter > max_attempts:
            logger.error(
                "Slug allocation for %r gave up after %d attempts", root, max_attempts
            )
            raise SlugAllocationExhausted(
                f"Unable to allocate a unique slug for {root!r}"
            )
        slug = f"{root}-{counter}"
        counter += 1


__all__ = ["DEFAULT_MAX_ATTEMPTS", "SlugLookup", "resolve_unique_slug", "slugify"]
