from __future__ import annotations

import pytest

from cms_backend.errors import SlugAllocationExhausted, ValidationError
from cms_backend.utils.slugs import resolve_unique_slug, slugify


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Hello World", "hello-world"),
        ("  Villa -- Sur   Mer!  ", "villa-sur-mer"),
        ("Sports & Recreation", "sports-recreation"),
        ("Mixed-Use", "mixed-use"),
        ("2024 Pavilion", "2024-pavilion"),
        ("Café Müller", "caf-m-ller"),
        ("!!!", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


def test_slugify_output_is_url_safe():
    slug = slugify("  Ünïcode -- Tower / Phase #2 ")
    assert slug == slug.strip("-")
    assert "--" not in slug
    assert all(ch.isascii() and (ch.isalnum() or ch == "-") for ch in slug)


def _lookup_for(taken: dict[str, str]):
    calls: list[str] = []

    async def lookup(slug: str):
        calls.append(slug)
        if slug in taken:
            return {"id": taken[slug], "slug": slug}
        return None

    return lookup, calls


@pytest.mark.anyio
async def test_resolve_returns_base_when_free():
    lookup, calls = _lookup_for({})
    assert await resolve_unique_slug("Harbour House", lookup) == "harbour-house"
    assert calls == ["harbour-house"]


@pytest.mark.anyio
async def test_resolve_appends_first_free_counter():
    lookup, calls = _lookup_for({"hello-world": "a", "hello-world-1": "b"})
    assert await resolve_unique_slug("Hello World", lookup) == "hello-world-2"
    assert calls == ["hello-world", "hello-world-1", "hello-world-2"]


@pytest.mark.anyio
async def test_resolve_keeps_slug_held_by_excluded_record():
    lookup, _ = _lookup_for({"hello-world": "self"})
    assert await resolve_unique_slug("Hello World", lookup, exclude_id="self") == "hello-world"


@pytest.mark.anyio
async def test_resolve_skips_other_records_when_excluding():
    lookup, _ = _lookup_for({"hello-world": "other", "hello-world-1": "self"})
    slug = await resolve_unique_slug("Hello World", lookup, exclude_id="self")
    assert slug == "hello-world-1"


@pytest.mark.anyio
async def test_resolve_rejects_text_without_slug_characters():
    lookup, calls = _lookup_for({})
    with pytest.raises(ValidationError):
        await resolve_unique_slug("¿¡!", lookup)
    assert calls == []


@pytest.mark.anyio
async def test_resolve_gives_up_after_attempt_limit():
    async def always_taken(slug: str):
        return {"id": "other", "slug": slug}

    with pytest.raises(SlugAllocationExhausted):
        await resolve_unique_slug("Busy", always_taken, max_attempts=3)


@pytest.mark.parametrize(
    "text",
    ["Bridge Project", "--Already-a-slug--", "Ünïcode Tower #2", "a  b\tc\nd", "x" * 200],
)
def test_slugify_is_idempotent(text):
    once = slugify(text)
    assert slugify(once) == once


@pytest.mark.anyio
async def test_resolve_bridge_project_examples():
    empty, _ = _lookup_for({})
    assert await resolve_unique_slug("Bridge Project", empty) == "bridge-project"

    crowded, _ = _lookup_for({"bridge-project": "a", "bridge-project-1": "b"})
    assert await resolve_unique_slug("Bridge Project", crowded) == "bridge-project-2"
