from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from cms_backend.errors import (
    ReferenceConstraintError,
    RegistrationClosed,
    UniqueConstraintError,
)
from cms_backend.repository import ContentRepository


@pytest.fixture
async def repository(tmp_path):
    repo = ContentRepository(tmp_path / "cms.db")
    await repo.initialize()
    try:
        yield repo
    finally:
        await repo.close()


async def _project(repository: ContentRepository, slug: str, **overrides):
    values = {
        "title": slug.replace("-", " ").title(),
        "slug": slug,
        "description": "A building",
        "location": "Lagos",
        "status": "published",
        "images": [],
    }
    values.update(overrides)
    return await repository.create("projects", values)


@pytest.mark.anyio
async def test_json_and_bool_columns_roundtrip(repository):
    project = await _project(
        repository,
        "harbour-house",
        technical_specs={"area": "1200 m2"},
        team_credits=[{"name": "A. Architect", "role": "Lead"}],
        is_featured=True,
        images=["/uploads/a_opt.webp"],
    )

    stored = await repository.get("projects", project["id"])

    assert stored["technical_specs"] == {"area": "1200 m2"}
    assert stored["team_credits"] == [{"name": "A. Architect", "role": "Lead"}]
    assert stored["is_featured"] is True
    assert stored["images"] == ["/uploads/a_opt.webp"]
    assert stored["created_at"] == stored["updated_at"]


@pytest.mark.anyio
async def test_duplicate_slug_raises_unique_error(repository):
    await _project(repository, "harbour-house")

    with pytest.raises(UniqueConstraintError) as excinfo:
        await _project(repository, "harbour-house")

    assert excinfo.value.fields == ("slug",)


@pytest.mark.anyio
async def test_failed_concurrent_insert_keeps_the_winning_row(repository):
    for attempt in range(10):
        slug = f"harbour-house-{attempt}"
        results = await asyncio.gather(
            _project(repository, slug),
            _project(repository, slug),
            _project(repository, slug),
            return_exceptions=True,
        )

        created = [result for result in results if isinstance(result, dict)]
        failures = [result for result in results if isinstance(result, Exception)]
        assert len(created) == 1
        assert len(failures) == 2
        assert all(isinstance(failure, UniqueConstraintError) for failure in failures)
        stored = await repository.find_by_slug("projects", slug)
        assert stored is not None
        assert stored["id"] == created[0]["id"]


@pytest.mark.anyio
async def test_slug_namespaces_are_per_entity(repository):
    await _project(repository, "modern")
    category = await repository.create("categories", {"name": "Modern", "slug": "modern"})
    assert category["slug"] == "modern"


@pytest.mark.anyio
async def test_update_refreshes_updated_at(repository):
    project = await _project(repository, "harbour-house")

    updated = await repository.update("projects", project["id"], {"title": "Harbour Home"})

    assert updated["title"] == "Harbour Home"
    assert updated["updated_at"] >= project["updated_at"]
    assert updated["created_at"] == project["created_at"]


@pytest.mark.anyio
async def test_category_in_use_cannot_be_deleted(repository):
    project = await _project(repository, "harbour-house")
    category = await repository.create("categories", {"name": "Cultural", "slug": "cultural"})
    await repository.set_project_categories(project["id"], [category["id"]])

    with pytest.raises(ReferenceConstraintError):
        await repository.delete("categories", category["id"])

    grouped = await repository.get_categories_for_projects([project["id"]])
    assert [item["slug"] for item in grouped[project["id"]]] == ["cultural"]


@pytest.mark.anyio
async def test_deleting_project_drops_its_relations(repository):
    first = await _project(repository, "first", published_at="2024-01-01T00:00:00+00:00")
    second = await _project(repository, "second", published_at="2024-02-01T00:00:00+00:00")
    await repository.add_related_project(first["id"], second["id"])
    assert [p["id"] for p in await repository.get_related_projects(first["id"])] == [second["id"]]

    await repository.delete("projects", second["id"])

    assert await repository.get_related_projects(first["id"]) == []


@pytest.mark.anyio
async def test_categories_with_counts(repository):
    project = await _project(repository, "harbour-house")
    used = await repository.create("categories", {"name": "Cultural", "slug": "cultural"})
    await repository.create("categories", {"name": "Retail", "slug": "retail"})
    await repository.set_project_categories(project["id"], [used["id"]])

    counts = {row["slug"]: row["project_count"] for row in await repository.list_categories_with_counts()}

    assert counts == {"cultural": 1, "retail": 0}


@pytest.mark.anyio
async def test_only_one_admin_can_exist(repository):
    await repository.create_first_admin(email="a@example.com", name="A", password_hash="x")

    with pytest.raises(RegistrationClosed):
        await repository.create_first_admin(email="b@example.com", name="B", password_hash="y")

    # The store itself also refuses a second row.
    with pytest.raises(RegistrationClosed):
        await repository.create(
            "admins",
            {"email": "c@example.com", "name": "C", "password_hash": "z", "role": "admin"},
        )


@pytest.mark.anyio
async def test_expired_tokens_are_ignored_and_purged(repository):
    admin = await repository.create_first_admin(email="a@example.com", name="A", password_hash="x")
    now = datetime.now(timezone.utc)
    await repository.add_admin_token(token_hash="live", admin_id=admin["id"], expires_at=now + timedelta(hours=1))
    await repository.add_admin_token(token_hash="stale", admin_id=admin["id"], expires_at=now - timedelta(hours=1))

    assert (await repository.get_admin_for_token("live", now=now))["id"] == admin["id"]
    assert await repository.get_admin_for_token("stale", now=now) is None
    assert await repository.delete_expired_admin_tokens(now=now) == 1


@pytest.mark.anyio
async def test_daily_views_groups_by_day(repository):
    for _ in range(3):
        await repository.create("analytics", {"type": "project_view", "resource_id": "p1"})
    await repository.create("analytics", {"type": "article_view", "resource_id": "a1"})

    since = datetime.now(timezone.utc) - timedelta(days=1)
    rows = await repository.daily_views(since=since, event_type="project_view", resource_id="p1")

    assert len(rows) == 1
    assert rows[0]["views"] == 3
    assert await repository.top_viewed_resources("project_view", since=since) == [("p1", 3)]
