from __future__ import annotations

import asyncio

import pytest

from cms_backend.errors import UniqueConstraintError, ValidationError
from cms_backend.repository import ContentRepository
from cms_backend.services.images import ImageProcessor
from cms_backend.services.projects import ProjectForm, ProjectService
from cms_backend.services.uploads import StagedUpload

from conftest import make_image_bytes


@pytest.fixture
async def service(tmp_path):
    repo = ContentRepository(tmp_path / "cms.db")
    await repo.initialize()
    try:
        yield ProjectService(repo, ImageProcessor(tmp_path / "uploads"))
    finally:
        await repo.close()


def _form(**overrides) -> ProjectForm:
    values = {
        "title": "Bridge Project",
        "description": "Crossing",
        "location": "Port Harcourt",
        "status": "published",
    }
    values.update(overrides)
    return ProjectForm(**values)


def _staged(tmp_path, name: str) -> StagedUpload:
    staging = tmp_path / "incoming"
    staging.mkdir(exist_ok=True)
    path = staging / name
    data = make_image_bytes()
    path.write_bytes(data)
    return StagedUpload(original_filename=name, path=path, mime_type="image/jpeg", size_bytes=len(data))


@pytest.mark.anyio
async def test_concurrent_creates_never_share_a_slug(service):
    results = await asyncio.gather(
        service.create(_form()),
        service.create(_form()),
        return_exceptions=True,
    )

    created = [result for result in results if isinstance(result, dict)]
    failures = [result for result in results if isinstance(result, Exception)]
    assert created
    assert all(isinstance(failure, UniqueConstraintError) for failure in failures)
    slugs = [project["slug"] for project in created]
    assert len(slugs) == len(set(slugs))
    assert slugs.count("bridge-project") == 1


@pytest.mark.anyio
async def test_update_without_title_keeps_slug(service):
    project = await service.create(_form())

    updated = await service.update(project["id"], ProjectForm(title="Bridge Project", client="City"))

    assert updated["slug"] == "bridge-project"
    assert updated["client"] == "City"


@pytest.mark.anyio
async def test_publish_date_follows_status(service):
    draft = await service.create(_form(status="draft", published_at="2024-01-01"))
    assert draft["published_at"] is None

    published = await service.update(draft["id"], ProjectForm(status="published", published_at="2024-01-01"))
    assert published["published_at"].startswith("2024-01-01")

    kept = await service.update(draft["id"], ProjectForm(status="published"))
    assert kept["published_at"] == published["published_at"]


@pytest.mark.anyio
async def test_too_many_images_discards_staged_files(service, tmp_path):
    staged = [_staged(tmp_path, f"img{index}.jpg") for index in range(21)]

    with pytest.raises(ValidationError):
        await service.create(_form(), staged)

    assert all(not upload.path.exists() for upload in staged)
    assert not (tmp_path / "uploads").exists() or list((tmp_path / "uploads").iterdir()) == []


@pytest.mark.anyio
async def test_invalid_category_is_rejected_before_processing(service, tmp_path):
    upload = _staged(tmp_path, "front.jpg")

    with pytest.raises(ValidationError):
        await service.create(_form(category_ids='["missing"]'), [upload])

    assert not upload.path.exists()
