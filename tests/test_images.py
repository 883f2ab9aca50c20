from __future__ import annotations

import logging
from pathlib import Path

import pytest
from PIL import Image

from cms_backend.errors import ImageProcessingError
from cms_backend.services.images import (
    ImageProcessor,
    delete_image_variants,
    variant_base,
    variant_candidates,
)

from conftest import make_image_bytes


@pytest.fixture
def staging(tmp_path) -> Path:
    path = tmp_path / "incoming"
    path.mkdir()
    return path


@pytest.fixture
def uploads(tmp_path) -> Path:
    return tmp_path / "uploads"


def _staged(staging: Path, name: str = "abc123__site-plan.jpg", data: bytes | None = None) -> Path:
    path = staging / name
    path.write_bytes(make_image_bytes((2400, 1600)) if data is None else data)
    return path


@pytest.mark.anyio
async def test_optimized_profile_writes_single_webp(staging, uploads):
    source = _staged(staging)
    processor = ImageProcessor(uploads)

    result = await processor.process(source)

    assert not result.fallback
    assert result.original == "/uploads/abc123__site-plan_opt.webp"
    assert result.thumbnail == result.original
    assert not source.exists()
    with Image.open(uploads / "abc123__site-plan_opt.webp") as image:
        assert image.format == "WEBP"
        assert image.width <= 1200 and image.height <= 900


@pytest.mark.anyio
async def test_responsive_profile_writes_all_variants(staging, uploads):
    source = _staged(staging)
    processor = ImageProcessor(uploads, default_profile="responsive")

    result = await processor.process(source)

    assert set(result.paths) == {"original", "thumbnail", "medium", "large"}
    assert sorted(result.files) == sorted(
        [
            "abc123__site-plan_original.jpg",
            "abc123__site-plan_thumb.webp",
            "abc123__site-plan_medium.webp",
            "abc123__site-plan_large.webp",
        ]
    )
    with Image.open(uploads / "abc123__site-plan_thumb.webp") as thumb:
        assert thumb.size == (300, 300)
    with Image.open(uploads / "abc123__site-plan_medium.webp") as medium:
        assert max(medium.size) == 800


@pytest.mark.anyio
async def test_team_profile_crops_square_jpeg(staging, uploads):
    source = _staged(staging, "face.png", make_image_bytes((900, 500), image_format="PNG"))
    processor = ImageProcessor(uploads)

    result = await processor.process(source, profile="team")

    assert result.original == "/uploads/face_team.jpg"
    with Image.open(uploads / "face_team.jpg") as portrait:
        assert portrait.format == "JPEG"
        assert portrait.size == (400, 400)


@pytest.mark.anyio
async def test_small_images_are_not_upscaled(staging, uploads):
    source = _staged(staging, "tiny.jpg", make_image_bytes((200, 100)))

    await ImageProcessor(uploads).process(source)

    with Image.open(uploads / "tiny_opt.webp") as image:
        assert image.size == (200, 100)


@pytest.mark.anyio
async def test_corrupt_upload_falls_back_to_original_file(staging, uploads):
    source = _staged(staging, "broken.jpg", b"definitely not a jpeg")
    processor = ImageProcessor(uploads, default_profile="responsive")

    result = await processor.process(source)

    assert result.fallback
    assert set(result.paths.values()) == {"/uploads/broken.jpg"}
    assert (uploads / "broken.jpg").read_bytes() == b"definitely not a jpeg"
    assert not source.exists()
    assert sorted(p.name for p in uploads.iterdir()) == ["broken.jpg"]


@pytest.mark.anyio
async def test_failed_fallback_raises_and_keeps_source(staging, tmp_path, monkeypatch):
    source = _staged(staging, "broken.jpg", b"not an image")
    processor = ImageProcessor(tmp_path / "uploads")

    def refuse_move(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("cms_backend.services.images.shutil.move", refuse_move)

    with pytest.raises(ImageProcessingError):
        await processor.process(source)
    assert source.exists()


@pytest.mark.anyio
async def test_process_many_undoes_finished_images_on_failure(staging, uploads, monkeypatch):
    good = _staged(staging, "good.jpg")
    bad = _staged(staging, "bad.jpg", b"not an image")
    later = _staged(staging, "later.jpg")
    processor = ImageProcessor(uploads)

    def refuse_move(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("cms_backend.services.images.shutil.move", refuse_move)

    with pytest.raises(ImageProcessingError):
        await processor.process_many([good, bad, later])

    assert not (uploads / "good_opt.webp").exists()
    assert not later.exists()


def test_variant_base_strips_known_suffixes():
    assert variant_base("abc_thumb.webp") == "abc"
    assert variant_base("abc_opt.webp") == "abc"
    assert variant_base("abc.jpg") == "abc"
    assert variant_base("_thumb.webp") == "_thumb"


def test_variant_candidates_cover_every_profile():
    candidates = variant_candidates("abc_medium.webp")

    for name in (
        "abc_medium.webp",
        "abc_original.jpg",
        "abc_thumb.webp",
        "abc_large.webp",
        "abc_opt.webp",
        "abc_team.jpg",
        "abc.jpg",
        "abc.png",
    ):
        assert name in candidates
    assert len(candidates) == len(set(candidates))


def test_delete_image_variants_removes_all_siblings(uploads):
    uploads.mkdir()
    for name in ("abc_original.jpg", "abc_thumb.webp", "abc_medium.webp", "abc_large.webp", "other_opt.webp"):
        (uploads / name).write_bytes(b"x")

    removed = delete_image_variants(uploads, "/uploads/abc_thumb.webp")

    assert removed == 4
    assert [p.name for p in uploads.iterdir()] == ["other_opt.webp"]


def test_delete_image_variants_tolerates_missing_files(uploads):
    uploads.mkdir()
    assert delete_image_variants(uploads, "/uploads/ghost_opt.webp") == 0
    assert delete_image_variants(uploads, None) == 0
    assert delete_image_variants(uploads, "/uploads/") == 0


def test_delete_image_variants_includes_recorded_names(uploads):
    uploads.mkdir()
    (uploads / "abc_opt.webp").write_bytes(b"x")
    (uploads / "custom-name.webp").write_bytes(b"x")

    removed = delete_image_variants(
        uploads, "/uploads/abc_opt.webp", recorded=["/uploads/custom-name.webp"]
    )

    assert removed == 2


def test_delete_image_variants_never_leaves_upload_root(tmp_path, uploads):
    uploads.mkdir()
    outside = tmp_path / "secret.jpg"
    outside.write_bytes(b"keep me")

    delete_image_variants(uploads, "/uploads/../secret.jpg")

    assert outside.exists()


@pytest.mark.anyio
async def test_variant_write_failure_removes_written_variants(staging, uploads, monkeypatch):
    source = _staged(staging)
    processor = ImageProcessor(uploads, default_profile="responsive")
    write_variant = ImageProcessor._write_variant
    calls = []

    def fail_third_write(self, image, spec, target):
        calls.append(spec.name)
        if len(calls) == 3:
            raise OSError("disk full")
        write_variant(self, image, spec, target)

    monkeypatch.setattr(ImageProcessor, "_write_variant", fail_third_write)

    result = await processor.process(source)

    assert calls == ["original", "thumbnail", "medium"]
    assert result.fallback
    assert set(result.paths) == {"original", "thumbnail", "medium", "large"}
    assert set(result.paths.values()) == {"/uploads/abc123__site-plan.jpg"}
    assert sorted(p.name for p in uploads.iterdir()) == ["abc123__site-plan.jpg"]
    assert not source.exists()


def test_delete_image_variants_survives_permission_errors(uploads, monkeypatch, caplog):
    uploads.mkdir()
    for name in ("abc_original.jpg", "abc_thumb.webp", "abc_medium.webp", "abc_large.webp"):
        (uploads / name).write_bytes(b"x")
    unlink = Path.unlink

    def guarded_unlink(self, *args, **kwargs):
        if self.name == "abc_medium.webp":
            raise PermissionError("read-only file")
        return unlink(self, *args, **kwargs)

    monkeypatch.setattr(Path, "unlink", guarded_unlink)

    with caplog.at_level(logging.WARNING, logger="cms_backend.services.images"):
        removed = delete_image_variants(uploads, "/uploads/abc_thumb.webp")

    assert removed == 3
    assert [p.name for p in uploads.iterdir()] == ["abc_medium.webp"]
    assert "Could not delete abc_medium.webp" in caplog.text
