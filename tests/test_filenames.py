from __future__ import annotations

from cms_backend.utils.filenames import (
    build_storage_name,
    public_upload_path,
    slugify_filename,
    stored_filename,
)


def test_slugify_filename_drops_extension_and_normalizes():
    assert slugify_filename("My Holiday Photo.JPG") == "my-holiday-photo"


def test_slugify_filename_truncates_without_trailing_hyphen():
    slug = slugify_filename("a" * 59 + " b c.png", max_length=60)
    assert len(slug) <= 60
    assert not slug.endswith("-")


def test_slugify_filename_empty_input():
    assert slugify_filename(None) == ""
    assert slugify_filename("") == ""


def test_build_storage_name_with_and_without_slug():
    assert build_storage_name("abc123", ".JPG", "Site Plan.jpg") == "abc123__site-plan.jpg"
    assert build_storage_name("abc123", ".png", "###.png") == "abc123.png"
    assert build_storage_name("abc123", ".webp", None) == "abc123.webp"


def test_public_upload_path():
    assert public_upload_path("a_opt.webp") == "/uploads/a_opt.webp"
    assert public_upload_path("a.jpg", "/media/") == "/media/a.jpg"


def test_stored_filename_strips_prefix_and_directories():
    assert stored_filename("/uploads/a_opt.webp") == "a_opt.webp"
    assert stored_filename("a_opt.webp") == "a_opt.webp"
    assert stored_filename("/uploads/../../etc/passwd") == "passwd"
    assert stored_filename("..\\..\\secret.jpg") == "secret.jpg"


def test_stored_filename_unusable_references():
    assert stored_filename(None) == ""
    assert stored_filename("") == ""
    assert stored_filename("/uploads/") == ""
    assert stored_filename("/uploads/..") == ""
