from __future__ import annotations

import pytest

from cms_backend.errors import AuthenticationError, RegistrationClosed, ValidationError
from cms_backend.repository import ContentRepository
from cms_backend.services.auth import AuthService, hash_password, hash_token, verify_password


@pytest.fixture
async def auth(tmp_path):
    repo = ContentRepository(tmp_path / "cms.db")
    await repo.initialize()
    try:
        yield AuthService(repo, token_ttl_hours=1)
    finally:
        await repo.close()


def test_password_hash_roundtrip():
    encoded = hash_password("s3cret-pass", iterations=1000)

    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert verify_password("s3cret-pass", encoded)
    assert not verify_password("wrong-pass", encoded)
    assert not verify_password("s3cret-pass", "garbage")


def test_password_hash_is_salted():
    assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)


@pytest.mark.anyio
async def test_register_issues_working_token(auth):
    issued = await auth.register(email="Admin@Example.com", password="long-enough", name="Admin")

    admin = await auth.authenticate(issued.token)

    assert admin["email"] == "admin@example.com"
    assert "password_hash" in admin
    assert hash_token(issued.token) != issued.token


@pytest.mark.anyio
async def test_register_closed_after_first_admin(auth):
    await auth.register(email="admin@example.com", password="long-enough", name="Admin")

    with pytest.raises(RegistrationClosed):
        await auth.register(email="other@example.com", password="long-enough", name="Other")


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("email", "password", "name"),
    [
        ("", "long-enough", "Admin"),
        ("not-an-email", "long-enough", "Admin"),
        ("admin@example.com", "short", "Admin"),
        ("admin@example.com", "long-enough", "  "),
    ],
)
async def test_register_validates_input(auth, email, password, name):
    with pytest.raises(ValidationError):
        await auth.register(email=email, password=password, name=name)


@pytest.mark.anyio
async def test_login_and_logout(auth):
    await auth.register(email="admin@example.com", password="long-enough", name="Admin")

    with pytest.raises(AuthenticationError):
        await auth.login(email="admin@example.com", password="wrong-password")

    issued = await auth.login(email="admin@example.com", password="long-enough")
    await auth.logout(issued.token)

    with pytest.raises(AuthenticationError):
        await auth.authenticate(issued.token)


@pytest.mark.anyio
async def test_bootstrap_requires_configured_password(auth):
    with pytest.raises(ValidationError):
        await auth.bootstrap_admin(email="admin@example.com", password=None, name="Admin")

    admin = await auth.bootstrap_admin(email="admin@example.com", password="long-enough", name="Admin")
    assert admin["role"] == "admin"

    with pytest.raises(RegistrationClosed):
        await auth.bootstrap_admin(email="admin@example.com", password="long-enough", name="Admin")
