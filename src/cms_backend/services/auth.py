"""Single-admin authentication with opaque bearer tokens."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from ..errors import AuthenticationError, RegistrationClosed, ValidationError
from ..repository import ContentRepository, Record
from ..utils.forms import is_valid_email

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8
PBKDF2_ITERATIONS = 390_000
_HASH_SCHEME = "pbkdf2_sha256"


def hash_password(password: str, *, iterations: int = PBKDF2_ITERATIONS, salt: bytes | None = None) -> str:
    """Return an encoded salted PBKDF2-SHA256 hash of ``password``."""

    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return "$".join(
        [
            _HASH_SCHEME,
            str(iterations),
            base64.b64encode(salt).decode("ascii"),
            base64.b64encode(digest).decode("ascii"),
        ]
    )


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, iterations, salt_b64, digest_b64 = encoded.split("$", 3)
        if scheme != _HASH_SCHEME:
            return False
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(digest_b64)
        rounds = int(iterations)
    except ValueError:
        logger.warning("Stored password hash has an unexpected format")
        return False
    candidate = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(candidate, expected)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def public_admin(record: Record) -> dict[str, Any]:
    """Strip credential material from an admin record."""

    return {
        "id": record["id"],
        "email": record["email"],
        "name": record["name"],
        "role": record["role"],
        "created_at": record["created_at"],
    }


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime
    admin: Record


class AuthService:
    """Register, authenticate, and sign out the site administrator."""

    def __init__(self, repository: ContentRepository, *, token_ttl_hours: int) -> None:
        self._repository = repository
        self._token_ttl = timedelta(hours=token_ttl_hours)

    async def register(self, *, email: str, password: str, name: str) -> IssuedToken:
        """Create the admin account while none exists and sign it in."""

        if await self._repository.count_admins() > 0:
            raise RegistrationClosed("Admin registration is closed")
        admin = await self._create_admin(email=email, password=password, name=name)
        logger.info("Registered admin account %s", admin["email"])
        return await self._issue(admin)

    async def bootstrap_admin(self, *, email: str, password: str | None, name: str) -> Record:
        """Create the initial admin from configured credentials."""

        if not password:
            raise ValidationError("Initial admin password is not configured")
        if await self._repository.count_admins() > 0:
            raise RegistrationClosed("Admin user already exists")
        admin = await self._create_admin(email=email, password=password, name=name)
        logger.info("Created initial admin account %s", admin["email"])
        return admin

    async def login(self, *, email: str, password: str) -> IssuedToken:
        if not email or not password:
            raise ValidationError("Email and password are required")
        admin = await self._repository.find_one("admins", "email", email.strip().lower())
        if admin is None or not verify_password(password, admin["password_hash"]):
            raise AuthenticationError("Invalid credentials")
        return await self._issue(admin)

    async def authenticate(self, token: str) -> Record:
        """Return the admin owning ``token`` or raise ``AuthenticationError``."""

        if not token:
            raise AuthenticationError("Authentication required")
        admin = await self._repository.get_admin_for_token(
            hash_token(token), now=datetime.now(timezone.utc)
        )
        if admin is None:
            raise AuthenticationError("Invalid or expired token")
        return admin

    async def logout(self, token: str) -> None:
        await self._repository.delete_admin_token(hash_token(token))

    async def purge_expired_tokens(self) -> int:
        removed = await self._repository.delete_expired_admin_tokens(
            now=datetime.now(timezone.utc)
        )
        if removed:
            logger.info("Removed %d expired admin token(s)", removed)
        return removed

    async def _create_admin(self, *, email: str, password: str, name: str) -> Record:
        email = (email or "").strip().lower()
        name = (name or "").strip()
        if not email or not password or not name:
            raise ValidationError("Email, password, and name are required")
        if not is_valid_email(email):
            raise ValidationError("Invalid email format")
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
            )
        return await self._repository.create_first_admin(
            email=email,
            name=name,
            password_hash=hash_password(password),
        )

    async def _issue(self, admin: Record) -> IssuedToken:
        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + self._token_ttl
        await self._repository.add_admin_token(
            token_hash=hash_token(token),
            admin_id=admin["id"],
            expires_at=expires_at,
        )
        return IssuedToken(token=token, expires_at=expires_at, admin=admin)


__all__ = [
    "AuthService",
    "IssuedToken",
    "PASSWORD_MIN_LENGTH",
    "hash_password",
    "hash_token",
    "public_admin",
    "verify_password",
]
