"""Admin registration, login, and session endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import Field

from ..config import Settings, get_settings
from ..repository import Record
from ..schemas.common import CamelModel, DataResponse, MessageResponse
from ..services.auth import AuthService, IssuedToken, public_admin
from .dependencies import bearer_scheme, get_auth_service, require_admin

router = APIRouter(prefix="/api/auth", tags=["auth"])
setup_router = APIRouter(prefix="/api/setup", tags=["setup"])


class RegisterRequest(CamelModel):
    email: str = Field(default="")
    password: str = Field(default="")
    name: str = Field(default="")


class LoginRequest(CamelModel):
    email: str = Field(default="")
    password: str = Field(default="")


class AdminResource(CamelModel):
    id: str
    email: str
    name: str
    role: str
    created_at: str


class SessionResource(CamelModel):
    user: AdminResource
    token: str
    expires_at: str


def _session(issued: IssuedToken) -> dict[str, Any]:
    return {
        "user": public_admin(issued.admin),
        "token": issued.token,
        "expires_at": issued.expires_at.isoformat(),
    }


@router.post("/register", response_model=DataResponse[SessionResource], status_code=201)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> dict[str, Any]:
    issued = await auth.register(email=body.email, password=body.password, name=body.name)
    return {"data": _session(issued), "message": "Admin registered successfully"}


@router.post("/login", response_model=DataResponse[SessionResource])
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> dict[str, Any]:
    issued = await auth.login(email=body.email, password=body.password)
    return {"data": _session(issued), "message": "Login successful"}


@router.get("/me", response_model=DataResponse[AdminResource])
async def me(admin: Record = Depends(require_admin)) -> dict[str, Any]:
    return {"data": public_admin(admin), "message": "User retrieved successfully"}


@router.post("/logout", response_model=MessageResponse)
async def logout(
    admin: Record = Depends(require_admin),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> dict[str, str]:
    if credentials is not None:
        await auth.logout(credentials.credentials)
    return {"message": "Logged out successfully"}


@setup_router.post("/admin", response_model=DataResponse[AdminResource], status_code=201)
async def create_initial_admin(
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    password = settings.initial_admin_password
    admin = await auth.bootstrap_admin(
        email=settings.initial_admin_email,
        password=password.get_secret_value() if password else None,
        name=settings.initial_admin_name,
    )
    return {"data": public_admin(admin), "message": "Initial admin user created successfully"}
