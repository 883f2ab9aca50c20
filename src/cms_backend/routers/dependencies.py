"""Request dependencies shared by the content routers."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..errors import AuthenticationError
from ..repository import Record
from ..services.analytics import AnalyticsService
from ..services.articles import ArticleService
from ..services.auth import AuthService
from ..services.categories import CategoryService
from ..services.contact import ContactService
from ..services.media import MediaService
from ..services.projects import ProjectService
from ..services.service_catalog import ServiceCatalog
from ..services.site_settings import SiteSettingsService
from ..services.team import TeamService
from ..services.uploads import StagedUpload, UploadService

bearer_scheme = HTTPBearer(auto_error=False)


def _state_service(request: Request, name: str, label: str) -> Any:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=500, detail=f"{label} unavailable")
    return service


def get_auth_service(request: Request) -> AuthService:
    return _state_service(request, "auth_service", "Auth service")


def get_upload_service(request: Request) -> UploadService:
    return _state_service(request, "upload_service", "Upload service")


def get_project_service(request: Request) -> ProjectService:
    return _state_service(request, "project_service", "Project service")


def get_article_service(request: Request) -> ArticleService:
    return _state_service(request, "article_service", "Article service")


def get_category_service(request: Request) -> CategoryService:
    return _state_service(request, "category_service", "Category service")


def get_team_service(request: Request) -> TeamService:
    return _state_service(request, "team_service", "Team service")


def get_service_catalog(request: Request) -> ServiceCatalog:
    return _state_service(request, "service_catalog", "Service catalog")


def get_media_service(request: Request) -> MediaService:
    return _state_service(request, "media_service", "Media service")


def get_site_settings_service(request: Request) -> SiteSettingsService:
    return _state_service(request, "site_settings_service", "Settings service")


def get_contact_service(request: Request) -> ContactService:
    return _state_service(request, "contact_service", "Contact service")


def get_analytics_service(request: Request) -> AnalyticsService:
    return _state_service(request, "analytics_service", "Analytics service")


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> Record:
    """Resolve the bearer token to the admin account or fail with 401."""

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication required")
    return await auth.authenticate(credentials.credentials)


def present_uploads(files: Optional[list[UploadFile]]) -> list[UploadFile]:
    """Drop empty file parts browsers send for untouched file inputs."""

    return [item for item in files or [] if item.filename]


async def stage_single(
    uploads: UploadService, upload: Optional[UploadFile]
) -> Optional[StagedUpload]:
    files = present_uploads([upload] if upload is not None else None)
    if not files:
        return None
    return await uploads.stage(files[0])


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


__all__ = [
    "bearer_scheme",
    "client_ip",
    "get_analytics_service",
    "get_article_service",
    "get_auth_service",
    "get_category_service",
    "get_contact_service",
    "get_media_service",
    "get_project_service",
    "get_service_catalog",
    "get_site_settings_service",
    "get_team_service",
    "get_upload_service",
    "present_uploads",
    "require_admin",
    "stage_single",
]
