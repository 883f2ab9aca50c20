"""Resource and request models for site content."""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import Field, field_validator

from .common import CamelModel


class CategoryRef(CamelModel):
    id: str
    name: str
    slug: str


class CategoryResource(CamelModel):
    id: str
    name: str
    slug: str
    project_count: Optional[int] = None
    created_at: str
    updated_at: str


class ProjectResource(CamelModel):
    """A portfolio project as returned to clients."""

    id: str
    title: str
    slug: str
    description: str
    location: str
    city: Optional[str] = None
    country: Optional[str] = None
    start_date: Optional[str] = None
    completion_date: Optional[str] = None
    status: str
    client: Optional[str] = None
    project_size: Optional[str] = None
    technical_specs: Optional[Any] = None
    team_credits: Optional[Any] = None
    awards: Optional[Any] = None
    is_featured: bool = False
    images: list[str] = Field(default_factory=list)
    featured_image: Optional[str] = None
    published_at: Optional[str] = None
    created_at: str
    updated_at: str
    categories: list[CategoryRef] = Field(default_factory=list)
    related_projects: Optional[list["ProjectResource"]] = None

    @field_validator("images", mode="before")
    @classmethod
    def _images_default(cls, value: Any) -> Any:
        return value or []


class TeamMemberResource(CamelModel):
    id: str
    name: str
    title: str
    department: Optional[str] = None
    bio: Optional[str] = None
    photo: Optional[str] = None
    email: Optional[str] = None
    linkedin: Optional[str] = None
    sort_order: int = Field(default=0, alias="order")
    created_at: str
    updated_at: str


class AuthorSummary(CamelModel):
    id: str
    name: str
    title: str
    photo: Optional[str] = None


class ArticleResource(CamelModel):
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    featured_image: Optional[str] = None
    author_id: Optional[str] = None
    author: Optional[AuthorSummary] = None
    tags: list[str] = Field(default_factory=list)
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    published_at: Optional[str] = None
    created_at: str
    updated_at: str

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value: Any) -> Any:
        return value or []


class ServiceResource(CamelModel):
    id: str
    title: str
    description: str
    features: list[str] = Field(default_factory=list)
    is_active: bool = True
    sort_order: int = Field(default=0, alias="order")
    created_at: str
    updated_at: str

    @field_validator("features", mode="before")
    @classmethod
    def _features_default(cls, value: Any) -> Any:
        return value or []


class MediaResource(CamelModel):
    id: str
    filename: str
    filepath: str
    mimetype: str
    size: int
    variants: list[str] = Field(default_factory=list)
    created_at: str

    @field_validator("variants", mode="before")
    @classmethod
    def _variants_default(cls, value: Any) -> Any:
        return value or []


class SiteSettingsResource(CamelModel):
    id: str
    company_name: str
    tagline: Optional[str] = None
    description: Optional[str] = None
    contact_email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    social_links: Optional[dict[str, Any]] = None
    logo: Optional[str] = None
    hero_images: list[str] = Field(default_factory=list)
    hero_title: Optional[str] = None
    hero_subtitle: Optional[str] = None
    seo_default_title: Optional[str] = None
    seo_default_desc: Optional[str] = None
    created_at: str
    updated_at: str

    @field_validator("hero_images", mode="before")
    @classmethod
    def _hero_images_default(cls, value: Any) -> Any:
        return value or []


class ContactSubmissionResource(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    project_type: Optional[str] = None
    message: str
    is_read: bool = False
    created_at: str


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class CategoryRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)


class ServiceCreateRequest(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    features: Union[list[str], str, None] = None
    is_active: bool = True
    sort_order: int = Field(default=0, alias="order")


class ServiceUpdateRequest(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    features: Union[list[str], str, None] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(default=None, alias="order")


class SiteSettingsUpdate(CamelModel):
    """Partial update of the site settings row."""

    company_name: Optional[str] = Field(default=None, min_length=1)
    tagline: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    social_links: Optional[dict[str, Any]] = None
    hero_title: Optional[str] = None
    hero_subtitle: Optional[str] = None
    seo_default_title: Optional[str] = None
    seo_default_desc: Optional[str] = None


class ContactRequest(CamelModel):
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    project_type: Optional[str] = None
    message: str


class ImageReference(CamelModel):
    image_url: str = Field(..., min_length=1)


class RelatedProjectRequest(CamelModel):
    related_project_id: str = Field(..., min_length=1)


class TrackEventRequest(CamelModel):
    type: str = Field(..., min_length=1, max_length=64)
    resource_id: Optional[str] = None
    resource_type: Optional[str] = None
    path: Optional[str] = None


class ContactReadUpdate(CamelModel):
    is_read: bool = True


ProjectResource.model_rebuild()


__all__ = [
    "ArticleResource",
    "AuthorSummary",
    "CategoryRef",
    "CategoryRequest",
    "CategoryResource",
    "ContactReadUpdate",
    "ContactRequest",
    "ContactSubmissionResource",
    "ImageReference",
    "MediaResource",
    "ProjectResource",
    "RelatedProjectRequest",
    "ServiceCreateRequest",
    "ServiceResource",
    "ServiceUpdateRequest",
    "SiteSettingsResource",
    "SiteSettingsUpdate",
    "TeamMemberResource",
    "TrackEventRequest",
]
