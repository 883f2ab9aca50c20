"""Portfolio projects: listing, slug allocation, images, and relations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from ..errors import NotFoundError, ValidationError
from ..repository import ContentRepository, Record
from ..schemas.common import Pagination, page_window
from ..utils.forms import (
    like_pattern,
    optional_text,
    parse_bool,
    parse_datetime,
    parse_json_field,
    parse_json_list,
    parse_string_list,
    require_text,
)
from ..utils.slugs import resolve_unique_slug
from .images import ImageProcessor
from .uploads import StagedUpload, discard_on_error

logger = logging.getLogger(__name__)

MAX_PROJECT_IMAGES = 20
PUBLISHED_STATUS = "published"


@dataclass
class ProjectForm:
    """Raw multipart fields of a project create/update request."""

    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    start_date: Optional[str] = None
    completion_date: Optional[str] = None
    client: Optional[str] = None
    project_size: Optional[str] = None
    technical_specs: Optional[str] = None
    team_credits: Optional[str] = None
    awards: Optional[str] = None
    is_featured: Optional[str] = None
    category_ids: Optional[str] = None
    published_at: Optional[str] = None
    existing_images: Optional[str] = None


@dataclass
class ProjectFilters:
    category: Optional[str] = None
    status: Optional[str] = None
    year: Optional[int] = None
    featured: bool = False
    search: Optional[str] = None


class ProjectService:
    """Coordinate project records with their image files."""

    def __init__(
        self,
        repository: ContentRepository,
        images: ImageProcessor,
        *,
        profile: str | None = None,
    ) -> None:
        self._repository = repository
        self._images = images
        self._profile = profile

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_published(
        self, filters: ProjectFilters, *, page: int = 1, limit: int = 12
    ) -> tuple[list[Record], Pagination]:
        clauses = ["published_at IS NOT NULL"]
        params: list[Any] = []
        if filters.category:
            clauses.append(
                "EXISTS (SELECT 1 FROM project_categories AS pc "
                "JOIN categories AS c ON c.id = pc.category_id "
                "WHERE pc.project_id = projects.id AND c.slug = ?)"
            )
            params.append(filters.category)
        # "published" is the visibility state, not a project phase filter
        if filters.status and filters.status != PUBLISHED_STATUS:
            clauses.append("status = ?")
            params.append(filters.status)
        if filters.year:
            clauses.append("(substr(start_date, 1, 4) = ? OR substr(completion_date, 1, 4) = ?)")
            params.extend([f"{filters.year:04d}", f"{filters.year:04d}"])
        if filters.featured:
            clauses.append("is_featured = 1")
        if filters.search:
            pattern = like_pattern(filters.search)
            clauses.append(
                "(lower(title) LIKE ? ESCAPE '\\' OR lower(description) LIKE ? ESCAPE '\\' "
                "OR lower(location) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern, pattern])

        where = " AND ".join(clauses)
        page, limit, offset = page_window(page, limit)
        total = await self._repository.count("projects", where, params)
        records = await self._repository.list_records(
            "projects",
            where=where,
            params=params,
            order_by="is_featured DESC, published_at DESC",
            limit=limit,
            offset=offset,
        )
        await self._attach_categories(records)
        return records, Pagination.build(total=total, page=page, limit=limit)

    async def get_published(self, slug: str) -> Record:
        """Return a published project with categories and related projects."""

        project = await self._repository.find_by_slug("projects", slug)
        if project is None or not project.get("published_at"):
            raise NotFoundError("Project not found")
        await self._attach_categories([project])

        related = await self._repository.get_related_projects(project["id"])
        if not related:
            category_ids = [category["id"] for category in project["categories"]]
            related = await self._repository.find_similar_projects(project["id"], category_ids)
        await self._attach_categories(related)
        project["related_projects"] = related
        return project

    async def list_all(self, *, page: int = 1, limit: int = 20) -> tuple[list[Record], Pagination]:
        page, limit, offset = page_window(page, limit)
        total = await self._repository.count("projects")
        records = await self._repository.list_records("projects", limit=limit, offset=offset)
        await self._attach_categories(records)
        return records, Pagination.build(total=total, page=page, limit=limit)

    async def get(self, project_id: str) -> Record:
        project = await self._require(project_id)
        await self._attach_categories([project])
        return project

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, form: ProjectForm, uploads: Sequence[StagedUpload] = ()) -> Record:
        with discard_on_error(uploads):
            self._check_image_count(len(uploads))
            values = self._parse_form(form, partial=False)
            category_ids = await self._parse_categories(form.category_ids)
            values["slug"] = await resolve_unique_slug(values["title"], self._slug_lookup)
            values["published_at"] = self._published_at(
                values["status"], form.published_at, current=None
            )

        processed = await self._images.process_many(
            [upload.path for upload in uploads], profile=self._profile
        )
        image_urls = [result.original for result in processed]
        values["images"] = image_urls
        values["featured_image"] = image_urls[0] if image_urls else None

        try:
            project = await self._repository.create("projects", values)
        except Exception:
            await self._images.discard(processed)
            raise
        if category_ids:
            try:
                await self._repository.set_project_categories(project["id"], category_ids)
            except Exception:
                await self._repository.delete("projects", project["id"])
                await self._images.discard(processed)
                raise

        logger.info("Created project %s (%s)", project["slug"], project["id"])
        return await self.get(project["id"])

    async def update(
        self,
        project_id: str,
        form: ProjectForm,
        uploads: Sequence[StagedUpload] = (),
    ) -> Record:
        with discard_on_error(uploads):
            existing = await self._require(project_id)
            values = self._parse_form(form, partial=True)
            category_ids = (
                await self._parse_categories(form.category_ids)
                if form.category_ids is not None
                else None
            )

            current_images: list[str] = existing.get("images") or []
            if form.existing_images is not None:
                requested = parse_json_list(form.existing_images, "existingImages")
                kept = [image for image in requested if image in current_images]
            else:
                kept = list(current_images)
            self._check_image_count(len(kept) + len(uploads))

            title = values.get("title")
            if title is not None and title != existing["title"]:
                values["slug"] = await resolve_unique_slug(
                    title, self._slug_lookup, exclude_id=project_id
                )
            if "status" in values or form.published_at is not None:
                values["published_at"] = self._published_at(
                    values.get("status", existing["status"]),
                    form.published_at,
                    current=existing.get("published_at"),
                )

        processed = await self._images.process_many(
            [upload.path for upload in uploads], profile=self._profile
        )
        images = kept + [result.original for result in processed]
        values["images"] = images
        values["featured_image"] = images[0] if images else None

        try:
            await self._repository.update("projects", project_id, values)
            if category_ids is not None:
                await self._repository.set_project_categories(project_id, category_ids)
        except Exception:
            await self._images.discard(processed)
            raise

        removed = [image for image in current_images if image not in kept]
        await self._images.cleanup_many(removed)
        logger.info("Updated project %s", project_id)
        return await self.get(project_id)

    async def remove_image(self, project_id: str, image_url: str) -> Record:
        project = await self._require(project_id)
        images: list[str] = project.get("images") or []
        if image_url not in images:
            raise NotFoundError("Image not found in project")
        remaining = [image for image in images if image != image_url]
        await self._repository.update(
            "projects",
            project_id,
            {"images": remaining, "featured_image": remaining[0] if remaining else None},
        )
        await self._images.cleanup(image_url)
        return await self.get(project_id)

    async def delete(self, project_id: str) -> None:
        project = await self._require(project_id)
        await self._repository.delete("projects", project_id)
        await self._images.cleanup_many(project.get("images") or [])
        logger.info("Deleted project %s", project_id)

    async def add_related(self, project_id: str, related_id: str) -> None:
        if project_id == related_id:
            raise ValidationError("A project cannot be related to itself")
        await self._require(project_id)
        await self._require(related_id)
        await self._repository.add_related_project(project_id, related_id)

    async def remove_related(self, project_id: str, related_id: str) -> None:
        await self._require(project_id)
        await self._repository.remove_related_project(project_id, related_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _slug_lookup(self, slug: str) -> Record | None:
        return await self._repository.find_by_slug("projects", slug)

    async def _require(self, project_id: str) -> Record:
        project = await self._repository.get("projects", project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def _attach_categories(self, projects: list[Record]) -> None:
        grouped = await self._repository.get_categories_for_projects(
            project["id"] for project in projects
        )
        for project in projects:
            project["categories"] = grouped.get(project["id"], [])

    async def _parse_categories(self, raw: Optional[str]) -> list[str]:
        category_ids = parse_string_list(raw, "categoryIds")
        for category_id in category_ids:
            if await self._repository.get("categories", category_id) is None:
                raise ValidationError(f"Unknown category: {category_id}")
        return category_ids

    @staticmethod
    def _check_image_count(count: int) -> None:
        if count > MAX_PROJECT_IMAGES:
            raise ValidationError(f"A project can hold at most {MAX_PROJECT_IMAGES} images")

    @staticmethod
    def _published_at(status: str, requested: Optional[str], *, current: Optional[str]) -> Optional[str]:
        if status != PUBLISHED_STATUS:
            return None
        explicit = parse_datetime(requested, "publishedAt")
        if explicit is not None:
            return explicit
        return current or datetime.now(timezone.utc).isoformat(timespec="microseconds")

    @staticmethod
    def _parse_form(form: ProjectForm, *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name, label in (
            ("title", "Title"),
            ("description", "Description"),
            ("location", "Location"),
            ("status", "Status"),
        ):
            raw = getattr(form, name)
            if partial and raw is None:
                continue
            values[name] = require_text(raw, label)

        for name in ("city", "country", "client", "project_size"):
            raw = getattr(form, name)
            if partial and raw is None:
                continue
            values[name] = optional_text(raw)

        for name, label in (("start_date", "startDate"), ("completion_date", "completionDate")):
            raw = getattr(form, name)
            if partial and raw is None:
                continue
            values[name] = parse_datetime(raw, label)

        if not partial or form.technical_specs is not None:
            values["technical_specs"] = parse_json_field(form.technical_specs, "technicalSpecs")
        if not partial or form.team_credits is not None:
            values["team_credits"] = parse_json_field(form.team_credits, "teamCredits", default=[])
        if not partial or form.awards is not None:
            values["awards"] = parse_json_field(form.awards, "awards", default=[])
        if not partial or form.is_featured is not None:
            values["is_featured"] = parse_bool(form.is_featured)
        return values


__all__ = [
    "MAX_PROJECT_IMAGES",
    "ProjectFilters",
    "ProjectForm",
    "ProjectService",
]
