"""Project categories."""

from __future__ import annotations

import logging

from ..errors import NotFoundError, ValidationError
from ..repository import ContentRepository, Record
from ..utils.forms import require_text
from ..utils.slugs import resolve_unique_slug

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, repository: ContentRepository) -> None:
        self._repository = repository

    async def list(self) -> list[Record]:
        return await self._repository.list_categories_with_counts()

    async def create(self, name: str) -> Record:
        name = require_text(name, "Category name")
        slug = await resolve_unique_slug(name, self._slug_lookup)
        category = await self._repository.create("categories", {"name": name, "slug": slug})
        logger.info("Created category %s", slug)
        return category

    async def rename(self, category_id: str, name: str) -> Record:
        name = require_text(name, "Category name")
        existing = await self._require(category_id)
        values: dict[str, str] = {"name": name}
        if name != existing["name"]:
            values["slug"] = await resolve_unique_slug(
                name, self._slug_lookup, exclude_id=category_id
            )
        return await self._repository.update("categories", category_id, values)

    async def delete(self, category_id: str) -> None:
        await self._require(category_id)
        in_use = await self._repository.count(
            "categories",
            "id = ? AND EXISTS (SELECT 1 FROM project_categories WHERE category_id = ?)",
            (category_id, category_id),
        )
        if in_use:
            raise ValidationError("Cannot delete category with associated projects")
        await self._repository.delete("categories", category_id)
        logger.info("Deleted category %s", category_id)

    async def _slug_lookup(self, slug: str) -> Record | None:
        return await self._repository.find_by_slug("categories", slug)

    async def _require(self, category_id: str) -> Record:
        category = await self._repository.get("categories", category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category


__all__ = ["CategoryService"]
