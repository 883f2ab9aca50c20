"""Articles (news and insights) with an optional featured image."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import NotFoundError, ValidationError
from ..repository import ContentRepository, Record
from ..schemas.common import Pagination, page_window
from ..utils.forms import (
    like_pattern,
    optional_text,
    parse_bool,
    parse_datetime,
    parse_string_list,
    require_text,
)
from ..utils.slugs import resolve_unique_slug
from .images import ImageProcessor, ProcessedImage
from .uploads import StagedUpload, discard_on_error

logger = logging.getLogger(__name__)


@dataclass
class ArticleForm:
    title: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    author_id: Optional[str] = None
    tags: Optional[str] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    published_at: Optional[str] = None
    remove_image: Optional[str] = None


class ArticleService:
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

    async def list_published(
        self,
        *,
        tag: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Record], Pagination]:
        clauses = ["published_at IS NOT NULL"]
        params: list[Any] = []
        if tag:
            clauses.append("EXISTS (SELECT 1 FROM json_each(articles.tags) WHERE json_each.value = ?)")
            params.append(tag)
        if search:
            pattern = like_pattern(search)
            clauses.append(
                "(lower(title) LIKE ? ESCAPE '\\' OR lower(coalesce(excerpt, '')) LIKE ? ESCAPE '\\' "
                "OR lower(content) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern, pattern])
        where = " AND ".join(clauses)

        page, limit, offset = page_window(page, limit)
        total = await self._repository.count("articles", where, params)
        records = await self._repository.list_records(
            "articles",
            where=where,
            params=params,
            order_by="published_at DESC",
            limit=limit,
            offset=offset,
        )
        await self._attach_authors(records)
        return records, Pagination.build(total=total, page=page, limit=limit)

    async def get_published(self, slug: str) -> Record:
        article = await self._repository.find_by_slug("articles", slug)
        if article is None or not article.get("published_at"):
            raise NotFoundError("Article not found")
        await self._attach_authors([article])
        return article

    async def list_all(self, *, page: int = 1, limit: int = 20) -> tuple[list[Record], Pagination]:
        page, limit, offset = page_window(page, limit)
        total = await self._repository.count("articles")
        records = await self._repository.list_records("articles", limit=limit, offset=offset)
        await self._attach_authors(records)
        return records, Pagination.build(total=total, page=page, limit=limit)

    async def get(self, article_id: str) -> Record:
        article = await self._require(article_id)
        await self._attach_authors([article])
        return article

    async def create(self, form: ArticleForm, image: StagedUpload | None = None) -> Record:
        with discard_on_error([image] if image else []):
            values = await self._parse_form(form, partial=False)
            values["slug"] = await resolve_unique_slug(values["title"], self._slug_lookup)

        processed = await self._process(image)
        values["featured_image"] = processed.original if processed else None
        try:
            article = await self._repository.create("articles", values)
        except Exception:
            await self._discard(processed)
            raise
        logger.info("Created article %s (%s)", article["slug"], article["id"])
        return await self.get(article["id"])

    async def update(
        self,
        article_id: str,
        form: ArticleForm,
        image: StagedUpload | None = None,
    ) -> Record:
        with discard_on_error([image] if image else []):
            existing = await self._require(article_id)
            values = await self._parse_form(form, partial=True)
            title = values.get("title")
            if title is not None and title != existing["title"]:
                values["slug"] = await resolve_unique_slug(
                    title, self._slug_lookup, exclude_id=article_id
                )
            remove_image = parse_bool(form.remove_image)

        old_image = existing.get("featured_image")
        processed = await self._process(image)
        if processed is not None:
            values["featured_image"] = processed.original
        elif remove_image:
            values["featured_image"] = None

        try:
            await self._repository.update("articles", article_id, values)
        except Exception:
            await self._discard(processed)
            raise

        if old_image and "featured_image" in values and values["featured_image"] != old_image:
            await self._images.cleanup(old_image)
        return await self.get(article_id)

    async def delete(self, article_id: str) -> None:
        article = await self._require(article_id)
        await self._repository.delete("articles", article_id)
        await self._images.cleanup(article.get("featured_image"))
        logger.info("Deleted article %s", article_id)

    async def _slug_lookup(self, slug: str) -> Record | None:
        return await self._repository.find_by_slug("articles", slug)

    async def _require(self, article_id: str) -> Record:
        article = await self._repository.get("articles", article_id)
        if article is None:
            raise NotFoundError("Article not found")
        return article

    async def _attach_authors(self, articles: list[Record]) -> None:
        authors: dict[str, Record | None] = {}
        for article in articles:
            author_id = article.get("author_id")
            if author_id and author_id not in authors:
                authors[author_id] = await self._repository.get("team_members", author_id)
            article["author"] = authors.get(author_id) if author_id else None

    async def _process(self, image: StagedUpload | None) -> ProcessedImage | None:
        if image is None:
            return None
        return await self._images.process(image.path, profile=self._profile)

    async def _discard(self, processed: ProcessedImage | None) -> None:
        if processed is not None:
            await self._images.discard([processed])

    async def _parse_form(self, form: ArticleForm, *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name, label in (("title", "Title"), ("content", "Content")):
            raw = getattr(form, name)
            if partial and raw is None:
                continue
            values[name] = require_text(raw, label)
        for name in ("excerpt", "seo_title", "seo_description"):
            raw = getattr(form, name)
            if partial and raw is None:
                continue
            values[name] = optional_text(raw)
        if not partial or form.tags is not None:
            values["tags"] = parse_string_list(form.tags, "tags")
        if not partial or form.published_at is not None:
            values["published_at"] = parse_datetime(form.published_at, "publishedAt")
        if not partial or form.author_id is not None:
            author_id = optional_text(form.author_id)
            if author_id and await self._repository.get("team_members", author_id) is None:
                raise ValidationError(f"Unknown author: {author_id}")
            values["author_id"] = author_id
        return values


__all__ = ["ArticleForm", "ArticleService"]
