"""Article endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile

from ..repository import Record
from ..schemas.common import DataResponse, ListResponse, MessageResponse
from ..schemas.content import ArticleResource
from ..services.analytics import AnalyticsService
from ..services.articles import ArticleForm, ArticleService
from ..services.uploads import UploadService
from .dependencies import (
    client_ip,
    get_analytics_service,
    get_article_service,
    get_upload_service,
    require_admin,
    stage_single,
)

router = APIRouter(prefix="/api/articles", tags=["articles"])


def article_form(
    title: Optional[str] = Form(None),
    excerpt: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    author_id: Optional[str] = Form(None, alias="authorId"),
    tags: Optional[str] = Form(None),
    seo_title: Optional[str] = Form(None, alias="seoTitle"),
    seo_description: Optional[str] = Form(None, alias="seoDescription"),
    published_at: Optional[str] = Form(None, alias="publishedAt"),
    remove_image: Optional[str] = Form(None, alias="removeImage"),
) -> ArticleForm:
    return ArticleForm(
        title=title,
        excerpt=excerpt,
        content=content,
        author_id=author_id,
        tags=tags,
        seo_title=seo_title,
        seo_description=seo_description,
        published_at=published_at,
        remove_image=remove_image,
    )


@router.get("", response_model=ListResponse[ArticleResource])
async def list_articles(
    tag: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    service: ArticleService = Depends(get_article_service),
) -> dict[str, Any]:
    records, pagination = await service.list_published(
        tag=tag, search=search, page=page, limit=limit
    )
    return {"data": records, "pagination": pagination}


@router.get("/admin/all", response_model=ListResponse[ArticleResource])
async def list_all_articles(
    page: int = 1,
    limit: int = 20,
    _: Record = Depends(require_admin),
    service: ArticleService = Depends(get_article_service),
) -> dict[str, Any]:
    records, pagination = await service.list_all(page=page, limit=limit)
    return {"data": records, "pagination": pagination}


@router.get("/admin/{article_id}", response_model=DataResponse[ArticleResource])
async def get_article_by_id(
    article_id: str,
    _: Record = Depends(require_admin),
    service: ArticleService = Depends(get_article_service),
) -> dict[str, Any]:
    return {"data": await service.get(article_id), "message": "Article retrieved successfully"}


@router.get("/{slug}", response_model=DataResponse[ArticleResource])
async def get_article(
    slug: str,
    request: Request,
    background_tasks: BackgroundTasks,
    service: ArticleService = Depends(get_article_service),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, Any]:
    article = await service.get_published(slug)
    background_tasks.add_task(
        analytics.record_view_quietly,
        "article_view",
        resource_id=article["id"],
        resource_type="article",
        path=f"/articles/{slug}",
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
    )
    return {"data": article, "message": "Article retrieved successfully"}


@router.post("/admin", response_model=DataResponse[ArticleResource], status_code=201)
async def create_article(
    form: ArticleForm = Depends(article_form),
    image: Optional[UploadFile] = File(None),
    _: Record = Depends(require_admin),
    service: ArticleService = Depends(get_article_service),
    uploads: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    staged = await stage_single(uploads, image)
    article = await service.create(form, staged)
    return {"data": article, "message": "Article created successfully"}


@router.put("/admin/{article_id}", response_model=DataResponse[ArticleResource])
async def update_article(
    article_id: str,
    form: ArticleForm = Depends(article_form),
    image: Optional[UploadFile] = File(None),
    _: Record = Depends(require_admin),
    service: ArticleService = Depends(get_article_service),
    uploads: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    staged = await stage_single(uploads, image)
    article = await service.update(article_id, form, staged)
    return {"data": article, "message": "Article updated successfully"}


@router.delete("/admin/{article_id}", response_model=MessageResponse)
async def delete_article(
    article_id: str,
    _: Record = Depends(require_admin),
    service: ArticleService = Depends(get_article_service),
) -> dict[str, str]:
    await service.delete(article_id)
    return {"message": "Article deleted successfully"}
