"""Portfolio project endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile

from ..repository import Record
from ..schemas.common import DataResponse, ListResponse, MessageResponse
from ..schemas.content import ImageReference, ProjectResource, RelatedProjectRequest
from ..services.analytics import AnalyticsService
from ..services.projects import ProjectFilters, ProjectForm, ProjectService
from ..services.uploads import UploadService
from .dependencies import (
    client_ip,
    get_analytics_service,
    get_project_service,
    get_upload_service,
    present_uploads,
    require_admin,
)

router = APIRouter(prefix="/api/projects", tags=["projects"])


def project_form(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    start_date: Optional[str] = Form(None, alias="startDate"),
    completion_date: Optional[str] = Form(None, alias="completionDate"),
    client: Optional[str] = Form(None),
    project_size: Optional[str] = Form(None, alias="projectSize"),
    technical_specs: Optional[str] = Form(None, alias="technicalSpecs"),
    team_credits: Optional[str] = Form(None, alias="teamCredits"),
    awards: Optional[str] = Form(None),
    is_featured: Optional[str] = Form(None, alias="isFeatured"),
    category_ids: Optional[str] = Form(None, alias="categoryIds"),
    published_at: Optional[str] = Form(None, alias="publishedAt"),
    existing_images: Optional[str] = Form(None, alias="existingImages"),
) -> ProjectForm:
    return ProjectForm(
        title=title,
        description=description,
        location=location,
        status=status,
        city=city,
        country=country,
        start_date=start_date,
        completion_date=completion_date,
        client=client,
        project_size=project_size,
        technical_specs=technical_specs,
        team_credits=team_credits,
        awards=awards,
        is_featured=is_featured,
        category_ids=category_ids,
        published_at=published_at,
        existing_images=existing_images,
    )


@router.get("", response_model=ListResponse[ProjectResource])
async def list_projects(
    category: Optional[str] = None,
    status: Optional[str] = None,
    year: Optional[int] = None,
    featured: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 12,
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    filters = ProjectFilters(
        category=category,
        status=status,
        year=year,
        featured=featured == "true",
        search=search,
    )
    records, pagination = await service.list_published(filters, page=page, limit=limit)
    return {"data": records, "pagination": pagination}


@router.get("/admin/all", response_model=ListResponse[ProjectResource])
async def list_all_projects(
    page: int = 1,
    limit: int = 20,
    _: Record = Depends(require_admin),
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    records, pagination = await service.list_all(page=page, limit=limit)
    return {"data": records, "pagination": pagination}


@router.get("/admin/{project_id}", response_model=DataResponse[ProjectResource])
async def get_project_by_id(
    project_id: str,
    _: Record = Depends(require_admin),
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    project = await service.get(project_id)
    return {"data": project, "message": "Project retrieved successfully"}


@router.get("/{slug}", response_model=DataResponse[ProjectResource])
async def get_project(
    slug: str,
    request: Request,
    background_tasks: BackgroundTasks,
    service: ProjectService = Depends(get_project_service),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, Any]:
    project = await service.get_published(slug)
    background_tasks.add_task(
        analytics.record_view_quietly,
        "project_view",
        resource_id=project["id"],
        resource_type="project",
        path=f"/projects/{slug}",
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
    )
    return {"data": project, "message": "Project retrieved successfully"}


@router.post("/admin", response_model=DataResponse[ProjectResource], status_code=201)
async def create_project(
    form: ProjectForm = Depends(project_form),
    images: Optional[list[UploadFile]] = File(None),
    _: Record = Depends(require_admin),
    service: ProjectService = Depends(get_project_service),
    uploads: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    staged = await uploads.stage_many(present_uploads(images))
    project = await service.create(form, staged)
    return {"data": project, "message": "Project created successfully"}


@router.put("/admin/{project_id}", response_model=DataResponse[ProjectResource])
async def update_project(
    project_id: str,
    form: ProjectForm = Depends(project_form),
    images: Optional[list[UploadFile]] = File(None),
    _: Record = Depends(require_admin),
    service: ProjectService = Depends(get_project_service),
    uploads: UploadService = Depends(get_upload_service),
) -> dict[str, Any]:
    staged = await uploads.stage_many(present_uploads(images))
    project = await service.update(project_id, form, staged)
    return {"data": project, "message": "Project updated successfully"}


@router.delete("/admin/{project_id}/images", response_model=DataResponse[ProjectResource])
async def delete_project_image(
    project_id: str,
    body: ImageReference,
    _: Record = Depends(require_admin),
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    project = await service.remove_image(project_id, body.image_url)
    return {"data": project, "message": "Image deleted successfully"}


@router.post("/admin/{project_id}/related", response_model=MessageResponse)
async def add_related_project(
    project_id: str,
    body: RelatedProjectRequest,
    _: Record = Depends(require_admin),
    service: ProjectService = Depends(get_project_service),
) -> dict[str, str]:
    await service.add_related(project_id, body.related_project_id)
    return {"message": "Related project added successfully"}


@router.delete("/admin/{project_id}/related", response_model=MessageResponse)
async def remove_related_project(
    project_id: str,
    body: RelatedProjectRequest,
    _: Record = Depends(require_admin),
    service: ProjectService = Depends(get_project_service),
) -> dict[str, str]:
    await service.remove_related(project_id, body.related_project_id)
    return {"message": "Related project removed successfully"}


@router.delete("/admin/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: str,
    _: Record = Depends(require_admin),
    service: ProjectService = Depends(get_project_service),
) -> dict[str, str]:
    await service.delete(project_id)
    return {"message": "Project deleted successfully"}
