from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from learnhub.api.courses import CourseOut, ModuleOut, VideoOut
from learnhub.api.dependencies import require_role
from learnhub.api.stores import get_catalog
from learnhub.models.course import Category
from learnhub.models.principal import Principal
from learnhub.services.catalog_service import CatalogStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

AdminDep = Annotated[Principal, Depends(require_role("admin"))]
CatalogDep = Annotated[CatalogStore, Depends(get_catalog)]


# --- Request / Response schemas -------------------------------------------


class CourseIn(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    category: Category
    thumbnail_url: str = ""


class CoursePatch(BaseModel):
    title: str | None = None
    description: str | None = None
    category: Category | None = None
    thumbnail_url: str | None = None


class ModuleIn(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    order: int | None = Field(default=None, ge=0)


class ModulePatch(BaseModel):
    title: str | None = None
    description: str | None = None
    order: int | None = Field(default=None, ge=0)


class VideoIn(BaseModel):
    title: str = Field(min_length=1)
    video_url: str = ""
    duration: int = Field(default=0, ge=0)
    order: int | None = Field(default=None, ge=0)


class VideoPatch(BaseModel):
    title: str | None = None
    video_url: str | None = None
    duration: int | None = Field(default=None, ge=0)
    order: int | None = Field(default=None, ge=0)


class DashboardOut(BaseModel):
    total_courses: int
    total_enrollments: int
    by_category: dict[str, int]
    popular: list[CourseOut]


def _patch_dict(patch: BaseModel) -> dict:
    # Only fields the client sent; explicit nulls are dropped too
    return {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}


# --- courses ---------------------------------------------------------------


@router.post("/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    body: CourseIn, principal: AdminDep, catalog: CatalogDep
) -> CourseOut:
    course = await catalog.create_course(
        title=body.title,
        description=body.description,
        category=body.category,
        thumbnail_url=body.thumbnail_url,
        created_by=principal.user_id,
    )
    return CourseOut.from_course(course)


@router.patch("/courses/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: str, body: CoursePatch, principal: AdminDep, catalog: CatalogDep
) -> CourseOut:
    course = await catalog.update_course(course_id, _patch_dict(body))
    logger.info("Course updated course_id=%s by user=%s", course_id, principal.user_id)
    return CourseOut.from_course(course)


@router.delete("/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: str, principal: AdminDep, catalog: CatalogDep
) -> Response:
    await catalog.delete_course(course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- modules ---------------------------------------------------------------


@router.post(
    "/courses/{course_id}/modules",
    response_model=ModuleOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_module(
    course_id: str, body: ModuleIn, principal: AdminDep, catalog: CatalogDep
) -> ModuleOut:
    module = await catalog.create_module(
        course_id, title=body.title, description=body.description, order=body.order
    )
    return ModuleOut.from_module(module)


@router.patch("/modules/{module_id}", response_model=ModuleOut)
async def update_module(
    module_id: str, body: ModulePatch, principal: AdminDep, catalog: CatalogDep
) -> ModuleOut:
    module = await catalog.update_module(module_id, _patch_dict(body))
    return ModuleOut.from_module(module, await catalog.list_videos(module_id))


@router.delete("/modules/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_module(
    module_id: str, principal: AdminDep, catalog: CatalogDep
) -> Response:
    await catalog.delete_module(module_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- videos ----------------------------------------------------------------


@router.post(
    "/modules/{module_id}/videos",
    response_model=VideoOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_video(
    module_id: str, body: VideoIn, principal: AdminDep, catalog: CatalogDep
) -> VideoOut:
    video = await catalog.create_video(
        module_id,
        title=body.title,
        video_url=body.video_url,
        duration=body.duration,
        order=body.order,
    )
    return VideoOut.from_video(video)


@router.patch("/videos/{video_id}", response_model=VideoOut)
async def update_video(
    video_id: str, body: VideoPatch, principal: AdminDep, catalog: CatalogDep
) -> VideoOut:
    return VideoOut.from_video(await catalog.update_video(video_id, _patch_dict(body)))


@router.delete("/videos/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video_id: str, principal: AdminDep, catalog: CatalogDep
) -> Response:
    await catalog.delete_video(video_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- dashboard -------------------------------------------------------------


@router.get("/dashboard", response_model=DashboardOut)
async def dashboard(principal: AdminDep, catalog: CatalogDep) -> DashboardOut:
    logger.info("Admin dashboard requested by user=%s", principal.user_id)
    stats = await catalog.dashboard_stats()
    return DashboardOut(
        total_courses=stats.total_courses,
        total_enrollments=stats.total_enrollments,
        by_category=stats.by_category,
        popular=[CourseOut.from_course(c) for c in stats.popular],
    )
