"""Public catalog endpoints and enrollment.

  GET  /v1/courses                     list, optional ?search= and ?category=
  GET  /v1/courses/{course_id}         course with ordered modules and videos
  POST /v1/courses/{course_id}/enroll  student only, idempotent
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from learnhub.api.dependencies import get_session
from learnhub.api.stores import get_catalog, get_engine
from learnhub.models.course import Category, Course, Module, Video
from learnhub.models.enrollment import EnrollmentRecord
from learnhub.models.session import Session
from learnhub.services.catalog_service import CatalogStore, CourseOutline
from learnhub.services.enrollment_service import EnrollmentEngine

router = APIRouter(prefix="/v1/courses", tags=["courses"])


class CourseOut(BaseModel):
    id: str
    title: str
    description: str
    category: Category
    thumbnail_url: str
    total_enrollments: int
    created_at: int

    @staticmethod
    def from_course(course: Course) -> CourseOut:
        return CourseOut(
            id=course.id,
            title=course.title,
            description=course.description,
            category=course.category,
            thumbnail_url=course.thumbnail_url,
            total_enrollments=course.total_enrollments,
            created_at=course.created_at,
        )


class VideoOut(BaseModel):
    id: str
    module_id: str
    title: str
    video_url: str
    duration: int
    order: int

    @staticmethod
    def from_video(video: Video) -> VideoOut:
        return VideoOut(
            id=video.id,
            module_id=video.module_id,
            title=video.title,
            video_url=video.video_url,
            duration=video.duration,
            order=video.order,
        )


class ModuleOut(BaseModel):
    id: str
    course_id: str
    title: str
    description: str
    order: int
    videos: list[VideoOut] = []

    @staticmethod
    def from_module(module: Module, videos: list[Video] | None = None) -> ModuleOut:
        return ModuleOut(
            id=module.id,
            course_id=module.course_id,
            title=module.title,
            description=module.description,
            order=module.order,
            videos=[VideoOut.from_video(v) for v in videos or []],
        )


class CourseDetailOut(CourseOut):
    modules: list[ModuleOut]

    @staticmethod
    def from_outline(outline: CourseOutline) -> CourseDetailOut:
        base = CourseOut.from_course(outline.course)
        return CourseDetailOut(
            **base.model_dump(),
            modules=[
                ModuleOut.from_module(m.module, m.videos) for m in outline.modules
            ],
        )


class EnrollmentOut(BaseModel):
    student_id: str
    course_id: str
    enrolled_at: int
    completed_modules: list[str]
    last_watched_video: str | None
    percentage: int

    @staticmethod
    def from_record(record: EnrollmentRecord) -> EnrollmentOut:
        return EnrollmentOut(
            student_id=record.student_id,
            course_id=record.course_id,
            enrolled_at=record.enrolled_at,
            completed_modules=sorted(record.completed_modules),
            last_watched_video=record.last_watched_video,
            percentage=record.percentage,
        )


@router.get("", response_model=list[CourseOut])
async def list_courses(
    catalog: Annotated[CatalogStore, Depends(get_catalog)],
    search: Annotated[str | None, Query(max_length=200)] = None,
    category: Category | None = None,
) -> list[CourseOut]:
    courses = await catalog.search_courses(search, category)
    return [CourseOut.from_course(c) for c in courses]


@router.get("/{course_id}", response_model=CourseDetailOut)
async def get_course(
    course_id: str,
    catalog: Annotated[CatalogStore, Depends(get_catalog)],
) -> CourseDetailOut:
    return CourseDetailOut.from_outline(await catalog.get_outline(course_id))


@router.post("/{course_id}/enroll", response_model=EnrollmentOut)
async def enroll(
    course_id: str,
    session: Annotated[Session | None, Depends(get_session)],
    engine: Annotated[EnrollmentEngine, Depends(get_engine)],
) -> EnrollmentOut:
    record = await engine.enroll(session, course_id)
    return EnrollmentOut.from_record(record)
