"""Catalog store: courses, their modules, and the modules' videos.

Storage only.  Role checks happen before these methods are reached (the
admin routes guard every write), so the store can be reused by seeding
and tests without a session.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

from learnhub.core.errors import NotFound, ValidationFailed
from learnhub.models.course import (
    CATEGORIES,
    COURSE_PATCHABLE,
    MODULE_PATCHABLE,
    VIDEO_PATCHABLE,
    Category,
    Course,
    Module,
    Video,
)
from learnhub.repos.course_repo import CourseRepo, ModuleRepo, VideoRepo

logger = logging.getLogger(__name__)

POPULAR_LIMIT = 5

_T = TypeVar("_T", Course, Module, Video)


@dataclass(frozen=True, slots=True)
class ModuleOutline:
    module: Module
    videos: list[Video]


@dataclass(frozen=True, slots=True)
class CourseOutline:
    course: Course
    modules: list[ModuleOutline]


@dataclass(frozen=True, slots=True)
class CatalogStats:
    total_courses: int
    total_enrollments: int
    by_category: dict[str, int] = field(default_factory=dict)
    popular: list[Course] = field(default_factory=list)


def _check_category(value: object) -> None:
    if value not in CATEGORIES:
        raise ValidationFailed(
            f"category must be one of {'|'.join(CATEGORIES)} (got {value!r})"
        )


def _check_title(value: object) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed("title must be a non-empty string")


def _check_non_negative(name: str, value: object) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationFailed(f"{name} must be a non-negative integer")


def _apply_patch(entity: _T, patch: Mapping[str, Any], allowed: frozenset[str]) -> _T:
    unknown = set(patch) - allowed
    if unknown:
        raise ValidationFailed(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    if "title" in patch:
        _check_title(patch["title"])
    if "category" in patch:
        _check_category(patch["category"])
    for name in ("order", "duration"):
        if name in patch:
            _check_non_negative(name, patch[name])
    return replace(entity, **patch)


class CatalogStore:
    def __init__(
        self, courses: CourseRepo, modules: ModuleRepo, videos: VideoRepo
    ) -> None:
        self._courses = courses
        self._modules = modules
        self._videos = videos

    # --- courses -------------------------------------------------------------

    async def list_courses(self) -> list[Course]:
        """All courses in creation order."""
        return await self._courses.list_all()

    async def search_courses(
        self, term: str | None = None, category: str | None = None
    ) -> list[Course]:
        """Case-insensitive substring match on title or description,
        optionally narrowed to one category."""
        needle = (term or "").strip().lower()
        results = []
        for course in await self._courses.list_all():
            if category and course.category != category:
                continue
            if needle and not (
                needle in course.title.lower() or needle in course.description.lower()
            ):
                continue
            results.append(course)
        return results

    async def get_course(self, course_id: str) -> Course:
        course = await self._courses.get(course_id)
        if course is None:
            raise NotFound("Course", course_id)
        return course

    async def get_outline(self, course_id: str) -> CourseOutline:
        course = await self.get_course(course_id)
        modules = [
            ModuleOutline(module=m, videos=await self._videos.list_by_module(m.id))
            for m in await self._modules.list_by_course(course_id)
        ]
        return CourseOutline(course=course, modules=modules)

    async def create_course(
        self,
        *,
        title: str,
        description: str,
        category: Category,
        thumbnail_url: str = "",
        created_by: str | None = None,
    ) -> Course:
        _check_title(title)
        _check_category(category)
        course = Course.new(
            title=title.strip(),
            description=description,
            category=category,
            thumbnail_url=thumbnail_url,
            created_by=created_by,
        )
        await self._courses.add(course)
        logger.info("Course created course_id=%s", course.id)
        return course

    async def update_course(self, course_id: str, patch: Mapping[str, Any]) -> Course:
        current = await self.get_course(course_id)
        updated = _apply_patch(current, patch, COURSE_PATCHABLE)
        if not await self._courses.update(updated):
            raise NotFound("Course", course_id)
        return updated

    async def delete_course(self, course_id: str) -> None:
        """Remove the course, its modules, and their videos.

        Steps run in order without a shared transaction on the in-memory
        backend; a failure part way leaves the later steps undone.
        """
        if not await self._courses.delete(course_id):
            raise NotFound("Course", course_id)
        module_ids = await self._modules.delete_by_course(course_id)
        removed_videos = await self._videos.delete_by_modules(module_ids)
        logger.info(
            "Course deleted course_id=%s modules=%d videos=%d",
            course_id,
            len(module_ids),
            removed_videos,
        )

    # --- enrollment counter --------------------------------------------------

    async def count_enrollment(self, course_id: str) -> None:
        """Bump total_enrollments by one.  Only the enrollment engine calls this."""
        if not await self._courses.increment_enrollments(course_id):
            raise NotFound("Course", course_id)

    # --- modules -------------------------------------------------------------

    async def list_modules(self, course_id: str) -> list[Module]:
        return await self._modules.list_by_course(course_id)

    async def module_count(self, course_id: str) -> int:
        return await self._modules.count_by_course(course_id)

    async def get_module(self, module_id: str) -> Module:
        module = await self._modules.get(module_id)
        if module is None:
            raise NotFound("Module", module_id)
        return module

    async def create_module(
        self,
        course_id: str,
        *,
        title: str,
        description: str = "",
        order: int | None = None,
    ) -> Module:
        await self.get_course(course_id)
        _check_title(title)
        if order is None:
            # Append after the existing modules
            order = await self._modules.count_by_course(course_id) + 1
        _check_non_negative("order", order)
        module = Module.new(
            course_id=course_id, title=title.strip(), description=description, order=order
        )
        await self._modules.add(module)
        logger.info("Module created module_id=%s course_id=%s", module.id, course_id)
        return module

    async def update_module(self, module_id: str, patch: Mapping[str, Any]) -> Module:
        current = await self.get_module(module_id)
        updated = _apply_patch(current, patch, MODULE_PATCHABLE)
        if not await self._modules.update(updated):
            raise NotFound("Module", module_id)
        return updated

    async def delete_module(self, module_id: str) -> None:
        if not await self._modules.delete(module_id):
            raise NotFound("Module", module_id)
        await self._videos.delete_by_modules([module_id])
        logger.info("Module deleted module_id=%s", module_id)

    # --- videos --------------------------------------------------------------

    async def list_videos(self, module_id: str) -> list[Video]:
        return await self._videos.list_by_module(module_id)

    async def get_video(self, video_id: str) -> Video:
        video = await self._videos.get(video_id)
        if video is None:
            raise NotFound("Video", video_id)
        return video

    async def create_video(
        self,
        module_id: str,
        *,
        title: str,
        video_url: str = "",
        duration: int = 0,
        order: int | None = None,
    ) -> Video:
        await self.get_module(module_id)
        _check_title(title)
        _check_non_negative("duration", duration)
        if order is None:
            order = len(await self._videos.list_by_module(module_id)) + 1
        _check_non_negative("order", order)
        video = Video.new(
            module_id=module_id,
            title=title.strip(),
            video_url=video_url,
            duration=duration,
            order=order,
        )
        await self._videos.add(video)
        return video

    async def update_video(self, video_id: str, patch: Mapping[str, Any]) -> Video:
        current = await self.get_video(video_id)
        updated = _apply_patch(current, patch, VIDEO_PATCHABLE)
        if not await self._videos.update(updated):
            raise NotFound("Video", video_id)
        return updated

    async def delete_video(self, video_id: str) -> None:
        if not await self._videos.delete(video_id):
            raise NotFound("Video", video_id)

    # --- admin dashboard -----------------------------------------------------

    async def dashboard_stats(self) -> CatalogStats:
        courses = await self._courses.list_all()
        by_category = {c: 0 for c in CATEGORIES}
        for course in courses:
            by_category[course.category] = by_category.get(course.category, 0) + 1
        # sorted() is stable, so ties keep creation order
        popular = sorted(courses, key=lambda c: c.total_enrollments, reverse=True)
        return CatalogStats(
            total_courses=len(courses),
            total_enrollments=sum(c.total_enrollments for c in courses),
            by_category=by_category,
            popular=popular[:POPULAR_LIMIT],
        )
