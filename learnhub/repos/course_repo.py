from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol

from learnhub.models.course import Course, Module, Video


class CourseRepo(Protocol):
    async def list_all(self) -> list[Course]: ...
    async def get(self, course_id: str) -> Course | None: ...
    async def add(self, course: Course) -> None: ...
    async def update(self, course: Course) -> bool: ...
    async def delete(self, course_id: str) -> bool: ...
    async def increment_enrollments(self, course_id: str, delta: int = 1) -> bool: ...


class ModuleRepo(Protocol):
    async def list_by_course(self, course_id: str) -> list[Module]: ...
    async def count_by_course(self, course_id: str) -> int: ...
    async def get(self, module_id: str) -> Module | None: ...
    async def add(self, module: Module) -> None: ...
    async def update(self, module: Module) -> bool: ...
    async def delete(self, module_id: str) -> bool: ...
    async def delete_by_course(self, course_id: str) -> list[str]: ...


class VideoRepo(Protocol):
    async def list_by_module(self, module_id: str) -> list[Video]: ...
    async def get(self, video_id: str) -> Video | None: ...
    async def add(self, video: Video) -> None: ...
    async def update(self, video: Video) -> bool: ...
    async def delete(self, video_id: str) -> bool: ...
    async def delete_by_modules(self, module_ids: Iterable[str]) -> int: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        # dict keeps insertion order, which is creation order
        self._by_id: dict[str, Course] = {}

    async def list_all(self) -> list[Course]:
        return list(self._by_id.values())

    async def get(self, course_id: str) -> Course | None:
        return self._by_id.get(course_id)

    async def add(self, course: Course) -> None:
        if course.id in self._by_id:
            raise ValueError("course already exists")
        self._by_id[course.id] = course

    async def update(self, course: Course) -> bool:
        if course.id not in self._by_id:
            return False
        self._by_id[course.id] = course
        return True

    async def delete(self, course_id: str) -> bool:
        return self._by_id.pop(course_id, None) is not None

    async def increment_enrollments(self, course_id: str, delta: int = 1) -> bool:
        c = self._by_id.get(course_id)
        if c is None:
            return False
        self._by_id[course_id] = replace(
            c, total_enrollments=c.total_enrollments + delta
        )
        return True

    def clear(self) -> None:
        self._by_id.clear()


class InMemoryModuleRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Module] = {}

    async def list_by_course(self, course_id: str) -> list[Module]:
        found = [m for m in self._by_id.values() if m.course_id == course_id]
        return sorted(found, key=lambda m: m.order)

    async def count_by_course(self, course_id: str) -> int:
        return sum(1 for m in self._by_id.values() if m.course_id == course_id)

    async def get(self, module_id: str) -> Module | None:
        return self._by_id.get(module_id)

    async def add(self, module: Module) -> None:
        if module.id in self._by_id:
            raise ValueError("module already exists")
        self._by_id[module.id] = module

    async def update(self, module: Module) -> bool:
        if module.id not in self._by_id:
            return False
        self._by_id[module.id] = module
        return True

    async def delete(self, module_id: str) -> bool:
        return self._by_id.pop(module_id, None) is not None

    async def delete_by_course(self, course_id: str) -> list[str]:
        removed = [m.id for m in self._by_id.values() if m.course_id == course_id]
        for module_id in removed:
            del self._by_id[module_id]
        return removed

    def clear(self) -> None:
        self._by_id.clear()


class InMemoryVideoRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Video] = {}

    async def list_by_module(self, module_id: str) -> list[Video]:
        found = [v for v in self._by_id.values() if v.module_id == module_id]
        return sorted(found, key=lambda v: v.order)

    async def get(self, video_id: str) -> Video | None:
        return self._by_id.get(video_id)

    async def add(self, video: Video) -> None:
        if video.id in self._by_id:
            raise ValueError("video already exists")
        self._by_id[video.id] = video

    async def update(self, video: Video) -> bool:
        if video.id not in self._by_id:
            return False
        self._by_id[video.id] = video
        return True

    async def delete(self, video_id: str) -> bool:
        return self._by_id.pop(video_id, None) is not None

    async def delete_by_modules(self, module_ids: Iterable[str]) -> int:
        targets = set(module_ids)
        removed = [v.id for v in self._by_id.values() if v.module_id in targets]
        for video_id in removed:
            del self._by_id[video_id]
        return len(removed)

    def clear(self) -> None:
        self._by_id.clear()
