from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import uuid4

from learnhub.models.user import now_ts

Category = Literal["Beginner", "Average", "Advanced"]
CATEGORIES: tuple[Category, ...] = ("Beginner", "Average", "Advanced")


@dataclass(frozen=True, slots=True)
class Course:
    id: str
    title: str
    description: str
    category: Category
    thumbnail_url: str = ""
    created_by: str | None = None
    total_enrollments: int = 0  # only enrollment operations touch this
    created_at: int = 0

    @staticmethod
    def new(
        *,
        title: str,
        description: str,
        category: Category,
        thumbnail_url: str = "",
        created_by: str | None = None,
    ) -> Course:
        return Course(
            id=str(uuid4()),
            title=title,
            description=description,
            category=category,
            thumbnail_url=thumbnail_url,
            created_by=created_by,
            total_enrollments=0,
            created_at=now_ts(),
        )


@dataclass(frozen=True, slots=True)
class Module:
    id: str
    course_id: str
    title: str
    description: str = ""
    order: int = 0

    @staticmethod
    def new(
        *, course_id: str, title: str, description: str = "", order: int = 0
    ) -> Module:
        return Module(
            id=str(uuid4()),
            course_id=course_id,
            title=title,
            description=description,
            order=order,
        )


@dataclass(frozen=True, slots=True)
class Video:
    id: str
    module_id: str
    title: str
    video_url: str = ""
    duration: int = 0  # seconds
    order: int = 0

    @staticmethod
    def new(
        *,
        module_id: str,
        title: str,
        video_url: str = "",
        duration: int = 0,
        order: int = 0,
    ) -> Video:
        return Video(
            id=str(uuid4()),
            module_id=module_id,
            title=title,
            video_url=video_url,
            duration=duration,
            order=order,
        )


# Fields a patch may touch.  Ownership links, ids, timestamps and the
# enrollment counter are managed by the stores themselves.
COURSE_PATCHABLE = frozenset({"title", "description", "category", "thumbnail_url"})
MODULE_PATCHABLE = frozenset({"title", "description", "order"})
VIDEO_PATCHABLE = frozenset({"title", "video_url", "duration", "order"})
