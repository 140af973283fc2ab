"""PostgreSQL implementations of CourseRepo, ModuleRepo and VideoRepo."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.tables import CourseRow, ModuleRow, VideoRow
from learnhub.models.course import Course, Module, Video


class PgCourseRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> list[Course]:
        stmt = select(CourseRow).order_by(CourseRow.seq)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def get(self, course_id: str) -> Course | None:
        row = await self._session.get(CourseRow, course_id)
        if row is None:
            return None
        return _row_to_course(row)

    async def add(self, course: Course) -> None:
        self._session.add(
            CourseRow(
                id=course.id,
                title=course.title,
                description=course.description,
                category=course.category,
                thumbnail_url=course.thumbnail_url,
                created_by=course.created_by,
                total_enrollments=course.total_enrollments,
                created_at=course.created_at,
            )
        )
        await self._session.flush()

    async def update(self, course: Course) -> bool:
        # total_enrollments is deliberately absent: only
        # increment_enrollments writes it, atomically in SQL.
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course.id)
            .values(
                title=course.title,
                description=course.description,
                category=course.category,
                thumbnail_url=course.thumbnail_url,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete(self, course_id: str) -> bool:
        result = await self._session.execute(
            delete(CourseRow).where(CourseRow.id == course_id)
        )
        return result.rowcount > 0

    async def increment_enrollments(self, course_id: str, delta: int = 1) -> bool:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id)
            .values(total_enrollments=CourseRow.total_enrollments + delta)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0


class PgModuleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_by_course(self, course_id: str) -> list[Module]:
        stmt = (
            select(ModuleRow)
            .where(ModuleRow.course_id == course_id)
            .order_by(ModuleRow.position)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_module(r) for r in rows]

    async def count_by_course(self, course_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(ModuleRow)
            .where(ModuleRow.course_id == course_id)
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def get(self, module_id: str) -> Module | None:
        row = await self._session.get(ModuleRow, module_id)
        if row is None:
            return None
        return _row_to_module(row)

    async def add(self, module: Module) -> None:
        self._session.add(
            ModuleRow(
                id=module.id,
                course_id=module.course_id,
                title=module.title,
                description=module.description,
                position=module.order,
            )
        )
        await self._session.flush()

    async def update(self, module: Module) -> bool:
        stmt = (
            update(ModuleRow)
            .where(ModuleRow.id == module.id)
            .values(
                title=module.title,
                description=module.description,
                position=module.order,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete(self, module_id: str) -> bool:
        result = await self._session.execute(
            delete(ModuleRow).where(ModuleRow.id == module_id)
        )
        return result.rowcount > 0

    async def delete_by_course(self, course_id: str) -> list[str]:
        stmt = (
            delete(ModuleRow)
            .where(ModuleRow.course_id == course_id)
            .returning(ModuleRow.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class PgVideoRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_by_module(self, module_id: str) -> list[Video]:
        stmt = (
            select(VideoRow)
            .where(VideoRow.module_id == module_id)
            .order_by(VideoRow.position)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_video(r) for r in rows]

    async def get(self, video_id: str) -> Video | None:
        row = await self._session.get(VideoRow, video_id)
        if row is None:
            return None
        return _row_to_video(row)

    async def add(self, video: Video) -> None:
        self._session.add(
            VideoRow(
                id=video.id,
                module_id=video.module_id,
                title=video.title,
                video_url=video.video_url,
                duration=video.duration,
                position=video.order,
            )
        )
        await self._session.flush()

    async def update(self, video: Video) -> bool:
        stmt = (
            update(VideoRow)
            .where(VideoRow.id == video.id)
            .values(
                title=video.title,
                video_url=video.video_url,
                duration=video.duration,
                position=video.order,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete(self, video_id: str) -> bool:
        result = await self._session.execute(
            delete(VideoRow).where(VideoRow.id == video_id)
        )
        return result.rowcount > 0

    async def delete_by_modules(self, module_ids: Iterable[str]) -> int:
        ids = list(module_ids)
        if not ids:
            return 0
        result = await self._session.execute(
            delete(VideoRow).where(VideoRow.module_id.in_(ids))
        )
        return result.rowcount


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        description=row.description,
        category=row.category,  # type: ignore[arg-type]
        thumbnail_url=row.thumbnail_url,
        created_by=row.created_by,
        total_enrollments=row.total_enrollments,
        created_at=row.created_at,
    )


def _row_to_module(row: ModuleRow) -> Module:
    return Module(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        description=row.description,
        order=row.position,
    )


def _row_to_video(row: VideoRow) -> Video:
    return Video(
        id=row.id,
        module_id=row.module_id,
        title=row.title,
        video_url=row.video_url,
        duration=row.duration,
        order=row.position,
    )
