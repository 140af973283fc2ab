"""PostgreSQL implementations of EnrollmentRepo and WishlistRepo.

Each record is its own row, so concurrent writers touch only the
(student, course) pair they mean to change.  Inserts use
ON CONFLICT DO NOTHING for idempotency; progress updates are guarded by
the version column.
"""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.tables import EnrollmentRow, WishlistItemRow
from learnhub.models.enrollment import EnrollmentRecord


class PgEnrollmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, student_id: str, course_id: str) -> EnrollmentRecord | None:
        # populate_existing: CAS updates bypass the identity map, so a
        # cached row may hold a stale version.
        row = await self._session.get(
            EnrollmentRow, (student_id, course_id), populate_existing=True
        )
        if row is None:
            return None
        return _row_to_record(row)

    async def add_if_absent(self, record: EnrollmentRecord) -> bool:
        stmt = (
            insert(EnrollmentRow)
            .values(
                student_id=record.student_id,
                course_id=record.course_id,
                enrolled_at=record.enrolled_at,
                completed_modules=sorted(record.completed_modules),
                last_watched_video=record.last_watched_video,
                percentage=record.percentage,
                version=record.version,
            )
            .on_conflict_do_nothing(index_elements=["student_id", "course_id"])
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def compare_and_set(
        self, record: EnrollmentRecord, expected_version: int
    ) -> bool:
        stmt = (
            update(EnrollmentRow)
            .where(
                EnrollmentRow.student_id == record.student_id,
                EnrollmentRow.course_id == record.course_id,
                EnrollmentRow.version == expected_version,
            )
            .values(
                completed_modules=sorted(record.completed_modules),
                last_watched_video=record.last_watched_video,
                percentage=record.percentage,
                version=record.version,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def delete(self, student_id: str, course_id: str) -> bool:
        stmt = delete(EnrollmentRow).where(
            EnrollmentRow.student_id == student_id,
            EnrollmentRow.course_id == course_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def list_by_student(self, student_id: str) -> list[EnrollmentRecord]:
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.student_id == student_id)
            .order_by(EnrollmentRow.seq)
            .execution_options(populate_existing=True)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_record(r) for r in rows]


class PgWishlistRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, student_id: str, course_id: str) -> bool:
        stmt = (
            insert(WishlistItemRow)
            .values(student_id=student_id, course_id=course_id)
            .on_conflict_do_nothing(index_elements=["student_id", "course_id"])
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def remove(self, student_id: str, course_id: str) -> bool:
        stmt = delete(WishlistItemRow).where(
            WishlistItemRow.student_id == student_id,
            WishlistItemRow.course_id == course_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def list_by_student(self, student_id: str) -> list[str]:
        stmt = (
            select(WishlistItemRow.course_id)
            .where(WishlistItemRow.student_id == student_id)
            .order_by(WishlistItemRow.seq)
        )
        return list((await self._session.execute(stmt)).scalars().all())


def _row_to_record(row: EnrollmentRow) -> EnrollmentRecord:
    return EnrollmentRecord(
        student_id=row.student_id,
        course_id=row.course_id,
        enrolled_at=row.enrolled_at,
        completed_modules=frozenset(row.completed_modules or ()),
        last_watched_video=row.last_watched_video,
        percentage=row.percentage,
        version=row.version,
    )
