"""Enrollment and progress engine, plus the student wishlist.

Every operation takes the caller's Session explicitly and checks the
student role first.  Records are keyed per (student, course); progress
writes go through compare-and-swap on EnrollmentRecord.version so two
concurrent writers cannot drop each other's completed modules.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from learnhub.core.errors import EnrollmentConflict, NotEnrolled, NotFound
from learnhub.models.enrollment import EnrollmentRecord
from learnhub.models.session import Session
from learnhub.repos.enrollment_repo import EnrollmentRepo, WishlistRepo
from learnhub.services.access import require_student
from learnhub.services.cache import CacheService
from learnhub.services.catalog_service import CatalogStore

logger = logging.getLogger(__name__)

DASHBOARD_TTL_SECONDS = 300
MAX_CAS_ATTEMPTS = 3


def dashboard_cache_key(student_id: str) -> str:
    return f"dashboard:{student_id}"


@dataclass(frozen=True, slots=True)
class StudentDashboard:
    enrolled_count: int
    completed_count: int
    wishlist_count: int
    in_progress: list[EnrollmentRecord]

    @staticmethod
    def from_records(
        records: list[EnrollmentRecord], wishlist_count: int
    ) -> StudentDashboard:
        return StudentDashboard(
            enrolled_count=len(records),
            completed_count=sum(1 for r in records if r.is_complete),
            wishlist_count=wishlist_count,
            in_progress=[r for r in records if not r.is_complete],
        )


def _snapshot_to_json(records: list[EnrollmentRecord], wishlist_count: int) -> str:
    return json.dumps(
        {
            "records": [_record_to_dict(r) for r in records],
            "wishlist_count": wishlist_count,
        }
    )


def _snapshot_from_json(raw: str) -> tuple[list[EnrollmentRecord], int]:
    data = json.loads(raw)
    return [_record_from_dict(d) for d in data["records"]], data["wishlist_count"]


def _record_to_dict(record: EnrollmentRecord) -> dict:
    return {
        "student_id": record.student_id,
        "course_id": record.course_id,
        "enrolled_at": record.enrolled_at,
        "completed_modules": sorted(record.completed_modules),
        "last_watched_video": record.last_watched_video,
        "percentage": record.percentage,
        "version": record.version,
    }


def _record_from_dict(data: dict) -> EnrollmentRecord:
    return EnrollmentRecord(
        student_id=data["student_id"],
        course_id=data["course_id"],
        enrolled_at=data["enrolled_at"],
        completed_modules=frozenset(data["completed_modules"]),
        last_watched_video=data["last_watched_video"],
        percentage=data["percentage"],
        version=data["version"],
    )


class EnrollmentEngine:
    def __init__(
        self,
        catalog: CatalogStore,
        enrollments: EnrollmentRepo,
        wishlists: WishlistRepo,
        cache: CacheService,
        *,
        max_cas_attempts: int = MAX_CAS_ATTEMPTS,
    ) -> None:
        self._catalog = catalog
        self._enrollments = enrollments
        self._wishlists = wishlists
        self._cache = cache
        self._max_cas_attempts = max_cas_attempts

    # --- enrollment ----------------------------------------------------------

    async def enroll(self, session: Session | None, course_id: str) -> EnrollmentRecord:
        """Enroll the current student; returns the existing record if already enrolled.

        Creating the record and counting it on the course are one logical
        step: when the counter update fails the new record is removed again
        before the error propagates.
        """
        student = require_student(session)
        await self._catalog.get_course(course_id)

        existing = await self._enrollments.get(student.user_id, course_id)
        if existing is not None:
            logger.debug(
                "Already enrolled student=%s course=%s", student.user_id, course_id
            )
            return existing

        record = EnrollmentRecord.new(student_id=student.user_id, course_id=course_id)
        if not await self._enrollments.add_if_absent(record):
            # A concurrent enroll for the same pair won and counted it
            winner = await self._enrollments.get(student.user_id, course_id)
            if winner is None:
                raise EnrollmentConflict()
            return winner

        try:
            await self._catalog.count_enrollment(course_id)
        except Exception:
            logger.warning(
                "Enrollment counter update failed, removing record student=%s course=%s",
                student.user_id,
                course_id,
            )
            try:
                await self._enrollments.delete(student.user_id, course_id)
            except Exception:
                # On Postgres the aborted transaction's rollback removes it
                logger.exception(
                    "Could not remove enrollment student=%s course=%s",
                    student.user_id,
                    course_id,
                )
            raise

        await self._invalidate(student.user_id)
        logger.info("Enrolled student=%s course=%s", student.user_id, course_id)
        return record

    async def record_progress(
        self,
        session: Session | None,
        course_id: str,
        module_id: str,
        video_id: str,
    ) -> EnrollmentRecord:
        """Mark module_id complete and remember video_id as last watched.

        The percentage is recomputed against the course's module count at
        the time of the write.
        """
        student = require_student(session)

        for attempt in range(1, self._max_cas_attempts + 1):
            current = await self._enrollments.get(student.user_id, course_id)
            if current is None:
                raise NotEnrolled(course_id)
            if attempt == 1:
                module = await self._catalog.get_module(module_id)
                if module.course_id != course_id:
                    raise NotFound("Module", module_id)

            module_count = await self._catalog.module_count(course_id)
            updated = current.with_progress(
                module_id=module_id, video_id=video_id, module_count=module_count
            )
            if await self._enrollments.compare_and_set(updated, current.version):
                await self._invalidate(student.user_id)
                logger.info(
                    "Progress recorded student=%s course=%s module=%s percentage=%d",
                    student.user_id,
                    course_id,
                    module_id,
                    updated.percentage,
                )
                return updated

            logger.info(
                "Progress write lost a concurrent update student=%s course=%s attempt=%d",
                student.user_id,
                course_id,
                attempt,
            )

        raise EnrollmentConflict()

    async def list_enrollments(self, session: Session | None) -> list[EnrollmentRecord]:
        student = require_student(session)
        return await self._enrollments.list_by_student(student.user_id)

    async def get_enrollment(
        self, session: Session | None, course_id: str
    ) -> EnrollmentRecord:
        student = require_student(session)
        record = await self._enrollments.get(student.user_id, course_id)
        if record is None:
            raise NotEnrolled(course_id)
        return record

    # --- wishlist ------------------------------------------------------------

    async def wishlist_add(self, session: Session | None, course_id: str) -> None:
        student = require_student(session)
        await self._catalog.get_course(course_id)
        if await self._wishlists.add(student.user_id, course_id):
            await self._invalidate(student.user_id)

    async def wishlist_remove(self, session: Session | None, course_id: str) -> None:
        student = require_student(session)
        if await self._wishlists.remove(student.user_id, course_id):
            await self._invalidate(student.user_id)

    async def get_wishlist(self, session: Session | None) -> list[str]:
        student = require_student(session)
        return await self._wishlists.list_by_student(student.user_id)

    # --- dashboard -----------------------------------------------------------

    async def student_dashboard(self, session: Session | None) -> StudentDashboard:
        """Counts and in-progress courses for the current student.

        The student's records are cached; the course filter runs on every
        read because deleting a course does not touch per-student entries.
        """
        student = require_student(session)
        key = dashboard_cache_key(student.user_id)

        cached = await self._cache.get(key)
        if cached is not None:
            records, wishlist_count = _snapshot_from_json(cached)
        else:
            records = await self._enrollments.list_by_student(student.user_id)
            wishlist_count = len(await self._wishlists.list_by_student(student.user_id))
            await self._cache.set(
                key, _snapshot_to_json(records, wishlist_count), DASHBOARD_TTL_SECONDS
            )

        # Enrollments in courses that no longer exist are left out
        live_ids = {c.id for c in await self._catalog.list_courses()}
        return StudentDashboard.from_records(
            [r for r in records if r.course_id in live_ids], wishlist_count
        )

    async def _invalidate(self, student_id: str) -> None:
        await self._cache.delete(dashboard_cache_key(student_id))
