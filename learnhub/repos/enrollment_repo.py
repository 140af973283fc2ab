from __future__ import annotations

from typing import Protocol

from learnhub.models.enrollment import EnrollmentRecord


class EnrollmentRepo(Protocol):
    async def get(self, student_id: str, course_id: str) -> EnrollmentRecord | None: ...
    async def add_if_absent(self, record: EnrollmentRecord) -> bool: ...
    async def compare_and_set(
        self, record: EnrollmentRecord, expected_version: int
    ) -> bool: ...
    async def delete(self, student_id: str, course_id: str) -> bool: ...
    async def list_by_student(self, student_id: str) -> list[EnrollmentRecord]: ...


class WishlistRepo(Protocol):
    async def add(self, student_id: str, course_id: str) -> bool: ...
    async def remove(self, student_id: str, course_id: str) -> bool: ...
    async def list_by_student(self, student_id: str) -> list[str]: ...


class InMemoryEnrollmentRepo:
    """One entry per (student, course); writes replace single records."""

    def __init__(self) -> None:
        self._store: dict[tuple[str, str], EnrollmentRecord] = {}

    async def get(self, student_id: str, course_id: str) -> EnrollmentRecord | None:
        return self._store.get((student_id, course_id))

    async def add_if_absent(self, record: EnrollmentRecord) -> bool:
        key = (record.student_id, record.course_id)
        if key in self._store:
            return False
        self._store[key] = record
        return True

    async def compare_and_set(
        self, record: EnrollmentRecord, expected_version: int
    ) -> bool:
        key = (record.student_id, record.course_id)
        current = self._store.get(key)
        if current is None or current.version != expected_version:
            return False
        self._store[key] = record
        return True

    async def delete(self, student_id: str, course_id: str) -> bool:
        return self._store.pop((student_id, course_id), None) is not None

    async def list_by_student(self, student_id: str) -> list[EnrollmentRecord]:
        return [r for r in self._store.values() if r.student_id == student_id]

    def clear(self) -> None:
        self._store.clear()


class InMemoryWishlistRepo:
    def __init__(self) -> None:
        # student_id -> course ids; dict-as-ordered-set keeps insertion order
        self._store: dict[str, dict[str, None]] = {}

    async def add(self, student_id: str, course_id: str) -> bool:
        items = self._store.setdefault(student_id, {})
        if course_id in items:
            return False
        items[course_id] = None
        return True

    async def remove(self, student_id: str, course_id: str) -> bool:
        items = self._store.get(student_id)
        if not items or course_id not in items:
            return False
        del items[course_id]
        return True

    async def list_by_student(self, student_id: str) -> list[str]:
        return list(self._store.get(student_id, {}))

    def clear(self) -> None:
        self._store.clear()
