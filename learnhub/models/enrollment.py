from __future__ import annotations

from dataclasses import dataclass, replace

from learnhub.models.user import now_ts


def progress_percentage(completed: int, total: int) -> int:
    """Whole-number share of completed modules, rounding halves up.

    A course with no modules reports 0 regardless of completions.
    """
    if total <= 0:
        return 0
    # Integer form of floor(100 * completed / total + 0.5)
    return min(100, (200 * completed + total) // (2 * total))


@dataclass(frozen=True, slots=True)
class EnrollmentRecord:
    """Per (student, course) membership and progress.

    version is bumped on every write and used as the compare-and-swap
    token by EnrollmentRepo.compare_and_set.
    """

    student_id: str
    course_id: str
    enrolled_at: int
    completed_modules: frozenset[str] = frozenset()
    last_watched_video: str | None = None
    percentage: int = 0
    version: int = 1

    @staticmethod
    def new(*, student_id: str, course_id: str) -> EnrollmentRecord:
        return EnrollmentRecord(
            student_id=student_id,
            course_id=course_id,
            enrolled_at=now_ts(),
        )

    @property
    def is_complete(self) -> bool:
        return self.percentage >= 100

    def with_progress(
        self, *, module_id: str, video_id: str, module_count: int
    ) -> EnrollmentRecord:
        completed = self.completed_modules | {module_id}
        return replace(
            self,
            completed_modules=completed,
            last_watched_video=video_id,
            percentage=progress_percentage(len(completed), module_count),
            version=self.version + 1,
        )
