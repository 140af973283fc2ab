"""Error taxonomy shared by the identity, catalog and enrollment services.

Services raise these; the HTTP layer maps them to responses through a
single exception handler (see learnhub/api/errors.py) using status_code.
"""

from __future__ import annotations


class LearnHubError(Exception):
    status_code: int = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.default_message())

    @classmethod
    def default_message(cls) -> str:
        return cls.__name__

    @property
    def message(self) -> str:
        return str(self.args[0])


class InvalidCredentials(LearnHubError):
    status_code = 401

    @classmethod
    def default_message(cls) -> str:
        return "Invalid email or password"


class AlreadyRegistered(LearnHubError):
    status_code = 409

    @classmethod
    def default_message(cls) -> str:
        return "This email is already registered"


class NotFound(LearnHubError):
    status_code = 404

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class NotEnrolled(LearnHubError):
    status_code = 404

    def __init__(self, course_id: str) -> None:
        self.course_id = course_id
        super().__init__(f"Not enrolled in course: {course_id}")


class ForbiddenRole(LearnHubError):
    status_code = 403

    @classmethod
    def default_message(cls) -> str:
        return "Insufficient permissions"


class NoActiveSession(LearnHubError):
    status_code = 401

    @classmethod
    def default_message(cls) -> str:
        return "No active session"


class TransientBackendError(LearnHubError):
    """Backend hiccup worth retrying (bounded, see IdentityStore.restore)."""

    status_code = 503

    @classmethod
    def default_message(cls) -> str:
        return "Backend temporarily unavailable"


class ValidationFailed(LearnHubError):
    status_code = 422


class EnrollmentConflict(LearnHubError):
    status_code = 409

    @classmethod
    def default_message(cls) -> str:
        return "Enrollment was modified concurrently, retry the request"
