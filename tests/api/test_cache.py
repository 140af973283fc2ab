"""Read-through cache behind GET /v1/me/dashboard.

1. First GET populates the cache entry for the student
2. Writes (enroll, progress, wishlist) invalidate it
3. Entries are per student
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from learnhub.models.user import UserProfile
from learnhub.services.cache import cache_service
from learnhub.services.enrollment_service import dashboard_cache_key
from tests.conftest import add_user, auth_header, create_course, mint_token


def _dashboard(client: TestClient, token: str) -> dict:
    resp = client.get("/v1/me/dashboard", headers=auth_header(token))
    assert resp.status_code == 200
    return resp.json()


def _cached(user: UserProfile) -> str | None:
    return cache_service._store.get(dashboard_cache_key(user.id))  # type: ignore[union-attr]


def test_first_read_populates_cache(
    client: TestClient, student: UserProfile, student_token: str
) -> None:
    assert _cached(student) is None
    payload = _dashboard(client, student_token)
    assert payload == {
        "enrolled_count": 0,
        "completed_count": 0,
        "wishlist_count": 0,
        "in_progress": [],
    }
    assert _cached(student) is not None


def test_writes_invalidate_dashboard(
    client: TestClient, student: UserProfile, student_token: str
) -> None:
    course, (m1,) = create_course(1)
    headers = auth_header(student_token)
    _dashboard(client, student_token)

    client.post(f"/v1/courses/{course.id}/enroll", headers=headers)
    assert _cached(student) is None
    after_enroll = _dashboard(client, student_token)
    assert after_enroll["enrolled_count"] == 1
    assert after_enroll["in_progress"][0]["course_id"] == course.id

    client.post(
        "/v1/progress",
        json={"course_id": course.id, "module_id": m1.id, "video_id": "v1"},
        headers=headers,
    )
    after_progress = _dashboard(client, student_token)
    assert after_progress["completed_count"] == 1
    assert after_progress["in_progress"] == []

    client.post(f"/v1/me/wishlist/{course.id}", headers=headers)
    assert _dashboard(client, student_token)["wishlist_count"] == 1


def test_cache_is_per_student(client: TestClient, student_token: str) -> None:
    course, _ = create_course()
    client.post(f"/v1/courses/{course.id}/enroll", headers=auth_header(student_token))
    assert _dashboard(client, student_token)["enrolled_count"] == 1

    other = mint_token(add_user())
    assert _dashboard(client, other)["enrolled_count"] == 0


def test_admin_has_no_student_dashboard(client: TestClient, admin_token: str) -> None:
    resp = client.get("/v1/me/dashboard", headers=auth_header(admin_token))
    assert resp.status_code == 403
