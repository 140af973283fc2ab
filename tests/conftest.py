from __future__ import annotations

import asyncio
import os
import uuid

# Settings are read at import time; keep test runs on the in-memory
# backends and make profile-retry backoff instant.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("PROFILE_FETCH_BACKOFF_MS", "0")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from learnhub.api.stores import build_catalog, memory_repos  # noqa: E402
from learnhub.main import app  # noqa: E402
from learnhub.models.course import Course, Module  # noqa: E402
from learnhub.models.principal import Role  # noqa: E402
from learnhub.models.session import Session  # noqa: E402
from learnhub.models.user import UserProfile  # noqa: E402
from learnhub.services import auth_service, token_service  # noqa: E402
from learnhub.services.cache import cache_service  # noqa: E402
from learnhub.services.token_blacklist import token_blacklist  # noqa: E402

TEST_PASSWORD = "test-password"


@pytest.fixture(autouse=True)
def reset_repos() -> None:
    """Clear the shared in-memory repositories between tests."""
    for repo in (
        memory_repos.users,
        memory_repos.courses,
        memory_repos.modules,
        memory_repos.videos,
        memory_repos.enrollments,
        memory_repos.wishlists,
    ):
        repo.clear()  # type: ignore[attr-defined]


@pytest.fixture(autouse=True)
def reset_token_blacklist() -> None:
    """Clear token blacklist between tests."""
    if hasattr(token_blacklist, "_revoked"):
        token_blacklist._revoked.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# Users and tokens
# ---------------------------------------------------------------------------


def add_user(
    role: Role = "student",
    *,
    email: str | None = None,
    name: str = "Test User",
    password: str = TEST_PASSWORD,
) -> UserProfile:
    """Create and persist a profile in the shared in-memory repo."""
    user = UserProfile.new(
        name=name,
        email=email or f"{role}-{uuid.uuid4().hex[:8]}@example.com",
        role=role,
        password_hash=auth_service.hash_password(password),
    )
    asyncio.run(memory_repos.users.add(user))
    return user


def mint_token(user: UserProfile) -> str:
    """Session token as the local provider would issue it."""
    return token_service.create_session_token(sub=user.id)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def session_for(user: UserProfile) -> Session:
    return Session(principal=user.to_principal(), access_token="t", expires_at=0)


@pytest.fixture
def student() -> UserProfile:
    return add_user("student")


@pytest.fixture
def student_token(student: UserProfile) -> str:
    return mint_token(student)


@pytest.fixture
def admin_token() -> str:
    return mint_token(add_user("admin", name="Test Admin"))


# ---------------------------------------------------------------------------
# Catalog helpers
# ---------------------------------------------------------------------------


def create_course(
    n_modules: int = 0, *, title: str = "Intro to Testing", category: str = "Beginner"
) -> tuple[Course, list[Module]]:
    """Persist a course with n ordered modules in the shared repos."""

    async def _create() -> tuple[Course, list[Module]]:
        catalog = build_catalog(memory_repos)
        course = await catalog.create_course(
            title=title,
            description=f"{title} description",
            category=category,  # type: ignore[arg-type]
        )
        modules = [
            await catalog.create_module(course.id, title=f"Module {i}", order=i)
            for i in range(1, n_modules + 1)
        ]
        return course, modules

    return asyncio.run(_create())
