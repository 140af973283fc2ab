"""Per-request wiring of repositories and stores.

With DATABASE_URL unset every request shares the module-level in-memory
repositories in ``memory_repos`` (tests reset them between cases).  With
a database, each request gets Pg repositories over one AsyncSession that
commits when the endpoint returns and rolls back when it raises.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends

from learnhub.core.config import SETTINGS
from learnhub.db.engine import async_session_factory, session_scope
from learnhub.repos.course_repo import (
    CourseRepo,
    InMemoryCourseRepo,
    InMemoryModuleRepo,
    InMemoryVideoRepo,
    ModuleRepo,
    VideoRepo,
)
from learnhub.repos.enrollment_repo import (
    EnrollmentRepo,
    InMemoryEnrollmentRepo,
    InMemoryWishlistRepo,
    WishlistRepo,
)
from learnhub.repos.pg_course_repo import PgCourseRepo, PgModuleRepo, PgVideoRepo
from learnhub.repos.pg_enrollment_repo import PgEnrollmentRepo, PgWishlistRepo
from learnhub.repos.pg_user_repo import PgUserRepo
from learnhub.repos.user_repo import InMemoryUserRepo, UserRepo
from learnhub.services.cache import cache_service
from learnhub.services.catalog_service import CatalogStore
from learnhub.services.enrollment_service import EnrollmentEngine
from learnhub.services.identity_providers import IdentityProvider, LocalIdentityProvider
from learnhub.services.identity_store import IdentityStore
from learnhub.services.supabase_identity import SupabaseIdentityProvider
from learnhub.services.token_blacklist import token_blacklist


@dataclass(frozen=True)
class Repos:
    users: UserRepo
    courses: CourseRepo
    modules: ModuleRepo
    videos: VideoRepo
    enrollments: EnrollmentRepo
    wishlists: WishlistRepo


memory_repos = Repos(
    users=InMemoryUserRepo(),
    courses=InMemoryCourseRepo(),
    modules=InMemoryModuleRepo(),
    videos=InMemoryVideoRepo(),
    enrollments=InMemoryEnrollmentRepo(),
    wishlists=InMemoryWishlistRepo(),
)

_supabase_provider: SupabaseIdentityProvider | None = None


def identity_provider_for(repos: Repos) -> IdentityProvider:
    global _supabase_provider
    if SETTINGS.identity_provider == "supabase":
        if _supabase_provider is None:
            if not (SETTINGS.supabase_url and SETTINGS.supabase_key):
                raise RuntimeError("Supabase identity needs SUPABASE_URL and SUPABASE_KEY")
            _supabase_provider = SupabaseIdentityProvider(
                SETTINGS.supabase_url, SETTINGS.supabase_key
            )
        return _supabase_provider
    return LocalIdentityProvider(repos.users, token_blacklist)


async def get_repos() -> AsyncGenerator[Repos, None]:
    if async_session_factory is None:
        yield memory_repos
        return

    async with session_scope() as session:
        yield Repos(
            users=PgUserRepo(session),
            courses=PgCourseRepo(session),
            modules=PgModuleRepo(session),
            videos=PgVideoRepo(session),
            enrollments=PgEnrollmentRepo(session),
            wishlists=PgWishlistRepo(session),
        )


def build_catalog(repos: Repos) -> CatalogStore:
    return CatalogStore(repos.courses, repos.modules, repos.videos)


def build_engine(repos: Repos) -> EnrollmentEngine:
    return EnrollmentEngine(
        build_catalog(repos), repos.enrollments, repos.wishlists, cache_service
    )


def build_identity(repos: Repos) -> IdentityStore:
    return IdentityStore.from_settings(identity_provider_for(repos), repos.users)


# --- FastAPI dependencies ----------------------------------------------------


def get_catalog(repos: Annotated[Repos, Depends(get_repos)]) -> CatalogStore:
    return build_catalog(repos)


def get_engine(repos: Annotated[Repos, Depends(get_repos)]) -> EnrollmentEngine:
    return build_engine(repos)


def get_identity(repos: Annotated[Repos, Depends(get_repos)]) -> IdentityStore:
    return build_identity(repos)
