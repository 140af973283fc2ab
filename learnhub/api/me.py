"""The signed-in student's own enrollments, wishlist and dashboard.

GET    /v1/me/enrollments
GET    /v1/me/enrollments/{course_id}
GET    /v1/me/wishlist
POST   /v1/me/wishlist/{course_id}    no-op if already present
DELETE /v1/me/wishlist/{course_id}    no-op if absent
GET    /v1/me/dashboard
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from learnhub.api.courses import EnrollmentOut
from learnhub.api.dependencies import get_session
from learnhub.api.stores import get_engine
from learnhub.models.session import Session
from learnhub.services.enrollment_service import EnrollmentEngine

router = APIRouter(prefix="/v1/me", tags=["me"])

SessionDep = Annotated[Session | None, Depends(get_session)]
EngineDep = Annotated[EnrollmentEngine, Depends(get_engine)]


class WishlistOut(BaseModel):
    course_ids: list[str]


class DashboardOut(BaseModel):
    enrolled_count: int
    completed_count: int
    wishlist_count: int
    in_progress: list[EnrollmentOut]


@router.get("/enrollments", response_model=list[EnrollmentOut])
async def list_enrollments(session: SessionDep, engine: EngineDep) -> list[EnrollmentOut]:
    return [EnrollmentOut.from_record(r) for r in await engine.list_enrollments(session)]


@router.get("/enrollments/{course_id}", response_model=EnrollmentOut)
async def get_enrollment(
    course_id: str, session: SessionDep, engine: EngineDep
) -> EnrollmentOut:
    return EnrollmentOut.from_record(await engine.get_enrollment(session, course_id))


@router.get("/wishlist", response_model=WishlistOut)
async def get_wishlist(session: SessionDep, engine: EngineDep) -> WishlistOut:
    return WishlistOut(course_ids=await engine.get_wishlist(session))


@router.post("/wishlist/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_to_wishlist(
    course_id: str, session: SessionDep, engine: EngineDep
) -> Response:
    await engine.wishlist_add(session, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/wishlist/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_wishlist(
    course_id: str, session: SessionDep, engine: EngineDep
) -> Response:
    await engine.wishlist_remove(session, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/dashboard", response_model=DashboardOut)
async def dashboard(session: SessionDep, engine: EngineDep) -> DashboardOut:
    summary = await engine.student_dashboard(session)
    return DashboardOut(
        enrolled_count=summary.enrolled_count,
        completed_count=summary.completed_count,
        wishlist_count=summary.wishlist_count,
        in_progress=[EnrollmentOut.from_record(r) for r in summary.in_progress],
    )
