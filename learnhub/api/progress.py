"""Progress endpoint.

POST /v1/progress marks a module of an enrolled course complete and
records the video the student was watching.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from learnhub.api.courses import EnrollmentOut
from learnhub.api.dependencies import get_session
from learnhub.api.stores import get_engine
from learnhub.models.session import Session
from learnhub.services.enrollment_service import EnrollmentEngine

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class ProgressIn(BaseModel):
    course_id: str = Field(min_length=1)
    module_id: str = Field(min_length=1)
    video_id: str = Field(min_length=1)


@router.post("", response_model=EnrollmentOut)
async def record_progress(
    body: ProgressIn,
    session: Annotated[Session | None, Depends(get_session)],
    engine: Annotated[EnrollmentEngine, Depends(get_engine)],
) -> EnrollmentOut:
    record = await engine.record_progress(
        session, body.course_id, body.module_id, body.video_id
    )
    return EnrollmentOut.from_record(record)
