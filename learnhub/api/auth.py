"""JSON auth endpoints for SPA clients.

POST /auth/register and POST /auth/login both return
{ accessToken, expiresAt, user: { id, email, name, role } } so the
client can keep the token in memory and route by role immediately.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from learnhub.api.dependencies import oauth2_scheme, require_session
from learnhub.api.stores import get_identity
from learnhub.models.principal import Principal, Role
from learnhub.models.session import Session
from learnhub.services.identity_store import IdentityStore

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    name: str
    email: str
    password: str


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: Role

    @staticmethod
    def from_principal(principal: Principal) -> UserOut:
        return UserOut(
            id=principal.user_id,
            email=principal.email,
            name=principal.name,
            role=principal.role,
        )


class AuthResponse(BaseModel):
    accessToken: str
    expiresAt: int
    user: UserOut


def _auth_response(session: Session) -> AuthResponse:
    return AuthResponse(
        accessToken=session.access_token,
        expiresAt=session.expires_at,
        user=UserOut.from_principal(session.principal),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginIn,
    identity: Annotated[IdentityStore, Depends(get_identity)],
) -> AuthResponse:
    session = await identity.authenticate(payload.email, payload.password)
    return _auth_response(session)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterIn,
    identity: Annotated[IdentityStore, Depends(get_identity)],
) -> AuthResponse:
    session = await identity.register(payload.name, payload.email, payload.password)
    return _auth_response(session)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    raw_token: Annotated[str | None, Depends(oauth2_scheme)],
    identity: Annotated[IdentityStore, Depends(get_identity)],
) -> Response:
    """Revoke the bearer token.  Idempotent: unknown or missing tokens
    still get a 204."""
    await identity.end_session(raw_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserOut)
async def me(session: Annotated[Session, Depends(require_session)]) -> UserOut:
    return UserOut.from_principal(session.principal)
