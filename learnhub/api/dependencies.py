from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from learnhub.api.stores import get_identity
from learnhub.core.errors import NoActiveSession
from learnhub.models.principal import Principal, Role
from learnhub.models.session import Session
from learnhub.services import access
from learnhub.services.identity_store import IdentityStore

logger = logging.getLogger(__name__)

# auto_error=False: a missing header yields None and the store operations
# report NoActiveSession themselves.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


async def get_session(
    raw_token: Annotated[str | None, Depends(oauth2_scheme)],
    identity: Annotated[IdentityStore, Depends(get_identity)],
) -> Session | None:
    """Resolve the bearer token into this request's Session, if any."""
    if not raw_token:
        return None
    session = await identity.restore(raw_token)
    if session is None:
        logger.warning("Bearer token did not resolve to a session")
    else:
        logger.debug("Session restored for user=%s", session.principal.user_id)
    return session


async def require_session(
    session: Annotated[Session | None, Depends(get_session)],
) -> Session:
    if session is None:
        raise NoActiveSession()
    return session


def require_role(role: Role):
    """Dependency factory: demand a specific role.

    Usage: Depends(require_role("admin"))
    Returns the Principal, else 401 without a session and 403 for the
    wrong role.
    """

    async def _guard(
        session: Annotated[Session | None, Depends(get_session)],
    ) -> Principal:
        return access.require_role(session, role)

    return _guard
