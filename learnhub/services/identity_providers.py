"""Identity providers behind the identity store.

A provider owns credentials and session tokens.  Profiles (name, role)
live in the users table and are managed by the identity store, never by
the provider.  Two implementations:

- LocalIdentityProvider: argon2 hashes on the profile row plus ES256
  session tokens, revocable through the token blacklist.
- SupabaseIdentityProvider (supabase_identity.py): delegates to a hosted
  Supabase Auth project.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Protocol, runtime_checkable

import jwt

from learnhub.core.errors import AlreadyRegistered, InvalidCredentials
from learnhub.models.session import ProviderSession
from learnhub.repos.user_repo import UserRepo
from learnhub.services import auth_service, token_service
from learnhub.services.token_blacklist import TokenBlacklist

logger = logging.getLogger(__name__)


@runtime_checkable
class IdentityProvider(Protocol):
    async def sign_in(self, email: str, password: str) -> ProviderSession:
        """Raises InvalidCredentials or TransientBackendError."""
        ...

    async def sign_up(self, email: str, password: str) -> ProviderSession:
        """Raises AlreadyRegistered or TransientBackendError."""
        ...

    async def get_session(self, access_token: str) -> ProviderSession | None:
        """Resolve a token; None when it is unknown, expired or revoked."""
        ...

    async def sign_out(self, access_token: str) -> None: ...

    async def delete_identity(self, user_id: str) -> None: ...


class LocalIdentityProvider:
    def __init__(self, profiles: UserRepo, blacklist: TokenBlacklist) -> None:
        self._profiles = profiles
        self._blacklist = blacklist

    async def sign_in(self, email: str, password: str) -> ProviderSession:
        user = await auth_service.authenticate_user(self._profiles, email, password)
        if user is None:
            raise InvalidCredentials()
        return self._open_session(user.id)

    async def sign_up(self, email: str, password: str) -> ProviderSession:
        if await self._profiles.get_by_email(email) is not None:
            raise AlreadyRegistered()
        session = self._open_session(str(uuid.uuid4()))
        # The credential lives on the profile row the identity store inserts next.
        return replace(session, password_hash=auth_service.hash_password(password))

    async def get_session(self, access_token: str) -> ProviderSession | None:
        try:
            claims = token_service.decode_session_token(access_token)
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            return None
        except jwt.InvalidTokenError:
            logger.debug("Session token rejected")
            return None

        if await self._blacklist.is_revoked(claims["jti"]):
            logger.debug("Session token revoked jti=%s", claims["jti"])
            return None

        return ProviderSession(
            user_id=claims["sub"],
            access_token=access_token,
            expires_at=int(claims["exp"]),
        )

    async def sign_out(self, access_token: str) -> None:
        try:
            claims = token_service.decode_session_token(access_token)
        except jwt.InvalidTokenError:
            return  # expired or garbage: nothing left to revoke
        await self._blacklist.revoke(claims["jti"], float(claims["exp"]))

    async def delete_identity(self, user_id: str) -> None:
        # Credentials are stored on the profile row, so the identity is
        # whatever part of that row made it in.
        await self._profiles.delete(user_id)

    @staticmethod
    def _open_session(user_id: str) -> ProviderSession:
        token = token_service.create_session_token(sub=user_id)
        claims = token_service.decode_session_token(token)
        return ProviderSession(
            user_id=user_id, access_token=token, expires_at=int(claims["exp"])
        )
