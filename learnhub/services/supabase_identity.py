"""Identity provider backed by Supabase Auth.

The async client is created lazily on first use and shared, the same
way the Recode backend caches its client.  Admin calls (sign_out by
token, delete_user) need a service-role SUPABASE_KEY.
"""

from __future__ import annotations

import asyncio
import logging

import jwt
from supabase import AsyncClient, AuthApiError, AuthError, create_async_client

from learnhub.core.errors import (
    AlreadyRegistered,
    InvalidCredentials,
    TransientBackendError,
)
from learnhub.models.session import ProviderSession

logger = logging.getLogger(__name__)


def _is_duplicate_signup(exc: AuthApiError) -> bool:
    code = getattr(exc, "code", None)
    return code in ("user_already_exists", "email_exists") or (
        "already registered" in str(exc).lower()
    )


def _is_bad_credentials(exc: AuthApiError) -> bool:
    code = getattr(exc, "code", None)
    status = getattr(exc, "status", None)
    return code == "invalid_credentials" or status in (400, 401)


def _token_expiry(access_token: str, fallback: int | None) -> int:
    if fallback:
        return int(fallback)
    # Supabase already verified the token; only the exp claim is read here.
    claims = jwt.decode(access_token, options={"verify_signature": False})
    return int(claims.get("exp", 0))


class SupabaseIdentityProvider:
    def __init__(
        self, url: str, key: str, *, client: AsyncClient | None = None
    ) -> None:
        self._url = url
        self._key = key
        self._client = client
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> AsyncClient:
        if self._client is not None:
            return self._client
        async with self._client_lock:
            if self._client is None:
                try:
                    self._client = await create_async_client(self._url, self._key)
                except Exception as exc:
                    raise TransientBackendError(
                        "Could not create Supabase client"
                    ) from exc
        return self._client

    async def sign_in(self, email: str, password: str) -> ProviderSession:
        client = await self._get_client()
        try:
            res = await client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthApiError as exc:
            if _is_bad_credentials(exc):
                raise InvalidCredentials() from None
            raise TransientBackendError(str(exc)) from exc
        except AuthError as exc:
            raise TransientBackendError(str(exc)) from exc

        if res.user is None or res.session is None:
            raise InvalidCredentials()
        return ProviderSession(
            user_id=str(res.user.id),
            access_token=res.session.access_token,
            expires_at=_token_expiry(
                res.session.access_token, res.session.expires_at
            ),
        )

    async def sign_up(self, email: str, password: str) -> ProviderSession:
        client = await self._get_client()
        try:
            res = await client.auth.sign_up({"email": email, "password": password})
        except AuthApiError as exc:
            if _is_duplicate_signup(exc):
                raise AlreadyRegistered() from None
            raise TransientBackendError(str(exc)) from exc
        except AuthError as exc:
            raise TransientBackendError(str(exc)) from exc

        if res.user is None:
            raise TransientBackendError("Sign-up returned no user")
        if res.session is None:
            # Projects without auto-confirm return only the user; sign in to
            # obtain a session for the new account.
            user_id = str(res.user.id)
            logger.info("Sign-up returned no session, signing in user=%s", user_id)
            try:
                return await self.sign_in(email, password)
            except (InvalidCredentials, TransientBackendError):
                # Unconfirmed identity with no profile; remove it so the
                # email can register again.
                await self._discard_identity(user_id)
                raise TransientBackendError("Email confirmation required") from None
        return ProviderSession(
            user_id=str(res.user.id),
            access_token=res.session.access_token,
            expires_at=_token_expiry(
                res.session.access_token, res.session.expires_at
            ),
        )

    async def _discard_identity(self, user_id: str) -> None:
        try:
            await self.delete_identity(user_id)
        except TransientBackendError:
            logger.exception("Could not delete unconfirmed identity user=%s", user_id)

    async def get_session(self, access_token: str) -> ProviderSession | None:
        client = await self._get_client()
        try:
            res = await client.auth.get_user(access_token)
        except AuthApiError:
            logger.debug("Supabase rejected access token")
            return None
        except AuthError as exc:
            raise TransientBackendError(str(exc)) from exc

        if res is None or res.user is None:
            return None
        try:
            expires_at = _token_expiry(access_token, None)
        except jwt.InvalidTokenError:
            return None
        return ProviderSession(
            user_id=str(res.user.id),
            access_token=access_token,
            expires_at=expires_at,
        )

    async def sign_out(self, access_token: str) -> None:
        client = await self._get_client()
        try:
            await client.auth.admin.sign_out(access_token)
        except AuthError as exc:
            raise TransientBackendError(str(exc)) from exc

    async def delete_identity(self, user_id: str) -> None:
        client = await self._get_client()
        try:
            await client.auth.admin.delete_user(user_id)
        except AuthError as exc:
            raise TransientBackendError(str(exc)) from exc
