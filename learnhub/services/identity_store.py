"""Identity store: who is signed in, and how they got there.

Holds at most one Session.  The HTTP layer builds one store per request
and calls restore() with the bearer token; library callers can keep a
store around for the lifetime of a client.

Registration spans two systems (identity provider, users table) with no
shared transaction.  When the profile insert fails after the provider
already created the identity, the identity is deleted again unless
REGISTRATION_ROLLBACK=false.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable

from learnhub.core.config import SETTINGS, Settings
from learnhub.core.errors import (
    AlreadyRegistered,
    InvalidCredentials,
    LearnHubError,
    TransientBackendError,
    ValidationFailed,
)
from learnhub.models.principal import Principal
from learnhub.models.session import ProviderSession, Session
from learnhub.models.user import UserProfile
from learnhub.repos.user_repo import UserRepo
from learnhub.services.identity_providers import IdentityProvider

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def normalize_email(email: str) -> str:
    return email.lower().strip()


class IdentityStore:
    def __init__(
        self,
        provider: IdentityProvider,
        profiles: UserRepo,
        *,
        rollback_on_profile_failure: bool = True,
        profile_fetch_retries: int = 3,
        profile_fetch_backoff_ms: int = 200,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._profiles = profiles
        self._rollback = rollback_on_profile_failure
        self._retries = profile_fetch_retries
        self._backoff_s = profile_fetch_backoff_ms / 1000
        self._sleep = sleep
        self._session: Session | None = None

    @classmethod
    def from_settings(
        cls,
        provider: IdentityProvider,
        profiles: UserRepo,
        settings: Settings = SETTINGS,
    ) -> IdentityStore:
        return cls(
            provider,
            profiles,
            rollback_on_profile_failure=settings.registration_rollback,
            profile_fetch_retries=settings.profile_fetch_retries,
            profile_fetch_backoff_ms=settings.profile_fetch_backoff_ms,
        )

    # --- reads ---------------------------------------------------------------

    def current_principal(self) -> Principal | None:
        return self._session.principal if self._session else None

    def current_session(self) -> Session | None:
        return self._session

    # --- sign-in / sign-up ---------------------------------------------------

    async def authenticate(self, email: str, password: str) -> Session:
        """Sign in with email and password.

        Raises InvalidCredentials on a bad pair; the current session (if
        any) is left untouched in that case.
        """
        email = normalize_email(email)
        provider_session = await self._provider.sign_in(email, password)

        profile = await self._profiles.get_by_id(provider_session.user_id)
        if profile is None:
            logger.warning(
                "Sign-in accepted but no profile row user=%s",
                provider_session.user_id,
            )
            raise InvalidCredentials()

        logger.info("Login succeeded user_id=%s", profile.id)
        return self._establish(profile, provider_session)

    async def register(self, name: str, email: str, password: str) -> Session:
        """Create identity and student profile, then sign in as it.

        Role is always "student"; admins are provisioned out of band.
        """
        name = name.strip()
        email = normalize_email(email)
        _validate_registration(name, email, password)

        if await self._profiles.get_by_email(email) is not None:
            raise AlreadyRegistered()

        provider_session = await self._provider.sign_up(email, password)
        profile = UserProfile.new(
            id=provider_session.user_id,
            name=name,
            email=email,
            role="student",
            password_hash=provider_session.password_hash,
        )

        try:
            await self._profiles.add(profile)
        except ValueError:
            # Another request registered the same email in between
            await self._undo_identity(provider_session)
            raise AlreadyRegistered() from None
        except Exception:
            await self._undo_identity(provider_session)
            raise

        logger.info("User registered user_id=%s", profile.id)
        return self._establish(profile, provider_session)

    async def end_session(self, access_token: str | None = None) -> None:
        """Clear the current session and revoke its token at the provider.

        access_token overrides the held session's token, for callers that
        only have the raw bearer token.  The local slot is cleared even if
        the provider call fails.
        """
        token = access_token or (self._session.access_token if self._session else None)
        self._session = None
        if token is None:
            return
        try:
            await self._provider.sign_out(token)
        except LearnHubError:
            logger.warning("Provider sign-out failed", exc_info=True)

    async def restore(self, access_token: str) -> Session | None:
        """Resolve a previously issued token into a session.

        A profile row that is not there yet (registration still in flight
        on another instance) is retried a bounded number of times with a
        fixed backoff.  Returns None, leaving no session, when the token is
        not valid or the profile never appears.
        """
        provider_session = await self._provider.get_session(access_token)
        if provider_session is None:
            self._session = None
            return None

        attempts = self._retries + 1
        for attempt in range(1, attempts + 1):
            try:
                profile = await self._load_profile(provider_session.user_id)
            except TransientBackendError:
                if attempt == attempts:
                    logger.warning(
                        "Profile not found after %d attempts user=%s",
                        attempts,
                        provider_session.user_id,
                    )
                    self._session = None
                    return None
                logger.info(
                    "Profile not found yet user=%s attempt=%d",
                    provider_session.user_id,
                    attempt,
                )
                await self._sleep(self._backoff_s)
            else:
                return self._establish(profile, provider_session)
        return None

    # --- helpers -------------------------------------------------------------

    async def _load_profile(self, user_id: str) -> UserProfile:
        profile = await self._profiles.get_by_id(user_id)
        if profile is None:
            raise TransientBackendError("Profile not found")
        return profile

    async def _undo_identity(self, provider_session: ProviderSession) -> None:
        if not self._rollback:
            logger.error(
                "Profile insert failed, identity left without profile user=%s",
                provider_session.user_id,
            )
            return
        logger.warning(
            "Profile insert failed, rolling back identity user=%s",
            provider_session.user_id,
        )
        try:
            await self._provider.sign_out(provider_session.access_token)
            await self._provider.delete_identity(provider_session.user_id)
        except Exception:
            logger.exception(
                "Identity rollback failed user=%s", provider_session.user_id
            )

    def _establish(
        self, profile: UserProfile, provider_session: ProviderSession
    ) -> Session:
        self._session = Session(
            principal=profile.to_principal(),
            access_token=provider_session.access_token,
            expires_at=provider_session.expires_at,
        )
        return self._session


def _validate_registration(name: str, email: str, password: str) -> None:
    if not name:
        raise ValidationFailed("Name is required")
    if not _EMAIL_RE.match(email):
        raise ValidationFailed("Invalid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
