from __future__ import annotations

from dataclasses import dataclass

from learnhub.models.principal import Principal


@dataclass(frozen=True, slots=True)
class ProviderSession:
    """What an identity provider hands back after sign-in or sign-up.

    password_hash is set only by providers that keep credentials on the
    profile row (the local provider); the identity store persists it with
    the new profile.
    """

    user_id: str
    access_token: str
    expires_at: int
    password_hash: str | None = None


@dataclass(frozen=True, slots=True)
class Session:
    """An authenticated session, passed explicitly to store operations."""

    principal: Principal
    access_token: str
    expires_at: int
