"""SupabaseIdentityProvider against an in-process stand-in for the SDK client."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import jwt
import pytest
from supabase import AuthApiError

from learnhub.core.errors import TransientBackendError
from learnhub.repos.user_repo import InMemoryUserRepo
from learnhub.services.identity_store import IdentityStore
from learnhub.services.supabase_identity import SupabaseIdentityProvider


def _access_token(sub: str, exp: int = 2_000_000_000) -> str:
    return jwt.encode({"sub": sub, "exp": exp}, "s" * 32, algorithm="HS256")


class _FakeAdmin:
    def __init__(self) -> None:
        self.signed_out: list[str] = []
        self.deleted: list[str] = []

    async def sign_out(self, token: str) -> None:
        self.signed_out.append(token)

    async def delete_user(self, user_id: str) -> None:
        self.deleted.append(user_id)


class _FakeAuth:
    def __init__(self, *, confirm_on_signup: bool = True) -> None:
        self.admin = _FakeAdmin()
        self.confirm_on_signup = confirm_on_signup
        self.users: dict[str, str] = {}  # email -> id

    def _response(self, user_id: str):
        token = _access_token(user_id)
        return SimpleNamespace(
            user=SimpleNamespace(id=user_id),
            session=SimpleNamespace(access_token=token, expires_at=1_900_000_000),
        )

    async def sign_up(self, credentials: dict):
        user_id = f"sb-{len(self.users) + 1}"
        self.users[credentials["email"]] = user_id
        if not self.confirm_on_signup:
            return SimpleNamespace(user=SimpleNamespace(id=user_id), session=None)
        return self._response(user_id)

    async def sign_in_with_password(self, credentials: dict):
        return self._response(self.users[credentials["email"]])

    async def get_user(self, token: str):
        claims = jwt.decode(token, options={"verify_signature": False})
        return SimpleNamespace(user=SimpleNamespace(id=claims["sub"]))


def _provider(auth: _FakeAuth) -> SupabaseIdentityProvider:
    client = SimpleNamespace(auth=auth)
    return SupabaseIdentityProvider("https://x.supabase.co", "key", client=client)  # type: ignore[arg-type]


def test_sign_up_returns_provider_session() -> None:
    provider = _provider(_FakeAuth())
    session = asyncio.run(provider.sign_up("ada@example.com", "password123"))
    assert session.user_id == "sb-1"
    assert session.expires_at == 1_900_000_000
    assert session.password_hash is None


def test_sign_up_without_session_signs_in() -> None:
    auth = _FakeAuth(confirm_on_signup=False)
    session = asyncio.run(_provider(auth).sign_up("ada@example.com", "password123"))
    assert session.user_id == "sb-1"
    assert session.access_token


def test_get_session_reads_expiry_from_token() -> None:
    provider = _provider(_FakeAuth())
    token = _access_token("sb-9", exp=1_800_000_000)
    session = asyncio.run(provider.get_session(token))
    assert session is not None
    assert session.user_id == "sb-9"
    assert session.expires_at == 1_800_000_000


def test_sign_out_and_delete_use_admin_api() -> None:
    auth = _FakeAuth()
    provider = _provider(auth)
    asyncio.run(provider.sign_out("tok"))
    asyncio.run(provider.delete_identity("sb-1"))
    assert auth.admin.signed_out == ["tok"]
    assert auth.admin.deleted == ["sb-1"]


class _UnconfirmedAuth(_FakeAuth):
    """Project that requires email confirmation before sign-in."""

    def __init__(self) -> None:
        super().__init__(confirm_on_signup=False)

    async def sign_in_with_password(self, credentials: dict):
        raise AuthApiError("Email not confirmed", 400, "email_not_confirmed")


def test_sign_up_awaiting_confirmation_deletes_identity() -> None:
    auth = _UnconfirmedAuth()
    with pytest.raises(TransientBackendError, match="Email confirmation required"):
        asyncio.run(_provider(auth).sign_up("ada@example.com", "password123"))
    assert auth.admin.deleted == ["sb-1"]


def test_register_awaiting_confirmation_leaves_no_orphan() -> None:
    auth = _UnconfirmedAuth()
    profiles = InMemoryUserRepo()
    store = IdentityStore(_provider(auth), profiles)

    with pytest.raises(TransientBackendError):
        asyncio.run(store.register("Ada", "ada@example.com", "password123"))

    assert auth.admin.deleted == ["sb-1"]
    assert asyncio.run(profiles.get_by_email("ada@example.com")) is None
    assert store.current_session() is None
