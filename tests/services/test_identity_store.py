from __future__ import annotations

import asyncio
import uuid

import pytest

from learnhub.core.errors import (
    AlreadyRegistered,
    InvalidCredentials,
    TransientBackendError,
    ValidationFailed,
)
from learnhub.models.session import ProviderSession
from learnhub.models.user import UserProfile
from learnhub.repos.user_repo import InMemoryUserRepo
from learnhub.services.identity_providers import LocalIdentityProvider
from learnhub.services.identity_store import IdentityStore
from learnhub.services.token_blacklist import InMemoryTokenBlacklist


class FakeProvider:
    """Hosted-style provider: identities live outside the profile repo."""

    def __init__(self) -> None:
        self.identities: dict[str, tuple[str, str]] = {}  # email -> (id, password)
        self.sessions: dict[str, str] = {}  # token -> user id
        self.deleted: list[str] = []
        self.signed_out: list[str] = []

    def _open(self, user_id: str) -> ProviderSession:
        token = f"tok-{uuid.uuid4().hex}"
        self.sessions[token] = user_id
        return ProviderSession(user_id=user_id, access_token=token, expires_at=0)

    async def sign_in(self, email: str, password: str) -> ProviderSession:
        found = self.identities.get(email)
        if found is None or found[1] != password:
            raise InvalidCredentials()
        return self._open(found[0])

    async def sign_up(self, email: str, password: str) -> ProviderSession:
        if email in self.identities:
            raise AlreadyRegistered()
        user_id = str(uuid.uuid4())
        self.identities[email] = (user_id, password)
        return self._open(user_id)

    async def get_session(self, access_token: str) -> ProviderSession | None:
        user_id = self.sessions.get(access_token)
        if user_id is None:
            return None
        return ProviderSession(user_id=user_id, access_token=access_token, expires_at=0)

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)
        self.sessions.pop(access_token, None)

    async def delete_identity(self, user_id: str) -> None:
        self.deleted.append(user_id)
        self.identities = {
            e: v for e, v in self.identities.items() if v[0] != user_id
        }


class FailingProfiles(InMemoryUserRepo):
    async def add(self, user: UserProfile) -> None:
        raise RuntimeError("profile table unavailable")


class LateProfiles(InMemoryUserRepo):
    """Profile rows become visible only after `misses` lookups."""

    def __init__(self, misses: int) -> None:
        super().__init__()
        self.misses = misses
        self.lookups = 0

    async def get_by_id(self, user_id: str) -> UserProfile | None:
        self.lookups += 1
        if self.lookups <= self.misses:
            return None
        return await super().get_by_id(user_id)


def _store(provider, profiles, **kwargs) -> IdentityStore:
    kwargs.setdefault("profile_fetch_backoff_ms", 0)
    return IdentityStore(provider, profiles, **kwargs)


# ---- register ----


def test_register_establishes_student_session() -> None:
    store = _store(FakeProvider(), InMemoryUserRepo())
    session = asyncio.run(store.register("Ada", " Ada@Example.com ", "password123"))

    assert session.principal.role == "student"
    assert session.principal.email == "ada@example.com"
    assert session.principal.name == "Ada"
    assert store.current_principal() == session.principal
    assert store.current_session() is session


@pytest.mark.parametrize(
    ("name", "email", "password"),
    [
        ("", "a@example.com", "password123"),
        ("Ada", "not-an-email", "password123"),
        ("Ada", "a@example.com", "short"),
    ],
)
def test_register_validates_input(name: str, email: str, password: str) -> None:
    provider = FakeProvider()
    store = _store(provider, InMemoryUserRepo())
    with pytest.raises(ValidationFailed):
        asyncio.run(store.register(name, email, password))
    assert provider.identities == {}
    assert store.current_principal() is None


def test_register_existing_email_raises_already_registered() -> None:
    profiles = InMemoryUserRepo()
    store = _store(FakeProvider(), profiles)
    asyncio.run(store.register("Ada", "ada@example.com", "password123"))

    other = _store(FakeProvider(), profiles)
    with pytest.raises(AlreadyRegistered):
        asyncio.run(other.register("Ada 2", "ada@example.com", "password123"))


def test_profile_insert_failure_rolls_back_identity() -> None:
    provider = FakeProvider()
    store = _store(provider, FailingProfiles())

    with pytest.raises(RuntimeError, match="profile table unavailable"):
        asyncio.run(store.register("Ada", "ada@example.com", "password123"))

    assert len(provider.deleted) == 1
    assert provider.identities == {}
    assert store.current_session() is None


def test_profile_insert_failure_keeps_identity_when_rollback_disabled() -> None:
    provider = FakeProvider()
    store = _store(provider, FailingProfiles(), rollback_on_profile_failure=False)

    with pytest.raises(RuntimeError):
        asyncio.run(store.register("Ada", "ada@example.com", "password123"))

    assert provider.deleted == []
    assert "ada@example.com" in provider.identities
    assert store.current_session() is None


# ---- authenticate ----


def test_authenticate_wrong_password_keeps_current_session() -> None:
    provider = FakeProvider()
    store = _store(provider, InMemoryUserRepo())
    session = asyncio.run(store.register("Ada", "ada@example.com", "password123"))

    with pytest.raises(InvalidCredentials):
        asyncio.run(store.authenticate("ada@example.com", "wrong-password"))
    assert store.current_session() is session


def test_authenticate_normalizes_email() -> None:
    profiles = InMemoryUserRepo()
    provider = FakeProvider()
    asyncio.run(_store(provider, profiles).register("Ada", "ada@example.com", "password123"))

    store = _store(provider, profiles)
    session = asyncio.run(store.authenticate("  ADA@example.com", "password123"))
    assert session.principal.email == "ada@example.com"


def test_authenticate_identity_without_profile_is_invalid() -> None:
    provider = FakeProvider()
    provider.identities["ghost@example.com"] = ("ghost-id", "password123")
    store = _store(provider, InMemoryUserRepo())
    with pytest.raises(InvalidCredentials):
        asyncio.run(store.authenticate("ghost@example.com", "password123"))


# ---- end_session ----


def test_end_session_clears_and_signs_out() -> None:
    provider = FakeProvider()
    store = _store(provider, InMemoryUserRepo())
    session = asyncio.run(store.register("Ada", "ada@example.com", "password123"))

    asyncio.run(store.end_session())

    assert store.current_session() is None
    assert provider.signed_out == [session.access_token]
    assert asyncio.run(store.restore(session.access_token)) is None


def test_end_session_without_session_is_noop() -> None:
    provider = FakeProvider()
    store = _store(provider, InMemoryUserRepo())
    asyncio.run(store.end_session())
    assert provider.signed_out == []


def test_end_session_clears_even_if_provider_fails() -> None:
    class BrokenSignOut(FakeProvider):
        async def sign_out(self, access_token: str) -> None:
            raise TransientBackendError()

    store = _store(BrokenSignOut(), InMemoryUserRepo())
    asyncio.run(store.register("Ada", "ada@example.com", "password123"))
    asyncio.run(store.end_session())
    assert store.current_session() is None


# ---- restore ----


def test_restore_unknown_token_returns_none() -> None:
    store = _store(FakeProvider(), InMemoryUserRepo())
    assert asyncio.run(store.restore("nope")) is None
    assert store.current_principal() is None


def test_restore_retries_until_profile_appears() -> None:
    provider = FakeProvider()
    profiles = LateProfiles(misses=2)
    session = asyncio.run(
        _store(provider, profiles).register("Ada", "ada@example.com", "password123")
    )

    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    store = IdentityStore(
        provider,
        profiles,
        profile_fetch_retries=3,
        profile_fetch_backoff_ms=200,
        sleep=fake_sleep,
    )
    restored = asyncio.run(store.restore(session.access_token))

    assert restored is not None
    assert restored.principal.user_id == session.principal.user_id
    assert sleeps == [0.2, 0.2]


def test_restore_gives_up_after_bounded_retries() -> None:
    provider = FakeProvider()
    profiles = LateProfiles(misses=100)
    session = asyncio.run(
        _store(provider, profiles).register("Ada", "ada@example.com", "password123")
    )

    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    store = IdentityStore(
        provider, profiles, profile_fetch_retries=3, sleep=fake_sleep
    )
    assert asyncio.run(store.restore(session.access_token)) is None
    assert len(sleeps) == 3
    assert profiles.lookups == 4
    assert store.current_session() is None


# ---- with the local provider ----


def test_local_provider_register_login_logout_flow() -> None:
    profiles = InMemoryUserRepo()
    provider = LocalIdentityProvider(profiles, InMemoryTokenBlacklist())

    registered = asyncio.run(
        _store(provider, profiles).register("Ada", "ada@example.com", "password123")
    )
    stored = asyncio.run(profiles.get_by_id(registered.principal.user_id))
    assert stored is not None
    assert stored.password_hash is not None

    store = _store(provider, profiles)
    session = asyncio.run(store.authenticate("ada@example.com", "password123"))
    assert session.principal.user_id == registered.principal.user_id

    assert asyncio.run(_store(provider, profiles).restore(session.access_token))
    asyncio.run(store.end_session())
    assert asyncio.run(_store(provider, profiles).restore(session.access_token)) is None


def test_local_provider_rejects_wrong_password() -> None:
    profiles = InMemoryUserRepo()
    provider = LocalIdentityProvider(profiles, InMemoryTokenBlacklist())
    asyncio.run(_store(provider, profiles).register("Ada", "ada@example.com", "password123"))

    with pytest.raises(InvalidCredentials):
        asyncio.run(_store(provider, profiles).authenticate("ada@example.com", "nope-nope"))
