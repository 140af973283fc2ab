from __future__ import annotations

from dataclasses import replace

import pytest

from learnhub.api import stores
from learnhub.api.stores import identity_provider_for, memory_repos
from learnhub.services.identity_providers import LocalIdentityProvider
from learnhub.services.supabase_identity import SupabaseIdentityProvider


def test_local_provider_by_default() -> None:
    assert isinstance(identity_provider_for(memory_repos), LocalIdentityProvider)


def test_supabase_provider_is_shared(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = replace(
        stores.SETTINGS,
        identity_provider="supabase",
        supabase_url="https://x.supabase.co",
        supabase_key="key",
    )
    monkeypatch.setattr(stores, "SETTINGS", settings)
    monkeypatch.setattr(stores, "_supabase_provider", None)

    first = identity_provider_for(memory_repos)
    assert isinstance(first, SupabaseIdentityProvider)
    assert identity_provider_for(memory_repos) is first


def test_supabase_provider_without_credentials_raises(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    settings = replace(
        stores.SETTINGS, identity_provider="supabase", supabase_url=None, supabase_key=None
    )
    monkeypatch.setattr(stores, "SETTINGS", settings)
    monkeypatch.setattr(stores, "_supabase_provider", None)

    with pytest.raises(RuntimeError, match="SUPABASE_URL"):
        identity_provider_for(memory_repos)
