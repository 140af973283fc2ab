from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]
IdentityProviderName = Literal["local", "supabase"]

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it's easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _getenv_non_negative_int(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < 0:
        raise ValueError(f"{name} must be >= 0 (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    identity_provider: IdentityProviderName = "local"
    supabase_url: str | None = None
    supabase_key: str | None = None
    # Delete the freshly created identity when the profile row insert fails.
    registration_rollback: bool = True
    profile_fetch_retries: int = 3
    profile_fetch_backoff_ms: int = 200

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")
    provider_raw = _getenv("IDENTITY_PROVIDER", "local").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if provider_raw not in ("local", "supabase"):
        raise ValueError(
            f"IDENTITY_PROVIDER must be local|supabase (got {provider_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    database_url = _getenv("DATABASE_URL", "") or None
    redis_url = _getenv("REDIS_URL", "") or None
    supabase_url = _getenv("SUPABASE_URL", "") or None
    supabase_key = _getenv("SUPABASE_KEY", "") or None

    if provider_raw == "supabase" and not (supabase_url and supabase_key):
        raise ValueError(
            "IDENTITY_PROVIDER=supabase requires SUPABASE_URL and SUPABASE_KEY"
        )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=port,
        database_url=database_url,
        redis_url=redis_url,
        identity_provider=provider_raw,
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        registration_rollback=_getenv_bool("REGISTRATION_ROLLBACK", True),
        profile_fetch_retries=_getenv_non_negative_int("PROFILE_FETCH_RETRIES", 3),
        profile_fetch_backoff_ms=_getenv_non_negative_int(
            "PROFILE_FETCH_BACKOFF_MS", 200
        ),
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
