"""Assert that passwords and tokens never appear in log output.

These tests exercise endpoints that handle sensitive data and verify
the log records contain no leaked secrets.
"""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from tests.conftest import add_user, auth_header

SECRET_PASSWORD = "super-s3cret-p@ssw0rd!"


def _log_text(caplog: pytest.LogCaptureFixture) -> str:
    return " ".join(caplog.messages)


def test_register_does_not_log_password(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG):
        resp = client.post(
            "/auth/register",
            json={"name": "Ada", "email": "ada@example.com", "password": SECRET_PASSWORD},
        )
    assert resp.status_code == 201
    assert SECRET_PASSWORD not in _log_text(caplog), "Password found in log output!"


def test_failed_login_does_not_log_password(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    add_user(email="ada@example.com")
    with caplog.at_level(logging.DEBUG):
        resp = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": SECRET_PASSWORD}
        )
    assert resp.status_code == 401
    assert SECRET_PASSWORD not in _log_text(caplog), "Password found in log output!"


def test_login_does_not_log_token(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    add_user(email="ada@example.com", password=SECRET_PASSWORD)
    with caplog.at_level(logging.DEBUG):
        resp = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": SECRET_PASSWORD}
        )
        token = resp.json()["accessToken"]
        client.get("/auth/me", headers=auth_header(token))
        client.post("/auth/logout", headers=auth_header(token))

    text = _log_text(caplog)
    assert SECRET_PASSWORD not in text, "Password found in log output!"
    assert token not in text, "Access token found in log output!"
