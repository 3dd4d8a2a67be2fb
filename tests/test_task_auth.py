"""Tests for worker authentication and the on-demand expiry task."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from roomhold.api.factory import create_app
from roomhold.api.task_auth import (
    INTERNAL_SECRET_HEADER,
    LOCAL_DEV_AUDIENCE,
    verify_oidc_token,
)
from roomhold.infra.time import fixed_clock


@pytest.fixture
def worker_client(settings, now):
    app = create_app(role="worker", settings=settings, clock=fixed_clock(now))
    return TestClient(app)


@pytest.fixture(autouse=True)
def clean_auth_env(monkeypatch):
    for name in ("TASKS_OIDC_AUDIENCE", "TASKS_OIDC_SERVICE_ACCOUNT", "INTERNAL_TASK_SECRET"):
        monkeypatch.delenv(name, raising=False)


class TestVerifyOidcToken:
    def test_fails_closed_without_audience(self):
        with patch("roomhold.api.task_auth.id_token.verify_oauth2_token") as verify:
            assert verify_oidc_token("tok") is False
        verify.assert_not_called()

    def test_valid_token(self, monkeypatch):
        monkeypatch.setenv("TASKS_OIDC_AUDIENCE", "https://worker.example")
        with patch(
            "roomhold.api.task_auth.id_token.verify_oauth2_token",
            return_value={"email": "scheduler@example.iam"},
        ) as verify:
            assert verify_oidc_token("tok") is True
        assert verify.call_args.kwargs["audience"] == "https://worker.example"

    def test_invalid_token(self, monkeypatch):
        monkeypatch.setenv("TASKS_OIDC_AUDIENCE", "https://worker.example")
        with patch(
            "roomhold.api.task_auth.id_token.verify_oauth2_token",
            side_effect=ValueError("Token expired"),
        ):
            assert verify_oidc_token("tok") is False

    def test_service_account_mismatch(self, monkeypatch):
        monkeypatch.setenv("TASKS_OIDC_AUDIENCE", "https://worker.example")
        monkeypatch.setenv("TASKS_OIDC_SERVICE_ACCOUNT", "scheduler@example.iam")
        with patch(
            "roomhold.api.task_auth.id_token.verify_oauth2_token",
            return_value={"email": "someone-else@example.iam"},
        ):
            assert verify_oidc_token("tok") is False


class TestExpireTask:
    def test_no_auth_returns_401(self, worker_client):
        with patch("roomhold.api.routes.tasks_holds.expire_holds") as expire:
            response = worker_client.post("/tasks/holds/expire")
        assert response.status_code == 401
        expire.assert_not_called()

    def test_non_bearer_scheme_returns_401(self, worker_client, monkeypatch):
        monkeypatch.setenv("TASKS_OIDC_AUDIENCE", "https://worker.example")
        response = worker_client.post(
            "/tasks/holds/expire", headers={"Authorization": "Basic abc"}
        )
        assert response.status_code == 401

    def test_with_valid_auth_expires(self, worker_client, now):
        with patch(
            "roomhold.api.routes.tasks_holds.verify_task_auth", return_value=True
        ), patch(
            "roomhold.api.routes.tasks_holds.expire_holds", return_value=3
        ) as expire:
            response = worker_client.post("/tasks/holds/expire")

        assert response.status_code == 200
        assert response.json() == {
            "ok": True,
            "expired": 3,
            "now": "2026-01-31T09:00:00Z",
        }
        expire.assert_called_once_with(now=now)

    def test_local_secret_accepted_for_local_audience(self, worker_client, monkeypatch):
        monkeypatch.setenv("TASKS_OIDC_AUDIENCE", LOCAL_DEV_AUDIENCE)
        monkeypatch.setenv("INTERNAL_TASK_SECRET", "s3cret")
        with patch("roomhold.api.routes.tasks_holds.expire_holds", return_value=0):
            response = worker_client.post(
                "/tasks/holds/expire", headers={INTERNAL_SECRET_HEADER: "s3cret"}
            )
        assert response.status_code == 200
        assert response.json()["expired"] == 0

    def test_local_secret_rejected_for_real_audience(self, worker_client, monkeypatch):
        monkeypatch.setenv("TASKS_OIDC_AUDIENCE", "https://worker.example")
        monkeypatch.setenv("INTERNAL_TASK_SECRET", "s3cret")
        response = worker_client.post(
            "/tasks/holds/expire", headers={INTERNAL_SECRET_HEADER: "s3cret"}
        )
        assert response.status_code == 401

    def test_wrong_local_secret(self, worker_client, monkeypatch):
        monkeypatch.setenv("TASKS_OIDC_AUDIENCE", LOCAL_DEV_AUDIENCE)
        monkeypatch.setenv("INTERNAL_TASK_SECRET", "s3cret")
        response = worker_client.post(
            "/tasks/holds/expire", headers={INTERNAL_SECRET_HEADER: "guess"}
        )
        assert response.status_code == 401

    def test_sweep_failure_returns_500(self, worker_client):
        with patch(
            "roomhold.api.routes.tasks_holds.verify_task_auth", return_value=True
        ), patch(
            "roomhold.api.routes.tasks_holds.expire_holds",
            side_effect=RuntimeError("db down"),
        ):
            response = worker_client.post("/tasks/holds/expire")

        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "processing failed"}
