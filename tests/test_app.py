"""Tests for application assembly."""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from gitstore.config import Settings
from gitstore.main import create_app


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "github_token": "ghp-test-token",
        "github_owner": "octocat",
        "github_repo": "storage",
        "github_api_base_url": "https://github.test",
        "log_json": False,
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


def test_routes_registered() -> None:
    app = create_app(make_settings())
    paths = set(app.openapi()["paths"])

    assert {"/details", "/ping", "/health", "/health/ready"} <= paths


def test_liveness_without_upstream() -> None:
    client = TestClient(create_app(make_settings()))

    response = client.get("/health")

    assert response.status_code == 200
    assert "X-Request-ID" in response.headers


def test_cors_exposes_retry_after() -> None:
    client = TestClient(create_app(make_settings(cors_allowed_origins=["https://app.example.com"])))

    response = client.get("/ping", headers={"Origin": "https://app.example.com"})

    assert response.headers["access-control-allow-origin"] == "https://app.example.com"
    assert "Retry-After" in response.headers["access-control-expose-headers"]


def test_cors_disabled() -> None:
    client = TestClient(create_app(make_settings(cors_enabled=False)))

    response = client.get("/ping", headers={"Origin": "https://app.example.com"})

    assert "access-control-allow-origin" not in response.headers


def test_lifespan_wires_services() -> None:
    from gitstore.services.container import get_container

    with TestClient(create_app(make_settings())) as client:
        container = get_container()
        assert container.content_store.config.repo == "storage"
        assert container.details_service.timeout_seconds == 60.0
        assert client.get("/ping").status_code == 200

    with pytest.raises(RuntimeError):
        get_container()
