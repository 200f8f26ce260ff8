"""Tests for request ID tracing with ContextVars."""

from __future__ import annotations

import asyncio
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from gitstore.logging_config import RequestIDFilter
from gitstore.middleware.request_id import RequestIDMiddleware
from gitstore.utils.request_context import (
    clear_request_id,
    generate_request_id,
    get_request_id,
    set_request_id,
)


class TestRequestContextManagement:
    """Tests for request context utilities."""

    def test_generate_request_id(self) -> None:
        """Verify request ID generation creates distinct IDs."""
        assert generate_request_id() != generate_request_id()

    def test_set_get_and_clear_request_id(self) -> None:
        set_request_id("test-id-123")
        assert get_request_id() == "test-id-123"
        clear_request_id()
        assert get_request_id() is None

    @pytest.mark.asyncio
    async def test_request_id_propagates_to_child_tasks(self) -> None:
        """Aggregation fans out into child tasks; they must see the caller's ID."""
        request_id = generate_request_id()
        set_request_id(request_id)
        child_ids = []

        async def child_task() -> None:
            await asyncio.sleep(0)
            child_ids.append(get_request_id())

        async with asyncio.TaskGroup() as tg:
            for _ in range(3):
                tg.create_task(child_task())

        assert child_ids == [request_id] * 3
        clear_request_id()

    @pytest.mark.asyncio
    async def test_context_independent_between_tasks(self) -> None:
        clear_request_id()
        results: dict[int, str | None] = {}

        async def task(task_num: int, context_id: str) -> None:
            set_request_id(context_id)
            await asyncio.sleep(0.01 * task_num)
            results[task_num] = get_request_id()

        async with asyncio.TaskGroup() as tg:
            tg.create_task(task(1, "id-1"))
            tg.create_task(task(2, "id-2"))

        assert results == {1: "id-1", 2: "id-2"}
        assert get_request_id() is None


@pytest.fixture
def traced_client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/echo")
    async def echo() -> dict[str, str | None]:
        return {"request_id": get_request_id()}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return TestClient(app)


class TestRequestIDMiddleware:
    """Tests for request ID middleware."""

    def test_middleware_generates_request_id(self, traced_client: TestClient) -> None:
        response = traced_client.get("/echo")

        assert response.status_code == 200
        assert response.headers["X-Request-ID"]
        assert response.json()["request_id"] == response.headers["X-Request-ID"]

    def test_middleware_preserves_client_request_id(self, traced_client: TestClient) -> None:
        response = traced_client.get("/echo", headers={"X-Request-ID": "custom-request-id-123"})

        assert response.headers["X-Request-ID"] == "custom-request-id-123"
        assert response.json()["request_id"] == "custom-request-id-123"

    def test_each_request_gets_new_id(self, traced_client: TestClient) -> None:
        first = traced_client.get("/health")
        second = traced_client.get("/health")

        assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]


def test_request_id_filter_fills_missing_id() -> None:
    clear_request_id()
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)

    assert RequestIDFilter().filter(record)
    assert record.request_id == "no-request-id"  # type: ignore[attr-defined]

    set_request_id("abc")
    RequestIDFilter().filter(record)
    assert record.request_id == "abc"  # type: ignore[attr-defined]
    clear_request_id()
