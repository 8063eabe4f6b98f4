from __future__ import annotations

import re

from fastapi.testclient import TestClient

from src.api.main import app
from src.api.routes.subscribe import get_subscriber_store
from tests.fixtures.subscribe_fakes import FakeStore


def test_health_ok() -> None:
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    request_id = response.headers.get("x-request-id")
    assert request_id is not None
    assert re.fullmatch(r"[0-9a-f]{32}", request_id) is not None


def test_health_preserves_incoming_request_id() -> None:
    client = TestClient(app)
    response = client.get("/health", headers={"x-request-id": "trace-abc-123"})
    assert response.status_code == 200
    assert response.headers.get("x-request-id") == "trace-abc-123"


def test_health_sheet_ok() -> None:
    store = FakeStore()
    app.dependency_overrides[get_subscriber_store] = lambda: store
    try:
        client = TestClient(app)
        response = client.get("/health/sheet")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert store.fetch_calls == 1
    finally:
        app.dependency_overrides.pop(get_subscriber_store, None)


def test_health_sheet_unavailable() -> None:
    app.dependency_overrides[get_subscriber_store] = lambda: FakeStore(fail_on="fetch")
    try:
        client = TestClient(app)
        response = client.get("/health/sheet")
        assert response.status_code == 503
        assert response.json() == {"detail": "sheet unavailable"}
    finally:
        app.dependency_overrides.pop(get_subscriber_store, None)


def test_health_sheet_not_configured() -> None:
    app.dependency_overrides[get_subscriber_store] = lambda: None
    try:
        client = TestClient(app)
        response = client.get("/health/sheet")
        assert response.status_code == 503
    finally:
        app.dependency_overrides.pop(get_subscriber_store, None)
