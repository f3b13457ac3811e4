"""Tests for the runtime config and health endpoints."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from simulcast.api.v1.routers.runtime_config import router
from simulcast.shared.api.health import router as health_router


def test_runtime_config_is_public_and_uncached():
    app = FastAPI()
    app.include_router(router)

    response = TestClient(app).get("/runtime_config")

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    assert response.json()["results"] == {
        "relay_url": "wss://relay.example.com",
        "app_base_url": "https://app.example.com",
    }


def test_health():
    app = FastAPI()
    app.include_router(health_router)

    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json()["success"] is True
