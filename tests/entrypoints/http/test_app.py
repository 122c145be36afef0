"""
Tests for the application factory.

- Metadata (title, version, docs endpoints)
- Router registration (health at the root, listings and sync under /v1)
- Exception handlers installed
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from auto_catalog.entrypoints.http.app import build_app


# ==============================================================================
# App Creation
# ==============================================================================


def test_build_app_returns_fastapi_instance() -> None:
    assert isinstance(build_app(), FastAPI)


def test_build_app_creates_new_instance_each_call() -> None:
    assert build_app() is not build_app()


def test_app_metadata() -> None:
    app = build_app()

    assert app.title == "Auto Catalog API"
    assert app.version == "0.1.0"
    assert app.docs_url == "/docs"
    assert app.redoc_url == "/redoc"
    assert app.openapi_url == "/openapi.json"


# ==============================================================================
# Router Registration
# ==============================================================================


def test_app_includes_health_router() -> None:
    client = TestClient(build_app())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_app_registers_versioned_routes() -> None:
    paths = build_app().openapi()["paths"]

    assert "/health" in paths
    assert "/v1/listings" in paths
    assert "/v1/listings/{listing_id}" in paths
    assert "/v1/sync" in paths
    assert "/v1/sync/stop" in paths
    assert "/listings" not in paths


def test_openapi_documents_sync_methods() -> None:
    paths = build_app().openapi()["paths"]

    assert set(paths["/v1/sync"]) == {"get", "post"}
    assert set(paths["/v1/sync/stop"]) == {"post"}


def test_app_returns_404_for_unknown_routes() -> None:
    client = TestClient(build_app(), raise_server_exceptions=False)

    response = client.get("/v1/cars")

    assert response.status_code == 404


def test_module_level_app_exists() -> None:
    from auto_catalog.entrypoints.http.app import app

    assert isinstance(app, FastAPI)
