"""Smoke tests for health and app wiring."""

from fastapi.testclient import TestClient

from src.main import app


def test_health_returns_ok():
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_ai_routes_are_registered():
    paths = {route.path for route in app.routes}
    assert {
        "/ai/intelligent-search",
        "/ai/summarize",
        "/ai/generate-flashcards",
        "/ai/generate-learning-path",
    } <= paths
