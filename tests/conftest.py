"""Shared fixtures: an isolated SQLite database and app per test."""

import pytest
from fastapi.testclient import TestClient

from config import Settings
from db.database import create_db_engine, ensure_schema
from main import create_app


@pytest.fixture()
def static_dir(tmp_path):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<html><body>ledger front-end</body></html>")
    (public / "app.js").write_text("console.log('ledger');")
    return public


@pytest.fixture()
def settings(tmp_path, static_dir):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'billing.db'}",
        STATIC_DIR=str(static_dir),
        NODE_ENV="test",
    )


@pytest.fixture()
def engine(settings):
    db_engine = create_db_engine(settings)
    ensure_schema(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture()
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def add_entry(client):
    """Create an entry through the API and return its id."""
    def _add(**overrides):
        payload = {
            "category": "utilities",
            "year": 2024,
            "month": 3,
            "department": "IT",
            "amount": 100,
            "data": {},
        }
        payload.update(overrides)
        response = client.post("/api/entries", json=payload)
        assert response.status_code == 200, response.text
        return response.json()["id"]
    return _add
