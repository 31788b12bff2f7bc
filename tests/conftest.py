"""
Pytest fixtures for the promo card engine.

Each test gets a fresh in-memory SQLite store, a session bound to it and a
TestClient whose `get_db` dependency points at the same store.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SHOP_PIN_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base, get_db
from app.main import app


@pytest.fixture(scope='function')
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope='function')
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture(scope='function')
def db_session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# FACTORIES
# =============================================================================


@pytest.fixture
def make_shop(client):
    counter = {"n": 0}

    def _make(name=None, pin=None):
        counter["n"] += 1
        payload = {
            "name": name or f"Shop {counter['n']}",
            "pin": pin or f"{1000 + counter['n']}",
        }
        resp = client.post("/shops", json=payload)
        assert resp.status_code == 200, resp.text
        shop = resp.json()
        shop["pin"] = payload["pin"]
        shop["headers"] = {"X-Shop-Pin": payload["pin"]}
        return shop

    return _make


@pytest.fixture
def make_promotion(client):
    def _make(shops, **overrides):
        payload = {
            "title": "Sconto Benvenuto",
            "description": "10% di sconto sul primo acquisto",
            "shops": [s["id"] if isinstance(s, dict) else s for s in shops],
        }
        payload.update(overrides)
        resp = client.post("/promotions", json=payload)
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _make


@pytest.fixture
def activate_card(client):
    def _activate(card_id, **overrides):
        payload = {
            "name": "Mario",
            "surname": "Rossi",
            "age": 30,
            "gender": "Male",
            "email": "mario.rossi@example.com",
            "phone": "+39 333 1234567",
        }
        payload.update(overrides)
        resp = client.post(f"/cards/{card_id}/activate", json=payload)
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _activate
