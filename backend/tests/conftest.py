"""Pytest configuration: throwaway SQLite database, app client, user/catalogue helpers."""
import os
import tempfile
from pathlib import Path

# Must be set before app.config is imported anywhere
_DB_DIR = tempfile.mkdtemp(prefix="studyroom-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["RADAR_SECRET_KEY"] = ""
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from app.db.base import Base
from app.db.session import SessionLocal, engine, init_db
from app.main import app
from app.services.user_service import create_user, set_admin

PASSWORD = "password123"

SQUARE = {"latlngs": [[43.0, -79.0], [43.0, -78.9], [43.1, -78.9], [43.1, -79.0]]}


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(fresh_db):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(fresh_db):
    with TestClient(app) as c:
        yield c


def make_user(db, username: str, *, admin: bool = False):
    user = create_user(db, username, PASSWORD)
    if admin:
        set_admin(db, username, True)
    return user


def sign_in(client, username: str) -> None:
    resp = client.post("/signin/", json={"username": username, "password": PASSWORD})
    assert resp.status_code == 200, resp.text


@pytest.fixture
def admin_client(client, db):
    make_user(db, "admin", admin=True)
    sign_in(client, "admin")
    return client
