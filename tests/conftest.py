"""
Shared fixtures: in-memory SQLite, in-memory sessions, TestClient.
"""
import os

# Configuration is read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PUBLIC_BASE_URL"] = "https://jobhunter.test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RUN_MIGRATIONS"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobhunter.core import config
from jobhunter.core.rate_limit import rate_limit_store
from jobhunter.core.session_store import InMemorySessionStore, get_session_store
from jobhunter.db.base import Base
from jobhunter.db.init_db import init_db
from jobhunter.db.models.user import User
from jobhunter.db.session import get_db
from jobhunter.main import app


TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    init_db(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def client(db, store, tmp_path, monkeypatch):
    """TestClient wired to the test database and an in-memory session store."""
    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "STATIC_DIR", str(tmp_path / "dist"))
    rate_limit_store.clear()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def test_user(db):
    user = User(
        id="google-108234",
        email="jane.doe@example.com",
        first_name="Jane",
        last_name="Doe",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_client(client, store, test_user):
    """Client carrying a live session cookie for ``test_user``."""
    record = store.create(test_user.id)
    client.cookies.set(config.SESSION_COOKIE_NAME, record.sid)
    return client
