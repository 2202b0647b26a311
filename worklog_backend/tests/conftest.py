import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.api.config import API_PREFIX
from src.api.database import build_engine, get_db, init_db
from src.api.main import create_app
from src.api.repository import UserRepository

TEST_SECRET = "test-session-secret"
PASSWORD = "password123"


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(engine, session_factory):
    application = create_app(db_engine=engine, session_secret=TEST_SECRET)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(db):
    """Insert a user row directly; returns its id."""
    counter = {"n": 0}

    def _make(email=None):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        return UserRepository(db).create(email=email, password_hash="not-a-real-hash", name="User").id

    return _make


@pytest.fixture
def register_client(app):
    """Register a user over HTTP; returns a TestClient holding their session cookie."""

    def _register(email, name="Test User", password=PASSWORD):
        c = TestClient(app)
        resp = c.post(f"{API_PREFIX}/auth/register", json={"email": email, "password": password, "name": name})
        assert resp.status_code == 201, resp.text
        return c

    return _register


@pytest.fixture
def alice(register_client):
    return register_client("alice@example.com", name="Alice")


@pytest.fixture
def bob(register_client):
    return register_client("bob@example.com", name="Bob")
