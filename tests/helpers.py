"""Shared test fixtures: in-memory SQLite database and an API client bound to it."""

import unittest
from collections.abc import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.core.security import hash_password
from app.main import app
from app.models import Base, User

API = "/api/v1"


def make_engine(url: str = "sqlite://") -> Engine:
    """Fresh database with all tables. In-memory by default (one shared connection)."""
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url == "sqlite://":
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def add_user(
    session: Session,
    email: str,
    password: str = "secret1",
    name: str = "Test User",
    role: str = "STUDENT",
) -> User:
    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=role,
        xp=0,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


class DatabaseTestCase(unittest.TestCase):
    """Each test gets an empty in-memory database and a session on it."""

    def setUp(self) -> None:
        self.engine = make_engine()
        self.SessionTesting = make_session_factory(self.engine)
        self.db = self.SessionTesting()

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient whose get_db uses the test database."""

    def setUp(self) -> None:
        super().setUp()

        def override_get_db() -> Generator[Session, None, None]:
            db = self.SessionTesting()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.client.close()
        super().tearDown()

    def signup(self, email: str, password: str = "secret1", name: str = "A", role: str | None = None):
        body = {"email": email, "password": password, "name": name}
        if role is not None:
            body["role"] = role
        return self.client.post(f"{API}/auth/signup", json=body)

    def login(self, email: str, password: str = "secret1"):
        return self.client.post(f"{API}/auth/login", json={"email": email, "password": password})

    def access_token_for(self, email: str, password: str = "secret1") -> str:
        response = self.login(email, password)
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["accessToken"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
