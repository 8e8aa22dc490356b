"""
Shared fixtures: a file-backed SQLite database per test (so two sessions can race), user and
identity factories, provider ID tokens signed with the development secret, and an API client
whose get_db yields sessions on the test database.
"""
import time

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from activity_portal.config import settings
from activity_portal.database import get_db, init_db
from activity_portal.main import app
from activity_portal.models.types import Role
from activity_portal.models.user import User
from activity_portal.services.auth import create_access_token
from activity_portal.services.identity import Identity


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'portal_test.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Insert a user with the given role; extra keyword args set profile fields."""
    def _make(uid: str, role: Role = Role.STUDENT, name: str | None = None, **fields) -> User:
        user = User(
            uid=uid,
            name=name or uid.title(),
            email=f"{uid}@college.example.edu",
            role=role.value,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


def make_identity(uid: str, name: str | None = None, email: str | None = None, photo_url: str | None = None) -> Identity:
    return Identity(
        subject_id=uid,
        display_name=name if name is not None else uid.title(),
        email=email if email is not None else f"{uid}@college.example.edu",
        photo_url=photo_url,
    )


def mint_id_token(
    sub: str,
    name: str | None = None,
    email: str | None = None,
    expires_in: int = 300,
    headers: dict | None = None,
    **claims,
) -> str:
    """Provider-style ID token signed with the development shared secret."""
    payload = {
        "sub": sub,
        "name": name if name is not None else sub.title(),
        "email": email if email is not None else f"{sub}@college.example.edu",
        "exp": int(time.time()) + expires_in,
        **claims,
    }
    return jwt.encode(payload, settings.identity_token_secret, algorithm="HS256", headers=headers)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.uid, user.email, user.role)}"}


@pytest.fixture
def client(session_factory):
    """TestClient whose get_db uses the per-test database. Startup (init_db on the dev DB) is not run."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _pdf_bytes(pages: int = 1) -> bytes:
    import pymupdf
    doc = pymupdf.open()
    for _ in range(pages):
        doc.new_page()
    try:
        return doc.tobytes()
    finally:
        doc.close()


@pytest.fixture
def pdf_bytes():
    return _pdf_bytes()


@pytest.fixture
def identity_for():
    return make_identity


@pytest.fixture
def id_token_for():
    return mint_id_token


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def png_bytes():
    return PNG_BYTES
