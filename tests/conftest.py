"""Shared fixtures: a throwaway SQLite database per test and a TestClient wired to it."""

import os

# Settings are read once at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["APP_DEBUG"] = "false"
os.environ["REFRESH_COOKIE_ONLY"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from shoplist.database import Base, enable_sqlite_foreign_keys, get_db
from shoplist.main import app
from shoplist.models import Role, RoleName, User
from shoplist.services.auth_service import auth_service
from shoplist.utils.google import ExternalIdentity, GoogleTokenError
from shoplist.utils.security import hash_password

PASSWORD = "Password1"


class FakeGoogleVerifier:
    """Stands in for GoogleTokenVerifier; known tokens map to identities."""

    def __init__(self):
        self.identities: dict[str, ExternalIdentity] = {}

    def add(self, id_token: str, email: str, name: str = "Google User",
            email_verified: bool = True) -> ExternalIdentity:
        identity = ExternalIdentity(email=email, name=name,
                                    external_id=f"google-{len(self.identities) + 1}",
                                    email_verified=email_verified)
        self.identities[id_token] = identity
        return identity

    def verify(self, id_token: str) -> ExternalIdentity:
        if id_token not in self.identities:
            raise GoogleTokenError("unknown test token")
        return self.identities[id_token]


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'shoplist-test.db'}",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    with sessionmaker(bind=engine)() as session:
        session.add_all([
            Role.create(RoleName.USER, "Regular user"),
            Role.create(RoleName.ADMIN, "Administrator"),
        ])
        session.commit()
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_google_verifier():
    return FakeGoogleVerifier()


@pytest.fixture
def google(monkeypatch, fake_google_verifier):
    """Route the app's Google sign-in through FakeGoogleVerifier."""
    monkeypatch.setattr(auth_service.credential_verifier, "google_verifier", fake_google_verifier)
    return fake_google_verifier


@pytest.fixture
def client(session_factory, google):
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
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Create a LOCAL user directly in the database."""
    def factory(email="ann@example.com", name="Ann", password=PASSWORD,
                roles=(RoleName.USER,), disabled=False) -> User:
        user = User.create_local(email, name, hash_password(password))
        for role_name in roles:
            user.add_role(db.query(Role).filter(Role.name == role_name).one())
        if disabled:
            user.disable()
        db.add(user)
        db.commit()
        return user
    return factory
