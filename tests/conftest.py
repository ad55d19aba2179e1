import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marzan_loyalty.db import Base, get_db
from marzan_loyalty.main import app
from marzan_loyalty.models.user import User
from marzan_loyalty.services.auth_service import create_token, hash_password
from marzan_loyalty.services.email_service import InMemoryEmailBackend
from marzan_loyalty.services.session_events import SessionEventBus


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


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
def email_backend():
    return InMemoryEmailBackend()


@pytest.fixture
def session_events():
    return SessionEventBus()


@pytest.fixture
def client(session_factory, email_backend, session_events):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    previous = {
        "email_backend": app.state.email_backend,
        "session_events": app.state.session_events,
        "postal_lookup": app.state.postal_lookup,
        "image_host": app.state.image_host,
    }
    app.dependency_overrides[get_db] = override_get_db
    app.state.email_backend = email_backend
    app.state.session_events = session_events

    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        for key, value in previous.items():
            setattr(app.state, key, value)


@pytest.fixture
def make_user(db):
    def _make_user(email: str, *, password: str = "secret123", full_name: str | None = None, is_admin: bool = False):
        user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name or email.split("@")[0].title(),
            phone="11987654321",
            is_admin=is_admin,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user("alice@example.com", full_name="Alice Souza")


@pytest.fixture
def bob(make_user):
    return make_user("bob@example.com", full_name="Bob Lima")


@pytest.fixture
def admin(make_user):
    return make_user("admin@marzantaste.com", full_name="Admin", is_admin=True)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_token(user)}"}


@pytest.fixture
def alice_headers(alice):
    return auth_headers(alice)


@pytest.fixture
def bob_headers(bob):
    return auth_headers(bob)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
