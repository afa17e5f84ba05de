"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from omnicrm.api.deps import get_db
from omnicrm.api.main import app
from omnicrm.db.seed import get_role_by_slug, seed_organization
from omnicrm.db.session import init_db

from tests.factories import auth_headers, create_user


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def org(db_session):
    """Organization seeded with the default roles."""
    org = seed_organization(db_session, name="Acme", slug="acme")
    db_session.commit()
    return org


@pytest.fixture
def make_user(db_session, org):
    """Create a user holding one of the org's roles by slug."""

    def _make_user(role_slug: str, **kwargs):
        role = get_role_by_slug(db_session, org.id, role_slug)
        assert role is not None, f"role {role_slug} not seeded"
        user = create_user(db_session, org=org, role=role, **kwargs)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def member(make_user):
    return make_user("member")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def member_headers(member):
    return auth_headers(member)
