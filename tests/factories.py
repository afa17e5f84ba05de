"""Factory functions for creating test database records.

Each factory creates a model instance, adds it to the session, and flushes
so that database-generated fields (id, created_at, etc.) are populated.
All fields have sensible defaults but can be overridden via keyword arguments.

Usage::

    from tests.factories import create_organization, create_user

    def test_something(db_session):
        org = create_organization(db_session, name="Acme")
        role = create_role(db_session, org=org, permissions=["contacts.view"])
        user = create_user(db_session, org=org, role=role)
        assert user.organization.name == "Acme"
"""

from functools import lru_cache
from typing import Optional

from sqlalchemy.orm import Session

from omnicrm.core.security import create_access_token, get_password_hash
from omnicrm.db.models import (
    Company,
    Contact,
    Organization,
    Pipeline,
    PipelineStage,
    Role,
    User,
    UserPermissionOverride,
)


_counter = 0

TEST_PASSWORD = "testpass123"


@lru_cache
def _password_hash() -> str:
    return get_password_hash(TEST_PASSWORD)


def _next_id() -> int:
    """Return a monotonically increasing integer for unique default values."""
    global _counter
    _counter += 1
    return _counter


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.org_id)}"}


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------


def create_organization(
    session: Session,
    *,
    name: Optional[str] = None,
    slug: Optional[str] = None,
    settings: Optional[dict] = None,
) -> Organization:
    n = _next_id()
    org = Organization(
        name=name or f"Test Org {n}",
        slug=slug or f"test-org-{n}",
        settings=settings or {},
    )
    session.add(org)
    session.flush()
    return org


# ---------------------------------------------------------------------------
# Role
# ---------------------------------------------------------------------------


def create_role(
    session: Session,
    *,
    org: Optional[Organization] = None,
    slug: Optional[str] = None,
    name: Optional[str] = None,
    permissions: Optional[list] = None,
    is_system: bool = False,
) -> Role:
    if org is None:
        org = create_organization(session)
    n = _next_id()
    role = Role(
        org_id=org.id,
        slug=slug or f"role_{n}",
        name=name or f"Role {n}",
        permissions=permissions if permissions is not None else ["contacts.view"],
        is_system=is_system,
    )
    session.add(role)
    session.flush()
    return role


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


def create_user(
    session: Session,
    *,
    org: Optional[Organization] = None,
    role: Optional[Role] = None,
    email: Optional[str] = None,
    name: Optional[str] = None,
    is_active: bool = True,
) -> User:
    if org is None:
        org = create_organization(session)
    if role is None:
        role = create_role(session, org=org)
    n = _next_id()
    user = User(
        org_id=org.id,
        role_id=role.id,
        email=email or f"user-{n}@acme.io",
        name=name or f"Test User {n}",
        password_hash=_password_hash(),
        is_active=is_active,
    )
    session.add(user)
    session.flush()
    return user


def create_override(
    session: Session,
    *,
    user: User,
    permission: str,
    effect: str = "grant",
) -> UserPermissionOverride:
    override = UserPermissionOverride(user_id=user.id, permission=permission, effect=effect)
    session.add(override)
    session.flush()
    return override


# ---------------------------------------------------------------------------
# CRM records
# ---------------------------------------------------------------------------


def create_contact(
    session: Session,
    *,
    org: Organization,
    name: Optional[str] = None,
    status: Optional[str] = None,
    lead_source: Optional[str] = None,
    tags: Optional[list] = None,
) -> Contact:
    n = _next_id()
    contact = Contact(
        org_id=org.id,
        name=name or f"Contact {n}",
        phone=f"+9665000{n:05d}",
        status=status,
        lead_source=lead_source,
        tags=tags or [],
    )
    session.add(contact)
    session.flush()
    return contact


def create_company(session: Session, *, org: Organization, name: Optional[str] = None) -> Company:
    company = Company(org_id=org.id, name=name or f"Company {_next_id()}")
    session.add(company)
    session.flush()
    return company


def create_pipeline(
    session: Session,
    *,
    org: Organization,
    name: Optional[str] = None,
    stages: tuple = ("Lead", "Qualified", "Proposal"),
) -> Pipeline:
    pipeline = Pipeline(org_id=org.id, name=name or f"Pipeline {_next_id()}")
    pipeline.stages = [PipelineStage(name=s, position=i) for i, s in enumerate(stages)]
    session.add(pipeline)
    session.flush()
    return pipeline
