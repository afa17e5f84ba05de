"""Database seeding for OmniCRM.

Creates default roles and initial organization setup.
"""

import sys
import uuid
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy import and_

from omnicrm.common.logger import get_logger, setup_logger
from omnicrm.core.rbac.roles import RoleRegistry
from omnicrm.db.models import Role, Organization

logger = get_logger(__name__)


def seed_default_roles(
    db: Session,
    org_id: uuid.UUID,
    registry: Optional[RoleRegistry] = None,
) -> dict[str, Role]:
    """
    Create the registry's roles for an organization.

    Roles are idempotent - if they already exist, returns existing roles.

    Args:
        db: Database session
        org_id: Organization ID to create roles for
        registry: Role definitions to seed (defaults to DEFAULT_ROLES)

    Returns:
        Dict mapping role slug to Role row
    """
    registry = registry or RoleRegistry.default()
    created_roles = {}

    for role_def in registry:
        existing = db.query(Role).filter(
            and_(
                Role.org_id == org_id,
                Role.slug == role_def.slug,
            )
        ).first()

        if existing:
            created_roles[role_def.slug] = existing
            continue

        role = Role(
            id=uuid.uuid4(),
            org_id=org_id,
            slug=role_def.slug,
            name=role_def.name,
            description=role_def.description,
            permissions=list(role_def.permissions),
            is_system=role_def.is_system,
        )
        db.add(role)
        created_roles[role_def.slug] = role

    db.flush()
    return created_roles


def seed_organization(
    db: Session,
    name: str,
    slug: str,
    *,
    settings: Optional[dict] = None,
    registry: Optional[RoleRegistry] = None,
) -> Organization:
    """
    Create a new organization with default roles.

    Args:
        db: Database session
        name: Organization name
        slug: URL-friendly slug
        settings: Optional organization settings
        registry: Role definitions to seed

    Returns:
        Created organization
    """
    existing = db.query(Organization).filter(
        Organization.slug == slug
    ).first()

    if existing:
        return existing

    org = Organization(
        id=uuid.uuid4(),
        name=name,
        slug=slug,
        settings=settings or {},
    )
    db.add(org)
    db.flush()

    seed_default_roles(db, org.id, registry)
    logger.info("Seeded organization %s with default roles", slug)

    return org


def get_role_by_slug(db: Session, org_id: uuid.UUID, slug: str) -> Optional[Role]:
    """Get a role by slug within an organization."""
    return db.query(Role).filter(
        and_(
            Role.org_id == org_id,
            Role.slug == slug,
        )
    ).first()


def main() -> int:
    from omnicrm.common.config import build_role_registry, load_typed_config
    from omnicrm.core.config import get_settings
    from omnicrm.db.session import SessionLocal, init_db

    settings = get_settings()
    setup_logger(settings)
    registry = build_role_registry(load_typed_config(settings.catalog_file))

    init_db()
    db = SessionLocal()
    try:
        org = seed_organization(
            db,
            name="Default Organization",
            slug="default",
            registry=registry,
        )
        print(f"Created organization: {org.name} (ID: {org.id})")

        roles = db.query(Role).filter(Role.org_id == org.id).all()
        print(f"\nCreated {len(roles)} roles:")
        for role in roles:
            print(f"  - {role.slug}: {len(role.permissions or [])} permissions")

        db.commit()
        print("\nSeeding complete!")
        return 0
    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
