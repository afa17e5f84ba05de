"""Bridges database rows to the permission engine.

Role and override rows are read on every call; nothing is cached, so a
role or override change applies to the very next request.
"""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_
from sqlalchemy.orm import Session

from omnicrm.common.logger import get_logger
from omnicrm.core.rbac.checker import PermissionChecker
from omnicrm.core.rbac.overrides import (
    OverrideEffect,
    PermissionOverride,
    Principal,
    resolve_effective_permissions,
)
from omnicrm.core.rbac.permissions import is_valid_permission
from omnicrm.db.models import Role, User, UserPermissionOverride

logger = get_logger(__name__)


class DatabaseRoleRegistry:
    """Role lookup over one organization's role rows."""

    def __init__(self, db: Session, org_id: UUID):
        self.db = db
        self.org_id = org_id

    def get_role_permissions(self, slug: Optional[str]) -> frozenset:
        if slug is None:
            return frozenset()
        role = self.db.query(Role).filter(
            and_(Role.org_id == self.org_id, Role.slug == slug)
        ).first()
        if role is None:
            return frozenset()
        return frozenset(role.permissions or [])


def load_principal(db: Session, user: User) -> Principal:
    """Build the engine's view of a user from its role and override rows."""
    role = db.query(Role).filter(Role.id == user.role_id).first()
    rows = db.query(UserPermissionOverride).filter(
        UserPermissionOverride.user_id == user.id
    ).all()
    return Principal(
        role_slug=role.slug if role else None,
        overrides=tuple(PermissionOverride(r.permission, OverrideEffect(r.effect)) for r in rows),
        user_id=user.id,
        org_id=user.org_id,
    )


def get_effective_permissions(db: Session, user: User) -> frozenset:
    principal = load_principal(db, user)
    return resolve_effective_permissions(DatabaseRoleRegistry(db, user.org_id), principal)


def permission_summary(db: Session, user: User) -> Dict:
    """Role, raw overrides and effective permissions for UI affordances."""
    principal = load_principal(db, user)
    effective = resolve_effective_permissions(DatabaseRoleRegistry(db, user.org_id), principal)
    checker = PermissionChecker(effective)
    return {
        "user_id": user.id,
        "role": principal.role_slug,
        "custom_permissions": principal.custom_permissions(),
        "effective_permissions": sorted(effective),
        "accessible_modules": [m.value for m in checker.get_accessible_modules()],
    }


def replace_overrides(
    db: Session,
    user: User,
    grant: List[str],
    revoke: List[str],
) -> Principal:
    """Replace a user's overrides wholesale in the current transaction.

    Raises:
        ValueError: If any key is not in the permission catalog
    """
    invalid = [p for p in list(grant) + list(revoke) if not is_valid_permission(p)]
    if invalid:
        raise ValueError(f"Invalid permissions: {', '.join(invalid)}")

    role = db.query(Role).filter(Role.id == user.role_id).first()
    principal = Principal.from_custom_permissions(
        role.slug if role else None,
        {"grant": grant, "revoke": revoke},
        user_id=user.id,
        org_id=user.org_id,
    )

    db.query(UserPermissionOverride).filter(
        UserPermissionOverride.user_id == user.id
    ).delete(synchronize_session=False)
    for override in principal.overrides:
        db.add(UserPermissionOverride(
            user_id=user.id,
            permission=override.permission,
            effect=override.effect.value,
        ))
    db.flush()

    logger.info(
        "Replaced overrides for user=%s: %d grant, %d revoke",
        user.id, len(principal.grants), len(principal.revokes),
    )
    return principal
