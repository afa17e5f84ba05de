"""Default role definitions for OmniCRM.

Defines the standard roles with their permission sets:
1. Admin - Every permission in the catalog
2. Manager - Full CRM access, no destructive settings or team changes
3. Agent - View plus limited create/edit on day-to-day records
4. Member - View-only access
5. POS - Custom point-of-sale role with a minimal curated subset

Roles are immutable value objects. A role's base permissions only change
through the administrative replace path, which yields a new Role.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .permissions import is_valid_permission, list_permissions


def _ordered_unique(keys: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(keys))


@dataclass(frozen=True)
class Role:
    """A named bundle of baseline permission keys."""

    slug: str
    name: str
    permissions: Tuple[str, ...] = ()
    description: str = ""
    is_system: bool = False

    def __post_init__(self):
        object.__setattr__(self, "permissions", _ordered_unique(self.permissions))

    @property
    def permission_set(self) -> frozenset:
        return frozenset(self.permissions)

    def with_permissions(self, permissions: Iterable[str]) -> "Role":
        """Return a copy of this role with its base set replaced.

        Raises:
            ValueError: If any key is not in the permission catalog
        """
        permissions = list(permissions)
        invalid = [p for p in permissions if not is_valid_permission(p)]
        if invalid:
            raise ValueError(f"Invalid permissions: {', '.join(invalid)}")
        return replace(self, permissions=tuple(permissions))


# Admin: every catalog permission
ADMIN_PERMISSIONS: List[str] = list_permissions()

_MANAGER_EXCLUDED = {
    "companies.delete",
    "segments.delete",
    "tickets.delete",
    # Settings - view only
    "tags.create", "tags.edit", "tags.delete",
    "statuses.create", "statuses.edit", "statuses.delete",
    "lead_sources.create", "lead_sources.edit", "lead_sources.delete",
    # Team - view and invite only
    "users.edit", "users.delete", "permissions.manage",
    # Organization - view only
    "organization.edit", "organization.delete",
}

# Manager: everything except deletes on companies/segments and admin-only areas
MANAGER_PERMISSIONS: List[str] = [p for p in ADMIN_PERMISSIONS if p not in _MANAGER_EXCLUDED]

# Agent: view plus limited create/edit
AGENT_PERMISSIONS: List[str] = [
    "contacts.view", "contacts.create", "contacts.edit",
    "companies.view", "companies.create", "companies.edit",
    "segments.view",
    "deals.view", "deals.create", "deals.edit",
    "conversations.view", "conversations.reply",
    "tickets.view", "tickets.create", "tickets.edit",
    "tags.view", "statuses.view", "lead_sources.view",
    "users.view",
    "organization.view",
]

# Member: view-only
MEMBER_PERMISSIONS: List[str] = [
    "contacts.view",
    "companies.view",
    "segments.view",
    "deals.view",
    "conversations.view",
    "tickets.view",
    "tags.view",
    "statuses.view",
    "lead_sources.view",
    "users.view",
    "organization.view",
]

# POS: point-of-sale desk, can look up and register contacts only
POS_PERMISSIONS: List[str] = [
    "contacts.view",
    "contacts.create",
]


DEFAULT_ROLES: Dict[str, Role] = {
    "admin": Role(
        slug="admin",
        name="Admin",
        description="Full access to every module",
        permissions=tuple(ADMIN_PERMISSIONS),
        is_system=True,
    ),
    "manager": Role(
        slug="manager",
        name="Manager",
        description="Full CRM access without destructive settings or team changes",
        permissions=tuple(MANAGER_PERMISSIONS),
        is_system=True,
    ),
    "agent": Role(
        slug="agent",
        name="Agent",
        description="Works contacts, deals and tickets day to day",
        permissions=tuple(AGENT_PERMISSIONS),
        is_system=True,
    ),
    "member": Role(
        slug="member",
        name="Member",
        description="Read-only access",
        permissions=tuple(MEMBER_PERMISSIONS),
        is_system=True,
    ),
    "pos": Role(
        slug="pos",
        name="POS",
        description="Point of sale: look up and register contacts",
        permissions=tuple(POS_PERMISSIONS),
        is_system=False,
    ),
}


@dataclass(frozen=True)
class RoleRegistry:
    """Read-only lookup of roles by slug.

    Unknown slugs resolve to the empty permission set so that every
    guarded check against them denies.
    """

    roles: Dict[str, Role] = field(default_factory=dict)

    @classmethod
    def from_roles(cls, roles: Iterable[Role]) -> "RoleRegistry":
        return cls({role.slug: role for role in roles})

    @classmethod
    def default(cls) -> "RoleRegistry":
        return cls(dict(DEFAULT_ROLES))

    def get(self, slug: Optional[str]) -> Optional[Role]:
        if slug is None:
            return None
        return self.roles.get(slug)

    def get_role_permissions(self, slug: Optional[str]) -> frozenset:
        role = self.get(slug)
        return role.permission_set if role else frozenset()

    def slugs(self) -> List[str]:
        return list(self.roles.keys())

    def __iter__(self) -> Iterator[Role]:
        return iter(self.roles.values())

    def __len__(self) -> int:
        return len(self.roles)

    def __contains__(self, slug: object) -> bool:
        return slug in self.roles

    def with_role(self, role: Role) -> "RoleRegistry":
        """Return a registry with `role` added or replaced."""
        return RoleRegistry({**self.roles, role.slug: role})

    def replace_permissions(self, slug: str, permissions: Iterable[str]) -> "RoleRegistry":
        """Administrative commit path: replace one role's base set.

        Raises:
            KeyError: If the role does not exist
            ValueError: If any key is not in the permission catalog
        """
        role = self.roles.get(slug)
        if role is None:
            raise KeyError(f"Unknown role: {slug}")
        return self.with_role(role.with_permissions(permissions))


def get_default_role_permissions(role_key: str) -> List[str]:
    """Get permissions list for a default role."""
    role = DEFAULT_ROLES.get(role_key)
    if not role:
        raise ValueError(f"Unknown default role: {role_key}")
    return list(role.permissions)


def get_all_default_roles() -> Dict[str, Role]:
    """Get all default role definitions."""
    return DEFAULT_ROLES.copy()
