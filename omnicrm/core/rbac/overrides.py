"""Per-user permission overrides.

A principal carries one role slug plus zero or more overrides. Each
override either grants a key the role lacks or revokes a key the role (or
a grant) would otherwise give. Revoke is applied last, so it always wins.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple
from uuid import UUID

from omnicrm.common.logger import get_logger

logger = get_logger(__name__)


class OverrideEffect(str, Enum):
    GRANT = "grant"
    REVOKE = "revoke"


class PermissionOverride(NamedTuple):
    permission: str
    effect: OverrideEffect


def effective_permissions(
    role_permissions: Iterable[str],
    grants: Iterable[str] = (),
    revokes: Iterable[str] = (),
) -> frozenset:
    """Compute (role ∪ grants) \\ revokes.

    Granting a key already in the role set is a no-op. A key present in
    both grants and revokes ends up revoked.
    """
    effective = set(role_permissions)
    effective.update(grants)
    effective.difference_update(revokes)
    return frozenset(effective)


def _collapse(overrides: Iterable[PermissionOverride]) -> Tuple[PermissionOverride, ...]:
    """Keep one override per permission, preferring revoke."""
    by_key: Dict[str, PermissionOverride] = {}
    for override in overrides:
        override = PermissionOverride(override.permission, OverrideEffect(override.effect))
        existing = by_key.get(override.permission)
        if existing is not None and existing.effect != override.effect:
            logger.warning(
                "Conflicting overrides for %s; keeping revoke", override.permission
            )
            override = PermissionOverride(override.permission, OverrideEffect.REVOKE)
        by_key[override.permission] = override
    return tuple(by_key.values())


@dataclass(frozen=True)
class Principal:
    """A user as seen by the permission engine."""

    role_slug: Optional[str]
    overrides: Tuple[PermissionOverride, ...] = ()
    user_id: Optional[UUID] = None
    org_id: Optional[UUID] = None

    def __post_init__(self):
        object.__setattr__(self, "overrides", _collapse(self.overrides))

    @classmethod
    def from_custom_permissions(
        cls,
        role_slug: Optional[str],
        custom: Optional[Mapping[str, Any]] = None,
        **kwargs,
    ) -> "Principal":
        """Build a principal from the stored {"grant": [...], "revoke": [...]} shape."""
        custom = custom or {}
        overrides: List[PermissionOverride] = [
            PermissionOverride(p, OverrideEffect.GRANT) for p in custom.get("grant") or []
        ]
        overrides += [
            PermissionOverride(p, OverrideEffect.REVOKE) for p in custom.get("revoke") or []
        ]
        return cls(role_slug=role_slug, overrides=tuple(overrides), **kwargs)

    @property
    def grants(self) -> frozenset:
        return frozenset(o.permission for o in self.overrides if o.effect == OverrideEffect.GRANT)

    @property
    def revokes(self) -> frozenset:
        return frozenset(o.permission for o in self.overrides if o.effect == OverrideEffect.REVOKE)

    def with_override(self, permission: str, effect: OverrideEffect) -> "Principal":
        """Return a copy with the override for `permission` set to `effect`."""
        kept = tuple(o for o in self.overrides if o.permission != permission)
        return Principal(
            role_slug=self.role_slug,
            overrides=kept + (PermissionOverride(permission, OverrideEffect(effect)),),
            user_id=self.user_id,
            org_id=self.org_id,
        )

    def custom_permissions(self) -> Dict[str, List[str]]:
        return {"grant": sorted(self.grants), "revoke": sorted(self.revokes)}


def resolve_effective_permissions(registry, principal: Principal) -> frozenset:
    """Look up the principal's role and apply its overrides.

    `registry` is anything with get_role_permissions(slug); it is queried
    on every call.
    """
    return effective_permissions(
        registry.get_role_permissions(principal.role_slug),
        principal.grants,
        principal.revokes,
    )
