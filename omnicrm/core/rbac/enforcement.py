"""Enforcement adapter: the single gate in front of every mutation.

Each managed resource declares, per operation, the exact permission key it
requires (None for unrestricted reads). The adapter resolves the
principal's effective permissions afresh on every call, asks `authorize`,
and only on ALLOW invokes the underlying operation.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from omnicrm.common.logger import get_logger

from .checker import AuthorizationDecision, authorize
from .overrides import Principal, resolve_effective_permissions

logger = get_logger(__name__)


ENFORCEMENT_TABLE: Dict[str, Dict[str, Optional[str]]] = {
    "contacts": {
        "list": None,
        "get": None,
        "stats": None,
        "create": "contacts.create",
        "update": "contacts.edit",
        "update_tags": "contacts.edit",
        "assign": "contacts.edit",
        "upload_avatar": "contacts.edit",
        "delete": "contacts.delete",
    },
    "companies": {
        "list": None,
        "get": None,
        "create": "companies.create",
        "update": "companies.edit",
        "delete": "companies.delete",
    },
    "segments": {
        "list": None,
        "get": None,
        "create": "segments.create",
        "update": "segments.edit",
        "calculate": "segments.edit",
        "delete": "segments.delete",
    },
    "deals": {
        "list": None,
        "get": None,
        "create": "deals.create",
        "update": "deals.edit",
        "move_stage": "deals.edit",
        "close_won": "deals.edit",
        "close_lost": "deals.edit",
        "delete": "deals.delete",
    },
    "pipelines": {
        "list": None,
        "get": None,
        "create": "pipelines.create",
        "update": "pipelines.edit",
        "add_stage": "pipelines.edit",
        "update_stage": "pipelines.edit",
        "delete_stage": "pipelines.edit",
        "delete": "pipelines.delete",
    },
    "tags": {
        "list": None,
        "get": None,
        "create": "tags.create",
        "update": "tags.edit",
        "delete": "tags.delete",
    },
    "statuses": {
        "list": None,
        "get": None,
        "create": "statuses.create",
        "update": "statuses.edit",
        "delete": "statuses.delete",
    },
    "lead_sources": {
        "list": None,
        "get": None,
        "create": "lead_sources.create",
        "update": "lead_sources.edit",
        "delete": "lead_sources.delete",
    },
    "users": {
        "list": None,
        "get": None,
        "get_permissions": None,
        "invite": "users.invite",
        "update": "users.edit",
        "delete": "users.delete",
        "set_permissions": "permissions.manage",
    },
    "roles": {
        "list": None,
        "get": None,
        "discover": None,
        "create": "permissions.manage",
        "update": "permissions.manage",
        "delete": "permissions.manage",
    },
}


def required_permission(resource: str, operation: str) -> Optional[str]:
    """Look up the permission an operation requires.

    Raises:
        KeyError: If the resource/operation pair is not configured
    """
    try:
        return ENFORCEMENT_TABLE[resource][operation]
    except KeyError:
        raise KeyError(f"No enforcement rule for {resource}.{operation}") from None


@dataclass(frozen=True)
class EnforcementResult:
    """Decision plus the operation's return value (None when denied)."""

    decision: AuthorizationDecision
    value: Any = None

    @property
    def allowed(self) -> bool:
        return self.decision.allowed


class EnforcementAdapter:
    """Gates operations behind the decision function."""

    def __init__(self, registry):
        """
        Args:
            registry: Role lookup with get_role_permissions(slug); consulted
                on every check, never cached
        """
        self.registry = registry

    def check(self, principal: Principal, permission: Optional[str]) -> AuthorizationDecision:
        if permission is None:
            return authorize(frozenset(), None)

        effective = resolve_effective_permissions(self.registry, principal)
        decision = authorize(effective, permission)
        if not decision.allowed:
            logger.warning(
                "Denied %s for user=%s role=%s org=%s",
                permission, principal.user_id, principal.role_slug, principal.org_id,
            )
        return decision

    def check_operation(self, principal: Principal, resource: str, operation: str) -> AuthorizationDecision:
        return self.check(principal, required_permission(resource, operation))

    def execute(
        self,
        principal: Principal,
        resource: str,
        operation: str,
        func: Callable[..., Any],
        *args,
        **kwargs,
    ) -> EnforcementResult:
        """Run `func` only if the principal may perform resource.operation."""
        decision = self.check_operation(principal, resource, operation)
        if not decision.allowed:
            return EnforcementResult(decision)
        return EnforcementResult(decision, func(*args, **kwargs))
