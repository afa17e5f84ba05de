"""Permission decisions for OmniCRM.

`authorize` is the single decision function. It never raises for a denial:
the denial is an AuthorizationDecision value carrying a stable,
language-neutral error code that the transport layer renders as-is.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .permissions import Action, Module, PermissionKey


INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"


@dataclass(frozen=True)
class AuthorizationDecision:
    """Outcome of one authorization check. Created per request, never stored."""

    allowed: bool
    required_permission: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def allow(cls, required_permission: Optional[str] = None) -> "AuthorizationDecision":
        return cls(allowed=True, required_permission=required_permission)

    @classmethod
    def deny(cls, required_permission: str) -> "AuthorizationDecision":
        return cls(
            allowed=False,
            required_permission=required_permission,
            error_code=INSUFFICIENT_PERMISSIONS,
        )

    def to_response(self) -> Dict[str, Any]:
        """Wire body for a denial: {"error": ..., "required_permission": ...}."""
        return {
            "error": self.error_code,
            "required_permission": self.required_permission,
        }


def authorize(effective: Iterable[str], required: Optional[str]) -> AuthorizationDecision:
    """
    Decide whether an effective permission set satisfies a requirement.

    Args:
        effective: The principal's effective permission keys
        required: Permission key the operation needs, or None for
            unrestricted reads

    Returns:
        ALLOW when `required` is None or present in `effective`, otherwise
        DENY with INSUFFICIENT_PERMISSIONS and the key echoed back
    """
    if required is None:
        return AuthorizationDecision.allow()
    if not isinstance(effective, (set, frozenset)):
        effective = frozenset(effective)
    if required in effective:
        return AuthorizationDecision.allow(required)
    return AuthorizationDecision.deny(required)


class PermissionChecker:
    """Checks an already-resolved effective permission set.

    Used for UI affordances (which buttons to show); the enforcement
    adapter remains the authority for mutations.
    """

    def __init__(self, effective_permissions: Iterable[str]):
        self.permissions = frozenset(effective_permissions)

    def has_permission(self, permission) -> bool:
        """Check if the set contains a specific permission."""
        return authorize(self.permissions, str(permission)).allowed

    def has_any_permission(self, permissions: List) -> bool:
        """Check if the set contains any of the given permissions."""
        return any(self.has_permission(p) for p in permissions)

    def has_all_permissions(self, permissions: List) -> bool:
        """Check if the set contains all of the given permissions."""
        return all(self.has_permission(p) for p in permissions)

    def can_access(self, module: Module, action: Action) -> bool:
        """Check if the action can be performed on the module."""
        return self.has_permission(PermissionKey(Module(module).value, Action(action).value))

    def get_accessible_modules(self, action: Action = Action.VIEW) -> List[Module]:
        """Get modules the action can be performed on."""
        return [module for module in Module if self.can_access(module, action)]
