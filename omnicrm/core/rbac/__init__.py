"""RBAC (Role-Based Access Control) module for OmniCRM.

This module defines the permission catalog, role definitions, per-user
overrides and the decision function every mutation goes through.
"""

from .permissions import Module, Action, PermissionKey, PERMISSION_DEFINITIONS
from .roles import Role, RoleRegistry, DEFAULT_ROLES
from .overrides import OverrideEffect, PermissionOverride, Principal, effective_permissions
from .checker import AuthorizationDecision, PermissionChecker, authorize, INSUFFICIENT_PERMISSIONS
from .enforcement import EnforcementAdapter, required_permission

__all__ = [
    "Module",
    "Action",
    "PermissionKey",
    "PERMISSION_DEFINITIONS",
    "Role",
    "RoleRegistry",
    "DEFAULT_ROLES",
    "OverrideEffect",
    "PermissionOverride",
    "Principal",
    "effective_permissions",
    "AuthorizationDecision",
    "PermissionChecker",
    "authorize",
    "INSUFFICIENT_PERMISSIONS",
    "EnforcementAdapter",
    "required_permission",
]
