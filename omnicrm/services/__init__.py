"""Services for OmniCRM."""

from omnicrm.services.principals import DatabaseRoleRegistry, load_principal, permission_summary

__all__ = [
    "DatabaseRoleRegistry",
    "load_principal",
    "permission_summary",
]
