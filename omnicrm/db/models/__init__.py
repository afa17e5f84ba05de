"""Database models for OmniCRM."""

from omnicrm.db.models.org import Organization
from omnicrm.db.models.role import Role
from omnicrm.db.models.user import User
from omnicrm.db.models.permission_override import UserPermissionOverride
from omnicrm.db.models.crm import Company, Contact, Segment, Pipeline, PipelineStage, Deal
from omnicrm.db.models.lookups import Tag, ContactStatus, LeadSource

__all__ = [
    "Organization",
    "Role",
    "User",
    "UserPermissionOverride",
    "Company",
    "Contact",
    "Segment",
    "Pipeline",
    "PipelineStage",
    "Deal",
    "Tag",
    "ContactStatus",
    "LeadSource",
]
