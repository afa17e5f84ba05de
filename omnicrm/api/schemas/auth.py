from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Dict, List, Optional


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: UUID
    email: str
    name: Optional[str]
    org_id: UUID
    role_id: UUID
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class PermissionSummary(BaseModel):
    """What the UI needs to decide which affordances to show."""
    user_id: UUID
    role: Optional[str]
    custom_permissions: Dict[str, List[str]]
    effective_permissions: List[str]
    accessible_modules: List[str]


class MeResponse(BaseModel):
    user: UserResponse
    permissions: PermissionSummary
