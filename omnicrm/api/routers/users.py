"""Team member API endpoints, including per-user permission overrides."""

import secrets
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import and_
from sqlalchemy.orm import Session

from omnicrm.api.deps import get_current_user, get_db
from omnicrm.api.permissions import enforce
from omnicrm.api.schemas.auth import PermissionSummary, UserResponse
from omnicrm.api.schemas.common import DENIED_RESPONSES
from omnicrm.common.logger import get_logger
from omnicrm.core.security import get_password_hash
from omnicrm.db.models import Role, User
from omnicrm.services.principals import permission_summary, replace_overrides

router = APIRouter(prefix="/users", tags=["users"], responses=DENIED_RESPONSES)
logger = get_logger(__name__)


# Schemas
class UserInvite(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    role: str = Field(..., min_length=1, description="Role slug")
    password: Optional[str] = Field(None, min_length=8)


class UserInviteResponse(UserResponse):
    temporary_password: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = Field(None, min_length=1, description="Role slug")
    is_active: Optional[bool] = None


class PermissionOverridesUpdate(BaseModel):
    grant: List[str] = Field(default_factory=list)
    revoke: List[str] = Field(default_factory=list)


def _get_user(db: Session, user_id: UUID, org_id: UUID) -> User:
    user = db.query(User).filter(and_(User.id == user_id, User.org_id == org_id)).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _get_role_by_slug(db: Session, org_id: UUID, slug: str) -> Role:
    role = db.query(Role).filter(and_(Role.org_id == org_id, Role.slug == slug)).first()
    if not role:
        raise HTTPException(status_code=400, detail=f"Unknown role: {slug}")
    return role


# Endpoints
@router.get("", response_model=List[UserResponse])
@enforce("users", "list")
async def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List team members of the current organization."""
    return db.query(User).filter(User.org_id == current_user.org_id).order_by(User.email).all()


@router.get("/{user_id}", response_model=UserResponse)
@enforce("users", "get")
async def get_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_user(db, user_id, current_user.org_id)


@router.post("/invite", response_model=UserInviteResponse, status_code=status.HTTP_201_CREATED)
@enforce("users", "invite")
async def invite_user(
    invite: UserInvite,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Invite a team member with a role.

    Without a password a temporary one is generated and returned once.
    """
    if db.query(User).filter(User.email == invite.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    role = _get_role_by_slug(db, current_user.org_id, invite.role)
    temporary_password = None
    password = invite.password
    if password is None:
        password = temporary_password = secrets.token_urlsafe(12)

    user = User(
        email=invite.email,
        name=invite.name,
        password_hash=get_password_hash(password),
        org_id=current_user.org_id,
        role_id=role.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s invited %s as %s", current_user.id, user.email, role.slug)

    response = UserInviteResponse.model_validate(user)
    response.temporary_password = temporary_password
    return response


@router.patch("/{user_id}", response_model=UserResponse)
@enforce("users", "update")
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update a team member's name, role or active flag."""
    user = _get_user(db, user_id, current_user.org_id)

    if user_data.name is not None:
        user.name = user_data.name
    if user_data.role is not None:
        role = _get_role_by_slug(db, current_user.org_id, user_data.role)
        logger.info("User %s moved to role %s", user.id, role.slug)
        user.role_id = role.id
    if user_data.is_active is not None:
        if user.id == current_user.id and not user_data.is_active:
            raise HTTPException(status_code=400, detail="You cannot deactivate yourself")
        user.is_active = user_data.is_active

    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
@enforce("users", "delete")
async def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = _get_user(db, user_id, current_user.org_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot delete yourself")

    db.delete(user)
    db.commit()
    return None


@router.get("/{user_id}/permissions", response_model=PermissionSummary)
@enforce("users", "get_permissions")
async def get_user_permissions(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Role, overrides and effective permissions of a team member."""
    user = _get_user(db, user_id, current_user.org_id)
    return permission_summary(db, user)


@router.put("/{user_id}/permissions", response_model=PermissionSummary)
@enforce("users", "set_permissions")
async def set_user_permissions(
    user_id: UUID,
    overrides: PermissionOverridesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Replace a team member's grant/revoke overrides."""
    user = _get_user(db, user_id, current_user.org_id)
    try:
        replace_overrides(db, user, overrides.grant, overrides.revoke)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    db.commit()
    return permission_summary(db, user)
