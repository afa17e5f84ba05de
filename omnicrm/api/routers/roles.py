"""Role management API endpoints."""

from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from slugify import slugify
from sqlalchemy import and_
from sqlalchemy.orm import Session

from omnicrm.api.deps import get_current_user, get_db, get_menu_labels
from omnicrm.api.permissions import enforce
from omnicrm.api.schemas.common import DENIED_RESPONSES
from omnicrm.common.logger import get_logger
from omnicrm.core.config import get_settings
from omnicrm.core.rbac.discovery import MenuLabelLookup, build_permission_matrix, discover
from omnicrm.core.rbac.permissions import normalize_locale
from omnicrm.core.rbac.roles import Role as RoleDefinition
from omnicrm.db.models import Role, User

router = APIRouter(prefix="/roles", tags=["roles"], responses=DENIED_RESPONSES)
logger = get_logger(__name__)


# Schemas
class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    description: str = ""
    permissions: List[str] = Field(default_factory=list)


class RolePermissionsUpdate(BaseModel):
    permissions: List[str]


class RoleResponse(BaseModel):
    id: UUID
    org_id: UUID
    slug: str
    name: str
    description: Optional[str] = ""
    permissions: List[str]
    is_system: bool
    created_at: str


class PermissionEntryResponse(BaseModel):
    key: str
    module: str
    action: str
    label: str
    label_en: str
    label_ar: str


class PermissionModuleResponse(BaseModel):
    key: str
    label: str
    label_en: str
    label_ar: str
    permissions: List[PermissionEntryResponse]


class PermissionCategoryResponse(BaseModel):
    key: str
    label: str
    label_en: str
    label_ar: str
    modules: List[PermissionModuleResponse]


class DiscoveredPermissions(BaseModel):
    locale: str
    categories: List[PermissionCategoryResponse]
    matrix: Dict[str, Dict[str, bool]]


def _to_response(role: Role) -> RoleResponse:
    return RoleResponse(
        id=role.id,
        org_id=role.org_id,
        slug=role.slug,
        name=role.name,
        description=role.description or "",
        permissions=role.permissions or [],
        is_system=bool(role.is_system),
        created_at=role.created_at.isoformat() if role.created_at else "",
    )


def _get_role(db: Session, role_id: UUID, org_id: UUID) -> Role:
    role = db.query(Role).filter(and_(Role.id == role_id, Role.org_id == org_id)).first()
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    return role


def _pick(entry, locale: str) -> str:
    return entry.label_ar if locale == "ar" else entry.label_en


# Endpoints
@router.get("", response_model=List[RoleResponse])
@enforce("roles", "list")
async def list_roles(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    include_system: bool = Query(True, description="Include system roles"),
):
    """List all roles for the current organization."""
    query = db.query(Role).filter(Role.org_id == current_user.org_id)

    if not include_system:
        query = query.filter(Role.is_system.is_(False))

    return [_to_response(r) for r in query.order_by(Role.name).all()]


@router.get("/permissions", response_model=DiscoveredPermissions)
@enforce("roles", "discover")
async def discover_permissions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    menu_labels: MenuLabelLookup = Depends(get_menu_labels),
    locale: Optional[str] = Query(None, description="en or ar"),
):
    """Categorized, bilingual permission tree for the role builder."""
    locale = normalize_locale(locale or get_settings().default_locale)
    roles = db.query(Role).filter(Role.org_id == current_user.org_id).all()
    categories = discover(roles, menu_labels)

    return DiscoveredPermissions(
        locale=locale,
        categories=[
            PermissionCategoryResponse(
                key=category.key,
                label=_pick(category, locale),
                label_en=category.label_en,
                label_ar=category.label_ar,
                modules=[
                    PermissionModuleResponse(
                        key=module.key,
                        label=_pick(module, locale),
                        label_en=module.label_en,
                        label_ar=module.label_ar,
                        permissions=[
                            PermissionEntryResponse(
                                key=entry.key,
                                module=entry.module,
                                action=entry.action,
                                label=_pick(entry, locale),
                                label_en=entry.label_en,
                                label_ar=entry.label_ar,
                            )
                            for entry in module.permissions
                        ],
                    )
                    for module in category.modules
                ],
            )
            for category in categories.values()
        ],
        matrix=build_permission_matrix(
            entry.key for category in categories.values() for entry in category.permissions
        ),
    )


@router.get("/{role_id}", response_model=RoleResponse)
@enforce("roles", "get")
async def get_role(
    role_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get a specific role by ID."""
    return _to_response(_get_role(db, role_id, current_user.org_id))


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
@enforce("roles", "create")
async def create_role(
    role_data: RoleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a new custom role."""
    slug = slugify(role_data.slug or role_data.name, separator="_")
    if not slug:
        raise HTTPException(status_code=400, detail="Role slug cannot be empty")

    existing = db.query(Role).filter(
        and_(Role.org_id == current_user.org_id, Role.slug == slug)
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="Role with this slug already exists")

    try:
        definition = RoleDefinition(slug=slug, name=role_data.name).with_permissions(role_data.permissions)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    role = Role(
        org_id=current_user.org_id,
        slug=definition.slug,
        name=definition.name,
        description=role_data.description,
        permissions=list(definition.permissions),
        is_system=False,
    )
    db.add(role)
    db.commit()
    db.refresh(role)
    logger.info("Role %s created by user %s", role.slug, current_user.id)

    return _to_response(role)


@router.put("/{role_id}/permissions", response_model=RoleResponse)
@enforce("roles", "update")
async def update_role_permissions(
    role_id: UUID,
    role_data: RolePermissionsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Replace a role's base permission set."""
    role = _get_role(db, role_id, current_user.org_id)

    current = RoleDefinition(slug=role.slug, name=role.name, permissions=tuple(role.permissions or []))
    try:
        definition = current.with_permissions(role_data.permissions)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    role.permissions = list(definition.permissions)
    db.commit()
    db.refresh(role)
    logger.info(
        "Role %s permissions replaced by user %s (%d keys)",
        role.slug, current_user.id, len(role.permissions),
    )

    return _to_response(role)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
@enforce("roles", "delete")
async def delete_role(
    role_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a role. System roles cannot be deleted."""
    role = _get_role(db, role_id, current_user.org_id)

    if role.is_system:
        raise HTTPException(status_code=400, detail="System roles cannot be deleted")

    users_with_role = db.query(User).filter(User.role_id == role_id).count()
    if users_with_role > 0:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete role: {users_with_role} users are assigned to this role"
        )

    db.delete(role)
    db.commit()
    logger.info("Role %s deleted by user %s", role.slug, current_user.id)

    return None
