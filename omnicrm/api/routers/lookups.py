"""Lookup data API endpoints: tags, contact statuses and lead sources.

The three resources share one shape (slug, bilingual name, color, display
order) and are each gated by their own `<module>.create/edit/delete` keys.
Deletion is soft: the row is deactivated and drops out of listings.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from slugify import slugify
from sqlalchemy.orm import Session

from omnicrm.api.deps import get_current_user, get_db, get_org_object
from omnicrm.api.permissions import enforce
from omnicrm.api.schemas.common import DENIED_RESPONSES
from omnicrm.api.schemas.crm import LookupCreate, LookupResponse, LookupUpdate
from omnicrm.common.logger import get_logger
from omnicrm.db.models import ContactStatus, LeadSource, Tag, User

logger = get_logger(__name__)


def build_lookup_router(resource: str, prefix: str, model, label: str) -> APIRouter:
    """Build the CRUD router for one lookup table.

    Args:
        resource: Enforcement resource name, also the permission module
        prefix: URL prefix under /api
        model: SQLAlchemy model with the lookup columns
        label: Human name used in error details
    """
    router = APIRouter(prefix=prefix, tags=[resource], responses=DENIED_RESPONSES)
    not_found = f"{label} not found"

    @router.get("", response_model=List[LookupResponse])
    @enforce(resource, "list")
    async def list_items(
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        include_inactive: bool = Query(False),
    ):
        query = db.query(model).filter(model.org_id == current_user.org_id)
        if not include_inactive:
            query = query.filter(model.is_active.is_(True))
        return query.order_by(model.display_order, model.name_en).all()

    @router.get("/{item_id}", response_model=LookupResponse)
    @enforce(resource, "get")
    async def get_item(
        item_id: UUID,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        return get_org_object(db, model, item_id, current_user.org_id, detail=not_found)

    @router.post("", response_model=LookupResponse, status_code=status.HTTP_201_CREATED)
    @enforce(resource, "create")
    async def create_item(
        item_data: LookupCreate,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        slug = slugify(item_data.slug or item_data.name_en, separator="_")
        if not slug:
            raise HTTPException(status_code=400, detail=f"{label} slug cannot be empty")

        existing = db.query(model).filter(
            model.org_id == current_user.org_id, model.slug == slug
        ).first()
        if existing:
            raise HTTPException(status_code=409, detail=f"{label} with this slug already exists")

        item = model(
            org_id=current_user.org_id,
            slug=slug,
            name_en=item_data.name_en,
            name_ar=item_data.name_ar or item_data.name_en,
            color=item_data.color,
            display_order=item_data.display_order,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        logger.info("%s %s created by user %s", label, item.slug, current_user.id)
        return item

    @router.put("/{item_id}", response_model=LookupResponse)
    @enforce(resource, "update")
    async def update_item(
        item_id: UUID,
        item_data: LookupUpdate,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        item = get_org_object(db, model, item_id, current_user.org_id, detail=not_found)
        for field, value in item_data.model_dump(exclude_unset=True).items():
            setattr(item, field, value)
        db.commit()
        db.refresh(item)
        return item

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    @enforce(resource, "delete")
    async def delete_item(
        item_id: UUID,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        item = get_org_object(db, model, item_id, current_user.org_id, detail=not_found)
        item.is_active = False
        db.commit()
        logger.info("%s %s deactivated by user %s", label, item.slug, current_user.id)
        return None

    return router


tags_router = build_lookup_router("tags", "/crm/tags", Tag, "Tag")
statuses_router = build_lookup_router("statuses", "/crm/statuses", ContactStatus, "Status")
lead_sources_router = build_lookup_router("lead_sources", "/crm/lead-sources", LeadSource, "Lead source")
