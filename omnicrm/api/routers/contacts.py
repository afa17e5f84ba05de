"""Contact API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from omnicrm.api.deps import get_current_user, get_db, get_org_object
from omnicrm.api.permissions import enforce
from omnicrm.api.schemas.common import DENIED_RESPONSES, PaginatedResponse
from omnicrm.api.schemas.crm import (
    ContactAssign,
    ContactAvatar,
    ContactCreate,
    ContactResponse,
    ContactStats,
    ContactTagsUpdate,
    ContactUpdate,
)
from omnicrm.db.models import Company, Contact, User

router = APIRouter(prefix="/crm/contacts", tags=["contacts"], responses=DENIED_RESPONSES)


def _check_company(db: Session, company_id: Optional[UUID], org_id: UUID) -> None:
    if company_id is not None:
        get_org_object(db, Company, company_id, org_id, detail="Company not found")


@router.get("", response_model=PaginatedResponse[ContactResponse])
@enforce("contacts", "list")
async def list_contacts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    search: Optional[str] = Query(None, description="Match name, phone or email"),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """List contacts in the current organization."""
    query = db.query(Contact).filter(Contact.org_id == current_user.org_id)

    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Contact.name.ilike(pattern),
            Contact.phone.ilike(pattern),
            Contact.email.ilike(pattern),
        ))
    if status_filter:
        query = query.filter(Contact.status == status_filter)

    total = query.count()
    contacts = query.order_by(Contact.created_at.desc()).offset((page - 1) * per_page).limit(per_page).all()

    return PaginatedResponse.create(
        items=[ContactResponse.model_validate(c) for c in contacts],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/stats", response_model=ContactStats)
@enforce("contacts", "stats")
async def contact_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Contact counts by status and lead source."""
    base = db.query(Contact).filter(Contact.org_id == current_user.org_id)

    def grouped(column):
        rows = (
            db.query(column, func.count(Contact.id))
            .filter(Contact.org_id == current_user.org_id, column.isnot(None))
            .group_by(column)
            .all()
        )
        return {key: count for key, count in rows}

    return ContactStats(
        total=base.count(),
        by_status=grouped(Contact.status),
        by_lead_source=grouped(Contact.lead_source),
    )


@router.get("/{contact_id}", response_model=ContactResponse)
@enforce("contacts", "get")
async def get_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_org_object(db, Contact, contact_id, current_user.org_id, detail="Contact not found")


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
@enforce("contacts", "create")
async def create_contact(
    contact_data: ContactCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a contact."""
    _check_company(db, contact_data.company_id, current_user.org_id)

    contact = Contact(org_id=current_user.org_id, **contact_data.model_dump())
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


@router.put("/{contact_id}", response_model=ContactResponse)
@enforce("contacts", "update")
async def update_contact(
    contact_id: UUID,
    contact_data: ContactUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    contact = get_org_object(db, Contact, contact_id, current_user.org_id, detail="Contact not found")

    updates = contact_data.model_dump(exclude_unset=True)
    if "company_id" in updates:
        _check_company(db, updates["company_id"], current_user.org_id)
    for field, value in updates.items():
        setattr(contact, field, value)

    db.commit()
    db.refresh(contact)
    return contact


@router.patch("/{contact_id}/tags", response_model=ContactResponse)
@enforce("contacts", "update_tags")
async def update_contact_tags(
    contact_id: UUID,
    tags_data: ContactTagsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Replace a contact's tags."""
    contact = get_org_object(db, Contact, contact_id, current_user.org_id, detail="Contact not found")
    contact.tags = list(dict.fromkeys(tags_data.tags))
    db.commit()
    db.refresh(contact)
    return contact


@router.patch("/{contact_id}/assign", response_model=ContactResponse)
@enforce("contacts", "assign")
async def assign_contact(
    contact_id: UUID,
    assign_data: ContactAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Assign a contact to a team member (or unassign with null)."""
    contact = get_org_object(db, Contact, contact_id, current_user.org_id, detail="Contact not found")

    if assign_data.user_id is not None:
        assignee = db.query(User).filter(
            User.id == assign_data.user_id, User.org_id == current_user.org_id
        ).first()
        if assignee is None:
            raise HTTPException(status_code=404, detail="User not found")

    contact.assigned_to = assign_data.user_id
    db.commit()
    db.refresh(contact)
    return contact


@router.put("/{contact_id}/avatar", response_model=ContactResponse)
@enforce("contacts", "upload_avatar")
async def upload_contact_avatar(
    contact_id: UUID,
    avatar_data: ContactAvatar,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    contact = get_org_object(db, Contact, contact_id, current_user.org_id, detail="Contact not found")
    contact.avatar_url = avatar_data.avatar_url
    db.commit()
    db.refresh(contact)
    return contact


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
@enforce("contacts", "delete")
async def delete_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    contact = get_org_object(db, Contact, contact_id, current_user.org_id, detail="Contact not found")
    db.delete(contact)
    db.commit()
    return None
