"""Segment API endpoints.

A segment is a saved contact filter. Supported filter keys: status,
lead_source, company_id, tags (contacts carrying every listed tag).
"""

from datetime import datetime
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from omnicrm.api.deps import get_current_user, get_db, get_org_object
from omnicrm.api.permissions import enforce
from omnicrm.api.schemas.common import DENIED_RESPONSES
from omnicrm.api.schemas.crm import SegmentCreate, SegmentResponse, SegmentUpdate
from omnicrm.db.models import Contact, Segment, User

router = APIRouter(prefix="/crm/segments", tags=["segments"], responses=DENIED_RESPONSES)


def matches_filters(contact: Contact, filters: Dict[str, Any]) -> bool:
    for key in ("status", "lead_source"):
        if filters.get(key) and getattr(contact, key) != filters[key]:
            return False
    if filters.get("company_id") and str(contact.company_id) != str(filters["company_id"]):
        return False
    wanted_tags = set(filters.get("tags") or [])
    if wanted_tags and not wanted_tags.issubset(contact.tags or []):
        return False
    return True


@router.get("", response_model=List[SegmentResponse])
@enforce("segments", "list")
async def list_segments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(Segment).filter(Segment.org_id == current_user.org_id).order_by(Segment.name).all()


@router.get("/{segment_id}", response_model=SegmentResponse)
@enforce("segments", "get")
async def get_segment(
    segment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_org_object(db, Segment, segment_id, current_user.org_id, detail="Segment not found")


@router.post("", response_model=SegmentResponse, status_code=status.HTTP_201_CREATED)
@enforce("segments", "create")
async def create_segment(
    segment_data: SegmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    segment = Segment(org_id=current_user.org_id, **segment_data.model_dump())
    db.add(segment)
    db.commit()
    db.refresh(segment)
    return segment


@router.put("/{segment_id}", response_model=SegmentResponse)
@enforce("segments", "update")
async def update_segment(
    segment_id: UUID,
    segment_data: SegmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    segment = get_org_object(db, Segment, segment_id, current_user.org_id, detail="Segment not found")
    for field, value in segment_data.model_dump(exclude_unset=True).items():
        setattr(segment, field, value)
    db.commit()
    db.refresh(segment)
    return segment


@router.post("/{segment_id}/calculate", response_model=SegmentResponse)
@enforce("segments", "calculate")
async def calculate_segment(
    segment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Recount the contacts matching the segment's filters."""
    segment = get_org_object(db, Segment, segment_id, current_user.org_id, detail="Segment not found")
    contacts = db.query(Contact).filter(Contact.org_id == current_user.org_id).all()

    segment.contact_count = sum(1 for c in contacts if matches_filters(c, segment.filters or {}))
    segment.last_calculated_at = datetime.utcnow()
    db.commit()
    db.refresh(segment)
    return segment


@router.delete("/{segment_id}", status_code=status.HTTP_204_NO_CONTENT)
@enforce("segments", "delete")
async def delete_segment(
    segment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    segment = get_org_object(db, Segment, segment_id, current_user.org_id, detail="Segment not found")
    db.delete(segment)
    db.commit()
    return None
