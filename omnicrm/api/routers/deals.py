"""Deal API endpoints."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from omnicrm.api.deps import get_current_user, get_db, get_org_object
from omnicrm.api.permissions import enforce
from omnicrm.api.schemas.common import DENIED_RESPONSES
from omnicrm.api.schemas.crm import (
    DealCloseLost,
    DealCreate,
    DealMoveStage,
    DealResponse,
    DealUpdate,
)
from omnicrm.db.models import Contact, Deal, Pipeline, PipelineStage, User

router = APIRouter(prefix="/crm/deals", tags=["deals"], responses=DENIED_RESPONSES)


def _resolve_stage(db: Session, org_id: UUID, pipeline_id: Optional[UUID], stage_id: Optional[UUID]):
    """Validate pipeline/stage ids; a stage implies its pipeline."""
    if stage_id is not None:
        stage = db.query(PipelineStage).filter(PipelineStage.id == stage_id).first()
        if stage is None or stage.pipeline.org_id != org_id:
            raise HTTPException(status_code=404, detail="Stage not found")
        if pipeline_id is not None and stage.pipeline_id != pipeline_id:
            raise HTTPException(status_code=400, detail="Stage does not belong to pipeline")
        return stage.pipeline_id, stage.id
    if pipeline_id is not None:
        pipeline = get_org_object(db, Pipeline, pipeline_id, org_id, detail="Pipeline not found")
        first = pipeline.stages[0].id if pipeline.stages else None
        return pipeline.id, first
    return None, None


@router.get("", response_model=List[DealResponse])
@enforce("deals", "list")
async def list_deals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    pipeline_id: Optional[UUID] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
):
    query = db.query(Deal).filter(Deal.org_id == current_user.org_id)
    if pipeline_id:
        query = query.filter(Deal.pipeline_id == pipeline_id)
    if status_filter:
        query = query.filter(Deal.status == status_filter)
    return query.order_by(Deal.created_at.desc()).all()


@router.get("/{deal_id}", response_model=DealResponse)
@enforce("deals", "get")
async def get_deal(
    deal_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_org_object(db, Deal, deal_id, current_user.org_id, detail="Deal not found")


@router.post("", response_model=DealResponse, status_code=status.HTTP_201_CREATED)
@enforce("deals", "create")
async def create_deal(
    deal_data: DealCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a deal; given only a pipeline it starts in the first stage."""
    pipeline_id, stage_id = _resolve_stage(
        db, current_user.org_id, deal_data.pipeline_id, deal_data.stage_id
    )
    if deal_data.contact_id is not None:
        get_org_object(db, Contact, deal_data.contact_id, current_user.org_id, detail="Contact not found")

    deal = Deal(
        org_id=current_user.org_id,
        title=deal_data.title,
        value=deal_data.value,
        contact_id=deal_data.contact_id,
        pipeline_id=pipeline_id,
        stage_id=stage_id,
    )
    db.add(deal)
    db.commit()
    db.refresh(deal)
    return deal


@router.put("/{deal_id}", response_model=DealResponse)
@enforce("deals", "update")
async def update_deal(
    deal_id: UUID,
    deal_data: DealUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deal = get_org_object(db, Deal, deal_id, current_user.org_id, detail="Deal not found")
    updates = deal_data.model_dump(exclude_unset=True)
    if updates.get("contact_id") is not None:
        get_org_object(db, Contact, updates["contact_id"], current_user.org_id, detail="Contact not found")
    for field, value in updates.items():
        setattr(deal, field, value)
    db.commit()
    db.refresh(deal)
    return deal


@router.patch("/{deal_id}/stage", response_model=DealResponse)
@enforce("deals", "move_stage")
async def move_deal_stage(
    deal_id: UUID,
    move_data: DealMoveStage,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Move a deal to another stage (possibly of another pipeline)."""
    deal = get_org_object(db, Deal, deal_id, current_user.org_id, detail="Deal not found")
    deal.pipeline_id, deal.stage_id = _resolve_stage(db, current_user.org_id, None, move_data.stage_id)
    db.commit()
    db.refresh(deal)
    return deal


@router.post("/{deal_id}/won", response_model=DealResponse)
@enforce("deals", "close_won")
async def close_deal_won(
    deal_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deal = get_org_object(db, Deal, deal_id, current_user.org_id, detail="Deal not found")
    deal.status = "won"
    deal.lost_reason = None
    deal.closed_at = datetime.utcnow()
    db.commit()
    db.refresh(deal)
    return deal


@router.post("/{deal_id}/lost", response_model=DealResponse)
@enforce("deals", "close_lost")
async def close_deal_lost(
    deal_id: UUID,
    lost_data: DealCloseLost,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deal = get_org_object(db, Deal, deal_id, current_user.org_id, detail="Deal not found")
    deal.status = "lost"
    deal.lost_reason = lost_data.reason
    deal.closed_at = datetime.utcnow()
    db.commit()
    db.refresh(deal)
    return deal


@router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
@enforce("deals", "delete")
async def delete_deal(
    deal_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deal = get_org_object(db, Deal, deal_id, current_user.org_id, detail="Deal not found")
    db.delete(deal)
    db.commit()
    return None
