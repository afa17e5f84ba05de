"""Pipeline and stage API endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from omnicrm.api.deps import get_current_user, get_db, get_org_object
from omnicrm.api.permissions import enforce
from omnicrm.api.schemas.common import DENIED_RESPONSES
from omnicrm.api.schemas.crm import (
    PipelineCreate,
    PipelineResponse,
    PipelineUpdate,
    StageCreate,
    StageUpdate,
)
from omnicrm.db.models import Deal, Pipeline, PipelineStage, User

router = APIRouter(prefix="/crm/pipelines", tags=["pipelines"], responses=DENIED_RESPONSES)


def _get_stage(pipeline: Pipeline, stage_id: UUID) -> PipelineStage:
    for stage in pipeline.stages:
        if stage.id == stage_id:
            return stage
    raise HTTPException(status_code=404, detail="Stage not found")


def _renumber(pipeline: Pipeline) -> None:
    for position, stage in enumerate(sorted(pipeline.stages, key=lambda s: s.position)):
        stage.position = position


@router.get("", response_model=List[PipelineResponse])
@enforce("pipelines", "list")
async def list_pipelines(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(Pipeline).filter(Pipeline.org_id == current_user.org_id).order_by(Pipeline.name).all()


@router.get("/{pipeline_id}", response_model=PipelineResponse)
@enforce("pipelines", "get")
async def get_pipeline(
    pipeline_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_org_object(db, Pipeline, pipeline_id, current_user.org_id, detail="Pipeline not found")


@router.post("", response_model=PipelineResponse, status_code=status.HTTP_201_CREATED)
@enforce("pipelines", "create")
async def create_pipeline(
    pipeline_data: PipelineCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a pipeline with its initial stages in order."""
    pipeline = Pipeline(org_id=current_user.org_id, name=pipeline_data.name)
    pipeline.stages = [
        PipelineStage(name=name, position=position)
        for position, name in enumerate(pipeline_data.stages)
    ]
    db.add(pipeline)
    db.commit()
    db.refresh(pipeline)
    return pipeline


@router.put("/{pipeline_id}", response_model=PipelineResponse)
@enforce("pipelines", "update")
async def update_pipeline(
    pipeline_id: UUID,
    pipeline_data: PipelineUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    pipeline = get_org_object(db, Pipeline, pipeline_id, current_user.org_id, detail="Pipeline not found")
    pipeline.name = pipeline_data.name
    db.commit()
    db.refresh(pipeline)
    return pipeline


@router.post("/{pipeline_id}/stages", response_model=PipelineResponse, status_code=status.HTTP_201_CREATED)
@enforce("pipelines", "add_stage")
async def add_stage(
    pipeline_id: UUID,
    stage_data: StageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Add a stage; without a position it goes last."""
    pipeline = get_org_object(db, Pipeline, pipeline_id, current_user.org_id, detail="Pipeline not found")
    position = stage_data.position if stage_data.position is not None else len(pipeline.stages)
    for stage in pipeline.stages:
        if stage.position >= position:
            stage.position += 1
    pipeline.stages.append(PipelineStage(name=stage_data.name, position=position))
    _renumber(pipeline)
    db.commit()
    db.refresh(pipeline)
    return pipeline


@router.put("/{pipeline_id}/stages/{stage_id}", response_model=PipelineResponse)
@enforce("pipelines", "update_stage")
async def update_stage(
    pipeline_id: UUID,
    stage_id: UUID,
    stage_data: StageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    pipeline = get_org_object(db, Pipeline, pipeline_id, current_user.org_id, detail="Pipeline not found")
    stage = _get_stage(pipeline, stage_id)

    if stage_data.name is not None:
        stage.name = stage_data.name
    if stage_data.position is not None and stage_data.position != stage.position:
        others = [s for s in sorted(pipeline.stages, key=lambda s: s.position) if s.id != stage.id]
        others.insert(min(stage_data.position, len(others)), stage)
        for position, s in enumerate(others):
            s.position = position

    db.commit()
    db.refresh(pipeline)
    return pipeline


@router.delete("/{pipeline_id}/stages/{stage_id}", response_model=PipelineResponse)
@enforce("pipelines", "delete_stage")
async def delete_stage(
    pipeline_id: UUID,
    stage_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a stage. Deals still in it block the deletion."""
    pipeline = get_org_object(db, Pipeline, pipeline_id, current_user.org_id, detail="Pipeline not found")
    stage = _get_stage(pipeline, stage_id)

    deals_in_stage = db.query(Deal).filter(Deal.stage_id == stage.id).count()
    if deals_in_stage > 0:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete stage: {deals_in_stage} deals are in this stage"
        )

    pipeline.stages.remove(stage)
    _renumber(pipeline)
    db.commit()
    db.refresh(pipeline)
    return pipeline


@router.delete("/{pipeline_id}", status_code=status.HTTP_204_NO_CONTENT)
@enforce("pipelines", "delete")
async def delete_pipeline(
    pipeline_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    pipeline = get_org_object(db, Pipeline, pipeline_id, current_user.org_id, detail="Pipeline not found")
    db.query(Deal).filter(Deal.pipeline_id == pipeline.id).update(
        {Deal.pipeline_id: None, Deal.stage_id: None}, synchronize_session=False
    )
    db.delete(pipeline)
    db.commit()
    return None
