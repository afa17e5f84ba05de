"""Request/response schemas for CRM records."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


def _reject_null(value, field_name: str):
    """Partial updates may omit a column but never null a required one."""
    if value is None:
        raise ValueError(f"{field_name} cannot be null")
    return value


# Contacts
class ContactBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None
    lead_source: Optional[str] = None
    company_id: Optional[UUID] = None
    tags: List[str] = Field(default_factory=list)


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None
    lead_source: Optional[str] = None
    company_id: Optional[UUID] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v, info):
        return _reject_null(v, info.field_name)


class ContactTagsUpdate(BaseModel):
    tags: List[str]


class ContactAssign(BaseModel):
    user_id: Optional[UUID] = None


class ContactAvatar(BaseModel):
    avatar_url: str = Field(..., min_length=1, max_length=500)


class ContactResponse(ContactBase):
    id: UUID
    org_id: UUID
    assigned_to: Optional[UUID] = None
    avatar_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ContactStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_lead_source: Dict[str, int]


# Companies
class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    industry: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    industry: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v, info):
        return _reject_null(v, info.field_name)


class CompanyResponse(CompanyBase):
    id: UUID
    org_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


# Segments
class SegmentBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    filters: Dict[str, Any] = Field(default_factory=dict)


class SegmentCreate(SegmentBase):
    pass


class SegmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None

    @field_validator("name", "description", "filters")
    @classmethod
    def not_null(cls, v, info):
        return _reject_null(v, info.field_name)


class SegmentResponse(SegmentBase):
    id: UUID
    org_id: UUID
    contact_count: int = 0
    last_calculated_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Pipelines
class StageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    position: Optional[int] = Field(None, ge=0)


class StageUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    position: Optional[int] = Field(None, ge=0)


class StageResponse(BaseModel):
    id: UUID
    name: str
    position: int

    class Config:
        from_attributes = True


class PipelineCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    stages: List[str] = Field(default_factory=list)


class PipelineUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class PipelineResponse(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    stages: List[StageResponse] = Field(default_factory=list)
    created_at: datetime

    class Config:
        from_attributes = True


# Deals
class DealBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    value: float = 0.0
    pipeline_id: Optional[UUID] = None
    stage_id: Optional[UUID] = None
    contact_id: Optional[UUID] = None


class DealCreate(DealBase):
    pass


class DealUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    value: Optional[float] = None
    contact_id: Optional[UUID] = None

    @field_validator("title", "value")
    @classmethod
    def not_null(cls, v, info):
        return _reject_null(v, info.field_name)


class DealMoveStage(BaseModel):
    stage_id: UUID


class DealCloseLost(BaseModel):
    reason: Optional[str] = None


class DealResponse(DealBase):
    id: UUID
    org_id: UUID
    status: str
    lost_reason: Optional[str] = None
    closed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Lookups (tags, statuses, lead sources)
class LookupCreate(BaseModel):
    name_en: str = Field(..., min_length=1, max_length=100)
    name_ar: Optional[str] = Field(None, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    color: str = Field("#6366f1", max_length=20)
    display_order: int = Field(999, ge=0)


class LookupUpdate(BaseModel):
    name_en: Optional[str] = Field(None, min_length=1, max_length=100)
    name_ar: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)
    display_order: Optional[int] = Field(None, ge=0)

    @field_validator("name_en", "name_ar", "color", "display_order")
    @classmethod
    def not_null(cls, v, info):
        return _reject_null(v, info.field_name)


class LookupResponse(BaseModel):
    id: UUID
    org_id: UUID
    slug: str
    name_en: str
    name_ar: str
    color: str
    display_order: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
