"""Organization lookup data: tags, contact statuses and lead sources."""

import uuid
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid

from omnicrm.db.base import Base


class Tag(Base):
    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("org_id", "slug", name="uq_tags_org_slug"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    slug = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=False)
    name_ar = Column(String(100), nullable=False)
    color = Column(String(20), nullable=False, default="#6366f1")
    display_order = Column(Integer, nullable=False, default=999)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ContactStatus(Base):
    __tablename__ = "contact_statuses"
    __table_args__ = (UniqueConstraint("org_id", "slug", name="uq_contact_statuses_org_slug"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    slug = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=False)
    name_ar = Column(String(100), nullable=False)
    color = Column(String(20), nullable=False, default="#6366f1")
    display_order = Column(Integer, nullable=False, default=999)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class LeadSource(Base):
    __tablename__ = "lead_sources"
    __table_args__ = (UniqueConstraint("org_id", "slug", name="uq_lead_sources_org_slug"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    slug = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=False)
    name_ar = Column(String(100), nullable=False)
    color = Column(String(20), nullable=False, default="#6366f1")
    display_order = Column(Integer, nullable=False, default=999)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
