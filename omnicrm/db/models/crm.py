"""CRM records gated by the permission engine."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Float, Integer, Text, Uuid
from sqlalchemy.orm import relationship

from omnicrm.db.base import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    industry = Column(String(100))
    website = Column(String(255))
    phone = Column(String(50))
    email = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    contacts = relationship("Contact", back_populates="company")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    company_id = Column(Uuid, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True)
    assigned_to = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50))
    email = Column(String(255))
    status = Column(String(50))
    lead_source = Column(String(50))
    avatar_url = Column(String(500))
    tags = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    company = relationship("Company", back_populates="contacts")


class Segment(Base):
    __tablename__ = "segments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    filters = Column(JSON, default=dict)
    contact_count = Column(Integer, default=0)
    last_calculated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Pipeline(Base):
    __tablename__ = "pipelines"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    stages = relationship(
        "PipelineStage",
        back_populates="pipeline",
        cascade="all, delete-orphan",
        order_by="PipelineStage.position",
    )


class PipelineStage(Base):
    __tablename__ = "pipeline_stages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    pipeline_id = Column(Uuid, ForeignKey("pipelines.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    pipeline = relationship("Pipeline", back_populates="stages")


class Deal(Base):
    __tablename__ = "deals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    pipeline_id = Column(Uuid, ForeignKey("pipelines.id", ondelete="SET NULL"), nullable=True)
    stage_id = Column(Uuid, ForeignKey("pipeline_stages.id", ondelete="SET NULL"), nullable=True)
    contact_id = Column(Uuid, ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    value = Column(Float, default=0.0)
    status = Column(String(20), nullable=False, default="open")  # open | won | lost
    lost_reason = Column(Text, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
