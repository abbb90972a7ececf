"""
Database Models for the GEO visibility tracker
PostgreSQL with SQLAlchemy ORM (portable types so SQLite works for tests)
"""

from enum import Enum as PyEnum
from uuid import uuid4

from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime,
    ForeignKey, JSON, Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

from geotracker.clock import utcnow

Base = declarative_base()

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _uuid() -> str:
    return str(uuid4())


# ============================================================================
# ENUMS
# ============================================================================

class NicheLevel(str, PyEnum):
    BROAD = "broad"
    NICHE = "niche"
    SUPER_NICHE = "super_niche"


class CampaignStatus(str, PyEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class IntervalUnit(str, PyEnum):
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class SourceType(str, PyEnum):
    UGC = "ugc"
    EDITORIAL = "editorial"
    REFERENCE = "reference"
    INSTITUTIONAL = "institutional"
    CORPORATE = "corporate"
    OTHER = "other"


# ============================================================================
# CLIENTS & PROMPTS
# ============================================================================

class Client(Base):
    """A tracked brand"""
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    brand_name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)

    # Alias tags used for mention matching
    brand_tags = Column(JSONType, default=list)
    competitors = Column(JSONType, default=list)

    target_region = Column(String(120), default="United States")
    location_code = Column(Integer, default=2840)
    industry = Column(String(120), default="Custom")
    primary_color = Column(String(16))

    created_at = Column(DateTime, default=utcnow, nullable=False)

    prompts = relationship("Prompt", back_populates="client", cascade="all, delete-orphan")
    campaigns = relationship("Campaign", back_populates="client", cascade="all, delete-orphan")
    schedules = relationship("PromptSchedule", back_populates="client", cascade="all, delete-orphan")


class Prompt(Base):
    """A search prompt audited against the answer engines"""
    __tablename__ = "prompts"

    id = Column(String(36), primary_key=True, default=_uuid)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)

    prompt_text = Column(Text, nullable=False)
    category = Column(String(50), default="custom")
    niche_level = Column(String(20), default=NicheLevel.BROAD.value)
    is_custom = Column(Boolean, default=True)

    # Soft delete flag; audit history stays attached
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    client = relationship("Client", back_populates="prompts")

    __table_args__ = (
        Index("idx_prompt_client_active", "client_id", "is_active"),
    )


# ============================================================================
# AUDIT RESULTS & CAMPAIGNS
# ============================================================================

class AuditResult(Base):
    """One scoring-service run of one prompt; summary stored as flat columns"""
    __tablename__ = "audit_results"

    id = Column(String(36), primary_key=True, default=_uuid)
    # No FK to prompts: results outlive prompts removed by a working-set reset
    client_id = Column(String(36), nullable=False, index=True)
    prompt_id = Column(String(64), nullable=False)
    prompt_text = Column(Text, nullable=False)
    campaign_id = Column(String(36), ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)

    model_results = Column(JSONType, default=list)

    share_of_voice = Column(Float, default=0)
    average_rank = Column(Float, nullable=True)
    total_citations = Column(Integer, default=0)
    total_cost = Column(Float, default=0)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    # Load order; a live re-run inherits the slot of the row it replaces
    slot_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_audit_client_prompt", "client_id", "prompt_id"),
        Index("idx_audit_campaign", "campaign_id"),
    )


class Campaign(Base):
    """A named batch of prompt audits"""
    __tablename__ = "campaigns"

    id = Column(String(36), primary_key=True, default=_uuid)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    status = Column(String(20), default=CampaignStatus.RUNNING.value, nullable=False)
    total_prompts = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    completed_at = Column(DateTime)

    client = relationship("Client", back_populates="campaigns")


# ============================================================================
# SCHEDULING
# ============================================================================

class PromptSchedule(Base):
    """Recurring audit configuration"""
    __tablename__ = "prompt_schedules"

    id = Column(String(36), primary_key=True, default=_uuid)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    prompt_id = Column(String(36), nullable=True)  # None: the name is the query

    name = Column(String(255), nullable=False)
    interval_value = Column(Integer, nullable=False)
    interval_unit = Column(String(20), default=IntervalUnit.MINUTES.value, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    include_enrichment = Column(Boolean, default=False)
    models = Column(JSONType, default=list)

    last_run_at = Column(DateTime)
    next_run_at = Column(DateTime)
    total_runs = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    client = relationship("Client", back_populates="schedules")

    __table_args__ = (
        Index("idx_schedule_due", "is_active", "next_run_at"),
    )
