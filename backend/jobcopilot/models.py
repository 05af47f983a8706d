import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from .database import Base
from .schemas import ApplicationStatus, Priority


def gen_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=gen_id)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(255))
    skills = Column(JSON, default=list)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Application(Base):
    __tablename__ = "applications"

    id = Column(String(36), primary_key=True, default=gen_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_name = Column(String(255), nullable=False)
    job_title = Column(String(255), nullable=False)
    job_url = Column(Text)
    location = Column(String(255))
    salary_min = Column(Integer)
    salary_max = Column(Integer)
    description = Column(Text)
    applied_date = Column(Date, index=True)
    source_site = Column(String(100))  # "email", "linkedin", "manual"
    easy_apply = Column(Boolean, default=False)
    current_status = Column(String(50), nullable=False, default=ApplicationStatus.APPLIED.value, index=True)
    last_update = Column(DateTime, default=utcnow, nullable=False)
    days_in_stage = Column(Integer, default=0)  # recomputed by the tracker agent
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class StatusHistory(Base):
    """Append-only audit log of status changes."""
    __tablename__ = "status_history"

    id = Column(String(36), primary_key=True, default=gen_id)
    application_id = Column(String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    old_status = Column(String(50))
    new_status = Column(String(50), nullable=False)
    reason = Column(String(255))
    notes = Column(Text)
    email_subject = Column(Text)
    email_body = Column(Text)
    detected_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class JobSuggestion(Base):
    __tablename__ = "job_suggestions"

    id = Column(String(36), primary_key=True, default=gen_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_title = Column(String(255), nullable=False)
    company_name = Column(String(255), nullable=False)
    location = Column(String(255))
    salary_min = Column(Integer)
    salary_max = Column(Integer)
    description = Column(Text)
    job_url = Column(Text, nullable=False, unique=True)
    source_site = Column(String(100))
    easy_apply = Column(Boolean, default=False)
    match_score = Column(Float, default=0.0)
    applied = Column(Boolean, default=False, index=True)
    dismissed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class SkillDemand(Base):
    __tablename__ = "skill_demand"
    __table_args__ = (UniqueConstraint("user_id", "skill_name", name="uq_skill_demand_user_skill"),)

    id = Column(String(36), primary_key=True, default=gen_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_name = Column(String(255), nullable=False)
    skill_category = Column(String(100))
    frequency = Column(Integer, default=1)
    rising_trend = Column(Boolean, default=False, index=True)
    appears_in_rejections = Column(Integer, default=0)
    appears_in_offers = Column(Integer, default=0)
    last_detected = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class LearningTask(Base):
    __tablename__ = "learning_tasks"

    id = Column(String(36), primary_key=True, default=gen_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    application_id = Column(String(36), ForeignKey("applications.id", ondelete="SET NULL"))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    topic = Column(String(100))
    difficulty_level = Column(String(50))
    estimated_hours = Column(Float)
    resources = Column(JSON, default=list)
    notes = Column(Text)
    completed = Column(Boolean, default=False, index=True)
    completed_at = Column(DateTime)
    due_date = Column(Date)
    priority = Column(String(50), default=Priority.MEDIUM.value)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class AgentAuditLog(Base):
    __tablename__ = "agent_audit_logs"

    id = Column(String(36), primary_key=True, default=gen_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    agent_name = Column(String(100), nullable=False)
    action = Column(String(255), nullable=False)
    input_data = Column(JSON)
    output_data = Column(JSON)
    status = Column(String(50))  # SUCCESS, ERROR, ESCALATED
    error_message = Column(Text)
    escalation_reason = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class EmailLog(Base):
    __tablename__ = "email_logs"

    id = Column(String(36), primary_key=True, default=gen_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    email_to = Column(String(255), nullable=False)
    subject = Column(Text)
    status = Column(String(50))  # SENT, FAILED
    created_at = Column(DateTime, default=utcnow, nullable=False)
