"""
Typed records for the copilot's entities and agent results.

Rows read through the store are converted to these records, which
validates enum columns at the boundary.
"""
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApplicationStatus(str, Enum):
    """Lifecycle stage of a job application."""
    APPLIED = "APPLIED"
    SCREENING = "SCREENING"
    INTERVIEW = "INTERVIEW"
    OFFER = "OFFER"
    REJECTED = "REJECTED"
    ACCEPTED = "ACCEPTED"
    ARCHIVED = "ARCHIVED"
    NEEDS_REVIEW = "NEEDS_REVIEW"
    FOLLOW_UP_SUGGESTED = "FOLLOW_UP_SUGGESTED"
    NO_RESPONSE = "NO_RESPONSE"


class EmailEventType(str, Enum):
    """Category an inbound email is classified into."""
    APPLICATION_RECEIVED = "APPLICATION_RECEIVED"
    INTERVIEW_SCHEDULED = "INTERVIEW_SCHEDULED"
    OFFER = "OFFER"
    REJECTION = "REJECTION"
    OA_SENT = "OA_SENT"
    FEEDBACK = "FEEDBACK"
    UNKNOWN = "UNKNOWN"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AuditStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    ESCALATED = "ESCALATED"


# ============= ENTITY RECORDS =============

class Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserRecord(Record):
    id: str
    email: str
    full_name: Optional[str] = None
    skills: List[str] = []
    created_at: Optional[datetime] = None


class ApplicationRecord(Record):
    id: str
    user_id: str
    company_name: str
    job_title: str
    job_url: Optional[str] = None
    location: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    description: Optional[str] = None
    applied_date: Optional[date] = None
    source_site: Optional[str] = None
    easy_apply: bool = False
    current_status: ApplicationStatus
    last_update: datetime
    days_in_stage: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class StatusHistoryRecord(Record):
    id: str
    application_id: str
    user_id: str
    old_status: Optional[ApplicationStatus] = None
    new_status: ApplicationStatus
    reason: Optional[str] = None
    notes: Optional[str] = None
    email_subject: Optional[str] = None
    email_body: Optional[str] = None
    detected_by: str
    created_at: datetime


class JobSuggestionRecord(Record):
    id: str
    user_id: str
    job_title: str
    company_name: str
    location: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    description: Optional[str] = None
    job_url: str
    source_site: Optional[str] = None
    easy_apply: bool = False
    match_score: float = 0.0
    applied: bool = False
    dismissed: bool = False
    created_at: datetime


class SkillDemandRecord(Record):
    id: str
    user_id: str
    skill_name: str
    skill_category: Optional[str] = None
    frequency: int = 0
    rising_trend: bool = False
    appears_in_rejections: int = 0
    appears_in_offers: int = 0
    last_detected: Optional[datetime] = None


class LearningTaskRecord(Record):
    id: str
    user_id: str
    application_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    topic: Optional[str] = None
    difficulty_level: Optional[str] = None
    estimated_hours: Optional[float] = None
    resources: List[str] = []
    notes: Optional[str] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    due_date: Optional[date] = None
    priority: Priority = Priority.MEDIUM
    created_at: Optional[datetime] = None


# ============= AGENT INPUTS =============

class InboundEmail(BaseModel):
    """One email record handed to the mail agent."""
    model_config = ConfigDict(populate_by_name=True)

    from_address: str = Field("", alias="from")
    subject: str = ""
    body: str = ""
    timestamp: Optional[datetime] = None


class JobListing(BaseModel):
    """A raw posting found on a job board."""
    title: str
    company: str
    location: Optional[str] = None
    salary: Optional[str] = None
    description: str = ""
    url: str
    source: Optional[str] = None
    easy_apply: bool = False


# ============= AGENT RESULTS =============

class AgentResult(BaseModel):
    success: bool = True
    errors: List[str] = []


class MailListenerResult(AgentResult):
    emails_processed: int = 0
    applications_created: int = 0
    applications_updated: int = 0
    escalations: int = 0


class TrackerMetrics(BaseModel):
    applications_by_stage: Dict[ApplicationStatus, int]
    applications_without_update: List[str] = []
    needs_follow_up: List[str] = []
    early_rejections: List[str] = []


class TrackerResult(AgentResult):
    applications_processed: int = 0
    follow_ups_suggested: int = 0
    marked_no_response: int = 0
    archived: int = 0
    metrics: Optional[TrackerMetrics] = None


class JobMarketResult(AgentResult):
    listings_found: int = 0
    duplicates_skipped: int = 0
    suggestions: List[JobSuggestionRecord] = []


class SkillCluster(BaseModel):
    theme: str
    skills: Dict[str, int]
    average_frequency: float
    related_roles: List[str] = []


class SkillResearchResult(AgentResult):
    skills_updated: int = 0
    trending_skills: List[str] = []
    skill_gaps: List[str] = []
    clusters: List[SkillCluster] = []


class InterviewPrepPack(BaseModel):
    role: str
    company: str
    expected_questions: List[str]
    model_answers: Dict[str, str]
    study_resources: List[str]
    practice_problems: List[str]


class LearningPlanItem(BaseModel):
    topic: str
    tasks: List[LearningTaskRecord] = []
    estimated_hours: float
    resources: List[str]
    priority: Priority


class LearningPlanResult(AgentResult):
    tasks_created: int = 0
    plan: List[LearningPlanItem] = []
    prep_packs: List[InterviewPrepPack] = []


class CompanyCount(BaseModel):
    company: str
    count: int


class ReasonCount(BaseModel):
    reason: str
    count: int


class DashboardMetrics(BaseModel):
    total_applications: int = 0
    applications_by_status: Dict[ApplicationStatus, int] = {}
    applications_this_week: int = 0
    interview_rate: float = 0.0
    offer_rate: float = 0.0
    rejection_rate: float = 0.0
    average_days_to_interview: float = 0.0
    top_companies: List[CompanyCount] = []
    top_rejection_reasons: List[ReasonCount] = []
    learning_progress: int = 0
    upcoming_interviews: List[ApplicationRecord] = []
    recent_offers: List[ApplicationRecord] = []
    low_interview_rate_alert: bool = False


class DailySummary(BaseModel):
    job_suggestions: List[JobSuggestionRecord] = []
    easy_apply_jobs: List[JobSuggestionRecord] = []
    manual_apply_jobs: List[JobSuggestionRecord] = []
    interviews_today: List[ApplicationRecord] = []
    learning_tasks: List[LearningTaskRecord] = []


class SystemObserverResult(AgentResult):
    metrics: Optional[DashboardMetrics] = None
    email_sent: bool = False
