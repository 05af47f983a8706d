"""
Store access layer.

Every agent talks to the database through a ``Store`` bound to one user and
one capability. Writes are checked against ``WRITE_POLICY`` before they reach
the session. A rejected or failed operation is logged, rolled back and
reported as ``None`` (or an empty list for reads) so the calling agent can
skip the item and move on.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import (
    AgentAuditLog,
    Application,
    EmailLog,
    JobSuggestion,
    LearningTask,
    SkillDemand,
    StatusHistory,
    User,
    utcnow,
)
from .schemas import (
    ApplicationRecord,
    ApplicationStatus,
    AuditStatus,
    JobSuggestionRecord,
    LearningTaskRecord,
    Record,
    SkillDemandRecord,
    StatusHistoryRecord,
    UserRecord,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


class AgentCapability(str, Enum):
    """Identity a routine declares when it writes to the store."""
    MAIL_LISTENER = "mail-listener-agent"
    TRACKER = "tracker-agent"
    JOB_MARKET = "job-market-agent"
    SKILL_RESEARCH = "skill-research-agent"
    LEARNING_PLANNER = "learning-planner-agent"
    SYSTEM_OBSERVER = "system-observer-agent"
    USER = "user"


_ALL_AGENTS = frozenset(c for c in AgentCapability if c is not AgentCapability.USER)

WRITE_POLICY: Dict[str, frozenset] = {
    "users": frozenset({AgentCapability.USER}),
    "applications": frozenset({AgentCapability.MAIL_LISTENER, AgentCapability.TRACKER, AgentCapability.USER}),
    "status_history": frozenset({AgentCapability.MAIL_LISTENER, AgentCapability.TRACKER}),
    "job_suggestions": frozenset({AgentCapability.JOB_MARKET, AgentCapability.USER}),
    "skill_demand": frozenset({AgentCapability.SKILL_RESEARCH}),
    "learning_tasks": frozenset({AgentCapability.LEARNING_PLANNER, AgentCapability.USER}),
    "agent_audit_logs": _ALL_AGENTS,
    "email_logs": frozenset({AgentCapability.SYSTEM_OBSERVER}),
}


class CapabilityError(PermissionError):
    """Raised when a capability is not allowed to write a table."""

    def __init__(self, capability: AgentCapability, table: str):
        super().__init__(f"{capability.value} may not write to {table}")
        self.capability = capability
        self.table = table


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _to_record(record_cls: Type[R], row: Any) -> Optional[R]:
    if row is None:
        return None
    try:
        return record_cls.model_validate(row)
    except ValidationError as e:
        logger.error("Invalid %s row %s: %s", row.__tablename__, getattr(row, "id", "?"), e)
        return None


def _to_records(record_cls: Type[R], rows: List[Any]) -> List[R]:
    records = []
    for row in rows:
        record = _to_record(record_cls, row)
        if record is not None:
            records.append(record)
    return records


def get_all_users(db: Session) -> List[UserRecord]:
    """All users, for routines that fan out over every account."""
    try:
        return _to_records(UserRecord, db.query(User).order_by(User.created_at).all())
    except SQLAlchemyError as e:
        logger.error("Error fetching users: %s", e)
        return []


class Store:
    """One user's slice of the database, seen through one capability."""

    def __init__(self, db: Session, user_id: str, capability: AgentCapability):
        if not user_id:
            raise ValueError("user_id is required")
        self.db = db
        self.user_id = user_id
        self.capability = capability

    # ============= CAPABILITY CHECKS =============

    def can_write(self, table: str) -> bool:
        return self.capability in WRITE_POLICY.get(table, frozenset())

    def _require_write(self, table: str):
        if not self.can_write(table):
            raise CapabilityError(self.capability, table)

    def _write(self, table: str, description: str, operation: Callable[[], Any]) -> Any:
        try:
            self._require_write(table)
            result = operation()
            self.db.commit()
            if result is not None:
                self.db.refresh(result)
            return result
        except (CapabilityError, SQLAlchemyError) as e:
            self.db.rollback()
            logger.error("Error %s: %s", description, e)
            return None

    def _read(self, description: str, query: Callable[[], Any], default: Any = None) -> Any:
        try:
            return query()
        except SQLAlchemyError as e:
            logger.error("Error %s: %s", description, e)
            return default

    # ============= USERS =============

    def get_user(self) -> Optional[UserRecord]:
        row = self._read("fetching user", lambda: self.db.get(User, self.user_id))
        return _to_record(UserRecord, row)

    def create_user(self, email: str, full_name: Optional[str] = None, skills: Optional[List[str]] = None) -> Optional[UserRecord]:
        def insert():
            user = User(id=self.user_id, email=email, full_name=full_name, skills=list(skills or []))
            self.db.add(user)
            return user

        return _to_record(UserRecord, self._write("users", "creating user", insert))

    # ============= APPLICATIONS =============

    def get_applications(self, status: Optional[ApplicationStatus] = None) -> List[ApplicationRecord]:
        def query():
            q = self.db.query(Application).filter(Application.user_id == self.user_id)
            if status is not None:
                q = q.filter(Application.current_status == _column_value(status))
            return q.order_by(Application.created_at.desc()).all()

        return _to_records(ApplicationRecord, self._read("fetching applications", query, []))

    def get_applications_by_status(self, status: ApplicationStatus) -> List[ApplicationRecord]:
        return self.get_applications(status=status)

    def _application_row(self, application_id: str) -> Optional[Application]:
        return (
            self.db.query(Application)
            .filter(Application.id == application_id, Application.user_id == self.user_id)
            .first()
        )

    def get_application(self, application_id: str) -> Optional[ApplicationRecord]:
        row = self._read("fetching application", lambda: self._application_row(application_id))
        return _to_record(ApplicationRecord, row)

    def create_application(self, **fields) -> Optional[ApplicationRecord]:
        def insert():
            values = {key: _column_value(value) for key, value in fields.items()}
            application = Application(user_id=self.user_id, **values)
            self.db.add(application)
            return application

        return _to_record(ApplicationRecord, self._write("applications", "creating application", insert))

    def update_application(self, application_id: str, **updates) -> Optional[ApplicationRecord]:
        def update():
            application = self._application_row(application_id)
            if application is None:
                logger.warning("Application %s not found for user %s", application_id, self.user_id)
                return None
            for key, value in updates.items():
                setattr(application, key, _column_value(value))
            return application

        return _to_record(ApplicationRecord, self._write("applications", "updating application", update))

    # ============= STATUS HISTORY =============

    def create_status_history(
        self,
        application_id: str,
        old_status: Optional[ApplicationStatus],
        new_status: ApplicationStatus,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
        email_subject: Optional[str] = None,
        email_body: Optional[str] = None,
    ) -> Optional[StatusHistoryRecord]:
        """Append one history row attributed to this store's capability."""
        def insert():
            entry = StatusHistory(
                application_id=application_id,
                user_id=self.user_id,
                old_status=_column_value(old_status),
                new_status=_column_value(new_status),
                reason=reason,
                notes=notes,
                email_subject=email_subject,
                email_body=email_body,
                detected_by=self.capability.value,
            )
            self.db.add(entry)
            return entry

        return _to_record(StatusHistoryRecord, self._write("status_history", "creating status history", insert))

    def get_status_history(self, application_id: str) -> List[StatusHistoryRecord]:
        """History for one application, newest first."""
        def query():
            return (
                self.db.query(StatusHistory)
                .filter(StatusHistory.application_id == application_id, StatusHistory.user_id == self.user_id)
                .order_by(StatusHistory.created_at.desc())
                .all()
            )

        return _to_records(StatusHistoryRecord, self._read("fetching status history", query, []))

    # ============= JOB SUGGESTIONS =============

    def get_job_suggestions(
        self, applied: Optional[bool] = None, dismissed: Optional[bool] = None
    ) -> List[JobSuggestionRecord]:
        def query():
            q = self.db.query(JobSuggestion).filter(JobSuggestion.user_id == self.user_id)
            if applied is not None:
                q = q.filter(JobSuggestion.applied == applied)
            if dismissed is not None:
                q = q.filter(JobSuggestion.dismissed == dismissed)
            return q.order_by(JobSuggestion.match_score.desc()).all()

        return _to_records(JobSuggestionRecord, self._read("fetching job suggestions", query, []))

    def suggestion_url_exists(self, job_url: str) -> bool:
        # job_url is unique across the whole table, not per user
        def query():
            return self.db.query(JobSuggestion.id).filter(JobSuggestion.job_url == job_url).first() is not None

        return bool(self._read("checking suggestion url", query, False))

    def create_job_suggestion(self, **fields) -> Optional[JobSuggestionRecord]:
        def insert():
            suggestion = JobSuggestion(user_id=self.user_id, **fields)
            self.db.add(suggestion)
            return suggestion

        return _to_record(JobSuggestionRecord, self._write("job_suggestions", "creating job suggestion", insert))

    def update_job_suggestion(self, suggestion_id: str, **updates) -> Optional[JobSuggestionRecord]:
        def update():
            suggestion = (
                self.db.query(JobSuggestion)
                .filter(JobSuggestion.id == suggestion_id, JobSuggestion.user_id == self.user_id)
                .first()
            )
            if suggestion is None:
                return None
            for key, value in updates.items():
                setattr(suggestion, key, value)
            return suggestion

        return _to_record(JobSuggestionRecord, self._write("job_suggestions", "updating job suggestion", update))

    # ============= SKILL DEMAND =============

    def get_skill_demands(self) -> List[SkillDemandRecord]:
        def query():
            return (
                self.db.query(SkillDemand)
                .filter(SkillDemand.user_id == self.user_id)
                .order_by(SkillDemand.frequency.desc())
                .all()
            )

        return _to_records(SkillDemandRecord, self._read("fetching skill demand", query, []))

    def get_trending_skills(self) -> List[SkillDemandRecord]:
        return [skill for skill in self.get_skill_demands() if skill.rising_trend]

    def upsert_skill_demand(self, skill_name: str, **fields) -> Optional[SkillDemandRecord]:
        """Insert or overwrite the (user, skill) row."""
        def upsert():
            skill = (
                self.db.query(SkillDemand)
                .filter(SkillDemand.user_id == self.user_id, SkillDemand.skill_name == skill_name)
                .first()
            )
            if skill is None:
                skill = SkillDemand(user_id=self.user_id, skill_name=skill_name)
                self.db.add(skill)
            for key, value in fields.items():
                setattr(skill, key, value)
            skill.last_detected = utcnow()
            return skill

        return _to_record(SkillDemandRecord, self._write("skill_demand", "updating skill demand", upsert))

    # ============= LEARNING TASKS =============

    def get_learning_tasks(self, completed: Optional[bool] = None) -> List[LearningTaskRecord]:
        def query():
            q = self.db.query(LearningTask).filter(LearningTask.user_id == self.user_id)
            if completed is not None:
                q = q.filter(LearningTask.completed == completed)
            return q.order_by(LearningTask.created_at.desc()).all()

        return _to_records(LearningTaskRecord, self._read("fetching learning tasks", query, []))

    def create_learning_task(self, **fields) -> Optional[LearningTaskRecord]:
        def insert():
            values = {key: _column_value(value) for key, value in fields.items()}
            task = LearningTask(user_id=self.user_id, **values)
            self.db.add(task)
            return task

        return _to_record(LearningTaskRecord, self._write("learning_tasks", "creating learning task", insert))

    def complete_learning_task(self, task_id: str) -> Optional[LearningTaskRecord]:
        def update():
            task = (
                self.db.query(LearningTask)
                .filter(LearningTask.id == task_id, LearningTask.user_id == self.user_id)
                .first()
            )
            if task is None:
                return None
            task.completed = True
            task.completed_at = utcnow()
            return task

        return _to_record(LearningTaskRecord, self._write("learning_tasks", "completing learning task", update))

    # ============= AUDIT & EMAIL LOGS =============

    def log_agent_action(
        self,
        input_data: Dict[str, Any],
        output_data: Dict[str, Any],
        status: AuditStatus = AuditStatus.SUCCESS,
    ) -> bool:
        """Record one agent run in the audit table."""
        error_message = None
        escalation_reason = None
        if status == AuditStatus.ERROR and output_data.get("errors"):
            error_message = "; ".join(output_data["errors"])
        if status == AuditStatus.ESCALATED and output_data.get("escalations"):
            escalation_reason = f"{output_data['escalations']} escalations triggered"

        def insert():
            entry = AgentAuditLog(
                user_id=self.user_id,
                agent_name=self.capability.value,
                action=self.capability.value,
                input_data=input_data,
                output_data=output_data,
                status=status.value,
                error_message=error_message,
                escalation_reason=escalation_reason,
            )
            self.db.add(entry)
            return entry

        return self._write("agent_audit_logs", "logging agent action", insert) is not None

    def create_email_log(self, email_to: str, subject: str, status: str) -> bool:
        def insert():
            entry = EmailLog(user_id=self.user_id, email_to=email_to, subject=subject, status=status)
            self.db.add(entry)
            return entry

        return self._write("email_logs", "logging email", insert) is not None
