"""
System observer agent: dashboard metrics and the daily "Jobs to apply" email.

Read-only on every domain table. Its only writes are the audit log and the
email log.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..email_service import render_daily_email_html, send_email
from ..metrics import build_daily_summary, compute_dashboard_metrics, is_low_interview_rate
from ..models import utcnow
from ..schemas import (
    ApplicationStatus,
    AuditStatus,
    DailySummary,
    DashboardMetrics,
    SystemObserverResult,
)
from ..store import AgentCapability, Store

logger = logging.getLogger(__name__)

DAILY_EMAIL_SUBJECT = "Jobs to apply"


class SystemObserverAgent:
    def __init__(self, db: Session, user_id: str):
        self.store = Store(db, user_id, AgentCapability.SYSTEM_OBSERVER)
        self.user_id = user_id

    def compute_metrics(self, now: Optional[datetime] = None) -> DashboardMetrics:
        logger.info("Computing metrics for user %s", self.user_id)
        applications = self.store.get_applications()
        history = {
            app.id: self.store.get_status_history(app.id)
            for app in applications
            if app.current_status == ApplicationStatus.REJECTED
        }
        return compute_dashboard_metrics(applications, history, self.store.get_learning_tasks(), now or utcnow())

    def build_daily_email_summary(self, now: Optional[datetime] = None) -> DailySummary:
        logger.info("Building daily email summary for user %s", self.user_id)
        return build_daily_summary(
            self.store.get_job_suggestions(),
            self.store.get_applications_by_status(ApplicationStatus.INTERVIEW),
            self.store.get_learning_tasks(completed=False),
            now or utcnow(),
        )

    def send_daily_email(
        self,
        summary: DailySummary,
        metrics: DashboardMetrics,
        now: Optional[datetime] = None,
        settings: Optional[Settings] = None,
    ) -> bool:
        """Email today's suggestions to the user. Nothing is sent on a day without new jobs."""
        if not summary.easy_apply_jobs and not summary.manual_apply_jobs:
            logger.info("No jobs to send today")
            return False

        user = self.store.get_user()
        if user is None:
            logger.error("User %s not found, cannot send daily email", self.user_id)
            return False

        html = render_daily_email_html(metrics, summary, now or utcnow())
        sent = send_email(user.email, DAILY_EMAIL_SUBJECT, html, settings or get_settings())
        self.store.create_email_log(user.email, DAILY_EMAIL_SUBJECT, "SENT" if sent else "FAILED")
        return sent

    def check_low_interview_rate_escalation(self, metrics: Optional[DashboardMetrics] = None) -> bool:
        metrics = metrics or self.compute_metrics()
        if is_low_interview_rate(metrics.total_applications, metrics.interview_rate):
            logger.warning(
                "ESCALATION: Interview rate is 0%% with %d applications. "
                "Job search should widen and learning focus should increase.",
                metrics.total_applications,
            )
            return True
        return False

    def observe(
        self,
        now: Optional[datetime] = None,
        send: bool = True,
        settings: Optional[Settings] = None,
    ) -> SystemObserverResult:
        """Compute metrics and, when ``send`` is set, deliver the daily email."""
        now = now or utcnow()
        result = SystemObserverResult()

        try:
            result.metrics = self.compute_metrics(now)
            if send:
                summary = self.build_daily_email_summary(now)
                result.email_sent = self.send_daily_email(summary, result.metrics, now, settings)
        except Exception as e:
            error_msg = f"Error observing user {self.user_id}: {e}"
            logger.exception(error_msg)
            result.errors.append(error_msg)
            result.success = False

        if result.errors:
            status = AuditStatus.ERROR
        elif result.metrics is not None and self.check_low_interview_rate_escalation(result.metrics):
            status = AuditStatus.ESCALATED
        else:
            status = AuditStatus.SUCCESS
        self.store.log_agent_action(
            {"send": send},
            result.model_dump(mode="json", include={"success", "errors", "email_sent"}),
            status,
        )
        return result
