"""
Tracker agent: ages the application pipeline.

Cannot read raw emails or create applications. It only refreshes
``days_in_stage`` and moves stale applications along the follow-up and
no-response path.
"""
import logging
from collections import Counter
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models import utcnow
from ..schemas import (
    ApplicationRecord,
    ApplicationStatus,
    AuditStatus,
    TrackerMetrics,
    TrackerResult,
)
from ..store import AgentCapability, Store

logger = logging.getLogger(__name__)

FOLLOW_UP_SUGGESTION_DAYS = 7
NO_RESPONSE_THRESHOLD_DAYS = 14
EARLY_REJECTION_DAYS = 3

TERMINAL_STATUSES = {ApplicationStatus.ARCHIVED}


def _days_between(start: datetime, end: datetime) -> int:
    return (end - start).days


def _stage_start(application: ApplicationRecord) -> datetime:
    if application.applied_date:
        return datetime.combine(application.applied_date, datetime.min.time())
    return application.created_at


class TrackerAgent:
    def __init__(self, db: Session, user_id: str):
        self.store = Store(db, user_id, AgentCapability.TRACKER)
        self.user_id = user_id

    def manage_pipeline(self, now: Optional[datetime] = None) -> TrackerResult:
        """Run the aging rules once over every open application."""
        now = now or utcnow()
        logger.info("Managing pipeline for user %s", self.user_id)

        applications = self.store.get_applications()
        result = TrackerResult(metrics=self.calculate_metrics(applications, now))

        for application in applications:
            if application.current_status in TERMINAL_STATUSES:
                continue
            try:
                self._process_application(application, now, result)
                result.applications_processed += 1
            except Exception as e:
                error_msg = f"Error processing application {application.id}: {e}"
                logger.exception(error_msg)
                result.errors.append(error_msg)
                result.success = False

        status = AuditStatus.ERROR if result.errors else AuditStatus.SUCCESS
        self.store.log_agent_action(
            {"applications": len(applications)},
            result.model_dump(mode="json", exclude={"metrics"}),
            status,
        )
        return result

    def _process_application(self, application: ApplicationRecord, now: datetime, result: TrackerResult):
        days_in_stage = _days_between(_stage_start(application), now)
        days_since_update = _days_between(application.last_update, now)
        self.store.update_application(application.id, days_in_stage=days_in_stage)

        status = application.current_status

        if status == ApplicationStatus.APPLIED and days_in_stage >= FOLLOW_UP_SUGGESTION_DAYS:
            if self._move(application, status, ApplicationStatus.FOLLOW_UP_SUGGESTED,
                          f"No response after {days_in_stage} days"):
                status = ApplicationStatus.FOLLOW_UP_SUGGESTED
                result.follow_ups_suggested += 1

        if (
            status in (ApplicationStatus.APPLIED, ApplicationStatus.FOLLOW_UP_SUGGESTED)
            and days_since_update >= NO_RESPONSE_THRESHOLD_DAYS
        ):
            if self._move(application, status, ApplicationStatus.NO_RESPONSE,
                          f"No response for {days_since_update} days"):
                status = ApplicationStatus.NO_RESPONSE
                result.marked_no_response += 1

        if status == ApplicationStatus.REJECTED:
            if _days_between(application.created_at, application.last_update) <= EARLY_REJECTION_DAYS:
                # archived silently, no history row
                if self.store.update_application(application.id, current_status=ApplicationStatus.ARCHIVED):
                    result.archived += 1
                    logger.info("Auto-archived early rejection for %s", application.company_name)

    def _move(
        self,
        application: ApplicationRecord,
        old_status: ApplicationStatus,
        new_status: ApplicationStatus,
        reason: str,
    ) -> bool:
        if self.store.update_application(application.id, current_status=new_status) is None:
            return False
        self.store.create_status_history(application.id, old_status, new_status, reason=reason)
        logger.info("Marked %s as %s", application.company_name, new_status.value)
        return True

    @staticmethod
    def calculate_metrics(applications: List[ApplicationRecord], now: datetime) -> TrackerMetrics:
        by_stage = Counter(app.current_status for app in applications)
        return TrackerMetrics(
            applications_by_stage={status: by_stage[status] for status in ApplicationStatus},
            applications_without_update=[
                app.id for app in applications
                if _days_between(app.last_update, now) >= NO_RESPONSE_THRESHOLD_DAYS
            ],
            needs_follow_up=[
                app.id for app in applications if app.current_status == ApplicationStatus.FOLLOW_UP_SUGGESTED
            ],
            early_rejections=[
                app.id for app in applications
                if app.current_status == ApplicationStatus.REJECTED and app.days_in_stage <= EARLY_REJECTION_DAYS
            ],
        )
