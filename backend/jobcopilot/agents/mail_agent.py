"""
Mail agent: turns inbound job emails into application status changes.

Can create and update applications and append status history. Cannot send
email or apply to jobs. Emails it cannot place are escalated (NEEDS_REVIEW
history or skipped) rather than guessed.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..classifier import EmailClassifier
from ..extractor import extract_company_and_role
from ..models import utcnow
from ..schemas import (
    ApplicationRecord,
    ApplicationStatus,
    AuditStatus,
    EmailEventType,
    InboundEmail,
    MailListenerResult,
)
from ..store import AgentCapability, Store

logger = logging.getLogger(__name__)

# Status a new application starts in for each event type
EVENT_STATUS = {
    EmailEventType.APPLICATION_RECEIVED: ApplicationStatus.APPLIED,
    EmailEventType.INTERVIEW_SCHEDULED: ApplicationStatus.INTERVIEW,
    EmailEventType.OFFER: ApplicationStatus.OFFER,
    EmailEventType.REJECTION: ApplicationStatus.REJECTED,
    EmailEventType.OA_SENT: ApplicationStatus.SCREENING,
}

EVENT_REASON = {
    EmailEventType.APPLICATION_RECEIVED: "Application confirmation received",
    EmailEventType.INTERVIEW_SCHEDULED: "Interview scheduled",
    EmailEventType.OFFER: "Job offer received",
    EmailEventType.REJECTION: "Rejection received",
    EmailEventType.OA_SENT: "Coding challenge or assessment sent",
}

UNKNOWN_ROLE = "Unknown Role"
NOTES_BODY_CHARS = 500


class MailAgent:
    def __init__(self, db: Session, user_id: str, classifier: Optional[EmailClassifier] = None):
        self.store = Store(db, user_id, AgentCapability.MAIL_LISTENER)
        self.user_id = user_id
        self.classifier = classifier or EmailClassifier()

    def process_inbox_emails(self, emails: Iterable[InboundEmail]) -> MailListenerResult:
        """Main entry point: process a batch of emails for one user.

        A failure on one email is recorded in ``errors`` and the rest of the
        batch is still processed.
        """
        emails = list(emails)
        result = MailListenerResult(emails_processed=len(emails))
        logger.info("Processing %d emails for user %s", len(emails), self.user_id)

        for email in emails:
            try:
                self._process_email(email, result)
            except Exception as e:
                error_msg = f"Error processing email from {email.from_address}: {e}"
                logger.exception(error_msg)
                result.errors.append(error_msg)
                result.success = False

        if result.errors:
            status = AuditStatus.ERROR
        elif result.escalations:
            status = AuditStatus.ESCALATED
        else:
            status = AuditStatus.SUCCESS
        self.store.log_agent_action({"emails_processed": len(emails)}, result.model_dump(mode="json"), status)

        logger.info(
            "Completed. Created: %d, Updated: %d, Escalations: %d",
            result.applications_created,
            result.applications_updated,
            result.escalations,
        )
        return result

    def _process_email(self, email: InboundEmail, result: MailListenerResult):
        event_type = self.classifier.classify(email.subject, email.body)
        logger.info("Detected event %s from %s", event_type.value, email.from_address)

        company, role = extract_company_and_role(email.subject)
        if not company:
            logger.warning("Could not extract company from %r. Escalating.", email.subject)
            result.escalations += 1
            return

        application = self._find_existing_application(company, role)

        if event_type == EmailEventType.UNKNOWN:
            self._handle_unknown(email, application, result)
        elif event_type == EmailEventType.FEEDBACK:
            self._handle_feedback(email, application)
        elif application is None:
            self._create_from_event(email, event_type, company, role, result)
        elif event_type == EmailEventType.APPLICATION_RECEIVED:
            if application.current_status != ApplicationStatus.APPLIED:
                self._transition(email, event_type, application, result)
        elif event_type == EmailEventType.OA_SENT:
            # the only guarded transition: an assessment only advances APPLIED
            if application.current_status == ApplicationStatus.APPLIED:
                self._transition(email, event_type, application, result)
            else:
                self._record(
                    application.id,
                    application.current_status,
                    ApplicationStatus.SCREENING,
                    EVENT_REASON[event_type],
                    email,
                )
        else:
            self._transition(email, event_type, application, result)

    def _find_existing_application(self, company: str, role: Optional[str]) -> Optional[ApplicationRecord]:
        for app in self.store.get_applications():
            if app.company_name.lower() != company.lower():
                continue
            if role is None or app.job_title.lower() == role.lower():
                return app
        return None

    # ============= EVENT HANDLERS =============

    def _create_from_event(
        self,
        email: InboundEmail,
        event_type: EmailEventType,
        company: str,
        role: Optional[str],
        result: MailListenerResult,
    ):
        status = EVENT_STATUS[event_type]
        now = utcnow()
        application = self.store.create_application(
            company_name=company,
            job_title=role or UNKNOWN_ROLE,
            applied_date=now.date(),
            current_status=status,
            last_update=now,
            days_in_stage=0,
            easy_apply=False,
            source_site="email",
        )
        if application is None:
            result.errors.append(f"Failed to create application for {company}")
            result.success = False
            return

        result.applications_created += 1
        self._record(application.id, None, status, EVENT_REASON[event_type], email)
        logger.info("Created application for %s at %s", company, status.value)

    def _transition(
        self,
        email: InboundEmail,
        event_type: EmailEventType,
        application: ApplicationRecord,
        result: MailListenerResult,
    ):
        new_status = EVENT_STATUS[event_type]
        updated = self.store.update_application(application.id, current_status=new_status, last_update=utcnow())
        if updated is None:
            result.errors.append(f"Failed to update application {application.id}")
            result.success = False
            return

        result.applications_updated += 1
        # a confirmation resets the application, so its row carries no prior status
        old_status = None if event_type == EmailEventType.APPLICATION_RECEIVED else application.current_status
        self._record(application.id, old_status, new_status, EVENT_REASON[event_type], email)
        logger.info(
            "%s: %s -> %s", application.company_name, application.current_status.value, new_status.value
        )

    def _handle_feedback(self, email: InboundEmail, application: Optional[ApplicationRecord]):
        # Marker row only: status is unchanged
        if application is None:
            return
        self._record(
            application.id, application.current_status, application.current_status, "Feedback received", email
        )

    def _handle_unknown(
        self, email: InboundEmail, application: Optional[ApplicationRecord], result: MailListenerResult
    ):
        if application is None:
            return
        self._record(
            application.id,
            application.current_status,
            ApplicationStatus.NEEDS_REVIEW,
            "Email event type unclear",
            email,
            notes=f"Subject: {email.subject}\n\nBody: {email.body[:NOTES_BODY_CHARS]}",
        )
        result.escalations += 1
        logger.warning("Ambiguous email for %s flagged for review", application.company_name)

    def _record(
        self,
        application_id: str,
        old_status: Optional[ApplicationStatus],
        new_status: ApplicationStatus,
        reason: str,
        email: InboundEmail,
        notes: Optional[str] = None,
    ):
        self.store.create_status_history(
            application_id,
            old_status,
            new_status,
            reason=reason,
            notes=notes,
            email_subject=email.subject,
            email_body=email.body,
        )
