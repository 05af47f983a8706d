"""
Named schedules for the agents and the code that runs one of them.

The schedule itself is owned by an external periodic trigger (cron, a
platform scheduler) that calls ``GET /api/v1/cron/{name}``; this module only
declares the cron expressions and dispatches a job by name.
"""
import logging
from typing import Callable, Dict, List, NamedTuple, Optional

from sqlalchemy.orm import Session

from .agents.job_market_agent import JobMarketAgent
from .agents.learning_planner_agent import LearningPlannerAgent
from .agents.mail_agent import MailAgent
from .agents.skill_research_agent import SkillResearchAgent
from .agents.system_observer_agent import SystemObserverAgent
from .agents.tracker_agent import TrackerAgent
from .config import Settings
from .gmail_service import GmailService
from .job_feed import fetch_job_listings
from .schemas import AgentResult, InboundEmail, UserRecord

logger = logging.getLogger(__name__)

MAIL_LOOKBACK_DAYS = 1


class CronJob(NamedTuple):
    name: str
    agent: str
    schedule: str
    description: str


SCHEDULED_AGENTS: List[CronJob] = [
    CronJob("mail-listener", "mail-listener-agent", "*/5 * * * *", "Monitor inbox for status changes"),
    CronJob("pipeline-tracker", "tracker-agent", "*/10 * * * *", "Update application pipeline"),
    CronJob("job-finder", "job-market-agent", "0 * * * *", "Search for job opportunities"),
    CronJob("skill-scanner", "skill-research-agent", "0 11 * * *", "Analyze market skills"),
    CronJob("learning-planner", "learning-planner-agent", "0 8 * * *", "Generate weekly learning plans"),
    CronJob("metrics-daily-email", "system-observer-agent", "0 9 * * *", "Send daily job recommendations email"),
]


def get_job(name: str) -> Optional[CronJob]:
    return next((job for job in SCHEDULED_AGENTS if job.name == name), None)


def get_all_job_names() -> List[str]:
    return [job.name for job in SCHEDULED_AGENTS]


def is_valid_cron_expression(expression: str) -> bool:
    """Only the shape is checked: five whitespace-separated fields."""
    return len(expression.split()) == 5


EmailSource = Callable[[Settings], List[InboundEmail]]


def fetch_gmail_emails(settings: Settings) -> List[InboundEmail]:
    gmail = GmailService(settings.gmail_credentials_path, settings.gmail_token_path, interactive=False)
    if not gmail.is_configured():
        logger.warning("Gmail is not configured, no emails fetched")
        return []
    return gmail.fetch_recent_emails(days_back=MAIL_LOOKBACK_DAYS)


def owns_inbox(user: UserRecord, settings: Settings) -> bool:
    """The configured inbox belongs to DEFAULT_USER_ID and to nobody else."""
    return bool(settings.default_user_id) and user.id == settings.default_user_id


def run_scheduled_job(
    name: str,
    db: Session,
    user: UserRecord,
    settings: Settings,
    email_source: Optional[EmailSource] = None,
) -> AgentResult:
    """Run the job called ``name`` for one user.

    Raises:
        ValueError: if no job has that name.
    """
    if get_job(name) is None:
        raise ValueError(f"Unknown scheduled job: {name}")

    logger.info("Running %s for user %s", name, user.id)

    if name == "mail-listener":
        emails: List[InboundEmail] = []
        if owns_inbox(user, settings):
            emails = (email_source or fetch_gmail_emails)(settings)
        else:
            logger.info("User %s does not own the configured inbox, nothing to read", user.id)
        return MailAgent(db, user.id).process_inbox_emails(emails)
    if name == "pipeline-tracker":
        return TrackerAgent(db, user.id).manage_pipeline()
    if name == "job-finder":
        listings = fetch_job_listings(settings.job_feed_url) if settings.job_feed_url else []
        return JobMarketAgent(db, user.id).find_jobs_for_user(listings)
    if name == "skill-scanner":
        return SkillResearchAgent(db, user.id).analyze_market_skills()
    if name == "learning-planner":
        return LearningPlannerAgent(db, user.id).generate_weekly_learning_plan()
    return SystemObserverAgent(db, user.id).observe(settings=settings)


def job_summary(result: AgentResult) -> Dict:
    return result.model_dump(mode="json", exclude={"metrics", "suggestions", "clusters", "plan", "prep_packs"})
