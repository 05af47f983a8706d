"""
Read-side arithmetic for the dashboard and the daily summary.
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .schemas import (
    ApplicationRecord,
    ApplicationStatus,
    CompanyCount,
    DailySummary,
    DashboardMetrics,
    JobSuggestionRecord,
    LearningTaskRecord,
    ReasonCount,
    StatusHistoryRecord,
)

LOW_INTERVIEW_RATE_MIN_APPLICATIONS = 5
TOP_N = 5


def _rate(part: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(part / total * 100, 2)


def latest_rejection_reason(history: List[StatusHistoryRecord]) -> Optional[str]:
    rejections = [entry for entry in history if entry.new_status == ApplicationStatus.REJECTED]
    if not rejections:
        return None
    return max(rejections, key=lambda entry: entry.created_at).reason


def compute_dashboard_metrics(
    applications: List[ApplicationRecord],
    history_by_application: Dict[str, List[StatusHistoryRecord]],
    learning_tasks: List[LearningTaskRecord],
    now: datetime,
) -> DashboardMetrics:
    """Counts, rates and rankings over one user's applications.

    Args:
        applications: All of the user's applications, newest first.
        history_by_application: Status history keyed by application id; only
            REJECTED applications need an entry.
        learning_tasks: All of the user's learning tasks.
        now: Reference time for the weekly window.
    """
    by_status = Counter(app.current_status for app in applications)
    total = len(applications)

    interviews = (
        by_status[ApplicationStatus.INTERVIEW] + by_status[ApplicationStatus.OFFER] + by_status[ApplicationStatus.ACCEPTED]
    )
    offers = by_status[ApplicationStatus.OFFER] + by_status[ApplicationStatus.ACCEPTED]
    rejections = by_status[ApplicationStatus.REJECTED]

    week_ago = now - timedelta(days=7)
    this_week = sum(1 for app in applications if app.created_at >= week_ago)

    interview_apps = [app for app in applications if app.current_status == ApplicationStatus.INTERVIEW]
    offer_apps = [app for app in applications if app.current_status == ApplicationStatus.OFFER]
    average_days = 0.0
    if interview_apps:
        average_days = round(sum(app.days_in_stage or 0 for app in interview_apps) / len(interview_apps), 2)

    companies = Counter(app.company_name for app in applications)

    # Reasons are free text and are counted verbatim
    reasons: Counter = Counter()
    for app in applications:
        if app.current_status != ApplicationStatus.REJECTED:
            continue
        reason = latest_rejection_reason(history_by_application.get(app.id, []))
        if reason:
            reasons[reason] += 1

    learning_progress = 0
    if learning_tasks:
        completed = sum(1 for task in learning_tasks if task.completed)
        learning_progress = round(completed / len(learning_tasks) * 100)

    interview_rate = _rate(interviews, total)

    return DashboardMetrics(
        total_applications=total,
        applications_by_status={status: by_status[status] for status in ApplicationStatus},
        applications_this_week=this_week,
        interview_rate=interview_rate,
        offer_rate=_rate(offers, total),
        rejection_rate=_rate(rejections, total),
        average_days_to_interview=average_days,
        top_companies=[CompanyCount(company=c, count=n) for c, n in companies.most_common(TOP_N)],
        top_rejection_reasons=[ReasonCount(reason=r, count=n) for r, n in reasons.most_common(TOP_N)],
        learning_progress=learning_progress,
        upcoming_interviews=interview_apps[:TOP_N],
        recent_offers=offer_apps[:TOP_N],
        low_interview_rate_alert=is_low_interview_rate(total, interview_rate),
    )


def is_low_interview_rate(total_applications: int, interview_rate: float) -> bool:
    return total_applications > LOW_INTERVIEW_RATE_MIN_APPLICATIONS and interview_rate == 0


def build_daily_summary(
    suggestions: List[JobSuggestionRecord],
    applications: List[ApplicationRecord],
    learning_tasks: List[LearningTaskRecord],
    now: datetime,
) -> DailySummary:
    today = now.date()

    todays = sorted(
        (job for job in suggestions if job.created_at.date() == today),
        key=lambda job: job.match_score,
        reverse=True,
    )
    interviews_today = [
        app
        for app in applications
        if app.current_status == ApplicationStatus.INTERVIEW and app.last_update.date() == today
    ]
    tasks_due = [task for task in learning_tasks if task.due_date and task.due_date <= today and not task.completed]

    return DailySummary(
        job_suggestions=todays,
        easy_apply_jobs=[job for job in todays if job.easy_apply][:TOP_N],
        manual_apply_jobs=[job for job in todays if not job.easy_apply][:TOP_N],
        interviews_today=interviews_today,
        learning_tasks=tasks_due,
    )
