"""
Outbound email: HTML formatting for the daily summary and delivery through
Resend (HTTP API) or plain SMTP.
"""
import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import List, Optional

import requests

from .config import Settings, get_settings
from .schemas import DailySummary, DashboardMetrics, JobSuggestionRecord, LearningTaskRecord, Priority

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


def send_email_via_resend(to: str, subject: str, html: str, settings: Settings) -> bool:
    try:
        response = requests.post(
            RESEND_API_URL,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {settings.resend_api_key}",
            },
            json={"from": settings.system_email_from, "to": to, "subject": subject, "html": html},
            timeout=20,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error("Error sending email via Resend: %s", e)
        return False

    logger.info("Email sent to %s", to)
    return True


def send_email_via_smtp(to: str, subject: str, html: str, settings: Settings) -> bool:
    message = MIMEMultipart("alternative")
    message["From"] = settings.system_email_from
    message["To"] = to
    message["Subject"] = subject
    message.attach(MIMEText(html, "html"))

    try:
        smtp_cls = smtplib.SMTP_SSL if settings.smtp_secure else smtplib.SMTP
        with smtp_cls(settings.smtp_host, settings.smtp_port) as server:
            if not settings.smtp_secure:
                server.starttls()
            server.login(settings.smtp_user, settings.smtp_password or "")
            server.sendmail(settings.system_email_from, [to], message.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Error sending email via SMTP: %s", e)
        return False

    logger.info("Email sent to %s via SMTP", to)
    return True


def send_email(to: str, subject: str, html: str, settings: Optional[Settings] = None) -> bool:
    """Deliver one HTML email. Resend is preferred, SMTP is the fallback."""
    settings = settings or get_settings()

    if settings.resend_api_key:
        return send_email_via_resend(to, subject, html, settings)

    if settings.smtp_host and settings.smtp_user:
        return send_email_via_smtp(to, subject, html, settings)

    logger.error("No email provider configured (RESEND_API_KEY or SMTP credentials)")
    return False


# ============= HTML FORMATTING =============

def _score_color(score: float) -> str:
    if score >= 75:
        return "#28a745"
    if score >= 50:
        return "#ffc107"
    return "#dc3545"


def _priority_color(priority: Priority) -> str:
    return {
        Priority.HIGH: "#dc3545",
        Priority.MEDIUM: "#ffc107",
        Priority.LOW: "#28a745",
    }.get(priority, "#666")


def format_job_html(job: JobSuggestionRecord) -> str:
    salary = "Not specified"
    if job.salary_min and job.salary_max:
        salary = f"${job.salary_min:,} - ${job.salary_max:,}"
    color = _score_color(job.match_score)
    description = ""
    if job.description:
        description = f'<p style="margin: 10px 0; font-size: 13px; color: #555;">{escape(job.description[:150])}...</p>'

    return f"""
      <div style="background: #f8f9fa; padding: 15px; margin: 10px 0; border-radius: 5px; border-left: 4px solid {color};">
        <h3 style="margin: 0 0 5px 0; font-size: 18px;">
          <strong>{escape(job.job_title)}</strong> at <strong>{escape(job.company_name)}</strong>
        </h3>
        <p style="margin: 5px 0; font-size: 14px; color: #666;">{escape(job.location or "Remote")} | {salary}</p>
        <p style="margin: 5px 0; font-size: 14px; color: #666;">
          Match Score: <span style="color: {color}; font-weight: bold;">{job.match_score:.0f}%</span> |
          {"Easy Apply" if job.easy_apply else "Manual Apply"}
        </p>
        {description}
        <a href="{escape(job.job_url, quote=True)}" style="color: #007bff;">View Job</a>
      </div>
    """


def format_task_html(task: LearningTaskRecord) -> str:
    hours = task.estimated_hours if task.estimated_hours is not None else "N/A"
    return f"""
      <div style="background: #f5f5f5; padding: 10px; margin: 10px 0; border-radius: 5px;">
        <strong>{escape(task.title)}</strong><br>
        Topic: {escape(task.topic or "General")}<br>
        Estimated hours: {hours}<br>
        Priority: <span style="color: {_priority_color(task.priority)}">{task.priority.value}</span>
      </div>
    """


def format_metrics_html(metrics: DashboardMetrics) -> str:
    rows = [
        ("Total Applications", str(metrics.total_applications)),
        ("Applications This Week", str(metrics.applications_this_week)),
        ("Interview Rate", f"{metrics.interview_rate:.1f}%"),
        ("Offer Rate", f"{metrics.offer_rate:.1f}%"),
        ("Rejection Rate", f"{metrics.rejection_rate:.1f}%"),
    ]
    cells = "".join(
        f'<tr><td style="padding: 10px; border: 1px solid #ddd;">{label}</td>'
        f'<td style="padding: 10px; border: 1px solid #ddd; font-weight: bold;">{value}</td></tr>'
        for label, value in rows
    )
    return f"""
    <div style="background: #f0f4f8; padding: 20px; border-radius: 5px; margin: 20px 0;">
      <h2>Your Job Search Dashboard</h2>
      <table style="width: 100%; border-collapse: collapse; margin: 15px 0;">{cells}</table>
    </div>
    """


def _section(title: str, items: List[str]) -> str:
    if not items:
        return ""
    return f"<h2>{title} ({len(items)})</h2>" + "".join(items)


def render_daily_email_html(metrics: DashboardMetrics, summary: DailySummary, now: datetime) -> str:
    """Full HTML body of the daily "Jobs to apply" email."""
    if now.hour < 12:
        greeting = "Good morning"
    elif now.hour < 18:
        greeting = "Good afternoon"
    else:
        greeting = "Good evening"

    jobs = summary.easy_apply_jobs + summary.manual_apply_jobs
    interviews = [
        f"<div><strong>{escape(app.job_title)}</strong> at <strong>{escape(app.company_name)}</strong><br>"
        f"Applied: {app.applied_date or 'N/A'}<br>Days in stage: {app.days_in_stage}</div>"
        for app in summary.interviews_today
    ]

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"></head>
<body style="font-family: Arial, sans-serif; color: #333;">
  <h1>Job Search Copilot - Daily Summary</h1>
  <p>{greeting}! Here are your job opportunities for today.</p>
  {format_metrics_html(metrics)}
  <p style="color: #666; font-size: 14px;">
    {len(summary.easy_apply_jobs)} Easy Apply | {len(summary.manual_apply_jobs)} Manual Apply
  </p>
  {_section("Easy Apply Jobs", [format_job_html(job) for job in summary.easy_apply_jobs])}
  {_section("Manual Apply Jobs", [format_job_html(job) for job in summary.manual_apply_jobs])}
  {_section("Upcoming Interviews", interviews)}
  {_section("Due Learning Tasks", [format_task_html(task) for task in summary.learning_tasks])}
  <hr style="margin-top: 30px;">
  <p style="color: #666; font-size: 12px;">
    This email was generated by Job Search Copilot ({len(jobs)} jobs).
  </p>
</body>
</html>
"""
