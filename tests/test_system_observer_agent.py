"""
Tests for dashboard metrics, the daily email and outbound delivery.
"""
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

from jobcopilot.agents.system_observer_agent import SystemObserverAgent
from jobcopilot.config import Settings
from jobcopilot.email_service import render_daily_email_html, send_email
from jobcopilot.models import AgentAuditLog, EmailLog
from jobcopilot.schemas import ApplicationStatus, DailySummary, DashboardMetrics
from jobcopilot.store import AgentCapability, Store


@pytest.fixture
def agent(db, user):
    return SystemObserverAgent(db, user.id)


@pytest.fixture
def settings(monkeypatch):
    for name in ("RESEND_API_KEY", "SMTP_HOST", "SMTP_USER"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    settings.resend_api_key = "re_test"
    return settings


def add_apps(store, count, status=ApplicationStatus.APPLIED):
    for i in range(count):
        store.create_application(company_name=f"Company {i}", job_title="Engineer", current_status=status)


def add_suggestion(db, user, **fields):
    market = Store(db, user.id, AgentCapability.JOB_MARKET)
    defaults = dict(job_title="Engineer", company_name="Acme", job_url="https://jobs.example.com/1", match_score=80)
    defaults.update(fields)
    return market.create_job_suggestion(**defaults)


def test_six_applications_without_interviews_escalate(agent, user_store):
    add_apps(user_store, 6)

    metrics = agent.compute_metrics()

    assert metrics.total_applications == 6
    assert metrics.interview_rate == 0
    assert metrics.low_interview_rate_alert is True
    assert agent.check_low_interview_rate_escalation(metrics) is True


def test_four_applications_do_not_escalate(agent, user_store):
    add_apps(user_store, 4)
    assert agent.check_low_interview_rate_escalation() is False


def test_rejection_reasons_come_from_history(db, user, agent, user_store):
    app = user_store.create_application(
        company_name="Acme", job_title="Engineer", current_status=ApplicationStatus.REJECTED
    )
    Store(db, user.id, AgentCapability.MAIL_LISTENER).create_status_history(
        app.id, ApplicationStatus.INTERVIEW, ApplicationStatus.REJECTED, reason="Rejection received"
    )

    metrics = agent.compute_metrics()

    assert metrics.top_rejection_reasons[0].reason == "Rejection received"
    assert metrics.rejection_rate == 100


def test_observer_never_writes_domain_tables(db, user):
    store = Store(db, user.id, AgentCapability.SYSTEM_OBSERVER)
    assert store.create_application(company_name="Acme", job_title="Engineer") is None
    assert store.create_learning_task(title="x") is None
    assert store.create_job_suggestion(job_title="x", company_name="y", job_url="z") is None


@patch("jobcopilot.email_service.requests.post")
def test_daily_email_is_sent_and_logged(mock_post, db, user, agent, settings):
    add_suggestion(db, user, easy_apply=True)

    result = agent.observe(settings=settings)

    assert result.success is True
    assert result.email_sent is True
    kwargs = mock_post.call_args.kwargs
    assert kwargs["json"]["to"] == "jane@example.com"
    assert kwargs["json"]["subject"] == "Jobs to apply"
    assert "Easy Apply Jobs (1)" in kwargs["json"]["html"]
    assert kwargs["headers"]["Authorization"] == "Bearer re_test"

    log = db.query(EmailLog).one()
    assert log.status == "SENT"
    assert db.query(AgentAuditLog).one().agent_name == "system-observer-agent"


@patch("jobcopilot.email_service.requests.post")
def test_no_email_without_new_jobs(mock_post, db, agent, settings):
    result = agent.observe(settings=settings)

    assert result.email_sent is False
    mock_post.assert_not_called()
    assert db.query(EmailLog).count() == 0


@patch("jobcopilot.email_service.requests.post")
def test_failed_delivery_is_logged(mock_post, db, user, agent, settings):
    mock_post.return_value.raise_for_status.side_effect = requests.HTTPError("500")
    add_suggestion(db, user)

    result = agent.observe(settings=settings)

    assert result.email_sent is False
    assert db.query(EmailLog).one().status == "FAILED"


def test_observe_without_send_only_computes(db, agent):
    result = agent.observe(send=False)
    assert result.metrics is not None
    assert result.email_sent is False


def test_send_email_without_provider(settings):
    settings.resend_api_key = None
    assert send_email("a@b.com", "Hi", "<p>Hi</p>", settings) is False


@patch("jobcopilot.email_service.smtplib.SMTP")
def test_send_email_over_smtp(mock_smtp, settings):
    settings.resend_api_key = None
    settings.smtp_host = "smtp.example.com"
    settings.smtp_user = "mailer"
    settings.smtp_password = "secret"
    server = MagicMock()
    mock_smtp.return_value.__enter__.return_value = server

    assert send_email("a@b.com", "Hi", "<p>Hi</p>", settings) is True
    mock_smtp.assert_called_once_with("smtp.example.com", 587)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("mailer", "secret")


def test_render_daily_email_greeting():
    html = render_daily_email_html(DashboardMetrics(), DailySummary(), datetime(2024, 6, 10, 9, 0))
    assert "Good morning" in html
    assert "Job Search Copilot - Daily Summary" in html
