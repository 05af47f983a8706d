"""
Tests for the scheduled job table and dispatch.
"""
from unittest.mock import MagicMock, patch

import pytest

from jobcopilot.config import Settings
from jobcopilot.scheduler import (
    SCHEDULED_AGENTS,
    fetch_gmail_emails,
    get_all_job_names,
    get_job,
    is_valid_cron_expression,
    job_summary,
    run_scheduled_job,
)
from jobcopilot.schemas import ApplicationStatus, InboundEmail, MailListenerResult


@pytest.fixture
def settings():
    settings = Settings()
    settings.job_feed_url = None
    settings.resend_api_key = None
    settings.smtp_host = None
    settings.default_user_id = None
    return settings


def test_every_job_has_a_valid_schedule():
    assert len(SCHEDULED_AGENTS) == 6
    for job in SCHEDULED_AGENTS:
        assert is_valid_cron_expression(job.schedule), job.name


def test_job_lookup():
    assert get_job("mail-listener").schedule == "*/5 * * * *"
    assert get_job("nope") is None
    assert "skill-scanner" in get_all_job_names()


def test_cron_expression_shape():
    assert is_valid_cron_expression("0 9 * * *")
    assert not is_valid_cron_expression("0 9 * *")
    assert not is_valid_cron_expression("")


def test_unknown_job_raises(db, user, settings):
    with pytest.raises(ValueError):
        run_scheduled_job("nope", db, user, settings)


INTERVIEW_EMAIL = InboundEmail(
    from_address="recruiting@acme.com",
    subject="Interview Scheduled for Engineer at Acme",
    body="We would like to schedule an interview with you.",
)


def test_mail_listener_reads_the_owners_inbox(db, user, user_store, settings):
    settings.default_user_id = user.id
    user_store.create_application(company_name="Acme", job_title="Engineer")

    result = run_scheduled_job("mail-listener", db, user, settings, email_source=lambda s: [INTERVIEW_EMAIL])

    assert isinstance(result, MailListenerResult)
    assert result.emails_processed == 1
    assert user_store.get_applications()[0].current_status == ApplicationStatus.INTERVIEW


def test_mail_listener_skips_other_users(db, user, user_store, settings):
    settings.default_user_id = "someone-else"
    source = MagicMock(return_value=[INTERVIEW_EMAIL])

    result = run_scheduled_job("mail-listener", db, user, settings, email_source=source)

    source.assert_not_called()
    assert result.emails_processed == 0
    assert user_store.get_applications() == []


def test_mail_listener_without_owner_reads_nothing(db, user, settings):
    source = MagicMock(return_value=[INTERVIEW_EMAIL])
    run_scheduled_job("mail-listener", db, user, settings, email_source=source)
    source.assert_not_called()


@patch("jobcopilot.scheduler.GmailService")
def test_cron_gmail_is_non_interactive(mock_gmail, settings):
    mock_gmail.return_value.is_configured.return_value = True
    mock_gmail.return_value.fetch_recent_emails.return_value = []

    assert fetch_gmail_emails(settings) == []
    assert mock_gmail.call_args.kwargs["interactive"] is False


@patch("jobcopilot.scheduler.fetch_job_listings")
def test_job_finder_without_feed_fetches_nothing(mock_fetch, db, user, settings):
    result = run_scheduled_job("job-finder", db, user, settings)

    mock_fetch.assert_not_called()
    assert result.success is True
    assert result.listings_found == 0


def test_summary_drops_bulky_fields(db, user, settings):
    result = run_scheduled_job("metrics-daily-email", db, user, settings)

    summary = job_summary(result)

    assert summary["success"] is True
    assert "metrics" not in summary
    assert summary["email_sent"] is False
