"""
HTTP tests for the API routers.
"""
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from jobcopilot.config import Settings, get_settings
from jobcopilot.database import get_db
from jobcopilot.main import app
from jobcopilot.schemas import ApplicationStatus, InboundEmail
from jobcopilot.store import AgentCapability, Store

CRON_SECRET = "test-cron-secret"


@pytest.fixture
def settings():
    settings = Settings()
    settings.cron_secret = CRON_SECRET
    settings.job_feed_url = None
    settings.resend_api_key = None
    settings.smtp_host = None
    settings.default_user_id = None
    return settings


@pytest.fixture
def client(db, settings):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_create_and_fetch_user(client):
    response = client.post(
        "/api/v1/users/", json={"user_id": "u-2", "email": "sam@example.com", "skills": ["Python"]}
    )
    assert response.status_code == 200
    assert response.json()["skills"] == ["Python"]

    assert client.get("/api/v1/users/u-2").json()["email"] == "sam@example.com"
    assert client.get("/api/v1/users/missing").status_code == 404


def test_duplicate_user_conflicts(client, user):
    response = client.post("/api/v1/users/", json={"user_id": user.id, "email": user.email})
    assert response.status_code == 409


def test_create_and_list_applications(client, user):
    response = client.post(
        "/api/v1/applications/",
        json={"user_id": user.id, "company_name": "Acme", "job_title": "Engineer"},
    )
    assert response.status_code == 200
    created = response.json()
    assert created["current_status"] == "APPLIED"
    assert created["source_site"] == "manual"
    assert created["applied_date"] is not None

    listed = client.get("/api/v1/applications/", params={"user_id": user.id}).json()
    assert [app["id"] for app in listed] == [created["id"]]

    fetched = client.get(f"/api/v1/applications/{created['id']}", params={"user_id": user.id})
    assert fetched.json()["company_name"] == "Acme"


def test_applications_require_user_id(client):
    assert client.get("/api/v1/applications/").status_code == 400


def test_mail_agent_requires_user_and_emails(client, user):
    assert client.post("/api/v1/agents/mail", json={"emails": []}).status_code == 400
    assert client.post("/api/v1/agents/mail", json={"user_id": user.id}).status_code == 400


def test_mail_agent_processes_emails(client, user, user_store):
    response = client.post(
        "/api/v1/agents/mail",
        json={
            "user_id": user.id,
            "emails": [
                {
                    "from": "recruiting@techcorp.com",
                    "subject": "Interview Scheduled for Senior Developer at TechCorp",
                    "body": "We'd like to schedule an interview.",
                }
            ],
        },
    )

    assert response.status_code == 200
    assert response.json()["applications_created"] == 1
    assert user_store.get_applications()[0].current_status == ApplicationStatus.INTERVIEW


def test_tracker_requires_user(client):
    assert client.post("/api/v1/agents/tracker", json={}).status_code == 400


def test_job_market_with_listings(client, user):
    response = client.post(
        "/api/v1/agents/job-market",
        json={
            "user_id": user.id,
            "listings": [{"title": "Engineer", "company": "Acme", "url": "https://jobs.example.com/42"}],
        },
    )
    assert response.status_code == 200
    assert response.json()["listings_found"] == 1

    suggestions = client.get("/api/v1/suggestions", params={"user_id": user.id}).json()
    assert len(suggestions) == 1


def test_dismiss_suggestion(client, db, user):
    suggestion = Store(db, user.id, AgentCapability.JOB_MARKET).create_job_suggestion(
        job_title="Engineer", company_name="Acme", job_url="https://jobs.example.com/7", match_score=40
    )

    response = client.patch(
        f"/api/v1/suggestions/{suggestion.id}", json={"user_id": user.id, "dismissed": True}
    )

    assert response.status_code == 200
    assert response.json()["dismissed"] is True
    assert client.patch(f"/api/v1/suggestions/{suggestion.id}", json={"user_id": user.id}).status_code == 400
    assert client.patch("/api/v1/suggestions/missing", json={"user_id": user.id, "applied": True}).status_code == 404


def test_complete_learning_task(client, db, user):
    task = Store(db, user.id, AgentCapability.LEARNING_PLANNER).create_learning_task(title="Master kubernetes")

    response = client.post(f"/api/v1/learning-tasks/{task.id}/complete", json={"user_id": user.id})

    assert response.status_code == 200
    assert response.json()["completed"] is True
    open_tasks = client.get("/api/v1/learning-tasks", params={"user_id": user.id, "completed": False}).json()
    assert open_tasks == []


def test_metrics(client, user, user_store):
    user_store.create_application(company_name="Acme", job_title="Engineer")

    response = client.get("/api/v1/metrics", params={"user_id": user.id})

    assert response.status_code == 200
    assert response.json()["total_applications"] == 1
    assert client.get("/api/v1/metrics").status_code == 400


def test_cron_requires_secret(client, settings):
    assert client.get("/api/v1/cron/pipeline-tracker").status_code == 401
    assert client.get(
        "/api/v1/cron/pipeline-tracker", headers={"Authorization": "Bearer wrong"}
    ).status_code == 401

    settings.cron_secret = None
    assert client.get(
        "/api/v1/cron/pipeline-tracker", headers={"Authorization": "Bearer None"}
    ).status_code == 401


def test_cron_unknown_job(client):
    response = client.get("/api/v1/cron/nope", headers={"Authorization": f"Bearer {CRON_SECRET}"})
    assert response.status_code == 404


def test_cron_runs_for_every_user(client, user, user_store):
    user_store.create_application(company_name="Acme", job_title="Engineer")

    response = client.get("/api/v1/cron/pipeline-tracker", headers={"Authorization": f"Bearer {CRON_SECRET}"})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["job"] == "pipeline-tracker"
    assert body["users"] == 1
    assert body["results"][user.id]["applications_processed"] == 1


@patch("jobcopilot.scheduler.fetch_gmail_emails")
def test_cron_mail_listener_only_writes_to_the_inbox_owner(mock_fetch, client, db, settings, user, user_store):
    other = Store(db, "other-user", AgentCapability.USER)
    other.create_user("other@example.com")
    settings.default_user_id = user.id
    mock_fetch.return_value = [
        InboundEmail(
            from_address="recruiting@techcorp.com",
            subject="Interview Scheduled for Senior Developer at TechCorp",
            body="We'd like to schedule an interview.",
        )
    ]

    response = client.get("/api/v1/cron/mail-listener", headers={"Authorization": f"Bearer {CRON_SECRET}"})

    assert response.status_code == 200
    assert response.json()["users"] == 2
    mock_fetch.assert_called_once()
    assert len(user_store.get_applications()) == 1
    assert other.get_applications() == []
