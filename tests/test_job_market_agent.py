"""
Tests for turning listings into job suggestions.
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from jobcopilot.agents.job_market_agent import JobMarketAgent, deduplicate_listings
from jobcopilot.job_feed import fetch_job_listings
from jobcopilot.schemas import JobListing


def listing(title="Backend Engineer", company="CloudSystems", url="https://jobs.example.com/1", **kwargs):
    defaults = dict(
        location="Seattle, WA",
        salary="$130,000 - $170,000",
        description="Build services with Spring Boot on AWS.",
        source="linkedin",
        easy_apply=True,
    )
    defaults.update(kwargs)
    return JobListing(title=title, company=company, url=url, **defaults)


@pytest.fixture
def agent(db, user):
    return JobMarketAgent(db, user.id)


def test_creates_scored_suggestion(agent, user_store):
    result = agent.find_jobs_for_user([listing()])

    assert result.success is True
    assert result.listings_found == 1
    assert len(result.suggestions) == 1

    suggestion = user_store.get_job_suggestions()[0]
    # user knows Java and AWS; only AWS appears
    assert suggestion.match_score == 50
    assert suggestion.salary_min == 130000
    assert suggestion.salary_max == 170000
    assert suggestion.easy_apply is True
    assert suggestion.applied is False
    assert suggestion.dismissed is False


def test_duplicate_title_and_company_in_one_batch(agent, user_store):
    result = agent.find_jobs_for_user(
        [listing(), listing(title="backend engineer", company="cloudsystems", url="https://jobs.example.com/2")]
    )

    assert result.duplicates_skipped == 1
    assert len(user_store.get_job_suggestions()) == 1


def test_known_url_is_skipped(agent, user_store):
    agent.find_jobs_for_user([listing()])
    result = agent.find_jobs_for_user([listing(title="Different Title")])

    assert result.duplicates_skipped == 1
    assert result.suggestions == []
    assert len(user_store.get_job_suggestions()) == 1


def test_unknown_user_fails_cleanly(db):
    result = JobMarketAgent(db, "nobody").find_jobs_for_user([listing()])
    assert result.success is False
    assert result.errors


def test_deduplicate_keeps_first():
    first = listing(url="https://a")
    unique = deduplicate_listings([first, listing(url="https://b"), listing(title="Other", url="https://c")])
    assert [item.url for item in unique] == ["https://a", "https://c"]


@patch("jobcopilot.job_feed.requests.get")
def test_fetch_job_listings(mock_get):
    response = MagicMock()
    response.json.return_value = {
        "jobs": [
            {"title": "Engineer", "company": "Acme", "url": "https://jobs.example.com/9"},
            {"title": "No company or url"},
        ]
    }
    mock_get.return_value = response

    listings = fetch_job_listings("https://feed.example.com/jobs.json")

    assert [item.company for item in listings] == ["Acme"]
    response.raise_for_status.assert_called_once()


@patch("jobcopilot.job_feed.requests.get", side_effect=requests.ConnectionError("down"))
def test_fetch_job_listings_network_error(mock_get):
    assert fetch_job_listings("https://feed.example.com/jobs.json") == []


@pytest.mark.parametrize("payload", [{"jobs": None}, 42, "jobs"])
@patch("jobcopilot.job_feed.requests.get")
def test_fetch_job_listings_rejects_non_list_payloads(mock_get, payload):
    mock_get.return_value.json.return_value = payload
    assert fetch_job_listings("https://feed.example.com/jobs.json") == []
