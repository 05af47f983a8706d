"""
Tests for weekly learning plans and interview prep packs.
"""
from datetime import date, datetime

import pytest

from jobcopilot.agents.learning_planner_agent import (
    LEARNING_RESOURCES,
    LearningPlannerAgent,
    generate_model_answers,
    generate_practice_problems,
)
from jobcopilot.schemas import ApplicationStatus, Priority
from jobcopilot.store import AgentCapability, Store

NOW = datetime(2024, 6, 10, 8, 0)


@pytest.fixture
def agent(db, user):
    return LearningPlannerAgent(db, user.id)


@pytest.fixture
def research(db, user):
    return Store(db, user.id, AgentCapability.SKILL_RESEARCH)


def test_trending_skills_become_tasks(agent, research):
    research.upsert_skill_demand("kubernetes", frequency=9, rising_trend=True, skill_category="Microservices")
    research.upsert_skill_demand("aws", frequency=7, rising_trend=True, skill_category="Cloud")
    research.upsert_skill_demand("java", frequency=5, rising_trend=False, skill_category="Java Core")

    result = agent.generate_weekly_learning_plan(now=NOW)

    assert result.tasks_created == 2
    assert [item.topic for item in result.plan] == ["Microservices", "Cloud"]
    item = result.plan[0]
    assert item.priority == Priority.HIGH
    assert item.estimated_hours == 20
    assert item.resources == LEARNING_RESOURCES["Microservices"]

    task = item.tasks[0]
    assert task.title == "Master kubernetes"
    assert task.due_date == date(2024, 6, 17)
    assert task.difficulty_level == "INTERMEDIATE"


def test_at_most_three_skills_per_week(agent, research):
    for i, name in enumerate(["a", "b", "c", "d", "e"]):
        research.upsert_skill_demand(name, frequency=10 - i, rising_trend=True)

    result = agent.generate_weekly_learning_plan(now=NOW)

    assert result.tasks_created == 3
    # uncategorized skills fall back to generic resources
    assert result.plan[0].resources == ["Official Documentation", "Online Courses"]


def test_open_tasks_are_not_duplicated(agent, research):
    research.upsert_skill_demand("kubernetes", frequency=9, rising_trend=True)

    agent.generate_weekly_learning_plan(now=NOW)
    second = agent.generate_weekly_learning_plan(now=NOW)

    assert second.tasks_created == 0
    assert len(agent.store.get_learning_tasks()) == 1


def test_repeated_rejections_produce_prep_pack(agent, user_store):
    first = user_store.create_application(
        company_name="Google", job_title="Senior Backend Engineer", current_status=ApplicationStatus.REJECTED
    )
    second = user_store.create_application(
        company_name="Google", job_title="Senior Backend Engineer", current_status=ApplicationStatus.REJECTED
    )
    user_store.create_application(
        company_name="Globex", job_title="Engineer", current_status=ApplicationStatus.REJECTED
    )

    result = agent.generate_weekly_learning_plan(now=NOW)

    assert len(result.prep_packs) == 1
    pack = result.prep_packs[0]
    assert pack.role == "Senior Backend Engineer"
    assert pack.company == "Google"
    assert len(pack.expected_questions) == 3
    assert "scalable systems and AI/ML" in pack.model_answers["Why do you want to join us?"]
    assert "API Design: Design a REST API" in pack.practice_problems
    assert pack.study_resources == LEARNING_RESOURCES["System Design"]

    assert result.plan[-1].topic == "Interview Prep: Senior Backend Engineer"
    assert result.plan[-1].priority == Priority.HIGH

    tasks = agent.store.get_learning_tasks()
    assert len(tasks) == 1
    assert tasks[0].title == "Interview Prep: Senior Backend Engineer"
    assert tasks[0].priority == Priority.HIGH
    assert tasks[0].due_date == date(2024, 6, 13)
    assert tasks[0].application_id in {first.id, second.id}


def test_model_answers_are_deterministic():
    assert generate_model_answers("Backend Developer", "Acme") == generate_model_answers("Backend Developer", "Acme")
    answers = generate_model_answers("Backend Developer", "Acme")
    assert "database optimization" in answers["Tell me about a challenging project"]
    assert "innovative technology solutions" in answers["Why do you want to join us?"]


def test_practice_problems_by_role():
    assert len(generate_practice_problems("Engineer")) == 7
    assert "Optimize React Component Performance" in generate_practice_problems("Frontend Engineer")


def test_nothing_to_plan(agent):
    result = agent.generate_weekly_learning_plan(now=NOW)
    assert result.success is True
    assert result.plan == []
    assert result.tasks_created == 0
