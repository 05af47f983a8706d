from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..agents.job_market_agent import JobMarketAgent
from ..agents.learning_planner_agent import LearningPlannerAgent
from ..agents.mail_agent import MailAgent
from ..agents.skill_research_agent import SkillResearchAgent
from ..agents.system_observer_agent import SystemObserverAgent
from ..agents.tracker_agent import TrackerAgent
from ..config import Settings, get_settings
from ..database import get_db
from ..job_feed import fetch_job_listings
from ..schemas import (
    InboundEmail,
    JobListing,
    JobMarketResult,
    LearningPlanResult,
    MailListenerResult,
    SkillResearchResult,
    SystemObserverResult,
    TrackerResult,
)

router = APIRouter(prefix="/agents", tags=["agents"])


class AgentRequest(BaseModel):
    user_id: Optional[str] = None


class MailAgentRequest(AgentRequest):
    emails: Optional[List[InboundEmail]] = None


class JobMarketRequest(AgentRequest):
    listings: Optional[List[JobListing]] = None


class SystemObserverRequest(AgentRequest):
    send_email: bool = False


def _require_user(request: AgentRequest) -> str:
    if not request.user_id:
        raise HTTPException(status_code=400, detail="Missing user_id")
    return request.user_id


@router.post("/mail", response_model=MailListenerResult)
def run_mail_agent(request: MailAgentRequest, db: Session = Depends(get_db)):
    """Process a batch of inbound emails for one user"""
    if not request.user_id or request.emails is None:
        raise HTTPException(status_code=400, detail="Missing user_id or emails")
    return MailAgent(db, request.user_id).process_inbox_emails(request.emails)


@router.post("/tracker", response_model=TrackerResult)
def run_tracker_agent(request: AgentRequest, db: Session = Depends(get_db)):
    return TrackerAgent(db, _require_user(request)).manage_pipeline()


@router.post("/job-market", response_model=JobMarketResult)
def run_job_market_agent(
    request: JobMarketRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Score listings from the request body, or from the configured job feed when none are given"""
    user_id = _require_user(request)
    listings = request.listings
    if listings is None:
        listings = fetch_job_listings(settings.job_feed_url) if settings.job_feed_url else []
    return JobMarketAgent(db, user_id).find_jobs_for_user(listings)


@router.post("/skill-research", response_model=SkillResearchResult)
def run_skill_research_agent(request: AgentRequest, db: Session = Depends(get_db)):
    return SkillResearchAgent(db, _require_user(request)).analyze_market_skills()


@router.post("/learning-planner", response_model=LearningPlanResult)
def run_learning_planner_agent(request: AgentRequest, db: Session = Depends(get_db)):
    return LearningPlannerAgent(db, _require_user(request)).generate_weekly_learning_plan()


@router.post("/system-observer", response_model=SystemObserverResult)
def run_system_observer_agent(
    request: SystemObserverRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return SystemObserverAgent(db, _require_user(request)).observe(send=request.send_email, settings=settings)
