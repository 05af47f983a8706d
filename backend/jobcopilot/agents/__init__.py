from .job_market_agent import JobMarketAgent
from .learning_planner_agent import LearningPlannerAgent
from .mail_agent import MailAgent
from .skill_research_agent import SkillResearchAgent
from .system_observer_agent import SystemObserverAgent
from .tracker_agent import TrackerAgent

__all__ = [
    "JobMarketAgent",
    "LearningPlannerAgent",
    "MailAgent",
    "SkillResearchAgent",
    "SystemObserverAgent",
    "TrackerAgent",
]
