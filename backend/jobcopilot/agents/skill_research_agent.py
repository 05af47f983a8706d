"""
Skill research agent: measures which skills the user's job descriptions ask
for and whether they lean toward offers or rejections.

Cannot modify applications or job suggestions.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..schemas import ApplicationRecord, ApplicationStatus, AuditStatus, SkillResearchResult
from ..skills import DEFAULT_SKILL_CATALOG, SkillCatalog
from ..store import AgentCapability, Store

logger = logging.getLogger(__name__)

TRENDING_MIN_FREQUENCY = 3
SKILL_GAP_MIN_FREQUENCY = 3


def _mentions(applications: List[ApplicationRecord], skill: str) -> int:
    skill_lower = skill.lower()
    return sum(1 for app in applications if skill_lower in (app.description or "").lower())


class SkillResearchAgent:
    def __init__(self, db: Session, user_id: str, catalog: Optional[SkillCatalog] = None):
        self.store = Store(db, user_id, AgentCapability.SKILL_RESEARCH)
        self.user_id = user_id
        self.catalog = catalog or DEFAULT_SKILL_CATALOG

    def analyze_market_skills(self) -> SkillResearchResult:
        logger.info("Analyzing market skills for user %s", self.user_id)
        result = SkillResearchResult()

        rejected = self.store.get_applications_by_status(ApplicationStatus.REJECTED)
        offered = self.store.get_applications_by_status(ApplicationStatus.OFFER) + self.store.get_applications_by_status(
            ApplicationStatus.ACCEPTED
        )

        descriptions = [app.description or "" for app in rejected + offered]
        frequency = self.catalog.count_skills(descriptions)

        self._update_skill_demands(frequency, rejected, offered, result)
        result.clusters = self.catalog.cluster(frequency)
        result.skill_gaps = self._find_skill_gaps(frequency)
        if result.skill_gaps:
            logger.warning("Skills in demand but missing from profile: %s", ", ".join(result.skill_gaps))

        status = AuditStatus.ERROR if result.errors else AuditStatus.SUCCESS
        self.store.log_agent_action(
            {"descriptions": len(descriptions)},
            result.model_dump(mode="json", exclude={"clusters"}),
            status,
        )
        return result

    def _update_skill_demands(
        self,
        frequency: Dict[str, int],
        rejected: List[ApplicationRecord],
        offered: List[ApplicationRecord],
        result: SkillResearchResult,
    ):
        existing = {skill.skill_name: skill for skill in self.store.get_skill_demands()}

        for skill_name, count in frequency.items():
            in_rejections = _mentions(rejected, skill_name)
            in_offers = _mentions(offered, skill_name)

            previous = existing.get(skill_name)
            # once set, the flag is never cleared
            trending = (in_offers > in_rejections and count > TRENDING_MIN_FREQUENCY) or bool(
                previous and previous.rising_trend
            )

            updated = self.store.upsert_skill_demand(
                skill_name,
                frequency=count,
                rising_trend=trending,
                appears_in_rejections=in_rejections,
                appears_in_offers=in_offers,
                skill_category=self.catalog.categorize(skill_name),
            )
            if updated is None:
                result.errors.append(f"Failed to update skill {skill_name}")
                result.success = False
                continue

            result.skills_updated += 1
            if trending:
                result.trending_skills.append(skill_name)
            logger.info("Updated skill: %s (freq: %d, trending: %s)", skill_name, count, trending)

    def _find_skill_gaps(self, frequency: Dict[str, int]) -> List[str]:
        user = self.store.get_user()
        known = {skill.lower() for skill in (user.skills if user else [])}
        return sorted(
            skill for skill, count in frequency.items() if count > SKILL_GAP_MIN_FREQUENCY and skill.lower() not in known
        )
