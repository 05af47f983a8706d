"""
Job market agent: turns raw job listings into scored suggestions.

Cannot submit applications or touch the applications table.
"""
import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from ..schemas import AuditStatus, JobListing, JobMarketResult
from ..scoring import calculate_match_score, extract_salary_range
from ..store import AgentCapability, Store

logger = logging.getLogger(__name__)


def deduplicate_listings(listings: Iterable[JobListing]) -> List[JobListing]:
    """Drop repeated (title, company) pairs, keeping the first occurrence."""
    seen = set()
    unique = []
    for listing in listings:
        key = (listing.title.lower(), listing.company.lower())
        if key in seen:
            continue
        seen.add(key)
        unique.append(listing)
    return unique


class JobMarketAgent:
    def __init__(self, db: Session, user_id: str):
        self.store = Store(db, user_id, AgentCapability.JOB_MARKET)
        self.user_id = user_id

    def find_jobs_for_user(self, listings: Iterable[JobListing]) -> JobMarketResult:
        listings = list(listings)
        result = JobMarketResult(listings_found=len(listings))
        logger.info("Finding jobs for user %s from %d listings", self.user_id, len(listings))

        user = self.store.get_user()
        if user is None:
            result.success = False
            result.errors.append(f"User {self.user_id} not found")
            self.store.log_agent_action({"listings": len(listings)}, result.model_dump(mode="json"), AuditStatus.ERROR)
            return result

        unique = deduplicate_listings(listings)
        result.duplicates_skipped = len(listings) - len(unique)

        for listing in unique:
            try:
                if self.store.suggestion_url_exists(listing.url):
                    logger.info("Job already exists: %s at %s", listing.title, listing.company)
                    result.duplicates_skipped += 1
                    continue

                salary_min, salary_max = extract_salary_range(listing.salary)
                score = calculate_match_score(listing.title, listing.description, user.skills)
                suggestion = self.store.create_job_suggestion(
                    job_title=listing.title,
                    company_name=listing.company,
                    location=listing.location,
                    salary_min=salary_min,
                    salary_max=salary_max,
                    description=listing.description,
                    job_url=listing.url,
                    source_site=listing.source,
                    easy_apply=listing.easy_apply,
                    match_score=score,
                    applied=False,
                    dismissed=False,
                )
                if suggestion is None:
                    result.errors.append(f"Failed to store {listing.title} at {listing.company}")
                    continue

                result.suggestions.append(suggestion)
                logger.info("Created suggestion: %s at %s (score: %.0f)", listing.title, listing.company, score)
            except Exception as e:
                error_msg = f"Error creating suggestion for {listing.title} at {listing.company}: {e}"
                logger.exception(error_msg)
                result.errors.append(error_msg)

        if result.errors:
            result.success = False
        status = AuditStatus.ERROR if result.errors else AuditStatus.SUCCESS
        self.store.log_agent_action(
            {"listings": len(listings)},
            result.model_dump(mode="json", exclude={"suggestions"}),
            status,
        )
        return result
