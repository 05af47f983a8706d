import logging
from typing import List

import requests
from pydantic import ValidationError

from .schemas import JobListing

logger = logging.getLogger(__name__)


def fetch_job_listings(url: str, timeout: int = 20) -> List[JobListing]:
    """Pull job listings from a JSON feed.

    The feed is either a list of listing objects or ``{"jobs": [...]}``.
    Entries that don't validate are skipped. A failed request yields ``[]``.
    """
    headers = {"User-Agent": "Mozilla/5.0", "Accept": "application/json"}
    try:
        r = requests.get(url, headers=headers, timeout=timeout)
        r.raise_for_status()
        payload = r.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("Error fetching job feed %s: %s", url, e)
        return []

    items = payload.get("jobs", []) if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        logger.error("Job feed %s did not return a list of jobs", url)
        return []
    listings = []
    for item in items:
        try:
            listings.append(JobListing.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping invalid job listing: %s", e)
    logger.info("Fetched %d job listings from feed", len(listings))
    return listings
