import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..database import get_db
from ..models import utcnow
from ..scheduler import get_job, job_summary, run_scheduled_job
from ..store import get_all_users

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


def verify_cron_secret(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
):
    if not settings.cron_secret or authorization != f"Bearer {settings.cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.get("/{job_name}", dependencies=[Depends(verify_cron_secret)])
def run_cron_job(job_name: str, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    """Run one scheduled job for every user"""
    job = get_job(job_name)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Unknown job: {job_name}")

    logger.info("Starting %s (%s)", job.name, job.description)
    results = {}
    failed = 0
    for user in get_all_users(db):
        try:
            result = run_scheduled_job(job.name, db, user, settings)
            results[user.id] = job_summary(result)
            if not result.success:
                failed += 1
        except Exception as e:
            logger.exception("Error running %s for user %s", job.name, user.id)
            results[user.id] = {"success": False, "errors": [str(e)]}
            failed += 1

    return {
        "ok": failed == 0,
        "job": job.name,
        "users": len(results),
        "failed": failed,
        "results": results,
        "timestamp": utcnow().isoformat(),
    }
