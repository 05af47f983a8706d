from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import utcnow
from ..schemas import ApplicationRecord, ApplicationStatus, UserRecord
from ..store import AgentCapability, Store

router = APIRouter(tags=["applications"])


# Pydantic models for API requests
class UserCreate(BaseModel):
    user_id: str
    email: str
    full_name: Optional[str] = None
    skills: List[str] = []


class ApplicationCreate(BaseModel):
    user_id: Optional[str] = None
    company_name: str
    job_title: str
    job_url: Optional[str] = None
    location: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    description: Optional[str] = None
    applied_date: Optional[date] = None
    source_site: str = "manual"
    easy_apply: bool = False
    current_status: ApplicationStatus = ApplicationStatus.APPLIED


def user_store(db: Session, user_id: Optional[str]) -> Store:
    if not user_id:
        raise HTTPException(status_code=400, detail="Missing user_id")
    return Store(db, user_id, AgentCapability.USER)


@router.post("/users/", response_model=UserRecord)
def create_user(user: UserCreate, db: Session = Depends(get_db)):
    store = user_store(db, user.user_id)
    if store.get_user() is not None:
        raise HTTPException(status_code=409, detail="User already exists")
    created = store.create_user(user.email, user.full_name, user.skills)
    if created is None:
        raise HTTPException(status_code=500, detail="Failed to create user")
    return created


@router.get("/users/{user_id}", response_model=UserRecord)
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = user_store(db, user_id).get_user()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/applications/", response_model=ApplicationRecord)
def create_application(application: ApplicationCreate, db: Session = Depends(get_db)):
    store = user_store(db, application.user_id)
    now = utcnow()
    fields = application.model_dump(exclude={"user_id"})
    fields["applied_date"] = fields["applied_date"] or now.date()
    created = store.create_application(last_update=now, days_in_stage=0, **fields)
    if created is None:
        raise HTTPException(status_code=500, detail="Failed to create application")
    return created


@router.get("/applications/", response_model=List[ApplicationRecord])
def get_applications(
    user_id: Optional[str] = None,
    status: Optional[ApplicationStatus] = None,
    db: Session = Depends(get_db),
):
    return user_store(db, user_id).get_applications(status=status)


@router.get("/applications/{application_id}", response_model=ApplicationRecord)
def get_application(application_id: str, user_id: Optional[str] = None, db: Session = Depends(get_db)):
    application = user_store(db, user_id).get_application(application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")
    return application
