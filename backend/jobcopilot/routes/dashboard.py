from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..agents.system_observer_agent import SystemObserverAgent
from ..database import get_db
from ..schemas import DashboardMetrics, JobSuggestionRecord, LearningTaskRecord
from .applications import user_store

router = APIRouter(tags=["dashboard"])


class SuggestionUpdate(BaseModel):
    user_id: Optional[str] = None
    applied: Optional[bool] = None
    dismissed: Optional[bool] = None


class TaskComplete(BaseModel):
    user_id: Optional[str] = None


@router.get("/metrics", response_model=DashboardMetrics)
def get_metrics(user_id: Optional[str] = None, db: Session = Depends(get_db)):
    if not user_id:
        raise HTTPException(status_code=400, detail="Missing user_id")
    return SystemObserverAgent(db, user_id).compute_metrics()


@router.get("/suggestions", response_model=List[JobSuggestionRecord])
def get_suggestions(
    user_id: Optional[str] = None,
    applied: Optional[bool] = None,
    dismissed: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    """Job suggestions, best match first"""
    return user_store(db, user_id).get_job_suggestions(applied=applied, dismissed=dismissed)


@router.patch("/suggestions/{suggestion_id}", response_model=JobSuggestionRecord)
def update_suggestion(suggestion_id: str, update: SuggestionUpdate, db: Session = Depends(get_db)):
    store = user_store(db, update.user_id)
    changes = update.model_dump(exclude={"user_id"}, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")
    suggestion = store.update_job_suggestion(suggestion_id, **changes)
    if not suggestion:
        raise HTTPException(status_code=404, detail="Suggestion not found")
    return suggestion


@router.get("/learning-tasks", response_model=List[LearningTaskRecord])
def get_learning_tasks(
    user_id: Optional[str] = None,
    completed: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    return user_store(db, user_id).get_learning_tasks(completed=completed)


@router.post("/learning-tasks/{task_id}/complete", response_model=LearningTaskRecord)
def complete_learning_task(task_id: str, request: TaskComplete, db: Session = Depends(get_db)):
    task = user_store(db, request.user_id).complete_learning_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Learning task not found")
    return task
