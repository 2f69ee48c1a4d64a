"""
Read-only views of previously scraped job searches.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc
from sqlalchemy.orm import Session

from jobhunter.core.auth_dependency import require_session
from jobhunter.core.errors import NotFoundError
from jobhunter.db.models.job_search import JobSearch
from jobhunter.db.models.user import User
from jobhunter.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/job-searches", tags=["Jobs"])


def serialize_search(search: JobSearch, include_results: bool = False) -> dict:
    data = {
        "id": search.id,
        "linkedinUrl": search.linkedin_url,
        "status": search.status,
        "totalJobsFound": search.total_jobs_found or 0,
        "freeJobsShown": search.free_jobs_shown or 0,
        "proJobsShown": search.pro_jobs_shown or 0,
        "errorMessage": search.error_message,
        "createdAt": search.created_at.isoformat() if search.created_at else None,
        "completedAt": search.completed_at.isoformat() if search.completed_at else None,
    }
    if include_results:
        data["results"] = search.results or []
    return data


@router.get("")
def list_job_searches(
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
):
    searches = (
        db.query(JobSearch)
        .filter(JobSearch.user_id == user.id)
        .order_by(desc(JobSearch.created_at), desc(JobSearch.id))
        .limit(limit)
        .all()
    )
    return [serialize_search(s) for s in searches]


@router.get("/{search_id}")
def get_job_search(
    search_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
):
    search = (
        db.query(JobSearch)
        .filter(JobSearch.id == search_id, JobSearch.user_id == user.id)
        .first()
    )
    if search is None:
        raise NotFoundError("Job search not found")
    return serialize_search(search, include_results=True)
