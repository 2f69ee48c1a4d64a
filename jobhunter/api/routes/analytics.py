"""
Aggregate stats for the dashboard and analytics pages.
"""
import logging
from datetime import datetime, timedelta
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from jobhunter.api.routes.jobs import serialize_search
from jobhunter.core.auth_dependency import require_session
from jobhunter.core.timeutils import as_utc, utcnow
from jobhunter.db.models.email_application import EmailApplication
from jobhunter.db.models.job_search import JobSearch
from jobhunter.db.models.user import User
from jobhunter.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Analytics"])

WEEKS_SHOWN = 8
RECENT_SEARCHES = 10


def total_jobs_scraped(db: Session, user_id: str) -> int:
    total = (
        db.query(func.coalesce(func.sum(JobSearch.total_jobs_found), 0))
        .filter(JobSearch.user_id == user_id, JobSearch.status == "completed")
        .scalar()
    )
    return int(total or 0)


def count_applications(db: Session, user_id: str) -> int:
    return db.query(func.count(EmailApplication.id)).filter(EmailApplication.user_id == user_id).scalar() or 0


def weekly_applications(sent_times: List[datetime], now: datetime, weeks: int = WEEKS_SHOWN) -> List[dict]:
    """
    Bucket send times into ``weeks`` Monday-based weeks ending with the current one.

    Returns oldest week first, each as ``{"week": "YYYY-MM-DD", "count": n}``.
    """
    current_week = (now - timedelta(days=now.weekday())).date()
    starts = [current_week - timedelta(weeks=i) for i in range(weeks - 1, -1, -1)]
    counts = {start: 0 for start in starts}
    for sent_at in sent_times:
        sent_at = as_utc(sent_at)
        if sent_at is None:
            continue
        week_start = (sent_at - timedelta(days=sent_at.weekday())).date()
        if week_start in counts:
            counts[week_start] += 1
    return [{"week": start.isoformat(), "count": counts[start]} for start in starts]


@router.get("/analytics/stats")
def analytics_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
):
    now = utcnow()
    sent_times = [
        row.sent_at for row in
        db.query(EmailApplication.sent_at).filter(EmailApplication.user_id == user.id).all()
    ]
    return {
        "totalApplications": count_applications(db, user.id),
        # Replies and interviews are not tracked
        "responseRate": 0,
        "averageResponseTime": 0,
        "interviewsScheduled": 0,
        "weeklyApplications": weekly_applications(sent_times, now),
        "totalJobsScraped": total_jobs_scraped(db, user.id),
    }


@router.get("/dashboard/stats")
def dashboard_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
):
    recent = (
        db.query(JobSearch)
        .filter(JobSearch.user_id == user.id)
        .order_by(desc(JobSearch.created_at), desc(JobSearch.id))
        .limit(RECENT_SEARCHES)
        .all()
    )
    return {
        "totalJobsScraped": total_jobs_scraped(db, user.id),
        "totalApplicationsSent": count_applications(db, user.id),
        "recentSearches": [serialize_search(s) for s in recent],
    }
