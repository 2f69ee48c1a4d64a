"""
Sent application emails.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc
from sqlalchemy.orm import Session

from jobhunter.core.auth_dependency import require_session
from jobhunter.db.models.email_application import EmailApplication
from jobhunter.db.models.user import User
from jobhunter.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Applications"])


def serialize_application(application: EmailApplication) -> dict:
    return {
        "id": application.id,
        "jobTitle": application.job_title,
        "companyName": application.company_name,
        "companyEmail": application.company_email,
        "emailSubject": application.email_subject,
        "emailBody": application.email_body,
        "jobUrl": application.job_url,
        "companyWebsite": application.company_website,
        "sentAt": application.sent_at.isoformat() if application.sent_at else None,
    }


@router.get("/email-applications")
@router.get("/applications")
def list_applications(
    limit: int = Query(50, ge=1, le=200, description="Maximum number of applications"),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
):
    """Applications sent by the current user, newest first."""
    applications = (
        db.query(EmailApplication)
        .filter(EmailApplication.user_id == user.id)
        .order_by(desc(EmailApplication.sent_at), desc(EmailApplication.id))
        .offset(offset)
        .limit(limit)
        .all()
    )
    logger.debug(f"Applications listed: user_id={user.id}, count={len(applications)}")
    return [serialize_application(a) for a in applications]
