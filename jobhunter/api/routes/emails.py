"""
AI application emails: draft with the LLM, send through SendGrid.
"""
import logging
from pathlib import Path

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobhunter.core.auth_dependency import require_session
from jobhunter.db.models.email_application import EmailApplication
from jobhunter.db.models.user import User
from jobhunter.db.session import get_db
from jobhunter.llm.openai_provider import get_llm_provider
from jobhunter.llm.provider import LLMProvider
from jobhunter.schemas.email import GenerateEmailRequest, GenerateEmailResponse, SendEmailRequest
from jobhunter.services import resume_service
from jobhunter.services.email_generator import generate_application_email
from jobhunter.services.sendgrid_service import SendGridClient, get_mailer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Emails"])


@router.post("/generate-email", response_model=GenerateEmailResponse)
def generate_email(
    payload: GenerateEmailRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
    provider: LLMProvider = Depends(get_llm_provider),
):
    resume = resume_service.get_resume(db, user)
    email = generate_application_email(
        provider,
        resume.extracted_text if resume else None,
        payload.job_title,
        payload.company_name,
        job_description=payload.job_description,
        recipient_name=payload.recipient_name,
        sender_name=user.display_name,
    )
    return GenerateEmailResponse(subject=email.subject, body=email.body)


@router.post("/send-email")
async def send_email(
    payload: SendEmailRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
    mailer: SendGridClient = Depends(get_mailer),
):
    """
    Send an application email and record it.

    The user's address is used as reply-to so answers reach the applicant.
    """
    attachment = None
    if payload.attach_resume:
        resume = resume_service.get_resume(db, user)
        if resume is not None and Path(resume.storage_ref).is_file():
            attachment = (resume.original_filename, resume.mime_type, Path(resume.storage_ref).read_bytes())

    message_id = await mailer.send(
        to_email=payload.to_email,
        subject=payload.subject,
        body=payload.body,
        reply_to=user.email,
        from_name=user.display_name,
        attachment=attachment,
    )

    application = EmailApplication(
        user_id=user.id,
        job_title=payload.job_title,
        company_name=payload.company_name,
        company_email=payload.to_email,
        email_subject=payload.subject,
        email_body=payload.body,
        job_url=payload.job_url,
        company_website=payload.company_website,
        message_id=message_id,
    )
    db.add(application)
    user.total_applications_sent = (user.total_applications_sent or 0) + 1
    db.commit()
    db.refresh(application)

    logger.info(f"Application email sent: user_id={user.id}, application_id={application.id}")
    return {"success": True, "applicationId": application.id, "messageId": message_id}
