import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from jobhunter.core import config
from jobhunter.core.auth_dependency import require_session
from jobhunter.core.errors import NotFoundError, PayloadTooLarge, ValidationError
from jobhunter.db.models.user import User
from jobhunter.db.session import get_db
from jobhunter.services import resume_service
from jobhunter.services.resume_parser import describe_formats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Resume"])


@router.get("/resume/formats")
def resume_formats():
    """Supported resume formats; the client validates uploads against this list."""
    return {"formats": describe_formats(), "maxBytes": config.MAX_RESUME_BYTES}


@router.post("/resume/upload")
async def upload_resume(
    resume: Optional[UploadFile] = File(None),
    resume_text: Optional[str] = Form(None, alias="resumeText"),
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
):
    """
    Upload a resume as a file, or paste it as plain text.

    The stored resume (and its extracted text) replaces any previous one.
    """
    if resume is not None:
        data = await resume.read(config.MAX_RESUME_BYTES + 1)
        if len(data) > config.MAX_RESUME_BYTES:
            raise PayloadTooLarge(f"File too large (max {config.MAX_RESUME_BYTES // (1024 * 1024)}MB)")
        result = resume_service.ingest(db, user, resume.filename, resume.content_type, data)
    elif resume_text and resume_text.strip():
        result = resume_service.ingest(db, user, "resume.txt", "text/plain", resume_text.encode("utf-8"))
    else:
        raise ValidationError("No resume file provided")

    return {
        "success": True,
        "message": result.message,
        "textExtracted": result.text_extracted,
        "textLength": result.text_length,
        "fileName": result.resume.original_filename,
        "mimeType": result.resume.mime_type,
    }


@router.get("/user/resume")
def get_user_resume(
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
):
    resume = resume_service.get_resume(db, user)
    if resume is None:
        raise NotFoundError("No resume found")
    return {
        "resumeText": resume.extracted_text or "",
        "fileName": resume.original_filename,
        "mimeType": resume.mime_type,
        "fileSize": resume.file_size,
        "uploadedAt": resume.uploaded_at.isoformat() if resume.uploaded_at else None,
    }
