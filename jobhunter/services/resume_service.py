"""
Resume ingestion: validate, extract, store, overwrite.
"""
import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from jobhunter.core import config
from jobhunter.core.errors import PayloadTooLarge, UnsupportedTypeError, ValidationError
from jobhunter.core.timeutils import utcnow
from jobhunter.db.models.resume import Resume
from jobhunter.db.models.user import User
from jobhunter.services.resume_parser import get_format, normalize_mime, parse_resume

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 50

SUCCESS_MESSAGE = "Resume uploaded and processed successfully"
LOW_CONFIDENCE_MESSAGE = (
    "Resume uploaded but text extraction failed. Email generation may not work properly. "
    "Please upload a text-based PDF or DOCX file."
)


@dataclass
class IngestResult:
    resume: Resume
    text_extracted: bool
    message: str

    @property
    def text_length(self) -> int:
        return len(self.resume.extracted_text or "")


def safe_filename(filename: Optional[str], default: str = "resume") -> str:
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    name = "".join(c if c.isalnum() or c in "._- " else "_" for c in name).strip(" .")
    return name or default


def _write_file(user_id: str, filename: str, data: bytes, upload_dir: str) -> str:
    # Unique per upload; the previous original is removed only after commit
    target_dir = Path(upload_dir) / safe_filename(user_id, "user") / secrets.token_hex(8)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / filename
    path.write_bytes(data)
    return str(path)


def _remove_file(storage_ref: Optional[str]) -> None:
    if not storage_ref:
        return
    path = Path(storage_ref)
    try:
        path.unlink(missing_ok=True)
        path.parent.rmdir()
    except OSError as e:
        logger.warning(f"Could not remove stored resume {storage_ref}: {e}")


def ingest(
    db: Session,
    user: User,
    filename: Optional[str],
    mime_type: Optional[str],
    data: bytes,
    upload_dir: Optional[str] = None,
) -> IngestResult:
    """
    Store a resume for ``user``, replacing any previous one.

    Raises:
        UnsupportedTypeError: MIME type not in RESUME_FORMATS (nothing is written)
        ValidationError: Empty upload
        PayloadTooLarge: Upload over MAX_RESUME_BYTES
    """
    if get_format(mime_type) is None:
        logger.warning(f"Rejected resume upload: user_id={user.id}, mime_type={mime_type}")
        raise UnsupportedTypeError(mime_type)
    if not data:
        raise ValidationError("No resume file provided")
    if len(data) > config.MAX_RESUME_BYTES:
        raise PayloadTooLarge(f"File too large (max {config.MAX_RESUME_BYTES // (1024 * 1024)}MB)")

    mime = normalize_mime(mime_type)
    name = safe_filename(filename)
    text = parse_resume(data, mime)
    storage_ref = _write_file(user.id, name, data, upload_dir or config.UPLOAD_DIR)

    previous_ref = None
    try:
        resume = db.query(Resume).filter(Resume.user_id == user.id).first()
        if resume is None:
            resume = Resume(user_id=user.id)
            db.add(resume)
        previous_ref = resume.storage_ref
        resume.original_filename = name
        resume.mime_type = mime
        resume.extracted_text = text or None
        resume.storage_ref = storage_ref
        resume.file_size = len(data)
        resume.uploaded_at = utcnow()
        db.commit()
    except Exception:
        db.rollback()
        _remove_file(storage_ref)
        raise
    if previous_ref and previous_ref != storage_ref:
        _remove_file(previous_ref)
    db.refresh(resume)

    text_extracted = len(text) >= MIN_TEXT_LENGTH
    logger.info(
        f"Resume stored: user_id={user.id}, file={name}, mime_type={mime}, "
        f"size={len(data)}, text_length={len(text)}"
    )
    return IngestResult(
        resume=resume,
        text_extracted=text_extracted,
        message=SUCCESS_MESSAGE if text_extracted else LOW_CONFIDENCE_MESSAGE,
    )


def get_resume(db: Session, user: User) -> Optional[Resume]:
    return db.query(Resume).filter(Resume.user_id == user.id).first()
