"""
AI-written job application emails.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from jobhunter.core.errors import ValidationError
from jobhunter.llm.provider import LLMProvider

logger = logging.getLogger(__name__)

MAX_RESUME_CHARS = 6000
MAX_DESCRIPTION_CHARS = 3000

SYSTEM_PROMPT = (
    "You write concise, specific job application emails on behalf of a candidate. "
    "Use only facts from the candidate's resume. Never invent experience. "
    "Keep the body under 200 words, plain text, no markdown. "
    "Answer in the form:\nSubject: <subject line>\n\n<email body>"
)

_SUBJECT_RE = re.compile(r"^\s*subject\s*:\s*(.+)$", re.IGNORECASE | re.MULTILINE)


@dataclass
class GeneratedEmail:
    subject: str
    body: str


def build_messages(
    resume_text: str,
    job_title: str,
    company_name: str,
    job_description: Optional[str] = None,
    recipient_name: Optional[str] = None,
    sender_name: Optional[str] = None,
) -> list[dict]:
    parts = [
        f"Job title: {job_title}",
        f"Company: {company_name}",
    ]
    if recipient_name:
        parts.append(f"Recipient: {recipient_name}")
    if sender_name:
        parts.append(f"Candidate name: {sender_name}")
    if job_description:
        parts.append(f"Job description:\n{job_description[:MAX_DESCRIPTION_CHARS]}")
    parts.append(f"Candidate resume:\n{resume_text[:MAX_RESUME_CHARS]}")
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n\n".join(parts)},
    ]


def parse_email(content: str, job_title: str) -> GeneratedEmail:
    """Split model output into subject and body; fall back to a default subject."""
    match = _SUBJECT_RE.search(content or "")
    if match:
        subject = match.group(1).strip()
        body = (content[:match.start()] + content[match.end():]).strip()
    else:
        subject = f"Application for {job_title}"
        body = (content or "").strip()
    return GeneratedEmail(subject=subject, body=body)


def generate_application_email(
    provider: LLMProvider,
    resume_text: Optional[str],
    job_title: str,
    company_name: str,
    job_description: Optional[str] = None,
    recipient_name: Optional[str] = None,
    sender_name: Optional[str] = None,
) -> GeneratedEmail:
    """
    Draft an application email from the stored resume.

    Raises:
        ValidationError: If there is no resume text to work from
    """
    if not resume_text or not resume_text.strip():
        raise ValidationError("Please upload your resume first")

    messages = build_messages(resume_text, job_title, company_name, job_description, recipient_name, sender_name)
    response = provider.chat(messages, temperature=0.6, max_tokens=600)
    email = parse_email(response.content, job_title)
    if not email.body:
        raise ValidationError("Email generation returned an empty draft")

    logger.info(
        f"Generated application email: company={company_name}, "
        f"tokens_in={response.tokens_in}, tokens_out={response.tokens_out}"
    )
    return email
