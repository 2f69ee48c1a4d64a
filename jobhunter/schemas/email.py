"""
Pydantic schemas for email generation and sending.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class GenerateEmailRequest(BaseModel):
    """Request schema for drafting an application email."""
    job_title: str = Field(..., alias="jobTitle", min_length=1, max_length=255)
    company_name: str = Field(..., alias="companyName", min_length=1, max_length=255)
    job_description: Optional[str] = Field(None, alias="jobDescription")
    recipient_name: Optional[str] = Field(None, alias="recipientName", max_length=255)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "jobTitle": "Senior Backend Engineer",
                "companyName": "Acme Corp",
                "jobDescription": "We are looking for..."
            }
        }


class GenerateEmailResponse(BaseModel):
    subject: str
    body: str


class SendEmailRequest(BaseModel):
    """Request schema for sending an application email."""
    to_email: EmailStr = Field(..., alias="to")
    subject: str = Field(..., min_length=1, max_length=500)
    body: str = Field(..., min_length=1)
    job_title: str = Field(..., alias="jobTitle", min_length=1)
    company_name: str = Field(..., alias="companyName", min_length=1)
    job_url: Optional[str] = Field(None, alias="jobUrl")
    company_website: Optional[str] = Field(None, alias="companyWebsite")
    attach_resume: bool = Field(False, alias="attachResume")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "to": "hiring@acme.example",
                "subject": "Application for Senior Backend Engineer",
                "body": "Dear Hiring Team, ...",
                "jobTitle": "Senior Backend Engineer",
                "companyName": "Acme Corp",
                "attachResume": True
            }
        }
