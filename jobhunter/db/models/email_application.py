from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.sql import func
from jobhunter.db.base import Base


class EmailApplication(Base):
    __tablename__ = "email_applications"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    job_title = Column(Text, nullable=False)
    company_name = Column(Text, nullable=False)
    company_email = Column(Text, nullable=False)
    email_subject = Column(Text, nullable=True)
    email_body = Column(Text, nullable=True)
    job_url = Column(Text, nullable=True)
    company_website = Column(Text, nullable=True)
    message_id = Column(String, nullable=True)
    sent_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
