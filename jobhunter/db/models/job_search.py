from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, JSON
from sqlalchemy.sql import func
from jobhunter.db.base import Base


class JobSearch(Base):
    """A LinkedIn scraping run. Written by the scraper, read here."""
    __tablename__ = "job_searches"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    linkedin_url = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default="pending")
    results = Column(JSON, nullable=True)
    total_jobs_found = Column(Integer, default=0)
    free_jobs_shown = Column(Integer, default=0)
    pro_jobs_shown = Column(Integer, default=0)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
