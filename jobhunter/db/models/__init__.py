"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from jobhunter.db.models.user import User
from jobhunter.db.models.session import UserSession
from jobhunter.db.models.payment_order import PaymentOrder
from jobhunter.db.models.resume import Resume
from jobhunter.db.models.email_application import EmailApplication
from jobhunter.db.models.job_search import JobSearch

__all__ = [
    "User",
    "UserSession",
    "PaymentOrder",
    "Resume",
    "EmailApplication",
    "JobSearch",
]
