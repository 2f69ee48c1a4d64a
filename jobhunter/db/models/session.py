from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from jobhunter.db.base import Base


class UserSession(Base):
    __tablename__ = "sessions"

    sid = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
