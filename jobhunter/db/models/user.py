from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from jobhunter.db.base import Base


class User(Base):
    __tablename__ = "users"

    # Identity id issued by the external provider (Google "sub")
    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)

    subscription_tier = Column(String, nullable=False, default="free", server_default="free")  # free | pro
    subscription_activated_at = Column(DateTime(timezone=True), nullable=True)
    subscription_expires_at = Column(DateTime(timezone=True), nullable=True)
    pending_payment_order_id = Column(String, nullable=True)

    total_applications_sent = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.email
