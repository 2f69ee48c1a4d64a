from sqlalchemy import Column, String, Float, DateTime, ForeignKey
from sqlalchemy.sql import func
from jobhunter.db.base import Base


class PaymentOrder(Base):
    __tablename__ = "payment_orders"

    order_id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    gateway = Column(String, nullable=False)  # cashfree | stripe

    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="USD")

    customer_email = Column(String, nullable=True)
    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)

    status = Column(String, nullable=False, default="pending", index=True)  # pending | confirmed | failed
    payment_session_id = Column(String, nullable=True)
    return_url = Column(String, nullable=True)
    notify_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
