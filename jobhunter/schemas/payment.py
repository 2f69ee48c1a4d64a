"""
Pydantic schemas for payment endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class CreateSubscriptionRequest(BaseModel):
    """Request schema for creating a Cashfree order for the Pro plan; the price is set by the server."""
    currency: str = Field("USD", description="Order currency", pattern="^(USD|INR)$")
    phone: Optional[str] = Field(None, min_length=10, max_length=15, description="Customer phone number")

    class Config:
        json_schema_extra = {
            "example": {
                "currency": "USD"
            }
        }


class CreateSubscriptionResponse(BaseModel):
    success: bool = True
    order_id: str = Field(..., serialization_alias="orderId")
    payment_session_id: Optional[str] = Field(None, serialization_alias="paymentSessionId")
    amount: float
    currency: str
    environment: str


class ActivateSubscriptionRequest(BaseModel):
    """Request schema for confirming an order after the gateway redirect."""
    order_id: str = Field(..., alias="orderId", min_length=1, description="Order id returned at creation")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "orderId": "order_108234567890123456789_1717171717171"
            }
        }


class CheckoutRequest(BaseModel):
    """Request schema for creating a Stripe checkout session."""
    success_url: Optional[str] = Field(None, alias="successUrl", description="URL to redirect after successful payment")
    cancel_url: Optional[str] = Field(None, alias="cancelUrl", description="URL to redirect if payment is canceled")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "successUrl": "https://ai-jobhunter.com/payment-success",
                "cancelUrl": "https://ai-jobhunter.com/pricing?payment=cancelled"
            }
        }


class CheckoutResponse(BaseModel):
    checkout_url: str = Field(..., serialization_alias="checkoutUrl", description="Stripe checkout session URL")
    session_id: str = Field(..., serialization_alias="sessionId", description="Stripe checkout session ID")


class PaymentOrderResponse(BaseModel):
    order_id: str = Field(..., serialization_alias="orderId")
    gateway: str
    amount: float
    currency: str
    status: str
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")
    confirmed_at: Optional[datetime] = Field(None, serialization_alias="confirmedAt")

    class Config:
        from_attributes = True
