"""
Pydantic schemas for authentication endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class IdentityCallbackRequest(BaseModel):
    """Request schema for the identity-provider callback."""
    token: Optional[str] = Field(
        None, description="Identity token signed by the identity provider with the shared secret"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."
            }
        }


class IdentityCallbackResponse(BaseModel):
    success: bool = True
    user_id: str = Field(..., serialization_alias="userId")


class UserResponse(BaseModel):
    """Current user as seen by the client."""
    id: str = Field(..., description="User id")
    email: str = Field(..., description="Email address")
    first_name: Optional[str] = Field(None, serialization_alias="firstName")
    last_name: Optional[str] = Field(None, serialization_alias="lastName")
    profile_image_url: Optional[str] = Field(None, serialization_alias="profileImageUrl")
    subscription_tier: str = Field("free", serialization_alias="subscriptionTier")
    is_pro: bool = Field(False, serialization_alias="isPro")
    subscription_activated_at: Optional[datetime] = Field(None, serialization_alias="subscriptionActivatedAt")
    subscription_expires_at: Optional[datetime] = Field(None, serialization_alias="subscriptionExpiresAt")
    total_applications_sent: int = Field(0, serialization_alias="totalApplicationsSent")
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")

    class Config:
        from_attributes = True
