"""
Admin user management schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from infrastructure.database.models import SubscriptionTier


class AdminUserListItem(BaseModel):
    id: str
    email: str | None = None
    business_name: str | None = None
    role: str
    tier: str
    has_unlimited_free: bool = False
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class AdminUserListResponse(BaseModel):
    items: list[AdminUserListItem]
    total: int


class AdminPaymentInfo(BaseModel):
    id: str
    amount: float
    currency: str
    status: str
    payment_method: str | None = None
    subscription_period_end: datetime | None = None
    tier_at_payment: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class AdminUserDetail(AdminUserListItem):
    business_category: str | None = None
    target_audience: str | None = None
    persona: str | None = None
    monthly_goal_short: int = 0
    monthly_goal_long: int = 0
    email_confirmed_at: datetime | None = None
    last_sign_in_at: datetime | None = None
    latest_payment: AdminPaymentInfo | None = None


class AdminUserCreate(BaseModel):
    """Create a confirmed user on a trial, or with unlimited access."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    business_name: str | None = Field(None, max_length=255)
    has_unlimited_free: bool = False


class AdminUserUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    business_name: str | None = Field(None, max_length=255)
    business_category: str | None = Field(None, max_length=100)
    target_audience: str | None = None
    persona: str | None = None
    monthly_goal_short: int | None = Field(None, ge=0)
    monthly_goal_long: int | None = Field(None, ge=0)
    tier: SubscriptionTier | None = None
    has_unlimited_free: bool | None = None
    email: str | None = Field(None, min_length=3, max_length=255)
    password: str | None = Field(None, min_length=6, max_length=128)


class AdminActionResponse(BaseModel):
    success: bool = True
    message: str | None = None
    warning: str | None = None
    confirmation_link: str | None = None
