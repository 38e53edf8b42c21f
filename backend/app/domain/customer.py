"""
Customer Domain Models

Customers sign in with their phone number (OTP). Each signed-in user,
customer or merchant, also has a UserProfile keyed `<role>_<id>` that holds
the Expo push token of their device.
"""
from pydantic import Field
from typing import Optional
from datetime import datetime

from app.domain.base import DomainModel


class Customer(DomainModel):
    id: int = Field(..., description="Customer ID")
    name: str
    email: Optional[str] = None
    mobile: str = Field(..., description="Local form 05XXXXXXXX")
    city: Optional[str] = None
    created_at: datetime


class CustomerUpdate(DomainModel):
    name: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None


class UserProfile(DomainModel):
    """
    Per-user profile document

    Fields:
        uid: `customer_<id>` or `merchant_<id>`
        customer_id: Numeric id of the customer or merchant record
        password_hash: Optional bcrypt hash set at OTP registration
    """

    uid: str
    role: str
    customer_id: int
    name: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    push_token: Optional[str] = None
    password_hash: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PushTokenUpdate(DomainModel):
    token: str = Field(..., min_length=1)
