"""
Merchant Domain Models

A merchant is a seller account: a store with products, orders and a wallet
balance. New merchants start as `pending` until an admin activates them.
"""
from pydantic import Field, EmailStr
from typing import Optional, List
from datetime import datetime

from app.domain.base import DomainModel


MERCHANT_STATUSES = ["pending", "active", "suspended", "review", "rejected"]


class Branch(DomainModel):
    name: str
    map_link: str


class SocialLinks(DomainModel):
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    website: Optional[str] = None
    tiktok: Optional[str] = None
    snapchat: Optional[str] = None


class Merchant(DomainModel):
    """
    Merchant domain model

    Fields:
        balance: Wallet balance in minor currency units (halalas)
        password: bcrypt hash, never sent to clients (see to_public_dict)
        status: pending | active | suspended | review | rejected
    """

    id: int = Field(..., description="Merchant ID")
    owner_name: str
    store_name: str
    username: Optional[str] = None
    email: str
    mobile: str
    password: str = Field(..., description="bcrypt hash")
    store_type: str
    category: str
    city: str
    registration_number: str
    delivery_method: str
    branches: Optional[List[Branch]] = None
    status: str = "pending"
    store_image: Optional[str] = None
    bio: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    bank_name: Optional[str] = None
    iban: Optional[str] = None
    account_holder_name: Optional[str] = None
    balance: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_public_dict(self) -> dict:
        """Merchant data without the password hash"""
        return self.to_dict(exclude={"password"})


class MerchantCreate(DomainModel):
    """Registration payload (POST /api/auth/register)"""
    owner_name: str
    store_name: str
    username: Optional[str] = None
    email: EmailStr
    mobile: str = Field(..., min_length=9)
    password: str = Field(..., min_length=6)
    store_type: str
    category: str
    city: str
    registration_number: str
    delivery_method: str
    branches: Optional[List[Branch]] = None
    store_image: Optional[str] = None
    bio: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    bank_name: Optional[str] = None
    iban: Optional[str] = None
    account_holder_name: Optional[str] = None


class MerchantProfileUpdate(DomainModel):
    """Fields a merchant may change on their own store"""
    store_name: Optional[str] = None
    username: Optional[str] = None
    bio: Optional[str] = None
    store_image: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    city: Optional[str] = None
    delivery_method: Optional[str] = None
    branches: Optional[List[Branch]] = None
    bank_name: Optional[str] = None
    iban: Optional[str] = None
    account_holder_name: Optional[str] = None
