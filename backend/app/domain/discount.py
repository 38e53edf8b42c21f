"""
Discount Code Domain Models
"""
from pydantic import Field
from typing import Optional
from datetime import datetime

from app.domain.base import DomainModel


DISCOUNT_TYPES = ["percentage", "fixed", "free_shipping"]


class DiscountCode(DomainModel):
    """
    Discount code domain model

    Fields:
        code: Stored upper-case, matched case-insensitively
        value: Percent (0-100) for `percentage`, halalas for `fixed`,
               ignored for `free_shipping`
        max_uses: None means unlimited
    """

    id: int
    code: str
    type: str
    value: int = 0
    min_order_amount: Optional[int] = None
    max_uses: Optional[int] = None
    used_count: int = 0
    is_active: bool = True
    expires_at: Optional[datetime] = None
    created_at: datetime


class DiscountCodeCreate(DomainModel):
    code: str
    type: str
    value: int = 0
    min_order_amount: Optional[int] = None
    max_uses: Optional[int] = None
    is_active: bool = True
    expires_at: Optional[datetime] = None


class DiscountCodeUpdate(DomainModel):
    code: Optional[str] = None
    type: Optional[str] = None
    value: Optional[int] = None
    min_order_amount: Optional[int] = None
    max_uses: Optional[int] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None


class DiscountValidationRequest(DomainModel):
    code: str
    order_amount: int = Field(..., ge=0)
