"""
Product Domain Models

Products belong to a single merchant. Customisation options (gift card
text, wrapping choice, ...) hang off a product as ProductOption rows, each
`multiple_choice` option carrying its own ordered choices.
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime

from app.domain.base import DomainModel


PRODUCT_STATUSES = ["active", "hidden"]
OPTION_TYPES = ["multiple_choice", "text", "toggle"]


class Product(DomainModel):
    """
    Product domain model

    Fields:
        price: Unit price in halalas
        status: `active` is listed publicly, `hidden` is not
        promo_badge: Optional marketing label shown on the product card
    """

    id: int = Field(..., description="Product ID")
    merchant_id: int = Field(..., description="Owning merchant")
    name: str
    description: Optional[str] = None
    price: int = Field(..., ge=0)
    stock: int = 0
    product_type: Optional[str] = None
    category: str
    promo_badge: Optional[str] = None
    images: Optional[List[str]] = None
    status: str = "active"
    created_at: datetime
    updated_at: Optional[datetime] = None

    @property
    def is_visible(self) -> bool:
        return self.status == "active"


class ProductCreate(DomainModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: int = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    product_type: Optional[str] = None
    category: str
    promo_badge: Optional[str] = None
    images: Optional[List[str]] = None
    status: str = "active"


class ProductUpdate(DomainModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    product_type: Optional[str] = None
    category: Optional[str] = None
    promo_badge: Optional[str] = None
    images: Optional[List[str]] = None
    status: Optional[str] = None


class ProductOptionChoice(DomainModel):
    id: int
    option_id: int
    label: str
    sort_order: int = 0


class ProductOption(DomainModel):
    """A customisation field shown when ordering a product"""

    id: int
    product_id: int
    type: str = Field(..., description="multiple_choice | text | toggle")
    title: str
    placeholder: Optional[str] = None
    required: bool = False
    sort_order: int = 0
    choices: Optional[List[ProductOptionChoice]] = None


class ProductOptionChoiceInput(DomainModel):
    label: Optional[str] = None


class ProductOptionInput(DomainModel):
    """One option as submitted by the merchant dashboard (all fields loose)"""
    type: Optional[str] = None
    title: Optional[str] = None
    placeholder: Optional[str] = None
    required: bool = False
    choices: Optional[List[ProductOptionChoiceInput]] = None
