"""
Order Domain Models

Represents order-related entities: the order itself, the customer/merchant
chat attached to it, the option values chosen at checkout and the review
left after delivery.
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime

from app.domain.base import DomainModel


ORDER_STATUSES = ["pending", "processing", "shipped", "delivered", "completed", "cancelled"]


class Order(DomainModel):
    """
    Order domain model

    Fields:
        order_number: Human-facing unique number (e.g. ORD-1716200000000)
        total_amount: Amount charged after discount, in halalas
        is_paid: Set once the payment gateway captures the charge
    """

    id: int = Field(..., description="Order ID")
    order_number: str
    customer_id: int
    merchant_id: int
    product_id: int
    quantity: int = 1
    total_amount: int = Field(..., ge=0)
    discount_code: Optional[str] = None
    discount_amount: int = 0
    status: str = "pending"
    customer_note: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_method: str
    is_paid: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None


class OrderOptionSelectionInput(DomainModel):
    option_id: int
    choice_id: Optional[int] = None
    text_value: Optional[str] = None


class OrderOptionSelection(OrderOptionSelectionInput):
    id: int
    order_id: int


class OrderCreate(DomainModel):
    """Checkout payload sent by the customer app"""
    product_id: int
    quantity: int = Field(1, ge=1)
    discount_code: Optional[str] = None
    customer_note: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_method: str
    selections: Optional[List[OrderOptionSelectionInput]] = None


class OrderStatusUpdate(DomainModel):
    status: str


class OrderMessage(DomainModel):
    id: int
    order_id: int
    sender_id: int
    sender_type: str = Field(..., description="merchant | customer")
    message: str
    image_url: Optional[str] = None
    created_at: datetime


class MessageCreate(DomainModel):
    message: str = Field(..., min_length=1)
    image_url: Optional[str] = None


class Review(DomainModel):
    id: int
    order_id: int
    customer_id: int
    product_id: int
    merchant_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    created_at: datetime


class ReviewCreate(DomainModel):
    order_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
