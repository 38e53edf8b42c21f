"""
Direct Conversation Domain Models

A direct conversation is a chat between one customer and one store that is
not tied to an order. The conversation row keeps a preview of the latest
message and an unread counter per side.
"""
from pydantic import Field
from typing import Optional
from datetime import datetime

from app.domain.base import DomainModel


PARTICIPANT_TYPES = ["merchant", "customer"]


def unread_field(reader_type: str) -> str:
    """Column holding the unread counter of `reader_type`"""
    if reader_type not in PARTICIPANT_TYPES:
        raise ValueError(f"Unknown participant type: {reader_type}")
    return f"unread_count_{reader_type}"


def other_party(sender_type: str) -> str:
    return "customer" if sender_type == "merchant" else "merchant"


class DirectConversation(DomainModel):
    """
    Direct conversation between a customer and a store

    Fields:
        last_message: Text of the latest message, for list previews
        unread_count_merchant: Messages the merchant has not read yet
        unread_count_customer: Messages the customer has not read yet
    """

    id: int
    merchant_id: int
    customer_id: int
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    unread_count_merchant: int = Field(0, ge=0)
    unread_count_customer: int = Field(0, ge=0)
    created_at: datetime
    updated_at: Optional[datetime] = None


class DirectMessage(DomainModel):
    id: int
    conversation_id: int
    sender_id: int
    sender_type: str = Field(..., description="merchant | customer")
    message: str
    image_url: Optional[str] = None
    created_at: datetime


class DirectConversationOpen(DomainModel):
    """Customer request to start (or reopen) a chat with a store"""
    merchant_id: int
