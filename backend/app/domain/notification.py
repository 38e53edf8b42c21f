"""
Notification Domain Models
"""
from pydantic import Field
from typing import Optional, Dict, Any
from datetime import datetime

from app.domain.base import DomainModel


RECIPIENT_TYPES = ["merchant", "admin", "customer"]
NOTIFICATION_TYPES = [
    "system", "order", "withdrawal", "verification", "review", "order_status", "message",
    "direct_message",
]


class Notification(DomainModel):
    """
    In-app notification

    `recipient_id` is None for broadcast admin notifications.
    """

    id: int
    recipient_type: str
    recipient_id: Optional[int] = None
    title: str
    body: str
    type: str = "system"
    link: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime


class UnreadCount(DomainModel):
    count: int = Field(0, ge=0)
