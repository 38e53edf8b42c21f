"""
Wallet Domain Models
"""
from pydantic import Field
from typing import Optional
from datetime import datetime

from app.domain.base import DomainModel


TRANSACTION_TYPES = ["sale", "withdrawal"]
TRANSACTION_STATUSES = ["completed", "pending", "rejected"]


class Transaction(DomainModel):
    """
    Merchant wallet movement

    Sales are positive and created `completed`. Withdrawals are negative and
    created `pending` until an admin completes or rejects them.
    """

    id: int
    merchant_id: int
    order_id: Optional[int] = None
    type: str
    amount: int
    status: str = "completed"
    description: str
    created_at: datetime

    @property
    def is_withdrawal(self) -> bool:
        return self.type == "withdrawal"


class WithdrawalRequest(DomainModel):
    amount: int = Field(..., description="Requested amount in halalas")


class WithdrawalStatusUpdate(DomainModel):
    status: str
