"""
Account identity checks

An email belongs to at most one account, merchant or customer. Callers pass
the id of the account being edited so it does not conflict with itself.
"""
from typing import Optional

from app.repositories import Storage
from app.services.errors import ConflictError

EMAIL_TAKEN = "البريد الإلكتروني مسجل بالفعل"


def ensure_email_available(
    storage: Storage,
    email: Optional[str],
    merchant_id: Optional[int] = None,
    customer_id: Optional[int] = None,
) -> None:
    if not email:
        return

    merchant = storage.get_merchant_by_email(email)
    if merchant and merchant.id != merchant_id:
        raise ConflictError(EMAIL_TAKEN)

    customer = storage.get_customer_by_email(email)
    if customer and customer.id != customer_id:
        raise ConflictError(EMAIL_TAKEN)
