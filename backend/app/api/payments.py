"""
Tap Payments API Endpoints
"""
import logging
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter

from app.api.errors import service_errors
from app.domain.base import DomainModel
from app.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments/tap", tags=["Payments"])


class ChargeRequest(DomainModel):
    amount: Optional[float] = None
    currency: Optional[str] = None
    customer: Optional[Dict[str, Any]] = None
    order_id: Optional[Union[int, str]] = None
    redirect_url: Optional[str] = None


class VerifyRequest(DomainModel):
    charge_id: Optional[str] = None


@router.post("/charge")
async def create_charge(payload: ChargeRequest):
    """
    Create a hosted-checkout charge for an unpaid order

    The charge is priced from the stored order total. The client opens
    `data.transaction.url` and Tap redirects back to `redirectUrl` with the
    charge id.
    """
    with service_errors("creating Tap charge"):
        return await PaymentService().create_charge(
            payload.amount, payload.currency, payload.customer, payload.order_id, payload.redirect_url
        )


@router.post("/verify")
async def verify_charge(payload: VerifyRequest):
    with service_errors("verifying Tap charge"):
        return await PaymentService().verify_charge(payload.charge_id)
