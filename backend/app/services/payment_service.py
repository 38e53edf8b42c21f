"""
Payment Service
Tap hosted checkout for customer orders

Charges are always priced from the stored order: the client names the order,
never the amount. A captured charge only marks its order paid when the
captured amount and currency match the order total.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from app.connectors.tap_connector import CAPTURED, TapConnector, is_charge_id
from app.core.config import settings
from app.domain.order import Order
from app.repositories import Storage, get_storage
from app.services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def charge_amount(order: Order) -> float:
    """Order total in riyals (totals are stored in halalas)"""
    return order.total_amount / 100


def _same_amount(captured: Any, order: Order) -> bool:
    try:
        return Decimal(str(captured)) * 100 == Decimal(order.total_amount)
    except (InvalidOperation, TypeError):
        return False


class PaymentService:

    def __init__(self, storage: Optional[Storage] = None, tap: Optional[TapConnector] = None):
        self.storage = storage or get_storage()
        self.tap = tap or TapConnector()

    def _order_from_reference(self, reference: Any) -> Optional[Order]:
        if reference is None:
            return None
        reference = str(reference)
        if reference.isdigit():
            return self.storage.get_order(int(reference))
        return self.storage.get_order_by_number(reference)

    async def create_charge(
        self,
        amount: Any,
        currency: Optional[str],
        customer: Optional[Dict[str, Any]],
        order_id: Any,
        redirect_url: Optional[str],
    ) -> Dict[str, Any]:
        """
        Open a hosted-checkout charge for an unpaid order

        `amount` and `currency` are optional; when sent they must agree with
        the order total and PAYMENT_CURRENCY.

        Raises:
            ValidationError: missing fields, or amount/currency mismatch
            NotFoundError: unknown order
            ConflictError: order already paid
        """
        if not customer or not order_id or not redirect_url:
            raise ValidationError("بيانات الدفع غير مكتملة")

        order = self._order_from_reference(order_id)
        if not order:
            raise NotFoundError("لم يتم العثور على الطلب")
        if order.is_paid:
            raise ConflictError("تم دفع هذا الطلب مسبقاً")

        if amount is not None and not _same_amount(amount, order):
            raise ValidationError("مبلغ الدفع لا يطابق قيمة الطلب")
        if currency and currency.upper() != settings.PAYMENT_CURRENCY:
            raise ValidationError("عملة الدفع غير مدعومة")

        result = await self.tap.create_charge(
            charge_amount(order), settings.PAYMENT_CURRENCY, customer, str(order.id), redirect_url
        )
        return result.model_dump()

    async def verify_charge(self, charge_id: Optional[str]) -> Dict[str, Any]:
        """
        Read a charge back from Tap; a CAPTURED charge for the full order
        total marks its order paid
        """
        if not charge_id:
            raise ValidationError("معرف عملية الدفع مطلوب")
        if not is_charge_id(charge_id):
            raise ValidationError("معرف عملية الدفع غير صالح")

        result = await self.tap.verify_charge(charge_id)
        response = result.model_dump()
        response["orderPaid"] = False

        if not (result.success and result.status == CAPTURED and isinstance(result.data, dict)):
            return response

        charge = result.data
        reference = (charge.get("reference") or {}).get("order") or (charge.get("metadata") or {}).get("order_id")
        order = self._order_from_reference(reference)
        if not order:
            logger.warning(f"Captured charge {charge_id} references unknown order {reference}")
            return response

        currency = str(charge.get("currency") or "").upper()
        if currency != settings.PAYMENT_CURRENCY or not _same_amount(charge.get("amount"), order):
            logger.warning(
                f"Charge {charge_id} captured {charge.get('amount')} {currency} "
                f"but order {order.id} totals {charge_amount(order)} {settings.PAYMENT_CURRENCY}"
            )
            response["message"] = "مبلغ الدفع لا يطابق قيمة الطلب"
            return response

        if not order.is_paid:
            self.storage.update_order_paid(order.id, True)
            logger.info(f"Order {order.id} marked paid (charge {charge_id})")
        response["orderPaid"] = True
        return response
