"""
Discount Code Service
Admin management of discount codes and checkout-time validation

Discount maths (amounts in halalas):
- percentage:    order_amount * value // 100
- fixed:         min(value, order_amount)
- free_shipping: no discount on the amount, free_shipping flag set
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.domain.discount import DISCOUNT_TYPES, DiscountCode
from app.repositories import Storage, get_storage
from app.services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_discount(discount: DiscountCode, order_amount: int) -> Dict[str, Any]:
    if discount.type == "percentage":
        amount_off = order_amount * discount.value // 100
    elif discount.type == "fixed":
        amount_off = min(discount.value, order_amount)
    else:
        amount_off = 0

    return {
        "code": discount.code,
        "discountAmount": amount_off,
        "total": order_amount - amount_off,
        "freeShipping": discount.type == "free_shipping",
    }


class DiscountService:

    def __init__(self, storage: Optional[Storage] = None):
        self.storage = storage or get_storage()

    # ===== Admin management =====

    @staticmethod
    def _validate_fields(code: Optional[str], type: Optional[str], value: Optional[int]):
        if not code or not code.strip():
            raise ValidationError("اسم الكود مطلوب")
        if type not in DISCOUNT_TYPES:
            raise ValidationError("نوع الخصم غير صالح")
        if type != "free_shipping" and (value is None or value <= 0):
            raise ValidationError("قيمة الخصم يجب أن تكون أكبر من صفر")
        if type == "percentage" and value > 100:
            raise ValidationError("نسبة الخصم لا يمكن أن تتجاوز 100%")

    def list_codes(self) -> List[DiscountCode]:
        return self.storage.get_all_discount_codes()

    def create_code(self, data: Dict[str, Any]) -> DiscountCode:
        self._validate_fields(data.get("code"), data.get("type"), data.get("value"))
        if self.storage.get_discount_code_by_code(data["code"]):
            raise ConflictError("كود الخصم موجود بالفعل")
        if data.get("type") == "free_shipping":
            data = {**data, "value": 0}
        return self.storage.create_discount_code(data)

    def update_code(self, discount_id: int, changes: Dict[str, Any]) -> DiscountCode:
        existing = self.storage.get_discount_code(discount_id)
        if not existing:
            raise NotFoundError("كود الخصم غير موجود")

        merged = {**existing.model_dump(), **changes}
        self._validate_fields(merged.get("code"), merged.get("type"), merged.get("value"))

        if changes.get("code"):
            clash = self.storage.get_discount_code_by_code(changes["code"])
            if clash and clash.id != discount_id:
                raise ConflictError("كود الخصم موجود بالفعل")

        return self.storage.update_discount_code(discount_id, changes)

    def delete_code(self, discount_id: int) -> None:
        if not self.storage.delete_discount_code(discount_id):
            raise NotFoundError("كود الخصم غير موجود")

    # ===== Checkout =====

    def validate_discount(self, code: str, order_amount: int, now: Optional[datetime] = None) -> DiscountCode:
        """
        Return the usable discount code or raise ValidationError with the reason

        Rejects codes that are unknown, inactive, expired, used up, or below
        their minimum order amount.
        """
        now = _aware(now or datetime.now(timezone.utc))

        discount = self.storage.get_discount_code_by_code(code or "")
        if not discount:
            raise ValidationError("كود الخصم غير صحيح")
        if not discount.is_active:
            raise ValidationError("كود الخصم غير مفعل")
        if discount.expires_at and _aware(discount.expires_at) < now:
            raise ValidationError("انتهت صلاحية كود الخصم")
        if discount.max_uses is not None and discount.used_count >= discount.max_uses:
            raise ValidationError("تم استنفاد عدد مرات استخدام كود الخصم")
        if discount.min_order_amount and order_amount < discount.min_order_amount:
            raise ValidationError(f"الحد الأدنى للطلب لاستخدام هذا الكود هو {discount.min_order_amount}")
        return discount

    def apply_discount(self, code: str, order_amount: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Validate a code and compute the discounted total (does not consume the code)"""
        discount = self.validate_discount(code, order_amount, now)
        return compute_discount(discount, order_amount)

    def redeem(self, discount: DiscountCode) -> Optional[DiscountCode]:
        """Count one use of a code after an order was placed with it"""
        logger.info(f"Discount code {discount.code} redeemed")
        return self.storage.increment_discount_code_usage(discount.id)
