"""
Order Service
Checkout, order chat, reviews and the enriched order views the dashboards use
"""
import logging
import secrets
import time
from typing import Any, Dict, List, Optional

from app.domain.order import MessageCreate, Order, OrderCreate, OrderMessage, Review, ReviewCreate
from app.repositories import Storage, get_storage
from app.services.discount_service import DiscountService, compute_discount
from app.services.errors import ConflictError, NotFoundError, ValidationError
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

REVIEWABLE_STATUSES = ("delivered", "completed")


def generate_order_number() -> str:
    return f"ORD-{int(time.time() * 1000)}{secrets.randbelow(100):02d}"


class OrderService:

    def __init__(
        self,
        storage: Optional[Storage] = None,
        notifications: Optional[NotificationService] = None,
        discounts: Optional[DiscountService] = None,
    ):
        self.storage = storage or get_storage()
        self.notifications = notifications or NotificationService(self.storage)
        self.discounts = discounts or DiscountService(self.storage)

    # ===== Lookup =====

    def get_merchant_order(self, merchant_id: int, order_id: int) -> Order:
        order = self.storage.get_order(order_id)
        if not order or order.merchant_id != merchant_id:
            raise NotFoundError("لم يتم العثور على الطلب")
        return order

    def get_customer_order(self, customer_id: int, order_id: int) -> Order:
        order = self.storage.get_order(order_id)
        if not order or order.customer_id != customer_id:
            raise NotFoundError("لم يتم العثور على الطلب")
        return order

    # ===== Checkout =====

    def place_order(self, customer_id: int, payload: OrderCreate) -> Order:
        """
        Create an order for one product

        The total is price * quantity minus any discount. A discount code is
        validated first and its usage counted once the order exists.
        """
        product = self.storage.get_product(payload.product_id)
        if not product or not product.is_visible:
            raise NotFoundError("لم يتم العثور على المنتج")

        merchant = self.storage.get_merchant(product.merchant_id)
        if not merchant or not merchant.is_active:
            raise ValidationError("المتجر غير متاح حالياً")

        subtotal = product.price * payload.quantity
        discount = None
        pricing = {"discountAmount": 0, "total": subtotal}
        if payload.discount_code:
            discount = self.discounts.validate_discount(payload.discount_code, subtotal)
            pricing = compute_discount(discount, subtotal)

        order = self.storage.create_order({
            "order_number": generate_order_number(),
            "customer_id": customer_id,
            "merchant_id": product.merchant_id,
            "product_id": product.id,
            "quantity": payload.quantity,
            "total_amount": pricing["total"],
            "discount_code": discount.code if discount else None,
            "discount_amount": pricing["discountAmount"],
            "status": "pending",
            "customer_note": payload.customer_note,
            "delivery_address": payload.delivery_address,
            "delivery_method": payload.delivery_method,
            "is_paid": False,
        })

        for selection in payload.selections or []:
            self.storage.create_order_option_selection({"order_id": order.id, **selection.model_dump()})

        if discount:
            self.discounts.redeem(discount)

        logger.info(f"Order {order.order_number} placed by customer {customer_id} for merchant {order.merchant_id}")
        self.notifications.add_notification(
            order.merchant_id, "merchant",
            "طلب جديد",
            f"لديك طلب جديد #{order.order_number}",
            type="order", link=f"/orders/{order.id}", metadata={"orderId": order.id},
        )
        return order

    # ===== Enriched views =====

    def _customer_summary(self, customer_id: int, with_city: bool = True) -> Optional[Dict[str, Any]]:
        customer = self.storage.get_customer(customer_id)
        if not customer:
            return None
        summary = {"id": customer.id, "name": customer.name, "mobile": customer.mobile}
        if with_city:
            summary["city"] = customer.city
        return summary

    def order_details(self, order: Order) -> Dict[str, Any]:
        """Order with customer, product and chosen options"""
        product = self.storage.get_product(order.product_id)
        return {
            **order.to_dict(),
            "customer": self._customer_summary(order.customer_id),
            "product": {
                "id": product.id,
                "name": product.name,
                "price": product.price,
                "images": product.images,
            } if product else None,
            "selections": [s.to_dict() for s in self.storage.get_order_option_selections(order.id)],
        }

    def merchant_orders(self, merchant_id: int) -> List[Dict[str, Any]]:
        return [self.order_details(order) for order in self.storage.get_orders_by_merchant(merchant_id)]

    def merchant_conversations(self, merchant_id: int) -> List[Dict[str, Any]]:
        """Every order of the merchant with its message count and last message"""
        conversations = []
        for order in self.storage.get_orders_by_merchant(merchant_id):
            product = self.storage.get_product(order.product_id)
            messages = self.storage.get_messages_by_order(order.id)
            conversations.append({
                **order.to_dict(),
                "customer": self._customer_summary(order.customer_id, with_city=False),
                "product": {"id": product.id, "name": product.name} if product else None,
                "messagesCount": len(messages),
                "lastMessage": messages[-1].to_dict() if messages else None,
            })
        return conversations

    # ===== Chat =====

    async def send_message(self, order: Order, sender_type: str, sender_id: int, payload: MessageCreate) -> OrderMessage:
        message = self.storage.create_message({
            "order_id": order.id,
            "sender_id": sender_id,
            "sender_type": sender_type,
            "message": payload.message,
            "image_url": payload.image_url,
        })
        await self.notifications.notify_order_message(order, sender_type, payload.message)
        return message

    # ===== Reviews =====

    def create_review(self, customer_id: int, payload: ReviewCreate) -> Review:
        order = self.get_customer_order(customer_id, payload.order_id)
        if order.status not in REVIEWABLE_STATUSES:
            raise ValidationError("لا يمكن تقييم الطلب قبل استلامه")
        if self.storage.get_review_by_order(order.id):
            raise ConflictError("تم تقييم هذا الطلب مسبقاً")

        review = self.storage.create_review({
            "order_id": order.id,
            "customer_id": customer_id,
            "product_id": order.product_id,
            "merchant_id": order.merchant_id,
            "rating": payload.rating,
            "comment": payload.comment,
        })
        self.notifications.add_notification(
            order.merchant_id, "merchant",
            "تقييم جديد",
            f"حصل طلب #{order.order_number} على تقييم {payload.rating} من 5",
            type="review", metadata={"orderId": order.id, "reviewId": review.id},
        )
        return review
