"""
Notification Service
In-app notifications plus Expo push delivery

Handles:
- Recording notifications for merchants, admins and customers
- Fan-out to every admin (one batch)
- Push on order status changes, order chat and direct chat messages
- Promotional push campaigns to every customer device
"""
import logging
from typing import Any, Dict, List, Optional, Union

from app.connectors.expo_push_connector import ExpoPushConnector
from app.domain.conversation import DirectConversation
from app.domain.notification import Notification
from app.domain.order import Order
from app.repositories import Storage, get_storage
from app.services.errors import NotFoundError

logger = logging.getLogger(__name__)

ORDER_STATUS_LABELS = {
    "pending": "قيد الانتظار",
    "processing": "قيد التجهيز",
    "shipped": "تم الشحن",
    "delivered": "تم التوصيل",
    "cancelled": "ملغي",
}

PREVIEW_LENGTH = 50

MERCHANT_STATUS_MESSAGES = {
    "active": ("تم تفعيل حسابك", "تمت الموافقة على متجرك ويمكنك الآن البدء في البيع"),
    "rejected": ("تم رفض طلب التسجيل", "نأسف، تم رفض طلب تسجيل متجرك. يرجى التواصل مع الإدارة"),
}


def order_status_label(status: str) -> str:
    return ORDER_STATUS_LABELS.get(status, status)


def message_preview(message: str) -> str:
    if len(message) > PREVIEW_LENGTH:
        return message[:PREVIEW_LENGTH] + "..."
    return message


class NotificationService:

    def __init__(self, storage: Optional[Storage] = None, push: Optional[ExpoPushConnector] = None):
        self.storage = storage or get_storage()
        self.push = push or ExpoPushConnector()

    # ===== In-app notifications =====

    def add_notification(
        self,
        recipient_id: Optional[int],
        recipient_type: str,
        title: str,
        body: str,
        type: str = "system",
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        return self.storage.create_notification({
            "recipient_id": recipient_id,
            "recipient_type": recipient_type,
            "title": title,
            "body": body,
            "type": type,
            "link": link,
            "metadata": metadata,
        })

    def notify_admins(
        self,
        title: str,
        body: str,
        type: str = "system",
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> List[Notification]:
        """One notification per admin, written as a single batch"""
        admins = self.storage.get_all_admins()
        if not admins:
            logger.warning(f"notify_admins: no admins to notify ({title})")
            return []

        return self.storage.create_notifications([
            {
                "recipient_id": admin.id,
                "recipient_type": "admin",
                "title": title,
                "body": body,
                "type": type,
                "link": link,
                "metadata": metadata,
            }
            for admin in admins
        ])

    def notify_merchant_status(self, merchant_id: int, status: str) -> Optional[Notification]:
        """Tell a merchant their account was activated or rejected"""
        message = MERCHANT_STATUS_MESSAGES.get(status)
        if not message:
            return None
        title, body = message
        return self.add_notification(merchant_id, "merchant", title, body, type="verification")

    # ===== Push =====

    def _push_tokens(self, user_id: Union[int, str]) -> List[str]:
        if isinstance(user_id, str) and user_id.startswith(("customer_", "merchant_")):
            profile = self.storage.get_user_profile(user_id)
        else:
            profile = self.storage.get_user_profile_by_customer_id(int(user_id))
        if profile and profile.push_token:
            return [profile.push_token]
        return []

    async def send_push_to_user(
        self,
        user_id: Union[int, str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Push to one user's device

        `user_id` is either a profile uid (customer_12 / merchant_7) or a
        numeric customer id. Never raises: failures are logged and 0 returned.
        """
        try:
            logger.info(f"Sending push to user {user_id}: {title}")
            tokens = self._push_tokens(user_id)
            if not tokens:
                logger.info(f"No push token found for user {user_id}")
                return 0
            return await self.push.send(tokens, title, body, data)
        except Exception as e:
            logger.error(f"Error sending push to user {user_id}: {e}")
            return 0

    async def notify_order_status(self, order: Order) -> Notification:
        """Push and record the customer notification for an order status change"""
        title = "تحديث حالة الطلب"
        body = f"تغيرت حالة طلبك #{order.order_number or order.id} إلى {order_status_label(order.status)}"

        await self.send_push_to_user(order.customer_id, title, body, {"orderId": order.id, "type": "order"})
        return self.add_notification(
            order.customer_id,
            "customer",
            title,
            body,
            type="order_status",
            metadata={"orderId": order.id, "orderNumber": order.order_number},
        )

    async def notify_order_message(self, order: Order, sender_type: str, message: str) -> Optional[Notification]:
        """
        Push a new chat message to the other party of the order

        Customer messages go to the merchant; merchant messages go to the
        customer and are also recorded as a customer notification.
        """
        title = f"رسالة جديدة بخصوص الطلب #{order.order_number}"
        body = message or "رسالة جديدة"
        data = {"orderId": order.id, "type": "order_chat"}

        if sender_type == "customer":
            await self.send_push_to_user(f"merchant_{order.merchant_id}", title, body, data)
            return self.add_notification(
                order.merchant_id, "merchant", title, body,
                type="message", link=f"/orders/{order.id}", metadata={"orderId": order.id},
            )

        await self.send_push_to_user(order.customer_id, title, body, data)
        return self.add_notification(
            order.customer_id, "customer", "رسالة جديدة من المتجر", body,
            type="message", metadata={"orderId": order.id, "orderNumber": order.order_number},
        )

    async def notify_direct_message(
        self, conversation: DirectConversation, sender_type: str, message: str
    ) -> Optional[Notification]:
        """
        Push a direct chat message to the other participant

        Merchant messages are also recorded as a customer notification with
        a shortened preview.
        """
        data = {"conversationId": conversation.id, "type": "chat"}
        body = message or "لقد تلقيت رسالة جديدة"

        if sender_type == "customer":
            await self.send_push_to_user(f"merchant_{conversation.merchant_id}", "رسالة جديدة", body, data)
            return None

        await self.send_push_to_user(conversation.customer_id, "رسالة جديدة", body, data)
        return self.add_notification(
            conversation.customer_id, "customer", "رسالة جديدة من المتجر", message_preview(message),
            type="direct_message", link=f"/messages?conversationId={conversation.id}",
            metadata={"conversationId": conversation.id},
        )

    async def send_promotional_push(self, ad_id: int) -> Dict[str, Any]:
        """Push an ad to every customer with a token and stamp sent_at"""
        ad = self.storage.get_promotional_ad(ad_id)
        if not ad:
            raise NotFoundError("الإعلان غير موجود")

        tokens = [
            profile.push_token
            for profile in self.storage.get_user_profiles_by_role("customer")
            if profile.push_token
        ]
        sent = 0
        if tokens:
            sent = await self.push.send(tokens, ad.title or "غلوردا", ad.body or "", {"adId": ad.id})

        self.storage.mark_promotional_ad_sent(ad.id)
        logger.info(f"Promotional ad {ad.id} sent to {sent} devices")
        return {"success": True, "message": f"تم الإرسال إلى {sent} جهاز", "sent": sent}
