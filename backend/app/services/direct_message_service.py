"""
Direct Message Service
Customer to store chat outside of any order: conversation lists for both
sides, message history, sending with push, and unread counters.
"""
import logging
from typing import Any, Dict, List, Optional

from app.domain.conversation import DirectConversation, DirectMessage
from app.domain.order import MessageCreate
from app.repositories import Storage, get_storage
from app.services.errors import NotFoundError
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class DirectMessageService:

    def __init__(self, storage: Optional[Storage] = None, notifications: Optional[NotificationService] = None):
        self.storage = storage or get_storage()
        self.notifications = notifications or NotificationService(self.storage)

    # ===== Lookup =====

    def get_conversation(self, conversation_id: int, participant_type: str, participant_id: int) -> DirectConversation:
        """A conversation the caller takes part in; anything else is reported as missing"""
        conversation = self.storage.get_direct_conversation(conversation_id)
        if not conversation or getattr(conversation, f"{participant_type}_id") != participant_id:
            raise NotFoundError("المحادثة غير موجودة")
        return conversation

    @staticmethod
    def _summary(conversation: DirectConversation) -> Dict[str, Any]:
        data = conversation.to_dict()
        data["lastMessage"] = data["lastMessage"] or ""
        data["lastMessageAt"] = data["lastMessageAt"] or data["updatedAt"]
        return data

    def merchant_conversations(self, merchant_id: int) -> List[Dict[str, Any]]:
        """Most recently active first, each with the customer's name"""
        conversations = []
        for conversation in self.storage.get_direct_conversations_by_merchant(merchant_id):
            customer = self.storage.get_customer(conversation.customer_id)
            conversations.append({
                **self._summary(conversation),
                "customerName": customer.name if customer else "",
            })
        return conversations

    def customer_conversations(self, customer_id: int) -> List[Dict[str, Any]]:
        conversations = []
        for conversation in self.storage.get_direct_conversations_by_customer(customer_id):
            merchant = self.storage.get_merchant(conversation.merchant_id)
            conversations.append({
                **self._summary(conversation),
                "storeName": merchant.store_name if merchant else "",
                "storeImage": merchant.store_image if merchant else None,
            })
        return conversations

    # ===== Chat =====

    def open_conversation(self, customer_id: int, merchant_id: int) -> DirectConversation:
        """
        The customer's conversation with a store, created on first contact

        Raises:
            NotFoundError: the store does not exist or is not active
        """
        merchant = self.storage.get_merchant(merchant_id)
        if not merchant or not merchant.is_active:
            raise NotFoundError("المتجر غير موجود")

        existing = self.storage.get_direct_conversation_between(merchant_id, customer_id)
        if existing:
            return existing

        conversation = self.storage.create_direct_conversation({
            "merchant_id": merchant_id,
            "customer_id": customer_id,
        })
        logger.info(f"Direct conversation {conversation.id} opened: customer {customer_id} -> merchant {merchant_id}")
        return conversation

    def get_messages(self, conversation: DirectConversation) -> List[DirectMessage]:
        return self.storage.get_direct_messages(conversation.id)

    async def send_message(
        self, conversation: DirectConversation, sender_type: str, sender_id: int, payload: MessageCreate
    ) -> DirectMessage:
        message = self.storage.create_direct_message({
            "conversation_id": conversation.id,
            "sender_id": sender_id,
            "sender_type": sender_type,
            "message": payload.message,
            "image_url": payload.image_url,
        })
        await self.notifications.notify_direct_message(conversation, sender_type, payload.message)
        return message

    def mark_read(self, conversation: DirectConversation, reader_type: str) -> DirectConversation:
        return self.storage.mark_direct_conversation_read(conversation.id, reader_type)
