"""
Customer API Endpoints
Mobile app: profile, device push token, orders and order chat, direct chat
with stores, reviews
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.errors import service_errors
from app.core.auth import TokenUser, get_current_user, require_customer
from app.domain.conversation import DirectConversationOpen
from app.domain.customer import CustomerUpdate, PushTokenUpdate
from app.domain.order import MessageCreate, OrderCreate, ReviewCreate
from app.repositories import get_storage
from app.services.direct_message_service import DirectMessageService
from app.services.errors import NotFoundError
from app.services.identity import ensure_email_available
from app.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customer", tags=["Customer"])


# =============================================================================
# Profile
# =============================================================================

@router.get("/profile")
async def get_profile(user: TokenUser = Depends(require_customer)):
    with service_errors("fetching customer profile"):
        customer = get_storage().get_customer(user.id)
        if not customer:
            raise NotFoundError("لم يتم العثور على العميل")
        return {"status": "success", "data": customer.to_dict()}


@router.patch("/profile")
async def update_profile(payload: CustomerUpdate, user: TokenUser = Depends(require_customer)):
    with service_errors("updating customer profile"):
        storage = get_storage()
        changes = payload.changes()
        ensure_email_available(storage, changes.get("email"), customer_id=user.id)
        customer = storage.update_customer(user.id, changes)
        if not customer:
            raise NotFoundError("لم يتم العثور على العميل")
        return {"status": "success", "data": customer.to_dict()}


@router.post("/push-token")
async def register_push_token(payload: PushTokenUpdate, user: TokenUser = Depends(get_current_user)):
    """
    Store the Expo push token of the signed-in device

    Merchants signing in through the mobile app use this too; their profile
    lives under `merchant_<id>`.
    """
    if user.role not in ("customer", "merchant"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="غير مصرح")
    with service_errors("saving push token"):
        storage = get_storage()
        profile = storage.set_push_token(user.uid, payload.token)
        if not profile:
            profile = storage.upsert_user_profile(user.uid, {
                "role": user.role,
                "customer_id": user.id,
                "mobile": user.phone,
                "email": user.email,
                "push_token": payload.token,
            })
        return {"status": "success", "data": {"uid": profile.uid}}


# =============================================================================
# Orders
# =============================================================================

@router.get("/orders")
async def list_orders(user: TokenUser = Depends(require_customer)):
    with service_errors("fetching customer orders"):
        service = OrderService()
        orders = [service.order_details(o) for o in service.storage.get_orders_by_customer(user.id)]
        return {"status": "success", "count": len(orders), "data": orders}


@router.post("/orders")
async def place_order(payload: OrderCreate, user: TokenUser = Depends(require_customer)):
    with service_errors("placing order"):
        order = OrderService().place_order(user.id, payload)
        return {"status": "success", "data": order.to_dict()}


@router.get("/orders/{order_id}")
async def get_order(order_id: int, user: TokenUser = Depends(require_customer)):
    with service_errors("fetching order"):
        service = OrderService()
        order = service.get_customer_order(user.id, order_id)
        return {"status": "success", "data": service.order_details(order)}


@router.get("/orders/{order_id}/messages")
async def list_order_messages(order_id: int, user: TokenUser = Depends(require_customer)):
    with service_errors("fetching order messages"):
        service = OrderService()
        order = service.get_customer_order(user.id, order_id)
        return {"status": "success", "data": [m.to_dict() for m in service.storage.get_messages_by_order(order.id)]}


@router.post("/orders/{order_id}/messages")
async def send_order_message(order_id: int, payload: MessageCreate, user: TokenUser = Depends(require_customer)):
    with service_errors("sending order message"):
        service = OrderService()
        order = service.get_customer_order(user.id, order_id)
        message = await service.send_message(order, "customer", user.id, payload)
        return {"status": "success", "data": message.to_dict()}


@router.post("/reviews")
async def create_review(payload: ReviewCreate, user: TokenUser = Depends(require_customer)):
    """Rate a delivered or completed order; one review per order"""
    with service_errors("creating review"):
        review = OrderService().create_review(user.id, payload)
        return {"status": "success", "data": review.to_dict()}


# =============================================================================
# Direct chat with stores
# =============================================================================

@router.get("/direct-conversations")
async def list_direct_conversations(user: TokenUser = Depends(require_customer)):
    with service_errors("fetching direct conversations"):
        return {"status": "success", "data": DirectMessageService().customer_conversations(user.id)}


@router.post("/direct-conversations")
async def open_direct_conversation(payload: DirectConversationOpen, user: TokenUser = Depends(require_customer)):
    """Start a chat with a store, or return the one already open"""
    with service_errors("opening direct conversation"):
        conversation = DirectMessageService().open_conversation(user.id, payload.merchant_id)
        return {"status": "success", "data": conversation.to_dict()}


@router.get("/direct-conversations/{conversation_id}/messages")
async def list_direct_messages(conversation_id: int, user: TokenUser = Depends(require_customer)):
    with service_errors("fetching direct messages"):
        service = DirectMessageService()
        conversation = service.get_conversation(conversation_id, "customer", user.id)
        return {"status": "success", "data": [m.to_dict() for m in service.get_messages(conversation)]}


@router.post("/direct-conversations/{conversation_id}/messages")
async def send_direct_message(conversation_id: int, payload: MessageCreate, user: TokenUser = Depends(require_customer)):
    with service_errors("sending direct message"):
        service = DirectMessageService()
        conversation = service.get_conversation(conversation_id, "customer", user.id)
        message = await service.send_message(conversation, "customer", user.id, payload)
        return {"status": "success", "data": message.to_dict()}


@router.patch("/direct-conversations/{conversation_id}/read")
async def mark_direct_conversation_read(conversation_id: int, user: TokenUser = Depends(require_customer)):
    with service_errors("marking direct conversation read"):
        service = DirectMessageService()
        conversation = service.get_conversation(conversation_id, "customer", user.id)
        return {"status": "success", "data": service.mark_read(conversation, "customer").to_dict()}


# =============================================================================
# Notifications
# =============================================================================

@router.get("/notifications")
async def list_notifications(user: TokenUser = Depends(require_customer)):
    with service_errors("fetching notifications"):
        notifications = get_storage().get_notifications_for_customer(user.id)
        return {"status": "success", "data": [n.to_dict() for n in notifications]}


@router.patch("/notifications/{notification_id}/read")
async def mark_read(notification_id: int, user: TokenUser = Depends(require_customer)):
    with service_errors("marking notification read"):
        storage = get_storage()
        notification = storage.get_notification(notification_id)
        if not notification or notification.recipient_type != "customer" or notification.recipient_id != user.id:
            raise NotFoundError("الإشعار غير موجود")
        return {"status": "success", "data": storage.mark_notification_read(notification_id).to_dict()}
