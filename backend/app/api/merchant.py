"""
Merchant API Endpoints
Everything the merchant dashboard does for the signed-in store: profile,
products and options, orders and chat, direct chat with customers, reviews,
wallet and notifications.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from app.api.errors import service_errors
from app.core.auth import TokenUser, require_merchant
from app.domain.base import DomainModel
from app.domain.merchant import MerchantProfileUpdate
from app.domain.order import MessageCreate, OrderStatusUpdate
from app.domain.product import PRODUCT_STATUSES, Product, ProductCreate, ProductOptionInput, ProductUpdate
from app.domain.wallet import WithdrawalRequest
from app.repositories import Storage, get_storage
from app.services.direct_message_service import DirectMessageService
from app.services.errors import NotFoundError, ValidationError
from app.services.order_service import OrderService
from app.services.product_options_service import ProductOptionsService
from app.services.upload_service import UploadService
from app.services.wallet_service import WalletService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/merchant", tags=["Merchant"])


class VisibilityUpdate(DomainModel):
    status: str


def _own_product(storage: Storage, merchant_id: int, product_id: int) -> Product:
    product = storage.get_product(product_id)
    if not product or product.merchant_id != merchant_id:
        raise NotFoundError("لم يتم العثور على المنتج")
    return product


# =============================================================================
# Profile & stats
# =============================================================================

@router.get("/profile")
async def get_profile(user: TokenUser = Depends(require_merchant)):
    with service_errors("fetching merchant profile"):
        merchant = get_storage().get_merchant(user.id)
        if not merchant:
            raise NotFoundError("لم يتم العثور على التاجر")
        return {"status": "success", "data": merchant.to_public_dict()}


@router.patch("/profile")
async def update_profile(payload: MerchantProfileUpdate, user: TokenUser = Depends(require_merchant)):
    with service_errors("updating merchant profile"):
        merchant = get_storage().update_merchant(user.id, payload.changes())
        if not merchant:
            raise NotFoundError("لم يتم العثور على التاجر")
        return {"status": "success", "data": merchant.to_public_dict()}


@router.get("/stats")
async def get_stats(user: TokenUser = Depends(require_merchant)):
    """
    Dashboard summary

    Returns product/order counts, completed sales total, balance and the 5
    most recent orders and transactions.
    """
    with service_errors("fetching merchant stats"):
        return {"status": "success", "data": WalletService().merchant_stats(user.id)}


# =============================================================================
# Products
# =============================================================================

@router.get("/products")
async def list_products(user: TokenUser = Depends(require_merchant)):
    with service_errors("fetching products"):
        products = get_storage().get_products_by_merchant(user.id)
        return {"status": "success", "count": len(products), "data": [p.to_dict() for p in products]}


@router.post("/products")
async def create_product(payload: ProductCreate, user: TokenUser = Depends(require_merchant)):
    with service_errors("creating product"):
        if payload.status not in PRODUCT_STATUSES:
            raise ValidationError("حالة غير صالحة")
        product = get_storage().create_product({**payload.model_dump(), "merchant_id": user.id})
        return {"status": "success", "data": product.to_dict()}


@router.post("/products/upload-images")
async def upload_product_images(
    images: List[UploadFile] = File(...),
    user: TokenUser = Depends(require_merchant),
):
    """Upload up to 5 images (jpeg/png/gif/webp, 5MB each); returns their URLs"""
    with service_errors("uploading product images"):
        urls = await UploadService().save_images(images, folder="products")
        return {"status": "success", "data": {"urls": urls}}


@router.patch("/products/{product_id}")
async def update_product(product_id: int, payload: ProductUpdate, user: TokenUser = Depends(require_merchant)):
    with service_errors("updating product"):
        storage = get_storage()
        _own_product(storage, user.id, product_id)
        changes = payload.changes()
        if "status" in changes and changes["status"] not in PRODUCT_STATUSES:
            raise ValidationError("حالة غير صالحة")
        return {"status": "success", "data": storage.update_product(product_id, changes).to_dict()}


@router.patch("/products/{product_id}/visibility")
async def set_product_visibility(product_id: int, payload: VisibilityUpdate, user: TokenUser = Depends(require_merchant)):
    with service_errors("changing product visibility"):
        if payload.status not in PRODUCT_STATUSES:
            raise ValidationError("حالة غير صالحة")
        storage = get_storage()
        _own_product(storage, user.id, product_id)
        return {"status": "success", "data": storage.update_product(product_id, {"status": payload.status}).to_dict()}


@router.delete("/products/{product_id}")
async def delete_product(product_id: int, user: TokenUser = Depends(require_merchant)):
    with service_errors("deleting product"):
        storage = get_storage()
        _own_product(storage, user.id, product_id)
        storage.delete_product(product_id)
        return {"status": "success", "message": "تم حذف المنتج"}


@router.get("/products/{product_id}/options")
async def get_product_options(product_id: int, user: TokenUser = Depends(require_merchant)):
    with service_errors("fetching product options"):
        _own_product(get_storage(), user.id, product_id)
        options = ProductOptionsService().get_product_options(product_id)
        return {"status": "success", "data": [o.to_dict() for o in options]}


@router.put("/products/{product_id}/options")
async def save_product_options(
    product_id: int,
    options: List[ProductOptionInput],
    user: TokenUser = Depends(require_merchant),
):
    """Replace all options of a product with the submitted list"""
    with service_errors("saving product options"):
        _own_product(get_storage(), user.id, product_id)
        saved = ProductOptionsService().save_product_options(product_id, options)
        return {"status": "success", "data": [o.to_dict() for o in saved]}


# =============================================================================
# Orders & chat
# =============================================================================

@router.get("/orders")
async def list_orders(user: TokenUser = Depends(require_merchant)):
    """Orders with customer and product summaries, newest first"""
    with service_errors("fetching orders"):
        orders = OrderService().merchant_orders(user.id)
        return {"status": "success", "count": len(orders), "data": orders}


@router.patch("/orders/{order_id}/status")
async def update_order_status(order_id: int, payload: OrderStatusUpdate, user: TokenUser = Depends(require_merchant)):
    with service_errors("updating order status"):
        order = await WalletService().update_order_status(user.id, order_id, payload.status)
        return {"status": "success", "data": order.to_dict()}


@router.get("/orders/{order_id}/messages")
async def list_order_messages(order_id: int, user: TokenUser = Depends(require_merchant)):
    with service_errors("fetching order messages"):
        order = OrderService().get_merchant_order(user.id, order_id)
        messages = get_storage().get_messages_by_order(order.id)
        return {"status": "success", "data": [m.to_dict() for m in messages]}


@router.post("/orders/{order_id}/messages")
async def send_order_message(order_id: int, payload: MessageCreate, user: TokenUser = Depends(require_merchant)):
    with service_errors("sending order message"):
        service = OrderService()
        order = service.get_merchant_order(user.id, order_id)
        message = await service.send_message(order, "merchant", user.id, payload)
        return {"status": "success", "data": message.to_dict()}


@router.get("/conversations")
async def list_conversations(user: TokenUser = Depends(require_merchant)):
    with service_errors("fetching conversations"):
        return {"status": "success", "data": OrderService().merchant_conversations(user.id)}


@router.get("/direct-conversations")
async def list_direct_conversations(user: TokenUser = Depends(require_merchant)):
    """Direct chats with customers, most recently active first"""
    with service_errors("fetching direct conversations"):
        return {"status": "success", "data": DirectMessageService().merchant_conversations(user.id)}


@router.get("/direct-conversations/{conversation_id}/messages")
async def list_direct_messages(conversation_id: int, user: TokenUser = Depends(require_merchant)):
    with service_errors("fetching direct messages"):
        service = DirectMessageService()
        conversation = service.get_conversation(conversation_id, "merchant", user.id)
        return {"status": "success", "data": [m.to_dict() for m in service.get_messages(conversation)]}


@router.post("/direct-conversations/{conversation_id}/messages")
async def send_direct_message(conversation_id: int, payload: MessageCreate, user: TokenUser = Depends(require_merchant)):
    with service_errors("sending direct message"):
        service = DirectMessageService()
        conversation = service.get_conversation(conversation_id, "merchant", user.id)
        message = await service.send_message(conversation, "merchant", user.id, payload)
        return {"status": "success", "data": message.to_dict()}


@router.patch("/direct-conversations/{conversation_id}/read")
async def mark_direct_conversation_read(conversation_id: int, user: TokenUser = Depends(require_merchant)):
    with service_errors("marking direct conversation read"):
        service = DirectMessageService()
        conversation = service.get_conversation(conversation_id, "merchant", user.id)
        return {"status": "success", "data": service.mark_read(conversation, "merchant").to_dict()}


@router.get("/reviews")
async def list_reviews(user: TokenUser = Depends(require_merchant)):
    with service_errors("fetching reviews"):
        reviews = get_storage().get_reviews_by_merchant(user.id)
        return {"status": "success", "data": [r.to_dict() for r in reviews]}


# =============================================================================
# Wallet
# =============================================================================

@router.get("/transactions")
async def list_transactions(user: TokenUser = Depends(require_merchant)):
    with service_errors("fetching transactions"):
        transactions = get_storage().get_transactions_by_merchant(user.id)
        return {"status": "success", "data": [t.to_dict() for t in transactions]}


@router.post("/withdraw")
async def request_withdrawal(payload: WithdrawalRequest, user: TokenUser = Depends(require_merchant)):
    with service_errors("requesting withdrawal"):
        transaction = WalletService().request_withdrawal(user.id, payload.amount)
        return {"status": "success", "data": transaction.to_dict()}


# =============================================================================
# Notifications
# =============================================================================

@router.get("/notifications")
async def list_notifications(user: TokenUser = Depends(require_merchant)):
    with service_errors("fetching notifications"):
        notifications = get_storage().get_notifications_for_merchant(user.id)
        return {"status": "success", "data": [n.to_dict() for n in notifications]}


@router.get("/notifications/unread-count")
async def unread_count(user: TokenUser = Depends(require_merchant)):
    with service_errors("counting notifications"):
        return {"status": "success", "data": {"count": get_storage().get_unread_count_for_merchant(user.id)}}


@router.patch("/notifications/read-all")
async def mark_all_read(user: TokenUser = Depends(require_merchant)):
    with service_errors("marking notifications read"):
        marked = get_storage().mark_all_notifications_read("merchant", user.id)
        return {"status": "success", "data": {"marked": marked}}


@router.patch("/notifications/{notification_id}/read")
async def mark_read(notification_id: int, user: TokenUser = Depends(require_merchant)):
    with service_errors("marking notification read"):
        storage = get_storage()
        notification = storage.get_notification(notification_id)
        if not notification or notification.recipient_type != "merchant" or notification.recipient_id != user.id:
            raise NotFoundError("الإشعار غير موجود")
        return {"status": "success", "data": storage.mark_notification_read(notification_id).to_dict()}
