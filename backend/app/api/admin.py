"""
Admin API Endpoints

Back-office operations for the admin dashboard:
- Merchant approval and account status
- Read-only views of customers, orders and transactions
- Withdrawal processing
- Admin accounts and password change
- App content: banners, categories, cities, settings
- Discount codes and promotional push campaigns
- Admin notifications
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.errors import service_errors
from app.core.auth import TokenUser, hash_password, require_admin
from app.domain.admin import AdminCreate, PasswordChange
from app.domain.base import DomainModel
from app.domain.catalog import (
    AppSettingUpsert,
    BannerCreate,
    BannerUpdate,
    CategoryCreate,
    CategoryUpdate,
    CityCreate,
    CityUpdate,
    PromotionalAdCreate,
    PromotionalAdUpdate,
)
from app.domain.discount import DiscountCodeCreate, DiscountCodeUpdate
from app.domain.merchant import MERCHANT_STATUSES
from app.domain.wallet import WithdrawalStatusUpdate
from app.repositories import get_storage
from app.services.auth_service import AuthService
from app.services.discount_service import DiscountService
from app.services.errors import NotFoundError, ValidationError
from app.services.notification_service import NotificationService
from app.services.wallet_service import WalletService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


class MerchantStatusUpdate(DomainModel):
    status: str


def _found(record, message: str):
    if not record:
        raise NotFoundError(message)
    return record


# =============================================================================
# Merchants, customers, orders
# =============================================================================

@router.get("/merchants")
async def list_merchants(
    status: Optional[str] = Query(None, description="pending, active, suspended, review or rejected"),
    admin: TokenUser = Depends(require_admin),
):
    with service_errors("fetching merchants"):
        merchants = get_storage().get_all_merchants(status)
        return {"status": "success", "count": len(merchants), "data": [m.to_public_dict() for m in merchants]}


@router.patch("/merchants/{merchant_id}/status")
async def update_merchant_status(
    merchant_id: int,
    payload: MerchantStatusUpdate,
    admin: TokenUser = Depends(require_admin),
):
    """
    Approve, suspend or reject a store

    Activation and rejection also leave a verification notification for the
    merchant.
    """
    with service_errors("updating merchant status"):
        if payload.status not in MERCHANT_STATUSES:
            raise ValidationError("حالة غير صالحة")
        merchant = _found(
            get_storage().update_merchant_status(merchant_id, payload.status),
            "لم يتم العثور على التاجر",
        )
        NotificationService().notify_merchant_status(merchant.id, payload.status)
        logger.info(f"Admin {admin.id} set merchant {merchant.id} status to {payload.status}")
        return {"status": "success", "data": merchant.to_public_dict()}


@router.get("/customers")
async def list_customers(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching customers"):
        customers = get_storage().get_all_customers()
        return {"status": "success", "count": len(customers), "data": [c.to_dict() for c in customers]}


@router.get("/orders")
async def list_orders(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching orders"):
        orders = get_storage().get_all_orders()
        return {"status": "success", "count": len(orders), "data": [o.to_dict() for o in orders]}


# =============================================================================
# Wallet
# =============================================================================

@router.get("/withdrawals")
async def list_withdrawals(admin: TokenUser = Depends(require_admin)):
    """Pending withdrawal requests with the requesting store"""
    with service_errors("fetching withdrawals"):
        storage = get_storage()
        data = []
        for transaction in storage.get_pending_withdrawals():
            merchant = storage.get_merchant(transaction.merchant_id)
            data.append({
                **transaction.to_dict(),
                "merchant": {
                    "id": merchant.id,
                    "storeName": merchant.store_name,
                    "balance": merchant.balance,
                } if merchant else None,
            })
        return {"status": "success", "data": data}


@router.patch("/withdrawals/{transaction_id}")
async def process_withdrawal(
    transaction_id: int,
    payload: WithdrawalStatusUpdate,
    admin: TokenUser = Depends(require_admin),
):
    with service_errors("processing withdrawal"):
        transaction = WalletService().process_withdrawal(transaction_id, payload.status)
        return {"status": "success", "data": transaction.to_dict()}


@router.get("/transactions")
async def list_transactions(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching transactions"):
        transactions = get_storage().get_all_transactions()
        return {"status": "success", "data": [t.to_dict() for t in transactions]}


# =============================================================================
# Admin accounts
# =============================================================================

@router.get("/admins")
async def list_admins(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching admins"):
        return {"status": "success", "data": [a.to_public_dict() for a in get_storage().get_all_admins()]}


@router.post("/admins")
async def create_admin(payload: AdminCreate, admin: TokenUser = Depends(require_admin)):
    with service_errors("creating admin"):
        storage = get_storage()
        if storage.get_admin_by_email(payload.email):
            raise ValidationError("البريد الإلكتروني مستخدم بالفعل")
        created = storage.create_admin({
            "email": payload.email,
            "password": hash_password(payload.password),
            "name": payload.name,
        })
        logger.info(f"Admin {admin.id} created admin {created.id}")
        return {"status": "success", "data": created.to_public_dict()}


@router.delete("/admins/{admin_id}")
async def delete_admin(admin_id: int, admin: TokenUser = Depends(require_admin)):
    with service_errors("deleting admin"):
        if admin_id == admin.id:
            raise ValidationError("لا يمكنك حذف حسابك")
        _found(get_storage().delete_admin(admin_id), "المسؤول غير موجود")
        return {"status": "success", "message": "تم حذف المسؤول"}


@router.post("/password")
async def change_password(payload: PasswordChange, admin: TokenUser = Depends(require_admin)):
    with service_errors("changing admin password"):
        AuthService().change_admin_password(admin.id, payload.current_password, payload.new_password)
        return {"status": "success", "message": "تم تغيير كلمة المرور بنجاح"}


# =============================================================================
# Banners
# =============================================================================

@router.get("/banners")
async def list_banners(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching banners"):
        return {"status": "success", "data": [b.to_dict() for b in get_storage().get_all_banners()]}


@router.post("/banners")
async def create_banner(payload: BannerCreate, admin: TokenUser = Depends(require_admin)):
    with service_errors("creating banner"):
        return {"status": "success", "data": get_storage().create_banner(payload.model_dump()).to_dict()}


@router.patch("/banners/{banner_id}")
async def update_banner(banner_id: int, payload: BannerUpdate, admin: TokenUser = Depends(require_admin)):
    with service_errors("updating banner"):
        banner = _found(get_storage().update_banner(banner_id, payload.changes()), "البانر غير موجود")
        return {"status": "success", "data": banner.to_dict()}


@router.delete("/banners/{banner_id}")
async def delete_banner(banner_id: int, admin: TokenUser = Depends(require_admin)):
    with service_errors("deleting banner"):
        _found(get_storage().delete_banner(banner_id), "البانر غير موجود")
        return {"status": "success", "message": "تم الحذف"}


# =============================================================================
# Categories
# =============================================================================

@router.get("/categories")
async def list_categories(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching categories"):
        return {"status": "success", "data": [c.to_dict() for c in get_storage().get_all_categories()]}


@router.post("/categories")
async def create_category(payload: CategoryCreate, admin: TokenUser = Depends(require_admin)):
    with service_errors("creating category"):
        return {"status": "success", "data": get_storage().create_category(payload.model_dump()).to_dict()}


@router.patch("/categories/{category_id}")
async def update_category(category_id: int, payload: CategoryUpdate, admin: TokenUser = Depends(require_admin)):
    with service_errors("updating category"):
        category = _found(get_storage().update_category(category_id, payload.changes()), "التصنيف غير موجود")
        return {"status": "success", "data": category.to_dict()}


@router.delete("/categories/{category_id}")
async def delete_category(category_id: int, admin: TokenUser = Depends(require_admin)):
    with service_errors("deleting category"):
        _found(get_storage().delete_category(category_id), "التصنيف غير موجود")
        return {"status": "success", "message": "تم الحذف"}


# =============================================================================
# Cities
# =============================================================================

@router.get("/cities")
async def list_cities(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching cities"):
        return {"status": "success", "data": [c.to_dict() for c in get_storage().get_all_cities()]}


@router.post("/cities")
async def create_city(payload: CityCreate, admin: TokenUser = Depends(require_admin)):
    with service_errors("creating city"):
        return {"status": "success", "data": get_storage().create_city(payload.model_dump()).to_dict()}


@router.patch("/cities/{city_id}")
async def update_city(city_id: int, payload: CityUpdate, admin: TokenUser = Depends(require_admin)):
    with service_errors("updating city"):
        city = _found(get_storage().update_city(city_id, payload.changes()), "المدينة غير موجودة")
        return {"status": "success", "data": city.to_dict()}


@router.delete("/cities/{city_id}")
async def delete_city(city_id: int, admin: TokenUser = Depends(require_admin)):
    with service_errors("deleting city"):
        _found(get_storage().delete_city(city_id), "المدينة غير موجودة")
        return {"status": "success", "message": "تم الحذف"}


# =============================================================================
# Settings
# =============================================================================

@router.get("/settings")
async def list_settings(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching settings"):
        return {"status": "success", "data": [s.to_dict() for s in get_storage().get_all_settings()]}


@router.post("/settings")
async def upsert_setting(payload: AppSettingUpsert, admin: TokenUser = Depends(require_admin)):
    with service_errors("saving setting"):
        setting = get_storage().set_setting(payload.key, payload.value, payload.value_json)
        return {"status": "success", "data": setting.to_dict()}


# =============================================================================
# Discount codes
# =============================================================================

@router.get("/discount-codes")
async def list_discount_codes(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching discount codes"):
        return {"status": "success", "data": [d.to_dict() for d in DiscountService().list_codes()]}


@router.post("/discount-codes")
async def create_discount_code(payload: DiscountCodeCreate, admin: TokenUser = Depends(require_admin)):
    with service_errors("creating discount code"):
        discount = DiscountService().create_code(payload.model_dump())
        return {"status": "success", "data": discount.to_dict()}


@router.patch("/discount-codes/{discount_id}")
async def update_discount_code(discount_id: int, payload: DiscountCodeUpdate, admin: TokenUser = Depends(require_admin)):
    with service_errors("updating discount code"):
        discount = DiscountService().update_code(discount_id, payload.changes())
        return {"status": "success", "data": discount.to_dict()}


@router.delete("/discount-codes/{discount_id}")
async def delete_discount_code(discount_id: int, admin: TokenUser = Depends(require_admin)):
    with service_errors("deleting discount code"):
        DiscountService().delete_code(discount_id)
        return {"status": "success", "message": "تم الحذف"}


# =============================================================================
# Promotional ads
# =============================================================================

@router.get("/promotional-ads")
async def list_promotional_ads(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching promotional ads"):
        return {"status": "success", "data": [a.to_dict() for a in get_storage().get_all_promotional_ads()]}


@router.post("/promotional-ads")
async def create_promotional_ad(payload: PromotionalAdCreate, admin: TokenUser = Depends(require_admin)):
    with service_errors("creating promotional ad"):
        return {"status": "success", "data": get_storage().create_promotional_ad(payload.model_dump()).to_dict()}


@router.patch("/promotional-ads/{ad_id}")
async def update_promotional_ad(ad_id: int, payload: PromotionalAdUpdate, admin: TokenUser = Depends(require_admin)):
    with service_errors("updating promotional ad"):
        ad = _found(get_storage().update_promotional_ad(ad_id, payload.changes()), "الإعلان غير موجود")
        return {"status": "success", "data": ad.to_dict()}


@router.delete("/promotional-ads/{ad_id}")
async def delete_promotional_ad(ad_id: int, admin: TokenUser = Depends(require_admin)):
    with service_errors("deleting promotional ad"):
        _found(get_storage().delete_promotional_ad(ad_id), "الإعلان غير موجود")
        return {"status": "success", "message": "تم الحذف"}


@router.post("/promotional-ads/{ad_id}/send")
async def send_promotional_ad(ad_id: int, admin: TokenUser = Depends(require_admin)):
    """Push the campaign to every customer device with a registered token"""
    with service_errors("sending promotional ad"):
        return await NotificationService().send_promotional_push(ad_id)


# =============================================================================
# Notifications
# =============================================================================

@router.get("/notifications")
async def list_notifications(admin: TokenUser = Depends(require_admin)):
    with service_errors("fetching notifications"):
        notifications = get_storage().get_notifications_for_admin(admin.id)
        return {"status": "success", "data": [n.to_dict() for n in notifications]}


@router.get("/notifications/unread-count")
async def unread_count(admin: TokenUser = Depends(require_admin)):
    with service_errors("counting notifications"):
        return {"status": "success", "data": {"count": get_storage().get_unread_count_for_admin(admin.id)}}


@router.patch("/notifications/read-all")
async def mark_all_read(admin: TokenUser = Depends(require_admin)):
    with service_errors("marking notifications read"):
        marked = get_storage().mark_all_notifications_read("admin", admin.id)
        return {"status": "success", "data": {"marked": marked}}


@router.patch("/notifications/{notification_id}/read")
async def mark_read(notification_id: int, admin: TokenUser = Depends(require_admin)):
    with service_errors("marking notification read"):
        storage = get_storage()
        notification = storage.get_notification(notification_id)
        if not notification or notification.recipient_type != "admin" \
                or notification.recipient_id not in (None, admin.id):
            raise NotFoundError("الإشعار غير موجود")
        return {"status": "success", "data": storage.mark_notification_read(notification_id).to_dict()}
