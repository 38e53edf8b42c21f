"""
Document Storage - in-memory document store

Records live in named collections keyed by a generated 20-character
document ID. Each record also gets a numeric `id` derived from its document
ID (first 10 characters read as base 36), which is what the API exposes.

A single re-entrant lock guards every collection, so single-document writes,
increments and batches are atomic within the process.
"""
import copy
import logging
import secrets
import string
import threading
from datetime import datetime, timezone
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel

from app.core.phone import generate_numeric_id, phone_variants
from app.domain.admin import Admin
from app.domain.catalog import AppSetting, Banner, Category, City, PromotionalAd
from app.domain.conversation import DirectConversation, DirectMessage, other_party, unread_field
from app.domain.customer import Customer, UserProfile
from app.domain.discount import DiscountCode
from app.domain.merchant import Merchant
from app.domain.notification import Notification
from app.domain.order import Order, OrderMessage, OrderOptionSelection, Review
from app.domain.product import Product, ProductOption, ProductOptionChoice
from app.domain.wallet import Transaction
from app.repositories.base import NOTIFICATION_LIMIT, Storage

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DOC_ID_ALPHABET = string.ascii_letters + string.digits
DOC_ID_LENGTH = 20


def generate_doc_id() -> str:
    """Random 20-character alphanumeric document ID"""
    return "".join(secrets.choice(DOC_ID_ALPHABET) for _ in range(DOC_ID_LENGTH))


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStorage(Storage):
    """Storage backed by in-process dictionaries"""

    def __init__(self):
        self._lock = threading.RLock()
        self._collections: Dict[str, Dict[int, dict]] = {}
        self._seq = count()

    # ===== Generic document helpers =====

    def _collection(self, name: str) -> Dict[int, dict]:
        return self._collections.setdefault(name, {})

    @staticmethod
    def _to_model(model_cls: Type[M], record: Optional[dict]) -> Optional[M]:
        if record is None:
            return None
        return model_cls.model_validate(record)

    @staticmethod
    def _clean(model_cls: Type[M], data: Dict[str, Any]) -> Dict[str, Any]:
        # drop keys the model does not know about and never let callers set the id
        return {
            k: copy.deepcopy(v) for k, v in data.items()
            if k in model_cls.model_fields and k != "id"
        }

    def _insert(self, collection: str, model_cls: Type[M], data: Dict[str, Any]) -> M:
        with self._lock:
            docs = self._collection(collection)
            doc_id = generate_doc_id()
            numeric_id = generate_numeric_id(doc_id)
            while numeric_id in docs:
                doc_id = generate_doc_id()
                numeric_id = generate_numeric_id(doc_id)

            record = self._clean(model_cls, data)
            record["id"] = numeric_id
            if "created_at" in model_cls.model_fields and not record.get("created_at"):
                record["created_at"] = _now()
            if "updated_at" in model_cls.model_fields and not record.get("updated_at"):
                record["updated_at"] = record.get("created_at", _now())

            # validate before storing so a bad payload never lands in the collection
            model = model_cls.model_validate(record)
            record["_doc_id"] = doc_id
            record["_seq"] = next(self._seq)
            docs[numeric_id] = record
            return model

    def _get(self, collection: str, model_cls: Type[M], record_id: int) -> Optional[M]:
        with self._lock:
            return self._to_model(model_cls, self._collection(collection).get(record_id))

    def _find(
        self,
        collection: str,
        model_cls: Type[M],
        predicate: Callable[[dict], bool] = lambda r: True,
        order_by: str = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[M]:
        with self._lock:
            rows = [r for r in self._collection(collection).values() if predicate(r)]
            rows.sort(key=lambda r: (r.get(order_by) is not None, r.get(order_by), r["_seq"]), reverse=descending)
            if limit is not None:
                rows = rows[:limit]
            return [model_cls.model_validate(r) for r in rows]

    def _find_one(self, collection: str, model_cls: Type[M], predicate: Callable[[dict], bool]) -> Optional[M]:
        with self._lock:
            for record in self._collection(collection).values():
                if predicate(record):
                    return model_cls.model_validate(record)
            return None

    def _patch(
        self,
        collection: str,
        model_cls: Type[M],
        record_id: int,
        data: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[M]:
        with self._lock:
            record = self._collection(collection).get(record_id)
            if record is None:
                return None
            if expected and any(record.get(k) != v for k, v in expected.items()):
                return None
            updated = {**record, **self._clean(model_cls, data)}
            if "updated_at" in model_cls.model_fields:
                updated["updated_at"] = _now()
            model = model_cls.model_validate(updated)
            record.clear()
            record.update(updated)
            return model

    def _delete(self, collection: str, record_id: int) -> bool:
        with self._lock:
            return self._collection(collection).pop(record_id, None) is not None

    def _delete_where(self, collection: str, predicate: Callable[[dict], bool]) -> int:
        with self._lock:
            docs = self._collection(collection)
            doomed = [k for k, r in docs.items() if predicate(r)]
            for key in doomed:
                del docs[key]
            return len(doomed)

    # ===== Merchants =====

    def get_merchant(self, merchant_id: int) -> Optional[Merchant]:
        return self._get("merchants", Merchant, merchant_id)

    def get_merchant_by_email(self, email: str) -> Optional[Merchant]:
        email = email.strip().lower()
        return self._find_one("merchants", Merchant, lambda r: (r.get("email") or "").lower() == email)

    def get_merchant_by_mobile(self, mobile: str) -> Optional[Merchant]:
        variants = phone_variants(mobile)
        return self._find_one("merchants", Merchant, lambda r: r.get("mobile") in variants)

    def create_merchant(self, data: Dict[str, Any]) -> Merchant:
        return self._insert("merchants", Merchant, {**data, "status": "pending", "balance": 0})

    def update_merchant(self, merchant_id: int, data: Dict[str, Any]) -> Optional[Merchant]:
        return self._patch("merchants", Merchant, merchant_id, data)

    def update_merchant_status(self, merchant_id: int, status: str) -> Optional[Merchant]:
        return self._patch("merchants", Merchant, merchant_id, {"status": status})

    def update_merchant_balance(self, merchant_id: int, balance: int) -> Optional[Merchant]:
        return self._patch("merchants", Merchant, merchant_id, {"balance": balance})

    def adjust_merchant_balance(self, merchant_id: int, delta: int) -> Optional[Merchant]:
        with self._lock:
            record = self._collection("merchants").get(merchant_id)
            if record is None:
                return None
            return self._patch("merchants", Merchant, merchant_id, {"balance": record.get("balance", 0) + delta})

    def get_all_merchants(self, status: Optional[str] = None) -> List[Merchant]:
        return self._find("merchants", Merchant, lambda r: status is None or r.get("status") == status)

    # ===== Products =====

    def get_product(self, product_id: int) -> Optional[Product]:
        return self._get("products", Product, product_id)

    def get_products_by_merchant(self, merchant_id: int) -> List[Product]:
        return self._find("products", Product, lambda r: r.get("merchant_id") == merchant_id)

    def create_product(self, data: Dict[str, Any]) -> Product:
        return self._insert("products", Product, data)

    def update_product(self, product_id: int, data: Dict[str, Any]) -> Optional[Product]:
        return self._patch("products", Product, product_id, data)

    def delete_product(self, product_id: int) -> bool:
        with self._lock:
            self.delete_all_product_options(product_id)
            return self._delete("products", product_id)

    # ===== Customers =====

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self._get("customers", Customer, customer_id)

    def get_customer_by_mobile(self, mobile: str) -> Optional[Customer]:
        variants = phone_variants(mobile)
        return self._find_one("customers", Customer, lambda r: r.get("mobile") in variants)

    def get_customer_by_email(self, email: str) -> Optional[Customer]:
        email = email.strip().lower()
        return self._find_one("customers", Customer, lambda r: (r.get("email") or "").lower() == email)

    def get_all_customers(self) -> List[Customer]:
        return self._find("customers", Customer)

    def create_customer(self, data: Dict[str, Any]) -> Customer:
        return self._insert("customers", Customer, data)

    def update_customer(self, customer_id: int, data: Dict[str, Any]) -> Optional[Customer]:
        return self._patch("customers", Customer, customer_id, data)

    # ===== Orders =====

    def get_order(self, order_id: int) -> Optional[Order]:
        return self._get("orders", Order, order_id)

    def get_order_by_number(self, order_number: str) -> Optional[Order]:
        return self._find_one("orders", Order, lambda r: r.get("order_number") == order_number)

    def get_orders_by_merchant(self, merchant_id: int) -> List[Order]:
        return self._find("orders", Order, lambda r: r.get("merchant_id") == merchant_id)

    def get_orders_by_customer(self, customer_id: int) -> List[Order]:
        return self._find("orders", Order, lambda r: r.get("customer_id") == customer_id)

    def get_all_orders(self) -> List[Order]:
        return self._find("orders", Order)

    def create_order(self, data: Dict[str, Any]) -> Order:
        return self._insert("orders", Order, data)

    def update_order_status(
        self, order_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Order]:
        expected = {"status": expected_status} if expected_status is not None else None
        return self._patch("orders", Order, order_id, {"status": status}, expected=expected)

    def update_order_paid(self, order_id: int, is_paid: bool) -> Optional[Order]:
        return self._patch("orders", Order, order_id, {"is_paid": is_paid})

    # ===== Order messages =====

    def get_messages_by_order(self, order_id: int) -> List[OrderMessage]:
        return self._find("order_messages", OrderMessage, lambda r: r.get("order_id") == order_id, descending=False)

    def create_message(self, data: Dict[str, Any]) -> OrderMessage:
        return self._insert("order_messages", OrderMessage, data)

    # ===== Direct conversations =====

    def get_direct_conversation(self, conversation_id: int) -> Optional[DirectConversation]:
        return self._get("direct_conversations", DirectConversation, conversation_id)

    def get_direct_conversation_between(self, merchant_id: int, customer_id: int) -> Optional[DirectConversation]:
        return self._find_one(
            "direct_conversations", DirectConversation,
            lambda r: r.get("merchant_id") == merchant_id and r.get("customer_id") == customer_id,
        )

    def get_direct_conversations_by_merchant(self, merchant_id: int) -> List[DirectConversation]:
        return self._find(
            "direct_conversations", DirectConversation,
            lambda r: r.get("merchant_id") == merchant_id, order_by="updated_at",
        )

    def get_direct_conversations_by_customer(self, customer_id: int) -> List[DirectConversation]:
        return self._find(
            "direct_conversations", DirectConversation,
            lambda r: r.get("customer_id") == customer_id, order_by="updated_at",
        )

    def create_direct_conversation(self, data: Dict[str, Any]) -> DirectConversation:
        return self._insert(
            "direct_conversations", DirectConversation,
            {**data, "unread_count_merchant": 0, "unread_count_customer": 0},
        )

    def get_direct_messages(self, conversation_id: int) -> List[DirectMessage]:
        return self._find(
            "direct_messages", DirectMessage, lambda r: r.get("conversation_id") == conversation_id, descending=False
        )

    def create_direct_message(self, data: Dict[str, Any]) -> DirectMessage:
        with self._lock:
            conversation = self._collection("direct_conversations").get(data.get("conversation_id"))
            if conversation is None:
                raise ValueError(f"Direct conversation {data.get('conversation_id')} not found")

            message = self._insert("direct_messages", DirectMessage, data)
            counter = unread_field(other_party(message.sender_type))
            self._patch("direct_conversations", DirectConversation, conversation["id"], {
                "last_message": message.message,
                "last_message_at": message.created_at,
                counter: conversation.get(counter, 0) + 1,
            })
            return message

    def mark_direct_conversation_read(self, conversation_id: int, reader_type: str) -> Optional[DirectConversation]:
        # reading is not activity, so updated_at stays put
        with self._lock:
            record = self._collection("direct_conversations").get(conversation_id)
            if record is None:
                return None
            record[unread_field(reader_type)] = 0
            return DirectConversation.model_validate(record)

    # ===== Reviews =====

    def get_reviews_by_product(self, product_id: int) -> List[Review]:
        return self._find("reviews", Review, lambda r: r.get("product_id") == product_id)

    def get_reviews_by_merchant(self, merchant_id: int) -> List[Review]:
        with self._lock:
            product_ids = {
                r["id"] for r in self._collection("products").values()
                if r.get("merchant_id") == merchant_id
            }
            return self._find(
                "reviews", Review,
                lambda r: r.get("product_id") in product_ids or r.get("merchant_id") == merchant_id,
            )

    def get_review_by_order(self, order_id: int) -> Optional[Review]:
        return self._find_one("reviews", Review, lambda r: r.get("order_id") == order_id)

    def create_review(self, data: Dict[str, Any]) -> Review:
        return self._insert("reviews", Review, data)

    # ===== Transactions =====

    def get_transaction_by_id(self, transaction_id: int) -> Optional[Transaction]:
        return self._get("transactions", Transaction, transaction_id)

    def get_transactions_by_merchant(self, merchant_id: int) -> List[Transaction]:
        return self._find("transactions", Transaction, lambda r: r.get("merchant_id") == merchant_id)

    def get_all_transactions(self) -> List[Transaction]:
        return self._find("transactions", Transaction)

    def create_transaction(self, data: Dict[str, Any]) -> Transaction:
        return self._insert("transactions", Transaction, data)

    def update_transaction_status(
        self, transaction_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Transaction]:
        expected = {"status": expected_status} if expected_status is not None else None
        return self._patch("transactions", Transaction, transaction_id, {"status": status}, expected=expected)

    def get_pending_withdrawals(self) -> List[Transaction]:
        return self._find(
            "transactions", Transaction,
            lambda r: r.get("type") == "withdrawal" and r.get("status") == "pending",
        )

    # ===== Admins =====

    def get_admin(self, admin_id: int) -> Optional[Admin]:
        return self._get("admins", Admin, admin_id)

    def get_admin_by_email(self, email: str) -> Optional[Admin]:
        email = email.strip().lower()
        return self._find_one("admins", Admin, lambda r: (r.get("email") or "").lower() == email)

    def get_all_admins(self) -> List[Admin]:
        return self._find("admins", Admin)

    def create_admin(self, data: Dict[str, Any]) -> Admin:
        return self._insert("admins", Admin, data)

    def delete_admin(self, admin_id: int) -> bool:
        return self._delete("admins", admin_id)

    def update_admin_password(self, admin_id: int, password_hash: str) -> Optional[Admin]:
        return self._patch("admins", Admin, admin_id, {"password": password_hash})

    # ===== Banners / categories / cities =====

    def _sorted(self, collection: str, model_cls, active_only: bool = False):
        return self._find(
            collection, model_cls,
            lambda r: not active_only or r.get("is_active", True),
            order_by="sort_order", descending=False,
        )

    def get_banner(self, banner_id: int) -> Optional[Banner]:
        return self._get("banners", Banner, banner_id)

    def get_all_banners(self) -> List[Banner]:
        return self._sorted("banners", Banner)

    def get_active_banners(self) -> List[Banner]:
        return self._sorted("banners", Banner, active_only=True)

    def create_banner(self, data: Dict[str, Any]) -> Banner:
        return self._insert("banners", Banner, data)

    def update_banner(self, banner_id: int, data: Dict[str, Any]) -> Optional[Banner]:
        return self._patch("banners", Banner, banner_id, data)

    def delete_banner(self, banner_id: int) -> bool:
        return self._delete("banners", banner_id)

    def get_category(self, category_id: int) -> Optional[Category]:
        return self._get("categories", Category, category_id)

    def get_all_categories(self) -> List[Category]:
        return self._sorted("categories", Category)

    def get_active_categories(self) -> List[Category]:
        return self._sorted("categories", Category, active_only=True)

    def create_category(self, data: Dict[str, Any]) -> Category:
        return self._insert("categories", Category, data)

    def update_category(self, category_id: int, data: Dict[str, Any]) -> Optional[Category]:
        return self._patch("categories", Category, category_id, data)

    def delete_category(self, category_id: int) -> bool:
        return self._delete("categories", category_id)

    def get_city(self, city_id: int) -> Optional[City]:
        return self._get("cities", City, city_id)

    def get_all_cities(self) -> List[City]:
        return self._sorted("cities", City)

    def get_active_cities(self) -> List[City]:
        return self._sorted("cities", City, active_only=True)

    def create_city(self, data: Dict[str, Any]) -> City:
        return self._insert("cities", City, data)

    def update_city(self, city_id: int, data: Dict[str, Any]) -> Optional[City]:
        return self._patch("cities", City, city_id, data)

    def delete_city(self, city_id: int) -> bool:
        return self._delete("cities", city_id)

    # ===== App settings =====

    def get_setting(self, key: str) -> Optional[AppSetting]:
        return self._find_one("app_settings", AppSetting, lambda r: r.get("key") == key)

    def get_all_settings(self) -> List[AppSetting]:
        return self._find("app_settings", AppSetting, order_by="key", descending=False)

    def set_setting(self, key: str, value: Optional[str] = None, value_json: Any = None) -> AppSetting:
        with self._lock:
            existing = self.get_setting(key)
            if existing:
                return self._patch("app_settings", AppSetting, existing.id, {"value": value, "value_json": value_json})
            return self._insert("app_settings", AppSetting, {"key": key, "value": value, "value_json": value_json})

    # ===== Notifications =====

    def create_notification(self, data: Dict[str, Any]) -> Notification:
        return self._insert("notifications", Notification, {"is_read": False, **data})

    def create_notifications(self, items: List[Dict[str, Any]]) -> List[Notification]:
        with self._lock:
            return [self.create_notification(item) for item in items]

    def get_notification(self, notification_id: int) -> Optional[Notification]:
        return self._get("notifications", Notification, notification_id)

    def _for_recipient(self, recipient_type: str, recipient_id: Optional[int], include_broadcast: bool = False):
        def predicate(r: dict) -> bool:
            if r.get("recipient_type") != recipient_type:
                return False
            if recipient_id is None:
                return True
            if include_broadcast and r.get("recipient_id") is None:
                return True
            return r.get("recipient_id") == recipient_id
        return predicate

    def get_notifications_for_merchant(self, merchant_id: int) -> List[Notification]:
        return self._find(
            "notifications", Notification,
            self._for_recipient("merchant", merchant_id), limit=NOTIFICATION_LIMIT,
        )

    def get_notifications_for_admin(self, admin_id: Optional[int] = None) -> List[Notification]:
        return self._find(
            "notifications", Notification,
            self._for_recipient("admin", admin_id, include_broadcast=True), limit=NOTIFICATION_LIMIT,
        )

    def get_notifications_for_customer(self, customer_id: int) -> List[Notification]:
        return self._find(
            "notifications", Notification,
            self._for_recipient("customer", customer_id), limit=NOTIFICATION_LIMIT,
        )

    def _unread_count(self, predicate) -> int:
        with self._lock:
            return sum(
                1 for r in self._collection("notifications").values()
                if predicate(r) and not r.get("is_read")
            )

    def get_unread_count_for_merchant(self, merchant_id: int) -> int:
        return self._unread_count(self._for_recipient("merchant", merchant_id))

    def get_unread_count_for_admin(self, admin_id: Optional[int] = None) -> int:
        return self._unread_count(self._for_recipient("admin", admin_id, include_broadcast=True))

    def mark_notification_read(self, notification_id: int) -> Optional[Notification]:
        return self._patch("notifications", Notification, notification_id, {"is_read": True, "read_at": _now()})

    def mark_all_notifications_read(self, recipient_type: str, recipient_id: Optional[int] = None) -> int:
        predicate = self._for_recipient(recipient_type, recipient_id, include_broadcast=recipient_type == "admin")
        with self._lock:
            read_at = _now()
            marked = 0
            for record in self._collection("notifications").values():
                if predicate(record) and not record.get("is_read"):
                    record["is_read"] = True
                    record["read_at"] = read_at
                    marked += 1
            return marked

    # ===== Product options =====

    def get_product_option(self, option_id: int) -> Optional[ProductOption]:
        return self._get("product_options", ProductOption, option_id)

    def get_product_options(self, product_id: int) -> List[ProductOption]:
        return self._find(
            "product_options", ProductOption,
            lambda r: r.get("product_id") == product_id,
            order_by="sort_order", descending=False,
        )

    def get_product_option_choices(self, option_id: int) -> List[ProductOptionChoice]:
        return self._find(
            "product_option_choices", ProductOptionChoice,
            lambda r: r.get("option_id") == option_id,
            order_by="sort_order", descending=False,
        )

    def create_product_option(self, data: Dict[str, Any]) -> ProductOption:
        return self._insert("product_options", ProductOption, {k: v for k, v in data.items() if k != "choices"})

    def update_product_option(self, option_id: int, data: Dict[str, Any]) -> Optional[ProductOption]:
        return self._patch("product_options", ProductOption, option_id, {k: v for k, v in data.items() if k != "choices"})

    def delete_product_option(self, option_id: int) -> bool:
        with self._lock:
            self.delete_product_option_choices(option_id)
            return self._delete("product_options", option_id)

    def create_product_option_choice(self, data: Dict[str, Any]) -> ProductOptionChoice:
        with self._lock:
            if data.get("option_id") not in self._collection("product_options"):
                raise ValueError(f"Product option {data.get('option_id')} not found")
            return self._insert("product_option_choices", ProductOptionChoice, data)

    def delete_product_option_choices(self, option_id: int) -> int:
        return self._delete_where("product_option_choices", lambda r: r.get("option_id") == option_id)

    def delete_all_product_options(self, product_id: int) -> int:
        with self._lock:
            option_ids = {
                k for k, r in self._collection("product_options").items()
                if r.get("product_id") == product_id
            }
            self._delete_where("product_option_choices", lambda r: r.get("option_id") in option_ids)
            return self._delete_where("product_options", lambda r: r.get("product_id") == product_id)

    # ===== Order option selections =====

    def get_order_option_selections(self, order_id: int) -> List[OrderOptionSelection]:
        return self._find(
            "order_option_selections", OrderOptionSelection,
            lambda r: r.get("order_id") == order_id, order_by="id", descending=False,
        )

    def create_order_option_selection(self, data: Dict[str, Any]) -> OrderOptionSelection:
        return self._insert("order_option_selections", OrderOptionSelection, data)

    # ===== Discount codes =====

    def get_discount_code(self, discount_id: int) -> Optional[DiscountCode]:
        return self._get("discount_codes", DiscountCode, discount_id)

    def get_discount_code_by_code(self, code: str) -> Optional[DiscountCode]:
        code = code.strip().upper()
        return self._find_one("discount_codes", DiscountCode, lambda r: r.get("code") == code)

    def get_all_discount_codes(self) -> List[DiscountCode]:
        return self._find("discount_codes", DiscountCode)

    def create_discount_code(self, data: Dict[str, Any]) -> DiscountCode:
        return self._insert(
            "discount_codes", DiscountCode,
            {**data, "code": data["code"].strip().upper(), "used_count": 0},
        )

    def update_discount_code(self, discount_id: int, data: Dict[str, Any]) -> Optional[DiscountCode]:
        if data.get("code"):
            data = {**data, "code": data["code"].strip().upper()}
        return self._patch("discount_codes", DiscountCode, discount_id, data)

    def delete_discount_code(self, discount_id: int) -> bool:
        return self._delete("discount_codes", discount_id)

    def increment_discount_code_usage(self, discount_id: int) -> Optional[DiscountCode]:
        with self._lock:
            record = self._collection("discount_codes").get(discount_id)
            if record is None:
                return None
            return self._patch("discount_codes", DiscountCode, discount_id, {"used_count": record.get("used_count", 0) + 1})

    # ===== Promotional ads =====

    def get_promotional_ad(self, ad_id: int) -> Optional[PromotionalAd]:
        return self._get("promotional_ads", PromotionalAd, ad_id)

    def get_all_promotional_ads(self) -> List[PromotionalAd]:
        return self._find("promotional_ads", PromotionalAd, order_by="order", descending=False)

    def create_promotional_ad(self, data: Dict[str, Any]) -> PromotionalAd:
        return self._insert("promotional_ads", PromotionalAd, data)

    def update_promotional_ad(self, ad_id: int, data: Dict[str, Any]) -> Optional[PromotionalAd]:
        return self._patch("promotional_ads", PromotionalAd, ad_id, data)

    def delete_promotional_ad(self, ad_id: int) -> bool:
        return self._delete("promotional_ads", ad_id)

    def mark_promotional_ad_sent(self, ad_id: int) -> Optional[PromotionalAd]:
        return self._patch("promotional_ads", PromotionalAd, ad_id, {"sent_at": _now()})

    # ===== User profiles (keyed by uid, not numeric id) =====

    def get_user_profile(self, uid: str) -> Optional[UserProfile]:
        with self._lock:
            return self._to_model(UserProfile, self._collections.get("users", {}).get(uid))

    def upsert_user_profile(self, uid: str, data: Dict[str, Any]) -> UserProfile:
        with self._lock:
            profiles = self._collections.setdefault("users", {})
            now = _now()
            merged = {**profiles.get(uid, {"created_at": now}), **self._clean(UserProfile, data)}
            merged["uid"] = uid
            merged["updated_at"] = now
            profile = UserProfile.model_validate(merged)
            profiles[uid] = merged
            return profile

    def get_user_profile_by_customer_id(self, customer_id: int, role: str = "customer") -> Optional[UserProfile]:
        with self._lock:
            for record in self._collections.get("users", {}).values():
                if record.get("customer_id") == customer_id and record.get("role") == role:
                    return UserProfile.model_validate(record)
            return None

    def get_user_profiles_by_role(self, role: str) -> List[UserProfile]:
        with self._lock:
            return [
                UserProfile.model_validate(r)
                for r in self._collections.get("users", {}).values()
                if r.get("role") == role
            ]

    def set_push_token(self, uid: str, token: str) -> Optional[UserProfile]:
        with self._lock:
            if uid not in self._collections.get("users", {}):
                return None
            return self.upsert_user_profile(uid, {"push_token": token})
