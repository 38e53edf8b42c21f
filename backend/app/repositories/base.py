"""
Storage contract

Every storage backend (in-memory document store, PostgreSQL) implements
this interface. Services only ever talk to a `Storage`, obtained through
`app.repositories.get_storage()`.

Conventions:
- `get_*` returns None when the record does not exist
- `create_*` / `update_*` take snake_case dicts and return domain models
- listings are newest first unless stated otherwise
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from app.domain.admin import Admin
from app.domain.catalog import AppSetting, Banner, Category, City, PromotionalAd
from app.domain.conversation import DirectConversation, DirectMessage
from app.domain.customer import Customer, UserProfile
from app.domain.discount import DiscountCode
from app.domain.merchant import Merchant
from app.domain.notification import Notification
from app.domain.order import Order, OrderMessage, OrderOptionSelection, Review
from app.domain.product import Product, ProductOption, ProductOptionChoice
from app.domain.wallet import Transaction

NOTIFICATION_LIMIT = 50


class Storage(ABC):

    # ===== Merchants =====

    @abstractmethod
    def get_merchant(self, merchant_id: int) -> Optional[Merchant]: ...

    @abstractmethod
    def get_merchant_by_email(self, email: str) -> Optional[Merchant]: ...

    @abstractmethod
    def get_merchant_by_mobile(self, mobile: str) -> Optional[Merchant]:
        """Match the local (05...) or international (9665...) spelling"""

    @abstractmethod
    def create_merchant(self, data: Dict[str, Any]) -> Merchant:
        """Create a merchant; status is forced to pending and balance to 0"""

    @abstractmethod
    def update_merchant(self, merchant_id: int, data: Dict[str, Any]) -> Optional[Merchant]: ...

    @abstractmethod
    def update_merchant_status(self, merchant_id: int, status: str) -> Optional[Merchant]: ...

    @abstractmethod
    def update_merchant_balance(self, merchant_id: int, balance: int) -> Optional[Merchant]: ...

    @abstractmethod
    def adjust_merchant_balance(self, merchant_id: int, delta: int) -> Optional[Merchant]:
        """Atomically add `delta` (may be negative) to the balance"""

    @abstractmethod
    def get_all_merchants(self, status: Optional[str] = None) -> List[Merchant]: ...

    # ===== Products =====

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[Product]: ...

    @abstractmethod
    def get_products_by_merchant(self, merchant_id: int) -> List[Product]: ...

    @abstractmethod
    def create_product(self, data: Dict[str, Any]) -> Product: ...

    @abstractmethod
    def update_product(self, product_id: int, data: Dict[str, Any]) -> Optional[Product]: ...

    @abstractmethod
    def delete_product(self, product_id: int) -> bool:
        """Delete a product together with its options and choices"""

    # ===== Customers =====

    @abstractmethod
    def get_customer(self, customer_id: int) -> Optional[Customer]: ...

    @abstractmethod
    def get_customer_by_mobile(self, mobile: str) -> Optional[Customer]: ...

    @abstractmethod
    def get_customer_by_email(self, email: str) -> Optional[Customer]: ...

    @abstractmethod
    def get_all_customers(self) -> List[Customer]: ...

    @abstractmethod
    def create_customer(self, data: Dict[str, Any]) -> Customer: ...

    @abstractmethod
    def update_customer(self, customer_id: int, data: Dict[str, Any]) -> Optional[Customer]: ...

    # ===== Orders =====

    @abstractmethod
    def get_order(self, order_id: int) -> Optional[Order]: ...

    @abstractmethod
    def get_order_by_number(self, order_number: str) -> Optional[Order]: ...

    @abstractmethod
    def get_orders_by_merchant(self, merchant_id: int) -> List[Order]: ...

    @abstractmethod
    def get_orders_by_customer(self, customer_id: int) -> List[Order]: ...

    @abstractmethod
    def get_all_orders(self) -> List[Order]: ...

    @abstractmethod
    def create_order(self, data: Dict[str, Any]) -> Order: ...

    @abstractmethod
    def update_order_status(
        self, order_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Order]:
        """
        Set the order status

        When `expected_status` is given the write only happens if the stored
        status still equals it; otherwise None is returned.
        """

    @abstractmethod
    def update_order_paid(self, order_id: int, is_paid: bool) -> Optional[Order]: ...

    # ===== Order messages =====

    @abstractmethod
    def get_messages_by_order(self, order_id: int) -> List[OrderMessage]:
        """Oldest first"""

    @abstractmethod
    def create_message(self, data: Dict[str, Any]) -> OrderMessage: ...

    # ===== Direct conversations (most recently active first) =====

    @abstractmethod
    def get_direct_conversation(self, conversation_id: int) -> Optional[DirectConversation]: ...

    @abstractmethod
    def get_direct_conversation_between(self, merchant_id: int, customer_id: int) -> Optional[DirectConversation]: ...

    @abstractmethod
    def get_direct_conversations_by_merchant(self, merchant_id: int) -> List[DirectConversation]: ...

    @abstractmethod
    def get_direct_conversations_by_customer(self, customer_id: int) -> List[DirectConversation]: ...

    @abstractmethod
    def create_direct_conversation(self, data: Dict[str, Any]) -> DirectConversation: ...

    @abstractmethod
    def get_direct_messages(self, conversation_id: int) -> List[DirectMessage]:
        """Oldest first"""

    @abstractmethod
    def create_direct_message(self, data: Dict[str, Any]) -> DirectMessage:
        """
        Store a message and, in the same write, copy it onto the conversation
        preview (last_message, last_message_at, updated_at) and add one to the
        recipient's unread counter
        """

    @abstractmethod
    def mark_direct_conversation_read(self, conversation_id: int, reader_type: str) -> Optional[DirectConversation]:
        """Reset the unread counter of `reader_type` (merchant | customer)"""

    # ===== Reviews =====

    @abstractmethod
    def get_reviews_by_product(self, product_id: int) -> List[Review]: ...

    @abstractmethod
    def get_reviews_by_merchant(self, merchant_id: int) -> List[Review]: ...

    @abstractmethod
    def get_review_by_order(self, order_id: int) -> Optional[Review]: ...

    @abstractmethod
    def create_review(self, data: Dict[str, Any]) -> Review: ...

    # ===== Transactions =====

    @abstractmethod
    def get_transaction_by_id(self, transaction_id: int) -> Optional[Transaction]: ...

    @abstractmethod
    def get_transactions_by_merchant(self, merchant_id: int) -> List[Transaction]: ...

    @abstractmethod
    def get_all_transactions(self) -> List[Transaction]: ...

    @abstractmethod
    def create_transaction(self, data: Dict[str, Any]) -> Transaction: ...

    @abstractmethod
    def update_transaction_status(
        self, transaction_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Transaction]:
        """Same compare-and-set semantics as update_order_status"""

    @abstractmethod
    def get_pending_withdrawals(self) -> List[Transaction]: ...

    # ===== Admins =====

    @abstractmethod
    def get_admin(self, admin_id: int) -> Optional[Admin]: ...

    @abstractmethod
    def get_admin_by_email(self, email: str) -> Optional[Admin]: ...

    @abstractmethod
    def get_all_admins(self) -> List[Admin]: ...

    @abstractmethod
    def create_admin(self, data: Dict[str, Any]) -> Admin: ...

    @abstractmethod
    def delete_admin(self, admin_id: int) -> bool: ...

    @abstractmethod
    def update_admin_password(self, admin_id: int, password_hash: str) -> Optional[Admin]: ...

    # ===== Banners / categories / cities (ordered by sort_order) =====

    @abstractmethod
    def get_banner(self, banner_id: int) -> Optional[Banner]: ...

    @abstractmethod
    def get_all_banners(self) -> List[Banner]: ...

    @abstractmethod
    def get_active_banners(self) -> List[Banner]: ...

    @abstractmethod
    def create_banner(self, data: Dict[str, Any]) -> Banner: ...

    @abstractmethod
    def update_banner(self, banner_id: int, data: Dict[str, Any]) -> Optional[Banner]: ...

    @abstractmethod
    def delete_banner(self, banner_id: int) -> bool: ...

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]: ...

    @abstractmethod
    def get_all_categories(self) -> List[Category]: ...

    @abstractmethod
    def get_active_categories(self) -> List[Category]: ...

    @abstractmethod
    def create_category(self, data: Dict[str, Any]) -> Category: ...

    @abstractmethod
    def update_category(self, category_id: int, data: Dict[str, Any]) -> Optional[Category]: ...

    @abstractmethod
    def delete_category(self, category_id: int) -> bool: ...

    @abstractmethod
    def get_city(self, city_id: int) -> Optional[City]: ...

    @abstractmethod
    def get_all_cities(self) -> List[City]: ...

    @abstractmethod
    def get_active_cities(self) -> List[City]: ...

    @abstractmethod
    def create_city(self, data: Dict[str, Any]) -> City: ...

    @abstractmethod
    def update_city(self, city_id: int, data: Dict[str, Any]) -> Optional[City]: ...

    @abstractmethod
    def delete_city(self, city_id: int) -> bool: ...

    # ===== App settings =====

    @abstractmethod
    def get_setting(self, key: str) -> Optional[AppSetting]: ...

    @abstractmethod
    def get_all_settings(self) -> List[AppSetting]: ...

    @abstractmethod
    def set_setting(self, key: str, value: Optional[str] = None, value_json: Any = None) -> AppSetting:
        """Insert or replace the setting stored under `key`"""

    # ===== Notifications (newest first, capped at NOTIFICATION_LIMIT) =====

    @abstractmethod
    def create_notification(self, data: Dict[str, Any]) -> Notification: ...

    @abstractmethod
    def create_notifications(self, items: List[Dict[str, Any]]) -> List[Notification]:
        """Write several notifications as one batch"""

    @abstractmethod
    def get_notification(self, notification_id: int) -> Optional[Notification]: ...

    @abstractmethod
    def get_notifications_for_merchant(self, merchant_id: int) -> List[Notification]: ...

    @abstractmethod
    def get_notifications_for_admin(self, admin_id: Optional[int] = None) -> List[Notification]:
        """Notifications addressed to this admin plus broadcast (no recipient) ones"""

    @abstractmethod
    def get_notifications_for_customer(self, customer_id: int) -> List[Notification]: ...

    @abstractmethod
    def get_unread_count_for_merchant(self, merchant_id: int) -> int: ...

    @abstractmethod
    def get_unread_count_for_admin(self, admin_id: Optional[int] = None) -> int: ...

    @abstractmethod
    def mark_notification_read(self, notification_id: int) -> Optional[Notification]: ...

    @abstractmethod
    def mark_all_notifications_read(self, recipient_type: str, recipient_id: Optional[int] = None) -> int:
        """Mark every unread notification of the recipient as read; returns how many"""

    # ===== Product options =====

    @abstractmethod
    def get_product_option(self, option_id: int) -> Optional[ProductOption]: ...

    @abstractmethod
    def get_product_options(self, product_id: int) -> List[ProductOption]:
        """Ordered by sort_order"""

    @abstractmethod
    def get_product_option_choices(self, option_id: int) -> List[ProductOptionChoice]:
        """Ordered by sort_order"""

    @abstractmethod
    def create_product_option(self, data: Dict[str, Any]) -> ProductOption: ...

    @abstractmethod
    def update_product_option(self, option_id: int, data: Dict[str, Any]) -> Optional[ProductOption]: ...

    @abstractmethod
    def delete_product_option(self, option_id: int) -> bool:
        """Delete an option and its choices"""

    @abstractmethod
    def create_product_option_choice(self, data: Dict[str, Any]) -> ProductOptionChoice:
        """Raises ValueError when the parent option does not exist"""

    @abstractmethod
    def delete_product_option_choices(self, option_id: int) -> int: ...

    @abstractmethod
    def delete_all_product_options(self, product_id: int) -> int:
        """Delete every option (and choice) of a product in one batch"""

    # ===== Order option selections =====

    @abstractmethod
    def get_order_option_selections(self, order_id: int) -> List[OrderOptionSelection]: ...

    @abstractmethod
    def create_order_option_selection(self, data: Dict[str, Any]) -> OrderOptionSelection: ...

    # ===== Discount codes =====

    @abstractmethod
    def get_discount_code(self, discount_id: int) -> Optional[DiscountCode]: ...

    @abstractmethod
    def get_discount_code_by_code(self, code: str) -> Optional[DiscountCode]:
        """Case-insensitive lookup"""

    @abstractmethod
    def get_all_discount_codes(self) -> List[DiscountCode]: ...

    @abstractmethod
    def create_discount_code(self, data: Dict[str, Any]) -> DiscountCode: ...

    @abstractmethod
    def update_discount_code(self, discount_id: int, data: Dict[str, Any]) -> Optional[DiscountCode]: ...

    @abstractmethod
    def delete_discount_code(self, discount_id: int) -> bool: ...

    @abstractmethod
    def increment_discount_code_usage(self, discount_id: int) -> Optional[DiscountCode]: ...

    # ===== Promotional ads (ordered by `order`) =====

    @abstractmethod
    def get_promotional_ad(self, ad_id: int) -> Optional[PromotionalAd]: ...

    @abstractmethod
    def get_all_promotional_ads(self) -> List[PromotionalAd]: ...

    @abstractmethod
    def create_promotional_ad(self, data: Dict[str, Any]) -> PromotionalAd: ...

    @abstractmethod
    def update_promotional_ad(self, ad_id: int, data: Dict[str, Any]) -> Optional[PromotionalAd]: ...

    @abstractmethod
    def delete_promotional_ad(self, ad_id: int) -> bool: ...

    @abstractmethod
    def mark_promotional_ad_sent(self, ad_id: int) -> Optional[PromotionalAd]: ...

    # ===== User profiles =====

    @abstractmethod
    def get_user_profile(self, uid: str) -> Optional[UserProfile]: ...

    @abstractmethod
    def upsert_user_profile(self, uid: str, data: Dict[str, Any]) -> UserProfile:
        """Merge `data` into the profile; created_at is only set on insert"""

    @abstractmethod
    def get_user_profile_by_customer_id(self, customer_id: int, role: str = "customer") -> Optional[UserProfile]: ...

    @abstractmethod
    def get_user_profiles_by_role(self, role: str) -> List[UserProfile]: ...

    @abstractmethod
    def set_push_token(self, uid: str, token: str) -> Optional[UserProfile]: ...
