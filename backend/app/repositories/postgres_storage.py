"""
PostgreSQL Storage - Data Access Layer backed by psycopg2

Every operation opens its own connection (with retry), runs one statement
or one batch inside a single transaction, commits and closes. Rows come back
as dicts (RealDictCursor) and are mapped onto domain models.

Schema: app/repositories/schema.sql
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extras import Json
from pydantic import BaseModel

from app.core.database import get_db_connection_with_retry
from app.core.phone import phone_variants
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

# Columns each model may write; anything else in a payload is ignored
NON_COLUMN_FIELDS = {"id", "created_at", "choices"}


def _adapt(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return Json(value)
    return value


class PostgresStorage(Storage):
    """Storage backed by PostgreSQL"""

    # ===== Connection helpers =====

    def _execute(self, query: str, params: Sequence[Any] = (), fetch: str = "all"):
        """
        Run a single statement in its own transaction

        Args:
            fetch: "one", "all" or "rowcount"
        """
        conn = get_db_connection_with_retry()
        cursor = conn.cursor()

        try:
            cursor.execute(query, tuple(params))
            if fetch == "one":
                result = cursor.fetchone()
            elif fetch == "all":
                result = cursor.fetchall()
            else:
                result = cursor.rowcount
            conn.commit()
            return result

        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Query failed: {e}")
            raise

        finally:
            cursor.close()
            conn.close()

    def _batch(self, statements: List[Tuple[str, Sequence[Any]]]) -> List[Any]:
        """Run several statements in one transaction; returns each RETURNING row"""
        conn = get_db_connection_with_retry()
        cursor = conn.cursor()

        try:
            results = []
            for query, params in statements:
                cursor.execute(query, tuple(params))
                results.append(cursor.fetchone() if cursor.description else cursor.rowcount)
            conn.commit()
            return results

        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Batch failed after partial execution, rolled back: {e}")
            raise

        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def _map_row(model_cls: Type[M], row: Optional[dict]) -> Optional[M]:
        if row is None:
            return None
        return model_cls.model_validate(dict(row))

    def _fetch_one(self, model_cls: Type[M], query: str, params: Sequence[Any] = ()) -> Optional[M]:
        return self._map_row(model_cls, self._execute(query, params, fetch="one"))

    def _fetch_all(self, model_cls: Type[M], query: str, params: Sequence[Any] = ()) -> List[M]:
        return [self._map_row(model_cls, row) for row in self._execute(query, params, fetch="all")]

    @staticmethod
    def _columns(model_cls: Type[M], data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            k: v for k, v in data.items()
            if k in model_cls.model_fields and k not in NON_COLUMN_FIELDS
        }

    def _insert_statement(self, table: str, model_cls: Type[M], data: Dict[str, Any]) -> Tuple[str, list]:
        values = self._columns(model_cls, data)
        columns = ", ".join(f'"{c}"' for c in values)
        placeholders = ", ".join(["%s"] * len(values))
        query = f'INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING *'
        return query, [_adapt(v) for v in values.values()]

    def _insert(self, table: str, model_cls: Type[M], data: Dict[str, Any]) -> M:
        query, params = self._insert_statement(table, model_cls, data)
        return self._fetch_one(model_cls, query, params)

    def _update(
        self,
        table: str,
        model_cls: Type[M],
        record_id: int,
        data: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[M]:
        values = self._columns(model_cls, data)
        values.pop("updated_at", None)
        assignments = [f'"{c}" = %s' for c in values]
        params = [_adapt(v) for v in values.values()]
        if "updated_at" in model_cls.model_fields:
            assignments.append("updated_at = NOW()")
        if not assignments:
            return self._fetch_one(model_cls, f"SELECT * FROM {table} WHERE id = %s", (record_id,))

        where = "id = %s"
        params.append(record_id)
        for column, value in (expected or {}).items():
            where += f' AND "{column}" = %s'
            params.append(value)

        query = f"UPDATE {table} SET {', '.join(assignments)} WHERE {where} RETURNING *"
        return self._fetch_one(model_cls, query, params)

    def _delete(self, table: str, record_id: int) -> bool:
        return self._execute(f"DELETE FROM {table} WHERE id = %s", (record_id,), fetch="rowcount") > 0

    def _fetch_sorted(
        self,
        model_cls: Type[M],
        table: str,
        where: str,
        params: Sequence[Any],
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[M]:
        """
        Ordered listing with an in-memory fallback

        If the ordered query fails (e.g. statement timeout on a missing
        composite index) the rows are fetched unordered and sorted here.
        """
        direction = "DESC" if descending else "ASC"
        try:
            return self._fetch_all(
                model_cls, f"SELECT * FROM {table} {where} ORDER BY {order_by} {direction}, id {direction}", params
            )
        except psycopg2.Error as e:
            logger.warning(f"Ordered {table} query failed, sorting in memory: {e}")
            rows = self._fetch_all(model_cls, f"SELECT * FROM {table} {where}", params)
            return sorted(
                rows,
                key=lambda row: (getattr(row, order_by) or row.created_at, row.id),
                reverse=descending,
            )

    # ===== Merchants =====

    def get_merchant(self, merchant_id: int) -> Optional[Merchant]:
        return self._fetch_one(Merchant, "SELECT * FROM merchants WHERE id = %s", (merchant_id,))

    def get_merchant_by_email(self, email: str) -> Optional[Merchant]:
        return self._fetch_one(Merchant, "SELECT * FROM merchants WHERE LOWER(email) = LOWER(%s)", (email.strip(),))

    def get_merchant_by_mobile(self, mobile: str) -> Optional[Merchant]:
        return self._fetch_one(
            Merchant,
            "SELECT * FROM merchants WHERE mobile = ANY(%s) ORDER BY id LIMIT 1",
            (phone_variants(mobile),),
        )

    def create_merchant(self, data: Dict[str, Any]) -> Merchant:
        return self._insert("merchants", Merchant, {**data, "status": "pending", "balance": 0})

    def update_merchant(self, merchant_id: int, data: Dict[str, Any]) -> Optional[Merchant]:
        return self._update("merchants", Merchant, merchant_id, data)

    def update_merchant_status(self, merchant_id: int, status: str) -> Optional[Merchant]:
        return self._update("merchants", Merchant, merchant_id, {"status": status})

    def update_merchant_balance(self, merchant_id: int, balance: int) -> Optional[Merchant]:
        return self._update("merchants", Merchant, merchant_id, {"balance": balance})

    def adjust_merchant_balance(self, merchant_id: int, delta: int) -> Optional[Merchant]:
        return self._fetch_one(
            Merchant,
            "UPDATE merchants SET balance = balance + %s, updated_at = NOW() WHERE id = %s RETURNING *",
            (delta, merchant_id),
        )

    def get_all_merchants(self, status: Optional[str] = None) -> List[Merchant]:
        if status:
            return self._fetch_all(
                Merchant, "SELECT * FROM merchants WHERE status = %s ORDER BY created_at DESC", (status,)
            )
        return self._fetch_all(Merchant, "SELECT * FROM merchants ORDER BY created_at DESC")

    # ===== Products =====

    def get_product(self, product_id: int) -> Optional[Product]:
        return self._fetch_one(Product, "SELECT * FROM products WHERE id = %s", (product_id,))

    def get_products_by_merchant(self, merchant_id: int) -> List[Product]:
        return self._fetch_all(
            Product, "SELECT * FROM products WHERE merchant_id = %s ORDER BY created_at DESC", (merchant_id,)
        )

    def create_product(self, data: Dict[str, Any]) -> Product:
        return self._insert("products", Product, data)

    def update_product(self, product_id: int, data: Dict[str, Any]) -> Optional[Product]:
        return self._update("products", Product, product_id, data)

    def delete_product(self, product_id: int) -> bool:
        # options and choices go with the product (ON DELETE CASCADE)
        return self._delete("products", product_id)

    # ===== Customers =====

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self._fetch_one(Customer, "SELECT * FROM customers WHERE id = %s", (customer_id,))

    def get_customer_by_mobile(self, mobile: str) -> Optional[Customer]:
        return self._fetch_one(
            Customer,
            "SELECT * FROM customers WHERE mobile = ANY(%s) ORDER BY id LIMIT 1",
            (phone_variants(mobile),),
        )

    def get_customer_by_email(self, email: str) -> Optional[Customer]:
        return self._fetch_one(Customer, "SELECT * FROM customers WHERE LOWER(email) = LOWER(%s)", (email.strip(),))

    def get_all_customers(self) -> List[Customer]:
        return self._fetch_all(Customer, "SELECT * FROM customers ORDER BY created_at DESC")

    def create_customer(self, data: Dict[str, Any]) -> Customer:
        return self._insert("customers", Customer, data)

    def update_customer(self, customer_id: int, data: Dict[str, Any]) -> Optional[Customer]:
        return self._update("customers", Customer, customer_id, data)

    # ===== Orders =====

    def get_order(self, order_id: int) -> Optional[Order]:
        return self._fetch_one(Order, "SELECT * FROM orders WHERE id = %s", (order_id,))

    def get_order_by_number(self, order_number: str) -> Optional[Order]:
        return self._fetch_one(Order, "SELECT * FROM orders WHERE order_number = %s", (order_number,))

    def get_orders_by_merchant(self, merchant_id: int) -> List[Order]:
        return self._fetch_sorted(Order, "orders", "WHERE merchant_id = %s", (merchant_id,))

    def get_orders_by_customer(self, customer_id: int) -> List[Order]:
        return self._fetch_sorted(Order, "orders", "WHERE customer_id = %s", (customer_id,))

    def get_all_orders(self) -> List[Order]:
        return self._fetch_sorted(Order, "orders", "", ())

    def create_order(self, data: Dict[str, Any]) -> Order:
        return self._insert("orders", Order, data)

    def update_order_status(
        self, order_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Order]:
        expected = {"status": expected_status} if expected_status is not None else None
        return self._update("orders", Order, order_id, {"status": status}, expected=expected)

    def update_order_paid(self, order_id: int, is_paid: bool) -> Optional[Order]:
        return self._update("orders", Order, order_id, {"is_paid": is_paid})

    # ===== Order messages =====

    def get_messages_by_order(self, order_id: int) -> List[OrderMessage]:
        return self._fetch_all(
            OrderMessage, "SELECT * FROM order_messages WHERE order_id = %s ORDER BY created_at ASC, id ASC", (order_id,)
        )

    def create_message(self, data: Dict[str, Any]) -> OrderMessage:
        return self._insert("order_messages", OrderMessage, data)

    # ===== Direct conversations =====

    def get_direct_conversation(self, conversation_id: int) -> Optional[DirectConversation]:
        return self._fetch_one(
            DirectConversation, "SELECT * FROM direct_conversations WHERE id = %s", (conversation_id,)
        )

    def get_direct_conversation_between(self, merchant_id: int, customer_id: int) -> Optional[DirectConversation]:
        return self._fetch_one(
            DirectConversation,
            "SELECT * FROM direct_conversations WHERE merchant_id = %s AND customer_id = %s",
            (merchant_id, customer_id),
        )

    def get_direct_conversations_by_merchant(self, merchant_id: int) -> List[DirectConversation]:
        return self._fetch_sorted(
            DirectConversation, "direct_conversations", "WHERE merchant_id = %s", (merchant_id,), order_by="updated_at"
        )

    def get_direct_conversations_by_customer(self, customer_id: int) -> List[DirectConversation]:
        return self._fetch_sorted(
            DirectConversation, "direct_conversations", "WHERE customer_id = %s", (customer_id,), order_by="updated_at"
        )

    def create_direct_conversation(self, data: Dict[str, Any]) -> DirectConversation:
        return self._insert(
            "direct_conversations", DirectConversation,
            {**data, "unread_count_merchant": 0, "unread_count_customer": 0},
        )

    def get_direct_messages(self, conversation_id: int) -> List[DirectMessage]:
        return self._fetch_sorted(
            DirectMessage, "direct_messages", "WHERE conversation_id = %s", (conversation_id,), descending=False
        )

    def create_direct_message(self, data: Dict[str, Any]) -> DirectMessage:
        counter = unread_field(other_party(data["sender_type"]))
        row, _ = self._batch([
            self._insert_statement("direct_messages", DirectMessage, data),
            (
                f"UPDATE direct_conversations SET last_message = %s, last_message_at = NOW(), updated_at = NOW(), "
                f"{counter} = {counter} + 1 WHERE id = %s",
                (data["message"], data["conversation_id"]),
            ),
        ])
        return self._map_row(DirectMessage, row)

    def mark_direct_conversation_read(self, conversation_id: int, reader_type: str) -> Optional[DirectConversation]:
        counter = unread_field(reader_type)
        return self._fetch_one(
            DirectConversation,
            f"UPDATE direct_conversations SET {counter} = 0 WHERE id = %s RETURNING *",
            (conversation_id,),
        )

    # ===== Reviews =====

    def get_reviews_by_product(self, product_id: int) -> List[Review]:
        return self._fetch_all(
            Review, "SELECT * FROM reviews WHERE product_id = %s ORDER BY created_at DESC", (product_id,)
        )

    def get_reviews_by_merchant(self, merchant_id: int) -> List[Review]:
        return self._fetch_all(
            Review,
            """
            SELECT * FROM reviews
            WHERE merchant_id = %s
               OR product_id IN (SELECT id FROM products WHERE merchant_id = %s)
            ORDER BY created_at DESC
            """,
            (merchant_id, merchant_id),
        )

    def get_review_by_order(self, order_id: int) -> Optional[Review]:
        return self._fetch_one(Review, "SELECT * FROM reviews WHERE order_id = %s LIMIT 1", (order_id,))

    def create_review(self, data: Dict[str, Any]) -> Review:
        return self._insert("reviews", Review, data)

    # ===== Transactions =====

    def get_transaction_by_id(self, transaction_id: int) -> Optional[Transaction]:
        return self._fetch_one(Transaction, "SELECT * FROM transactions WHERE id = %s", (transaction_id,))

    def get_transactions_by_merchant(self, merchant_id: int) -> List[Transaction]:
        return self._fetch_all(
            Transaction, "SELECT * FROM transactions WHERE merchant_id = %s ORDER BY created_at DESC", (merchant_id,)
        )

    def get_all_transactions(self) -> List[Transaction]:
        return self._fetch_all(Transaction, "SELECT * FROM transactions ORDER BY created_at DESC")

    def create_transaction(self, data: Dict[str, Any]) -> Transaction:
        return self._insert("transactions", Transaction, data)

    def update_transaction_status(
        self, transaction_id: int, status: str, expected_status: Optional[str] = None
    ) -> Optional[Transaction]:
        expected = {"status": expected_status} if expected_status is not None else None
        return self._update("transactions", Transaction, transaction_id, {"status": status}, expected=expected)

    def get_pending_withdrawals(self) -> List[Transaction]:
        return self._fetch_all(
            Transaction,
            "SELECT * FROM transactions WHERE type = 'withdrawal' AND status = 'pending' ORDER BY created_at DESC",
        )

    # ===== Admins =====

    def get_admin(self, admin_id: int) -> Optional[Admin]:
        return self._fetch_one(Admin, "SELECT * FROM admins WHERE id = %s", (admin_id,))

    def get_admin_by_email(self, email: str) -> Optional[Admin]:
        return self._fetch_one(Admin, "SELECT * FROM admins WHERE LOWER(email) = LOWER(%s)", (email.strip(),))

    def get_all_admins(self) -> List[Admin]:
        return self._fetch_all(Admin, "SELECT * FROM admins ORDER BY created_at DESC")

    def create_admin(self, data: Dict[str, Any]) -> Admin:
        return self._insert("admins", Admin, data)

    def delete_admin(self, admin_id: int) -> bool:
        return self._delete("admins", admin_id)

    def update_admin_password(self, admin_id: int, password_hash: str) -> Optional[Admin]:
        return self._update("admins", Admin, admin_id, {"password": password_hash})

    # ===== Banners / categories / cities =====

    def _by_sort_order(self, table: str, model_cls: Type[M], active_only: bool = False) -> List[M]:
        where = "WHERE is_active = TRUE" if active_only else ""
        return self._fetch_all(model_cls, f"SELECT * FROM {table} {where} ORDER BY sort_order ASC, id ASC")

    def get_banner(self, banner_id: int) -> Optional[Banner]:
        return self._fetch_one(Banner, "SELECT * FROM banners WHERE id = %s", (banner_id,))

    def get_all_banners(self) -> List[Banner]:
        return self._by_sort_order("banners", Banner)

    def get_active_banners(self) -> List[Banner]:
        return self._by_sort_order("banners", Banner, active_only=True)

    def create_banner(self, data: Dict[str, Any]) -> Banner:
        return self._insert("banners", Banner, data)

    def update_banner(self, banner_id: int, data: Dict[str, Any]) -> Optional[Banner]:
        return self._update("banners", Banner, banner_id, data)

    def delete_banner(self, banner_id: int) -> bool:
        return self._delete("banners", banner_id)

    def get_category(self, category_id: int) -> Optional[Category]:
        return self._fetch_one(Category, "SELECT * FROM categories WHERE id = %s", (category_id,))

    def get_all_categories(self) -> List[Category]:
        return self._by_sort_order("categories", Category)

    def get_active_categories(self) -> List[Category]:
        return self._by_sort_order("categories", Category, active_only=True)

    def create_category(self, data: Dict[str, Any]) -> Category:
        return self._insert("categories", Category, data)

    def update_category(self, category_id: int, data: Dict[str, Any]) -> Optional[Category]:
        return self._update("categories", Category, category_id, data)

    def delete_category(self, category_id: int) -> bool:
        return self._delete("categories", category_id)

    def get_city(self, city_id: int) -> Optional[City]:
        return self._fetch_one(City, "SELECT * FROM cities WHERE id = %s", (city_id,))

    def get_all_cities(self) -> List[City]:
        return self._by_sort_order("cities", City)

    def get_active_cities(self) -> List[City]:
        return self._by_sort_order("cities", City, active_only=True)

    def create_city(self, data: Dict[str, Any]) -> City:
        return self._insert("cities", City, data)

    def update_city(self, city_id: int, data: Dict[str, Any]) -> Optional[City]:
        return self._update("cities", City, city_id, data)

    def delete_city(self, city_id: int) -> bool:
        return self._delete("cities", city_id)

    # ===== App settings =====

    def get_setting(self, key: str) -> Optional[AppSetting]:
        return self._fetch_one(AppSetting, "SELECT * FROM app_settings WHERE key = %s", (key,))

    def get_all_settings(self) -> List[AppSetting]:
        return self._fetch_all(AppSetting, "SELECT * FROM app_settings ORDER BY key ASC")

    def set_setting(self, key: str, value: Optional[str] = None, value_json: Any = None) -> AppSetting:
        return self._fetch_one(
            AppSetting,
            """
            INSERT INTO app_settings (key, value, value_json, updated_at)
            VALUES (%s, %s, %s, NOW())
            ON CONFLICT (key) DO UPDATE
                SET value = EXCLUDED.value,
                    value_json = EXCLUDED.value_json,
                    updated_at = NOW()
            RETURNING *
            """,
            (key, value, _adapt(value_json) if value_json is not None else None),
        )

    # ===== Notifications =====

    def create_notification(self, data: Dict[str, Any]) -> Notification:
        return self._insert("notifications", Notification, data)

    def create_notifications(self, items: List[Dict[str, Any]]) -> List[Notification]:
        if not items:
            return []
        statements = [self._insert_statement("notifications", Notification, item) for item in items]
        return [self._map_row(Notification, row) for row in self._batch(statements)]

    def get_notification(self, notification_id: int) -> Optional[Notification]:
        return self._fetch_one(Notification, "SELECT * FROM notifications WHERE id = %s", (notification_id,))

    @staticmethod
    def _recipient_filter(recipient_type: str, recipient_id: Optional[int], include_broadcast: bool = False):
        if recipient_id is None:
            return "recipient_type = %s", [recipient_type]
        if include_broadcast:
            return "recipient_type = %s AND (recipient_id = %s OR recipient_id IS NULL)", [recipient_type, recipient_id]
        return "recipient_type = %s AND recipient_id = %s", [recipient_type, recipient_id]

    def _notifications(self, where: str, params: list) -> List[Notification]:
        return self._fetch_all(
            Notification,
            f"SELECT * FROM notifications WHERE {where} ORDER BY created_at DESC LIMIT %s",
            params + [NOTIFICATION_LIMIT],
        )

    def _unread(self, where: str, params: list) -> int:
        row = self._execute(
            f"SELECT COUNT(*) AS count FROM notifications WHERE {where} AND is_read = FALSE", params, fetch="one"
        )
        return int(row["count"]) if row else 0

    def get_notifications_for_merchant(self, merchant_id: int) -> List[Notification]:
        return self._notifications(*self._recipient_filter("merchant", merchant_id))

    def get_notifications_for_admin(self, admin_id: Optional[int] = None) -> List[Notification]:
        return self._notifications(*self._recipient_filter("admin", admin_id, include_broadcast=True))

    def get_notifications_for_customer(self, customer_id: int) -> List[Notification]:
        return self._notifications(*self._recipient_filter("customer", customer_id))

    def get_unread_count_for_merchant(self, merchant_id: int) -> int:
        return self._unread(*self._recipient_filter("merchant", merchant_id))

    def get_unread_count_for_admin(self, admin_id: Optional[int] = None) -> int:
        return self._unread(*self._recipient_filter("admin", admin_id, include_broadcast=True))

    def mark_notification_read(self, notification_id: int) -> Optional[Notification]:
        return self._fetch_one(
            Notification,
            "UPDATE notifications SET is_read = TRUE, read_at = NOW() WHERE id = %s RETURNING *",
            (notification_id,),
        )

    def mark_all_notifications_read(self, recipient_type: str, recipient_id: Optional[int] = None) -> int:
        where, params = self._recipient_filter(
            recipient_type, recipient_id, include_broadcast=recipient_type == "admin"
        )
        return self._execute(
            f"UPDATE notifications SET is_read = TRUE, read_at = NOW() WHERE {where} AND is_read = FALSE",
            params,
            fetch="rowcount",
        )

    # ===== Product options =====

    def get_product_option(self, option_id: int) -> Optional[ProductOption]:
        return self._fetch_one(ProductOption, "SELECT * FROM product_options WHERE id = %s", (option_id,))

    def get_product_options(self, product_id: int) -> List[ProductOption]:
        return self._fetch_all(
            ProductOption,
            "SELECT * FROM product_options WHERE product_id = %s ORDER BY sort_order ASC, id ASC",
            (product_id,),
        )

    def get_product_option_choices(self, option_id: int) -> List[ProductOptionChoice]:
        return self._fetch_all(
            ProductOptionChoice,
            "SELECT * FROM product_option_choices WHERE option_id = %s ORDER BY sort_order ASC, id ASC",
            (option_id,),
        )

    def create_product_option(self, data: Dict[str, Any]) -> ProductOption:
        return self._insert("product_options", ProductOption, data)

    def update_product_option(self, option_id: int, data: Dict[str, Any]) -> Optional[ProductOption]:
        return self._update("product_options", ProductOption, option_id, data)

    def delete_product_option(self, option_id: int) -> bool:
        return self._delete("product_options", option_id)

    def create_product_option_choice(self, data: Dict[str, Any]) -> ProductOptionChoice:
        try:
            return self._insert("product_option_choices", ProductOptionChoice, data)
        except pg_errors.ForeignKeyViolation:
            raise ValueError(f"Product option {data.get('option_id')} not found")

    def delete_product_option_choices(self, option_id: int) -> int:
        return self._execute(
            "DELETE FROM product_option_choices WHERE option_id = %s", (option_id,), fetch="rowcount"
        )

    def delete_all_product_options(self, product_id: int) -> int:
        results = self._batch([
            (
                "DELETE FROM product_option_choices WHERE option_id IN "
                "(SELECT id FROM product_options WHERE product_id = %s)",
                (product_id,),
            ),
            ("DELETE FROM product_options WHERE product_id = %s", (product_id,)),
        ])
        return results[-1]

    # ===== Order option selections =====

    def get_order_option_selections(self, order_id: int) -> List[OrderOptionSelection]:
        return self._fetch_all(
            OrderOptionSelection, "SELECT * FROM order_option_selections WHERE order_id = %s ORDER BY id", (order_id,)
        )

    def create_order_option_selection(self, data: Dict[str, Any]) -> OrderOptionSelection:
        return self._insert("order_option_selections", OrderOptionSelection, data)

    # ===== Discount codes =====

    def get_discount_code(self, discount_id: int) -> Optional[DiscountCode]:
        return self._fetch_one(DiscountCode, "SELECT * FROM discount_codes WHERE id = %s", (discount_id,))

    def get_discount_code_by_code(self, code: str) -> Optional[DiscountCode]:
        return self._fetch_one(DiscountCode, "SELECT * FROM discount_codes WHERE code = %s", (code.strip().upper(),))

    def get_all_discount_codes(self) -> List[DiscountCode]:
        return self._fetch_all(DiscountCode, "SELECT * FROM discount_codes ORDER BY created_at DESC")

    def create_discount_code(self, data: Dict[str, Any]) -> DiscountCode:
        return self._insert(
            "discount_codes", DiscountCode,
            {**data, "code": data["code"].strip().upper(), "used_count": 0},
        )

    def update_discount_code(self, discount_id: int, data: Dict[str, Any]) -> Optional[DiscountCode]:
        if data.get("code"):
            data = {**data, "code": data["code"].strip().upper()}
        return self._update("discount_codes", DiscountCode, discount_id, data)

    def delete_discount_code(self, discount_id: int) -> bool:
        return self._delete("discount_codes", discount_id)

    def increment_discount_code_usage(self, discount_id: int) -> Optional[DiscountCode]:
        return self._fetch_one(
            DiscountCode,
            "UPDATE discount_codes SET used_count = used_count + 1 WHERE id = %s RETURNING *",
            (discount_id,),
        )

    # ===== Promotional ads =====

    def get_promotional_ad(self, ad_id: int) -> Optional[PromotionalAd]:
        return self._fetch_one(PromotionalAd, "SELECT * FROM promotional_ads WHERE id = %s", (ad_id,))

    def get_all_promotional_ads(self) -> List[PromotionalAd]:
        return self._fetch_all(PromotionalAd, 'SELECT * FROM promotional_ads ORDER BY "order" ASC, id ASC')

    def create_promotional_ad(self, data: Dict[str, Any]) -> PromotionalAd:
        return self._insert("promotional_ads", PromotionalAd, data)

    def update_promotional_ad(self, ad_id: int, data: Dict[str, Any]) -> Optional[PromotionalAd]:
        return self._update("promotional_ads", PromotionalAd, ad_id, data)

    def delete_promotional_ad(self, ad_id: int) -> bool:
        return self._delete("promotional_ads", ad_id)

    def mark_promotional_ad_sent(self, ad_id: int) -> Optional[PromotionalAd]:
        return self._fetch_one(
            PromotionalAd,
            "UPDATE promotional_ads SET sent_at = NOW(), updated_at = NOW() WHERE id = %s RETURNING *",
            (ad_id,),
        )

    # ===== User profiles =====

    def get_user_profile(self, uid: str) -> Optional[UserProfile]:
        return self._fetch_one(UserProfile, "SELECT * FROM user_profiles WHERE uid = %s", (uid,))

    def upsert_user_profile(self, uid: str, data: Dict[str, Any]) -> UserProfile:
        values = {k: v for k, v in self._columns(UserProfile, data).items() if k not in ("uid", "updated_at")}
        columns = ["uid"] + list(values)
        updates = [f"{c} = EXCLUDED.{c}" for c in values] + ["updated_at = NOW()"]
        query = f"""
            INSERT INTO user_profiles ({", ".join(columns)}, created_at, updated_at)
            VALUES ({", ".join(["%s"] * len(columns))}, NOW(), NOW())
            ON CONFLICT (uid) DO UPDATE SET {", ".join(updates)}
            RETURNING *
        """
        return self._fetch_one(UserProfile, query, [uid] + [_adapt(v) for v in values.values()])

    def get_user_profile_by_customer_id(self, customer_id: int, role: str = "customer") -> Optional[UserProfile]:
        return self._fetch_one(
            UserProfile,
            "SELECT * FROM user_profiles WHERE customer_id = %s AND role = %s LIMIT 1",
            (customer_id, role),
        )

    def get_user_profiles_by_role(self, role: str) -> List[UserProfile]:
        return self._fetch_all(UserProfile, "SELECT * FROM user_profiles WHERE role = %s", (role,))

    def set_push_token(self, uid: str, token: str) -> Optional[UserProfile]:
        return self._fetch_one(
            UserProfile,
            "UPDATE user_profiles SET push_token = %s, updated_at = NOW() WHERE uid = %s RETURNING *",
            (token, uid),
        )
