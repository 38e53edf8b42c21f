"""
Wallet Service
Merchant balance movements: order sales and withdrawals

Invariant: a merchant balance only changes here, through
- order completion: credited once per paid order (completed from another status)
- withdrawal completion: debited once per withdrawal (pending -> completed)

Both transitions go through a compare-and-set on the stored status, so a
repeated or concurrent request cannot apply the same movement twice.
"""
import logging
from typing import Any, Dict, Optional

from app.domain.order import ORDER_STATUSES, Order
from app.domain.wallet import Transaction
from app.repositories import Storage, get_storage
from app.services.errors import ConflictError, NotFoundError, ServiceError, ValidationError
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

WITHDRAWAL_DECISIONS = ("completed", "rejected")


class WalletService:

    def __init__(self, storage: Optional[Storage] = None, notifications: Optional[NotificationService] = None):
        self.storage = storage or get_storage()
        self.notifications = notifications or NotificationService(self.storage)

    # ===== Orders =====

    async def update_order_status(self, merchant_id: int, order_id: int, status: str) -> Order:
        """
        Change an order's status on behalf of its merchant

        Completing a paid order credits the merchant with total_amount and
        records a `sale` transaction. The customer is notified of every change.
        """
        if status not in ORDER_STATUSES:
            raise ValidationError("حالة غير صالحة")

        order = self.storage.get_order(order_id)
        if not order or order.merchant_id != merchant_id:
            raise NotFoundError("لم يتم العثور على الطلب")

        previous_status = order.status
        updated = self.storage.update_order_status(order.id, status, expected_status=previous_status)
        if updated is None:
            raise ConflictError("تم تحديث الطلب بالفعل، يرجى إعادة المحاولة")

        if status == "completed" and previous_status != "completed" and updated.is_paid:
            self._credit_sale(updated)

        if previous_status != status:
            await self.notifications.notify_order_status(updated)

        return updated

    def _credit_sale(self, order: Order) -> Transaction:
        self.storage.adjust_merchant_balance(order.merchant_id, order.total_amount)
        transaction = self.storage.create_transaction({
            "merchant_id": order.merchant_id,
            "order_id": order.id,
            "type": "sale",
            "amount": order.total_amount,
            "status": "completed",
            "description": f"طلب #{order.order_number}",
        })
        logger.info(f"Credited merchant {order.merchant_id} with {order.total_amount} for order {order.id}")
        return transaction

    # ===== Withdrawals =====

    def available_balance(self, merchant_id: int, balance: int) -> int:
        """Balance minus withdrawals still waiting for an admin decision"""
        reserved = sum(
            abs(t.amount) for t in self.storage.get_transactions_by_merchant(merchant_id)
            if t.is_withdrawal and t.status == "pending"
        )
        return balance - reserved

    def request_withdrawal(self, merchant_id: int, amount: Any) -> Transaction:
        if not isinstance(amount, (int, float)) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("المبلغ غير صالح")
        amount = int(amount)

        merchant = self.storage.get_merchant(merchant_id)
        if not merchant or self.available_balance(merchant_id, merchant.balance) < amount:
            raise ValidationError("الرصيد غير كافي")

        transaction = self.storage.create_transaction({
            "merchant_id": merchant_id,
            "type": "withdrawal",
            "amount": -amount,
            "status": "pending",
            "description": "طلب سحب رصيد",
        })

        self.notifications.notify_admins(
            "طلب سحب جديد",
            f"طلب {merchant.store_name} سحب مبلغ {amount}",
            type="withdrawal",
            link="/admin/withdrawals",
            metadata={"transactionId": transaction.id, "merchantId": merchant_id},
        )
        return transaction

    def process_withdrawal(self, transaction_id: int, status: str) -> Transaction:
        """
        Admin decision on a pending withdrawal

        Raises:
            ValidationError: status is not completed/rejected
            NotFoundError: unknown transaction
            ConflictError: not a withdrawal, already processed, or the
                balance no longer covers it
        """
        if status not in WITHDRAWAL_DECISIONS:
            raise ValidationError("حالة غير صالحة")

        transaction = self.storage.get_transaction_by_id(transaction_id)
        if not transaction:
            raise NotFoundError("لم يتم العثور على المعاملة")
        if not transaction.is_withdrawal:
            raise ConflictError("المعاملة ليست طلب سحب")

        if status == "completed":
            merchant = self.storage.get_merchant(transaction.merchant_id)
            if not merchant or merchant.balance < abs(transaction.amount):
                raise ConflictError("رصيد التاجر لا يغطي مبلغ السحب")

        updated = self.storage.update_transaction_status(transaction.id, status, expected_status="pending")
        if updated is None:
            raise ConflictError("تمت معالجة طلب السحب مسبقاً")

        if status == "completed":
            self.storage.adjust_merchant_balance(updated.merchant_id, -abs(updated.amount))
            title, body = "تم الموافقة على السحب", f"تمت الموافقة على طلب سحب مبلغ {abs(updated.amount)}"
        else:
            title, body = "تم رفض طلب السحب", f"تم رفض طلب سحب مبلغ {abs(updated.amount)}"

        logger.info(f"Withdrawal {updated.id} for merchant {updated.merchant_id} {status}")
        self.notifications.add_notification(
            updated.merchant_id, "merchant", title, body,
            type="withdrawal", metadata={"transactionId": updated.id},
        )
        return updated

    # ===== Stats =====

    def merchant_stats(self, merchant_id: int) -> Dict[str, Any]:
        merchant = self.storage.get_merchant(merchant_id)
        if not merchant:
            raise ServiceError(404, "لم يتم العثور على التاجر")

        products = self.storage.get_products_by_merchant(merchant_id)
        orders = self.storage.get_orders_by_merchant(merchant_id)
        transactions = self.storage.get_transactions_by_merchant(merchant_id)

        total_sales = sum(
            t.amount for t in transactions
            if t.type == "sale" and t.status == "completed"
        )

        return {
            "productsCount": len(products),
            "ordersCount": len(orders),
            "pendingOrders": sum(1 for o in orders if o.status == "pending"),
            "completedOrders": sum(1 for o in orders if o.status == "completed"),
            "totalSales": total_sales,
            "balance": merchant.balance,
            "recentOrders": [o.to_dict() for o in orders[:5]],
            "recentTransactions": [t.to_dict() for t in transactions[:5]],
        }
