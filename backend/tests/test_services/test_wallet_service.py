"""
Unit tests for WalletService

Balance changes must happen exactly once: completing a paid order credits
the merchant once, and a withdrawal is debited once when approved.
"""
import asyncio

import pytest

from app.services.errors import ConflictError, NotFoundError, ValidationError
from app.services.wallet_service import WalletService


@pytest.fixture
def wallet(storage):
    return WalletService(storage)


class TestOrderStatus:
    """Test order status changes and sale credits"""

    def test_completing_paid_order_credits_once(self, wallet, storage, merchant, make_order):
        order = make_order(status="delivered", is_paid=True, total_amount=15000)

        asyncio.run(wallet.update_order_status(merchant.id, order.id, "completed"))
        asyncio.run(wallet.update_order_status(merchant.id, order.id, "completed"))

        assert storage.get_merchant(merchant.id).balance == 15000
        sales = [t for t in storage.get_transactions_by_merchant(merchant.id) if t.type == "sale"]
        assert len(sales) == 1
        assert sales[0].order_id == order.id

    def test_completing_unpaid_order_does_not_credit(self, wallet, storage, merchant, make_order):
        order = make_order(status="delivered", is_paid=False)

        updated = asyncio.run(wallet.update_order_status(merchant.id, order.id, "completed"))

        assert updated.status == "completed"
        assert storage.get_merchant(merchant.id).balance == 0

    def test_status_change_notifies_customer(self, wallet, storage, merchant, customer, make_order):
        order = make_order()

        asyncio.run(wallet.update_order_status(merchant.id, order.id, "shipped"))

        notifications = storage.get_notifications_for_customer(customer.id)
        assert len(notifications) == 1
        assert notifications[0].type == "order_status"
        assert "تم الشحن" in notifications[0].body

    def test_invalid_status_rejected(self, wallet, merchant, make_order):
        order = make_order()
        with pytest.raises(ValidationError):
            asyncio.run(wallet.update_order_status(merchant.id, order.id, "teleported"))

    def test_other_merchants_order_is_not_found(self, wallet, merchant, make_order):
        order = make_order()
        with pytest.raises(NotFoundError):
            asyncio.run(wallet.update_order_status(merchant.id + 1, order.id, "processing"))

    def test_concurrent_change_is_a_conflict(self, wallet, storage, merchant, make_order):
        order = make_order()
        real_get = storage.get_order

        def stale_get(order_id):
            current = real_get(order_id)
            # another request moves the order on between read and write
            storage.update_order_status(order_id, "processing")
            return current

        storage.get_order = stale_get
        with pytest.raises(ConflictError):
            asyncio.run(wallet.update_order_status(merchant.id, order.id, "completed"))


class TestWithdrawals:
    """Test withdrawal requests and admin processing"""

    def test_request_requires_positive_amount(self, wallet, merchant):
        for amount in (0, -5, "100", True):
            with pytest.raises(ValidationError):
                wallet.request_withdrawal(merchant.id, amount)

    def test_request_requires_sufficient_balance(self, wallet, merchant):
        with pytest.raises(ValidationError) as exc:
            wallet.request_withdrawal(merchant.id, 100)
        assert exc.value.message == "الرصيد غير كافي"

    def test_request_creates_pending_negative_transaction(self, wallet, storage, merchant, admin):
        storage.adjust_merchant_balance(merchant.id, 1000)

        transaction = wallet.request_withdrawal(merchant.id, 400)

        assert transaction.amount == -400
        assert transaction.status == "pending"
        assert storage.get_merchant(merchant.id).balance == 1000
        assert [n.type for n in storage.get_notifications_for_admin(admin.id)] == ["withdrawal"]

    def test_pending_requests_reserve_the_balance(self, wallet, storage, merchant):
        storage.adjust_merchant_balance(merchant.id, 10000)
        wallet.request_withdrawal(merchant.id, 10000)

        with pytest.raises(ValidationError):
            wallet.request_withdrawal(merchant.id, 10000)
        assert wallet.available_balance(merchant.id, 10000) == 0

    def test_rejected_request_frees_the_balance(self, wallet, storage, merchant):
        storage.adjust_merchant_balance(merchant.id, 1000)
        first = wallet.request_withdrawal(merchant.id, 1000)
        wallet.process_withdrawal(first.id, "rejected")

        assert wallet.request_withdrawal(merchant.id, 1000).status == "pending"

    def test_completion_never_overdraws(self, wallet, storage, merchant):
        storage.adjust_merchant_balance(merchant.id, 10000)
        requests = [
            storage.create_transaction({
                "merchant_id": merchant.id, "type": "withdrawal", "amount": -10000,
                "status": "pending", "description": "طلب سحب رصيد",
            })
            for _ in range(2)
        ]

        wallet.process_withdrawal(requests[0].id, "completed")
        with pytest.raises(ConflictError):
            wallet.process_withdrawal(requests[1].id, "completed")

        assert storage.get_merchant(merchant.id).balance == 0
        assert storage.get_transaction_by_id(requests[1].id).status == "pending"

    def test_completing_debits_once(self, wallet, storage, merchant):
        storage.adjust_merchant_balance(merchant.id, 1000)
        transaction = wallet.request_withdrawal(merchant.id, 400)

        wallet.process_withdrawal(transaction.id, "completed")
        with pytest.raises(ConflictError):
            wallet.process_withdrawal(transaction.id, "completed")

        assert storage.get_merchant(merchant.id).balance == 600

    def test_rejection_never_touches_balance(self, wallet, storage, merchant):
        storage.adjust_merchant_balance(merchant.id, 1000)
        transaction = wallet.request_withdrawal(merchant.id, 400)

        wallet.process_withdrawal(transaction.id, "rejected")

        assert storage.get_merchant(merchant.id).balance == 1000
        assert storage.get_transaction_by_id(transaction.id).status == "rejected"

    def test_process_rejects_bad_status_and_unknown_id(self, wallet):
        with pytest.raises(ValidationError):
            wallet.process_withdrawal(1, "pending")
        with pytest.raises(NotFoundError):
            wallet.process_withdrawal(123456, "completed")

    def test_sale_cannot_be_processed_as_withdrawal(self, wallet, storage, merchant):
        sale = storage.create_transaction({
            "merchant_id": merchant.id, "type": "sale", "amount": 100,
            "status": "completed", "description": "طلب",
        })
        with pytest.raises(ConflictError):
            wallet.process_withdrawal(sale.id, "completed")


def test_merchant_stats(wallet, storage, merchant, product, make_order):
    make_order(status="pending")
    storage.create_transaction({
        "merchant_id": merchant.id, "type": "sale", "amount": 2500,
        "status": "completed", "description": "طلب",
    })

    stats = wallet.merchant_stats(merchant.id)

    assert stats["productsCount"] == 1
    assert stats["ordersCount"] == 1
    assert stats["pendingOrders"] == 1
    assert stats["totalSales"] == 2500
    assert len(stats["recentOrders"]) == 1
