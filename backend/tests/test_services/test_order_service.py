"""
Unit tests for OrderService: checkout, chat and reviews
"""
import asyncio

import pytest

from app.domain.order import MessageCreate, OrderCreate, ReviewCreate
from app.services.errors import ConflictError, NotFoundError, ValidationError
from app.services.order_service import OrderService, generate_order_number


@pytest.fixture
def orders(storage):
    return OrderService(storage)


def test_order_numbers_are_prefixed_and_unique():
    numbers = {generate_order_number() for _ in range(50)}
    assert all(n.startswith("ORD-") for n in numbers)
    assert len(numbers) > 1


class TestPlaceOrder:
    """Test checkout"""

    def test_total_is_price_times_quantity(self, orders, storage, customer, product, merchant):
        order = orders.place_order(customer.id, OrderCreate(product_id=product.id, quantity=2, delivery_method="delivery"))

        assert order.total_amount == 30000
        assert order.status == "pending"
        assert order.is_paid is False
        assert [n.title for n in storage.get_notifications_for_merchant(merchant.id)] == ["طلب جديد"]

    def test_discount_applied_and_redeemed(self, orders, storage, customer, product):
        storage.create_discount_code({"code": "half", "type": "percentage", "value": 50})

        order = orders.place_order(customer.id, OrderCreate(
            product_id=product.id, delivery_method="delivery", discount_code="HALF",
        ))

        assert order.discount_amount == 7500
        assert order.total_amount == 7500
        assert storage.get_discount_code_by_code("HALF").used_count == 1

    def test_selections_are_saved(self, orders, storage, customer, product):
        option = storage.create_product_option({"product_id": product.id, "type": "text", "title": "بطاقة"})

        order = orders.place_order(customer.id, OrderCreate.model_validate({
            "productId": product.id,
            "deliveryMethod": "pickup",
            "selections": [{"optionId": option.id, "textValue": "كل عام وأنت بخير"}],
        }))

        selections = storage.get_order_option_selections(order.id)
        assert len(selections) == 1
        assert selections[0].text_value == "كل عام وأنت بخير"

    def test_hidden_product_not_found(self, orders, storage, customer, product):
        storage.update_product(product.id, {"status": "hidden"})
        with pytest.raises(NotFoundError):
            orders.place_order(customer.id, OrderCreate(product_id=product.id, delivery_method="delivery"))

    def test_inactive_merchant_rejected(self, orders, storage, customer, product, merchant):
        storage.update_merchant_status(merchant.id, "suspended")
        with pytest.raises(ValidationError):
            orders.place_order(customer.id, OrderCreate(product_id=product.id, delivery_method="delivery"))


class TestChat:
    """Test order messages"""

    def test_customer_message_notifies_merchant(self, orders, storage, merchant, customer, make_order):
        order = make_order()

        message = asyncio.run(orders.send_message(order, "customer", customer.id, MessageCreate(message="متى التوصيل؟")))

        assert message.sender_type == "customer"
        assert [n.type for n in storage.get_notifications_for_merchant(merchant.id)] == ["message"]
        assert storage.get_notifications_for_customer(customer.id) == []

    def test_merchant_message_notifies_customer(self, orders, storage, merchant, customer, make_order):
        order = make_order()

        asyncio.run(orders.send_message(order, "merchant", merchant.id, MessageCreate(message="غداً")))

        notifications = storage.get_notifications_for_customer(customer.id)
        assert notifications[0].title == "رسالة جديدة من المتجر"

    def test_conversations_carry_last_message(self, orders, storage, merchant, customer, make_order):
        order = make_order()
        asyncio.run(orders.send_message(order, "customer", customer.id, MessageCreate(message="أولى")))
        asyncio.run(orders.send_message(order, "merchant", merchant.id, MessageCreate(message="ثانية")))

        [conversation] = orders.merchant_conversations(merchant.id)

        assert conversation["messagesCount"] == 2
        assert conversation["lastMessage"]["message"] == "ثانية"
        assert conversation["customer"]["name"] == customer.name


class TestReviews:
    """Test one review per delivered order"""

    def test_review_after_delivery(self, orders, storage, merchant, customer, make_order):
        order = make_order(status="delivered")

        review = orders.create_review(customer.id, ReviewCreate(order_id=order.id, rating=5, comment="رائع"))

        assert review.merchant_id == merchant.id
        assert storage.get_reviews_by_merchant(merchant.id)[0].rating == 5

    def test_second_review_conflicts(self, orders, customer, make_order):
        order = make_order(status="completed")
        orders.create_review(customer.id, ReviewCreate(order_id=order.id, rating=4))
        with pytest.raises(ConflictError):
            orders.create_review(customer.id, ReviewCreate(order_id=order.id, rating=3))

    def test_pending_order_cannot_be_reviewed(self, orders, customer, make_order):
        order = make_order(status="pending")
        with pytest.raises(ValidationError):
            orders.create_review(customer.id, ReviewCreate(order_id=order.id, rating=4))

    def test_other_customers_order_not_found(self, orders, customer, make_order):
        order = make_order(status="delivered")
        with pytest.raises(NotFoundError):
            orders.create_review(customer.id + 1, ReviewCreate(order_id=order.id, rating=4))
