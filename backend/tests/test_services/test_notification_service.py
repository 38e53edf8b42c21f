"""
Unit tests for NotificationService

Push delivery goes through an ExpoPushConnector backed by
httpx.MockTransport, so the requests Expo would receive can be inspected.
"""
import asyncio
import json

import httpx
import pytest

from app.connectors.expo_push_connector import ExpoPushConnector
from app.services.errors import NotFoundError
from app.services.notification_service import NotificationService, order_status_label

TOKEN = "ExponentPushToken[abc123]"


@pytest.fixture
def sent():
    return []


@pytest.fixture
def notifications(storage, sent):
    def handler(request: httpx.Request) -> httpx.Response:
        messages = json.loads(request.content)
        sent.extend(messages)
        return httpx.Response(200, json={"data": [{"status": "ok"} for _ in messages]})

    push = ExpoPushConnector(push_url="https://push.test/send", transport=httpx.MockTransport(handler))
    return NotificationService(storage, push=push)


def test_status_labels():
    assert order_status_label("shipped") == "تم الشحن"
    assert order_status_label("mystery") == "mystery"


def test_notify_admins_writes_one_per_admin(notifications, storage, admin):
    second = storage.create_admin({"email": "b@glorda.com", "password": "x", "name": "ب"})

    created = notifications.notify_admins("عنوان", "نص", type="withdrawal")

    assert {n.recipient_id for n in created} == {admin.id, second.id}


def test_notify_admins_without_admins(notifications):
    assert notifications.notify_admins("عنوان", "نص") == []


@pytest.mark.parametrize("status,expected", [("active", 1), ("rejected", 1), ("suspended", 0)])
def test_merchant_status_notification(notifications, storage, merchant, status, expected):
    notifications.notify_merchant_status(merchant.id, status)
    assert len(storage.get_notifications_for_merchant(merchant.id)) == expected


def test_push_by_customer_id(notifications, storage, customer, sent):
    storage.upsert_user_profile(f"customer_{customer.id}", {
        "role": "customer", "customer_id": customer.id, "push_token": TOKEN,
    })

    count = asyncio.run(notifications.send_push_to_user(customer.id, "مرحبا", "نص"))

    assert count == 1
    assert sent[0]["to"] == TOKEN
    assert sent[0]["sound"] == "default"


def test_push_without_token_sends_nothing(notifications, customer, sent):
    assert asyncio.run(notifications.send_push_to_user(customer.id, "مرحبا", "نص")) == 0
    assert sent == []


def test_order_message_from_customer_pushes_merchant_profile(notifications, storage, merchant, customer, make_order, sent):
    storage.upsert_user_profile(f"merchant_{merchant.id}", {
        "role": "merchant", "customer_id": merchant.id, "push_token": TOKEN,
    })
    order = make_order()

    asyncio.run(notifications.notify_order_message(order, "customer", "مرحبا"))

    assert len(sent) == 1
    assert sent[0]["data"] == {"orderId": order.id, "type": "order_chat"}


def test_promotional_push_reaches_customers_with_tokens(notifications, storage, sent):
    for i, token in enumerate([TOKEN, None, "not-a-token"]):
        storage.upsert_user_profile(f"customer_{i}", {"role": "customer", "customer_id": i, "push_token": token})
    ad = storage.create_promotional_ad({"title": "خصم", "body": "٢٠٪ على الورد"})

    result = asyncio.run(notifications.send_promotional_push(ad.id))

    assert result["sent"] == 1
    assert result["message"] == "تم الإرسال إلى 1 جهاز"
    assert storage.get_promotional_ad(ad.id).sent_at is not None


def test_promotional_push_unknown_ad(notifications):
    with pytest.raises(NotFoundError):
        asyncio.run(notifications.send_promotional_push(999))


def test_direct_message_from_merchant_pushes_customer(notifications, storage, merchant, customer, sent):
    storage.upsert_user_profile(f"customer_{customer.id}", {
        "role": "customer", "customer_id": customer.id, "push_token": TOKEN,
    })
    conversation = storage.create_direct_conversation({"merchant_id": merchant.id, "customer_id": customer.id})

    notification = asyncio.run(notifications.notify_direct_message(conversation, "merchant", "الطلب جاهز"))

    assert sent[0]["data"] == {"conversationId": conversation.id, "type": "chat"}
    assert sent[0]["title"] == "رسالة جديدة"
    assert notification.body == "الطلب جاهز"


def test_direct_message_from_customer_pushes_merchant_profile(notifications, storage, merchant, customer, sent):
    storage.upsert_user_profile(f"merchant_{merchant.id}", {
        "role": "merchant", "customer_id": merchant.id, "push_token": TOKEN,
    })
    conversation = storage.create_direct_conversation({"merchant_id": merchant.id, "customer_id": customer.id})

    assert asyncio.run(notifications.notify_direct_message(conversation, "customer", "مرحبا")) is None
    assert len(sent) == 1
