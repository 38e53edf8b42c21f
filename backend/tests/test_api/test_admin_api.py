"""
API tests for /api/admin
"""
import pytest


def test_merchant_token_forbidden(client, merchant_headers):
    assert client.get("/api/admin/merchants", headers=merchant_headers).status_code == 403


class TestMerchants:

    def test_filter_by_status(self, client, storage, admin_headers, merchant, sample_merchant_data):
        storage.create_merchant({**sample_merchant_data, "email": "new@example.com"})

        pending = client.get("/api/admin/merchants?status=pending", headers=admin_headers).json()
        everyone = client.get("/api/admin/merchants", headers=admin_headers).json()

        assert pending["count"] == 1
        assert everyone["count"] == 2
        assert all("password" not in m for m in everyone["data"])

    def test_activation_notifies_merchant(self, client, storage, admin_headers, sample_merchant_data):
        pending = storage.create_merchant(sample_merchant_data)

        response = client.patch(
            f"/api/admin/merchants/{pending.id}/status", headers=admin_headers, json={"status": "active"}
        )

        assert response.json()["data"]["status"] == "active"
        [notification] = storage.get_notifications_for_merchant(pending.id)
        assert notification.type == "verification"

    def test_invalid_status(self, client, admin_headers, merchant):
        response = client.patch(
            f"/api/admin/merchants/{merchant.id}/status", headers=admin_headers, json={"status": "banished"}
        )
        assert response.status_code == 400

    def test_unknown_merchant(self, client, admin_headers):
        response = client.patch("/api/admin/merchants/1/status", headers=admin_headers, json={"status": "active"})
        assert response.status_code == 404


class TestWithdrawals:

    def test_list_and_process_once(self, client, storage, admin_headers, merchant):
        storage.adjust_merchant_balance(merchant.id, 1000)
        withdrawal = storage.create_transaction({
            "merchant_id": merchant.id, "type": "withdrawal", "amount": -300,
            "status": "pending", "description": "طلب سحب رصيد",
        })

        listing = client.get("/api/admin/withdrawals", headers=admin_headers).json()["data"]
        assert listing[0]["merchant"]["storeName"] == merchant.store_name

        first = client.patch(f"/api/admin/withdrawals/{withdrawal.id}", headers=admin_headers, json={"status": "completed"})
        second = client.patch(f"/api/admin/withdrawals/{withdrawal.id}", headers=admin_headers, json={"status": "completed"})

        assert first.status_code == 200
        assert second.status_code == 409
        assert storage.get_merchant(merchant.id).balance == 700
        assert client.get("/api/admin/withdrawals", headers=admin_headers).json()["data"] == []


class TestAdmins:

    def test_create_duplicate_and_delete(self, client, storage, admin, admin_headers):
        created = client.post("/api/admin/admins", headers=admin_headers, json={
            "email": "ops@glorda.com", "password": "ops12345", "name": "العمليات",
        })
        assert created.status_code == 200
        assert "password" not in created.json()["data"]

        duplicate = client.post("/api/admin/admins", headers=admin_headers, json={
            "email": "ops@glorda.com", "password": "ops12345", "name": "مكرر",
        })
        assert duplicate.status_code == 400

        new_id = created.json()["data"]["id"]
        assert client.delete(f"/api/admin/admins/{new_id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/admin/admins/{admin.id}", headers=admin_headers).status_code == 400

    def test_change_password(self, client, admin_headers):
        wrong = client.post("/api/admin/password", headers=admin_headers, json={
            "currentPassword": "nope", "newPassword": "newpass1",
        })
        assert wrong.status_code == 400

        ok = client.post("/api/admin/password", headers=admin_headers, json={
            "currentPassword": "admin123", "newPassword": "newpass1",
        })
        assert ok.status_code == 200


class TestContent:
    """Banners, categories, cities and settings"""

    @pytest.mark.parametrize("resource,payload", [
        ("banners", {"title": "عيد", "image": "/uploads/eid.png"}),
        ("categories", {"name": "هدايا", "nameEn": "Gifts"}),
        ("cities", {"name": "مكة", "nameEn": "Makkah"}),
    ])
    def test_crud(self, client, admin_headers, resource, payload):
        created = client.post(f"/api/admin/{resource}", headers=admin_headers, json=payload)
        assert created.status_code == 200
        item_id = created.json()["data"]["id"]

        updated = client.patch(f"/api/admin/{resource}/{item_id}", headers=admin_headers, json={"sortOrder": 3})
        assert updated.json()["data"]["sortOrder"] == 3

        assert len(client.get(f"/api/admin/{resource}", headers=admin_headers).json()["data"]) == 1
        assert client.delete(f"/api/admin/{resource}/{item_id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/admin/{resource}/{item_id}", headers=admin_headers).status_code == 404

    def test_settings_upsert(self, client, admin_headers):
        client.post("/api/admin/settings", headers=admin_headers, json={"key": "whatsapp", "value": "0500000000"})
        client.post("/api/admin/settings", headers=admin_headers, json={"key": "whatsapp", "value": "0511111111"})

        data = client.get("/api/admin/settings", headers=admin_headers).json()["data"]

        assert len(data) == 1
        assert data[0]["value"] == "0511111111"


class TestDiscountsAndAds:

    def test_discount_code_crud(self, client, admin_headers):
        created = client.post("/api/admin/discount-codes", headers=admin_headers, json={
            "code": "eid25", "type": "percentage", "value": 25,
        })
        assert created.json()["data"]["code"] == "EID25"
        discount_id = created.json()["data"]["id"]

        duplicate = client.post("/api/admin/discount-codes", headers=admin_headers, json={
            "code": "EID25", "type": "fixed", "value": 100,
        })
        assert duplicate.status_code == 409

        updated = client.patch(f"/api/admin/discount-codes/{discount_id}", headers=admin_headers, json={"isActive": False})
        assert updated.json()["data"]["isActive"] is False

        assert client.delete(f"/api/admin/discount-codes/{discount_id}", headers=admin_headers).status_code == 200

    def test_send_promotional_ad(self, client, storage, admin_headers):
        created = client.post("/api/admin/promotional-ads", headers=admin_headers, json={
            "title": "عرض الجمعة", "body": "خصم على كل الباقات",
        })
        ad_id = created.json()["data"]["id"]

        response = client.post(f"/api/admin/promotional-ads/{ad_id}/send", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["sent"] == 0
        assert storage.get_promotional_ad(ad_id).sent_at is not None

    def test_send_unknown_ad(self, client, admin_headers):
        assert client.post("/api/admin/promotional-ads/1/send", headers=admin_headers).status_code == 404


def test_admin_notifications_include_broadcast(client, storage, admin, admin_headers):
    storage.create_notification({"recipient_type": "admin", "recipient_id": None, "title": "للجميع", "body": "x"})

    data = client.get("/api/admin/notifications", headers=admin_headers).json()["data"]
    assert [n["title"] for n in data] == ["للجميع"]

    broadcast_id = data[0]["id"]
    assert client.patch(f"/api/admin/notifications/{broadcast_id}/read", headers=admin_headers).status_code == 200
    assert client.get("/api/admin/notifications/unread-count", headers=admin_headers).json()["data"]["count"] == 0
