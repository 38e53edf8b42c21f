"""
API tests for /api/customer, /api/public, /api/payments and the app shell
"""


class TestCustomer:

    def test_profile_patch(self, client, customer_headers):
        response = client.patch("/api/customer/profile", headers=customer_headers, json={"city": "جدة"})
        assert response.json()["data"]["city"] == "جدة"

    def test_profile_email_taken_by_another_account(self, client, storage, merchant, customer, customer_headers):
        other = storage.create_customer({"name": "ريم", "mobile": "0500000007", "email": "reem@example.com"})

        for email in (other.email, merchant.email):
            response = client.patch("/api/customer/profile", headers=customer_headers, json={"email": email})
            assert response.status_code == 409

        assert storage.get_customer(customer.id).email == customer.email
        own = client.patch("/api/customer/profile", headers=customer_headers, json={"email": customer.email})
        assert own.status_code == 200

    def test_push_token_creates_profile(self, client, storage, customer, customer_headers):
        response = client.post("/api/customer/push-token", headers=customer_headers, json={"token": "ExponentPushToken[t1]"})

        assert response.json()["data"]["uid"] == f"customer_{customer.id}"
        assert storage.get_user_profile(f"customer_{customer.id}").push_token == "ExponentPushToken[t1]"

    def test_push_token_for_merchant_device(self, client, storage, merchant, merchant_headers):
        client.post("/api/customer/push-token", headers=merchant_headers, json={"token": "ExponentPushToken[m1]"})
        assert storage.get_user_profile(f"merchant_{merchant.id}").push_token == "ExponentPushToken[m1]"

    def test_place_and_fetch_order(self, client, customer_headers, product):
        placed = client.post("/api/customer/orders", headers=customer_headers, json={
            "productId": product.id, "quantity": 2, "deliveryMethod": "delivery", "deliveryAddress": "حي النخيل",
        })
        assert placed.status_code == 200
        order_id = placed.json()["data"]["id"]
        assert placed.json()["data"]["totalAmount"] == 30000

        detail = client.get(f"/api/customer/orders/{order_id}", headers=customer_headers).json()["data"]
        assert detail["product"]["id"] == product.id

        listing = client.get("/api/customer/orders", headers=customer_headers).json()
        assert listing["count"] == 1

    def test_quantity_must_be_positive(self, client, customer_headers, product):
        response = client.post("/api/customer/orders", headers=customer_headers, json={
            "productId": product.id, "quantity": 0, "deliveryMethod": "delivery",
        })
        assert response.status_code == 422

    def test_other_customers_order_is_404(self, client, auth_header, customer, make_order):
        order = make_order()
        response = client.get(f"/api/customer/orders/{order.id}", headers=auth_header(customer.id + 1, "customer"))
        assert response.status_code == 404

    def test_chat_and_review(self, client, storage, merchant, customer_headers, make_order):
        order = make_order(status="delivered")

        client.post(f"/api/customer/orders/{order.id}/messages", headers=customer_headers, json={"message": "شكراً"})
        messages = client.get(f"/api/customer/orders/{order.id}/messages", headers=customer_headers).json()["data"]
        assert messages[0]["senderType"] == "customer"

        review = client.post("/api/customer/reviews", headers=customer_headers, json={
            "orderId": order.id, "rating": 5, "comment": "ممتاز",
        })
        again = client.post("/api/customer/reviews", headers=customer_headers, json={"orderId": order.id, "rating": 1})

        assert review.status_code == 200
        assert again.status_code == 409
        assert {n.type for n in storage.get_notifications_for_merchant(merchant.id)} == {"message", "review"}

    def test_direct_chat_with_a_store(self, client, storage, merchant, customer, customer_headers):
        opened = client.post("/api/customer/direct-conversations", headers=customer_headers, json={"merchantId": merchant.id})
        assert opened.status_code == 200
        conversation_id = opened.json()["data"]["id"]
        again = client.post("/api/customer/direct-conversations", headers=customer_headers, json={"merchantId": merchant.id})
        assert again.json()["data"]["id"] == conversation_id

        base = f"/api/customer/direct-conversations/{conversation_id}"
        client.post(f"{base}/messages", headers=customer_headers, json={"message": "هل يوجد توصيل اليوم؟"})
        assert storage.get_direct_conversation(conversation_id).unread_count_merchant == 1

        listed = client.get("/api/customer/direct-conversations", headers=customer_headers).json()["data"]
        assert listed[0]["storeName"] == merchant.store_name
        assert listed[0]["lastMessage"] == "هل يوجد توصيل اليوم؟"
        assert client.get(f"{base}/messages", headers=customer_headers).json()["data"][0]["senderType"] == "customer"
        assert client.patch(f"{base}/read", headers=customer_headers).json()["data"]["unreadCountCustomer"] == 0

    def test_direct_chat_scoped_to_participants(self, client, storage, auth_header, merchant, customer, customer_headers):
        conversation = storage.create_direct_conversation({"merchant_id": merchant.id, "customer_id": customer.id})
        stranger = auth_header(customer.id + 1, "customer")

        assert client.get(f"/api/customer/direct-conversations/{conversation.id}/messages", headers=stranger).status_code == 404
        assert client.post(
            "/api/customer/direct-conversations", headers=customer_headers, json={"merchantId": merchant.id + 1}
        ).status_code == 404

    def test_notifications(self, client, storage, customer, customer_headers):
        storage.create_notification({"recipient_type": "customer", "recipient_id": customer.id, "title": "t", "body": "b"})
        data = client.get("/api/customer/notifications", headers=customer_headers).json()["data"]
        assert len(data) == 1


class TestPublic:

    def test_active_banners_sorted(self, client, storage):
        storage.create_banner({"title": "ثاني", "image": "/b.png", "sort_order": 2})
        storage.create_banner({"title": "أول", "image": "/a.png", "sort_order": 1})
        storage.create_banner({"title": "مخفي", "image": "/c.png", "is_active": False})

        data = client.get("/api/public/banners").json()["data"]

        assert [b["title"] for b in data] == ["أول", "ثاني"]

    def test_missing_setting_answers_null(self, client):
        data = client.get("/api/public/settings/terms").json()["data"]
        assert data == {"key": "terms", "value": None}

    def test_discount_validation(self, client, storage):
        storage.create_discount_code({"code": "TEN", "type": "percentage", "value": 10})

        ok = client.post("/api/public/discount-codes/validate", json={"code": "ten", "orderAmount": 1000})
        bad = client.post("/api/public/discount-codes/validate", json={"code": "NOPE", "orderAmount": 1000})

        assert ok.json()["data"] == {"code": "TEN", "discountAmount": 100, "total": 900, "freeShipping": False}
        assert bad.status_code == 400

    def test_store_products_hide_hidden_ones(self, client, storage, merchant, product):
        storage.create_product({"merchant_id": merchant.id, "name": "مخفي", "price": 1, "category": "c", "status": "hidden"})

        data = client.get(f"/api/public/merchants/{merchant.id}/products").json()

        assert data["count"] == 1
        assert data["data"][0]["id"] == product.id

    def test_suspended_store_is_404(self, client, storage, merchant):
        storage.update_merchant_status(merchant.id, "suspended")
        assert client.get(f"/api/public/merchants/{merchant.id}/products").status_code == 404

    def test_product_options(self, client, storage, product):
        storage.create_product_option({"product_id": product.id, "type": "toggle", "title": "تغليف"})
        data = client.get(f"/api/public/products/{product.id}/options").json()["data"]
        assert data[0]["type"] == "toggle"


class TestPaymentsAndShell:

    def test_charge_requires_fields(self, client):
        assert client.post("/api/payments/tap/charge", json={"amount": 10}).status_code == 400

    def test_verify_without_key(self, client):
        response = client.post("/api/payments/tap/verify", json={"chargeId": "chg_1"})
        assert response.json()["success"] is False
        assert response.json()["orderPaid"] is False

    def test_verify_rejects_malformed_charge_id(self, client):
        response = client.post("/api/payments/tap/verify", json={"chargeId": "chg_1/refunds"})
        assert response.status_code == 400

    def test_charge_amount_must_match_the_order(self, client, make_order):
        order = make_order(total_amount=15000)
        response = client.post("/api/payments/tap/charge", json={
            "amount": 0.01, "currency": "SAR", "orderId": order.id,
            "customer": {"first_name": "خالد"}, "redirectUrl": "app://done",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "مبلغ الدفع لا يطابق قيمة الطلب"

    def test_root_and_health(self, client):
        assert client.get("/").json()["status"] == "online"
        health = client.get("/health").json()
        assert health["status"] == "healthy"
        assert health["storage"]["backend"] == "memory"
