"""
Pytest fixtures and configuration for Glorda backend tests

Every test runs against a fresh in-memory DocumentStorage installed as the
process-wide storage, so services and routers pick it up through
get_storage().
"""
import os
import tempfile

# Settings are read at import time; point them at test values first
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("AUTHENTICA_API_KEY", "")
os.environ.setdefault("TAP_SECRET_KEY", "")
os.environ.setdefault("UPLOADS_DIR", os.path.join(tempfile.gettempdir(), "glorda-test-uploads"))

import pytest

from app.core.auth import create_access_token, hash_password
from app.core.rate_limit import rate_limiter
from app.repositories import DocumentStorage, set_storage


@pytest.fixture(autouse=True)
def storage():
    """
    Provides a fresh in-memory storage for each test

    Scope: function (reset between tests, together with the rate limiter)
    """
    store = DocumentStorage()
    set_storage(store)
    rate_limiter.reset()
    yield store
    set_storage(None)


@pytest.fixture
def client():
    """FastAPI TestClient over the full app"""
    from fastapi.testclient import TestClient
    from app.main import app

    return TestClient(app)


@pytest.fixture
def sample_merchant_data():
    """
    Provides sample merchant registration data (snake_case)
    """
    return {
        "owner_name": "سارة أحمد",
        "store_name": "ورد الرياض",
        "email": "sara@example.com",
        "mobile": "0551234567",
        "password": "secret123",
        "store_type": "online",
        "category": "flowers",
        "city": "الرياض",
        "registration_number": "1010101010",
        "delivery_method": "delivery",
    }


@pytest.fixture
def merchant(storage, sample_merchant_data):
    """An active merchant whose password is `secret123`"""
    created = storage.create_merchant({
        **sample_merchant_data,
        "password": hash_password(sample_merchant_data["password"]),
    })
    return storage.update_merchant_status(created.id, "active")


@pytest.fixture
def customer(storage):
    return storage.create_customer({"name": "خالد", "mobile": "0559876543", "email": "khaled@example.com"})


@pytest.fixture
def admin(storage):
    return storage.create_admin({
        "email": "admin@glorda.com",
        "password": hash_password("admin123"),
        "name": "مدير النظام",
    })


@pytest.fixture
def product(storage, merchant):
    return storage.create_product({
        "merchant_id": merchant.id,
        "name": "باقة ورد",
        "price": 15000,
        "stock": 10,
        "category": "flowers",
        "status": "active",
    })


@pytest.fixture
def make_order(storage, merchant, customer, product):
    """Factory for orders between the sample merchant and customer"""
    def _make(status="pending", is_paid=False, total_amount=15000):
        return storage.create_order({
            "order_number": f"ORD-TEST-{status}",
            "customer_id": customer.id,
            "merchant_id": merchant.id,
            "product_id": product.id,
            "quantity": 1,
            "total_amount": total_amount,
            "status": status,
            "delivery_method": "delivery",
            "is_paid": is_paid,
        })
    return _make


def bearer(user_id: int, role: str, **claims) -> dict:
    """Authorization header for a user of the given role"""
    return {"Authorization": f"Bearer {create_access_token(user_id, role, **claims)}"}


@pytest.fixture
def auth_header():
    """Factory: auth_header(user_id, role) -> Authorization header"""
    return bearer


@pytest.fixture
def merchant_headers(merchant):
    return bearer(merchant.id, "merchant", phone=merchant.mobile, email=merchant.email)


@pytest.fixture
def customer_headers(customer):
    return bearer(customer.id, "customer", phone=customer.mobile)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin.id, "admin", email=admin.email)
