"""
Tests for TapConnector against a mocked HTTP transport
"""
import asyncio
import json

import httpx

from app.connectors.tap_connector import TapConnector

CUSTOMER = {"first_name": "خالد", "last_name": "العتيبي", "email": "k@example.com", "phone": {"country_code": "966", "number": "559876543"}}


def _connector(handler, webhook_url="https://api.glorda.test/webhooks/tap"):
    return TapConnector(
        secret_key="sk_test_123",
        base_url="https://tap.test/v2",
        webhook_url=webhook_url,
        transport=httpx.MockTransport(handler),
    )


def test_charge_payload_shape():
    payload = _connector(lambda r: None).build_charge_payload(150.0, "SAR", CUSTOMER, "42", "app://paid")

    assert payload["threeDSecure"] is True
    assert payload["source"] == {"id": "src_all"}
    assert payload["reference"] == {"transaction": "42", "order": "42"}
    assert payload["metadata"] == {"order_id": "42"}
    assert payload["redirect"] == {"url": "app://paid"}
    assert payload["post"] == {"url": "https://api.glorda.test/webhooks/tap"}


def test_charge_payload_without_webhook():
    payload = _connector(lambda r: None, webhook_url="").build_charge_payload(1, "SAR", CUSTOMER, "1", "app://x")
    assert "post" not in payload


def test_create_charge_posts_with_bearer_key():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "chg_1", "status": "INITIATED", "transaction": {"url": "https://pay"}})

    result = asyncio.run(_connector(handler).create_charge(150.0, "SAR", CUSTOMER, "42", "app://paid"))

    assert result.success is True
    assert result.status == "INITIATED"
    assert result.data["transaction"]["url"] == "https://pay"
    assert seen[0].method == "POST"
    assert seen[0].url == "https://tap.test/v2/charges"
    assert seen[0].headers["Authorization"] == "Bearer sk_test_123"
    assert json.loads(seen[0].content)["amount"] == 150.0


def test_verify_charge_gets_charge_by_id():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "chg_9", "status": "CAPTURED"})

    result = asyncio.run(_connector(handler).verify_charge("chg_9"))

    assert result.status == "CAPTURED"
    assert seen[0].method == "GET"
    assert seen[0].url == "https://tap.test/v2/charges/chg_9"


def test_api_error_is_reported_not_raised():
    def handler(request):
        return httpx.Response(400, json={"errors": [{"code": "1108"}], "message": "Invalid amount"})

    result = asyncio.run(_connector(handler).create_charge(-1, "SAR", CUSTOMER, "42", "app://paid"))

    assert result.success is False
    assert result.message == "Invalid amount"


def test_missing_key_never_calls_tap():
    def handler(request):
        raise AssertionError("Tap should not be called")

    connector = TapConnector(secret_key="", transport=httpx.MockTransport(handler))

    result = asyncio.run(connector.verify_charge("chg_1"))
    assert result.success is False
    assert result.message == "Tap Secret Key not configured"


def test_verify_charge_rejects_ids_that_would_change_the_path():
    def handler(request):
        raise AssertionError("Tap should not be called")

    connector = _connector(handler)

    for charge_id in ("../customers/cus_1", "chg_1?expand=all", "chg_1/refunds", ""):
        result = asyncio.run(connector.verify_charge(charge_id))
        assert result.success is False
        assert result.message == "Invalid charge id"
