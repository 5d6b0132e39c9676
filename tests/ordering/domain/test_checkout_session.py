"""Tests for hosted checkout sessions: signing, payloads and diagnostics."""

import base64
import hashlib
import hmac
import json
import re
from unittest.mock import MagicMock

import pytest
import requests
from ordering.carrier.config import CarrierSettings
from ordering.carrier.errors import CarrierConfigurationError, CarrierError
from ordering.checkout.checkout_order import checkout_order_details
from ordering.checkout.session import (
    CheckoutClient,
    build_session_payload,
    diagnostics,
    new_checkout_order_id,
    sign_payload,
    verify_signature,
)
from protean.exceptions import ValidationError

SECRET = "checkout-secret"

LINES = [
    {
        "product_id": "prod-1",
        "product_name": "Cotton Kurti",
        "product_image": "https://cdn/k.jpg",
        "size": "M",
        "sku": "COTTON-KURTI-M",
        "quantity": 2,
        "unit_price": 450.0,
        "total_price": 900.0,
    },
    {
        "product_id": "prod-2",
        "product_name": "Dupatta",
        "product_image": None,
        "size": None,
        "sku": "DUPATTA",
        "quantity": 1,
        "unit_price": 299.5,
        "total_price": 299.5,
    },
]


@pytest.fixture()
def settings():
    return CarrierSettings(
        email="ops@example.com",
        password="secret",
        checkout_url="https://checkout.test/v1/checkout",
        checkout_api_key="key-12345678",
        checkout_secret=SECRET,
        app_url="https://shop.example.com",
    )


class TestSigning:
    def test_signature_is_base64_hmac_sha256(self):
        expected = base64.b64encode(hmac.new(SECRET.encode(), b'{"a": 1}', hashlib.sha256).digest()).decode()
        assert sign_payload('{"a": 1}', SECRET) == expected
        assert sign_payload(b'{"a": 1}', SECRET) == expected

    def test_verify(self):
        body = b'{"order_id": "X"}'
        signature = sign_payload(body, SECRET)
        assert verify_signature(body, signature, SECRET) is True
        assert verify_signature(b'{"order_id": "Y"}', signature, SECRET) is False
        assert verify_signature(body, "", SECRET) is False
        assert verify_signature(body, signature, None) is False

    def test_checkout_order_id_format(self):
        order_id = new_checkout_order_id(clock=lambda: 1760000000.123)
        assert re.fullmatch(r"ORD-1760000000123-\d{1,3}", order_id)


class TestSessionPayload:
    def test_from_priced_lines(self):
        payload = build_session_payload(
            "ORD-1",
            LINES,
            redirect_url="https://shop.example.com/orders/success",
            customer={"name": "Asha", "email": "asha@example.com", "phone": None},
        )
        assert payload["sub_total"] == 1199.5
        assert payload["total_amount"] == 1199.5
        assert payload["shipping_charges"] == 0
        assert payload["customer_details"] == {"name": "Asha", "email": "asha@example.com"}
        assert payload["cart_items"][0] == {
            "variant_id": "M",
            "quantity": 2,
            "selling_price": 450.0,
            "title": "Cotton Kurti",
            "sku": "COTTON-KURTI-M",
            "image_url": "https://cdn/k.jpg",
        }
        assert payload["cart_items"][1]["variant_id"] == "default"

    def test_from_total_amount(self):
        payload = build_session_payload("ORD-2", None, redirect_url="https://r", total_amount=1500.0)
        assert payload["cart_items"] == [
            {"variant_id": "default", "quantity": 1, "selling_price": 1500.0, "title": "Order", "sku": "ORD-2"}
        ]
        assert "customer_details" not in payload

    def test_empty_cart(self):
        with pytest.raises(ValidationError):
            build_session_payload("ORD-3", [], redirect_url="https://r")


class TestCheckoutClient:
    def test_create_session_signs_exact_body(self, settings):
        session = MagicMock()
        session.post.return_value.ok = True
        session.post.return_value.json.return_value = {"checkout_url": "https://pay/abc", "session_id": "sess-1"}
        client = CheckoutClient(settings, session)

        result = client.create_session({"order_id": "ORD-1"})

        assert result.checkout_url == "https://pay/abc"
        assert result.session_id == "sess-1"
        args, kwargs = session.post.call_args
        assert args[0] == "https://checkout.test/v1/checkout/create-session"
        assert kwargs["headers"]["X-Api-Key"] == "Bearer key-12345678"
        assert kwargs["headers"]["X-Api-HMAC-SHA256"] == sign_payload(kwargs["data"], SECRET)
        assert json.loads(kwargs["data"]) == {"order_id": "ORD-1"}

    def test_redirect_url(self, settings):
        assert CheckoutClient(settings, MagicMock()).redirect_url == "https://shop.example.com/orders/success"

    def test_url_fallback_key(self, settings):
        session = MagicMock()
        session.post.return_value.ok = True
        session.post.return_value.json.return_value = {"url": "https://pay/xyz"}
        assert CheckoutClient(settings, session).create_session({}).checkout_url == "https://pay/xyz"

    def test_not_configured(self):
        session = MagicMock()
        with pytest.raises(CarrierConfigurationError):
            CheckoutClient(CarrierSettings(), session).create_session({"order_id": "ORD-1"})
        session.post.assert_not_called()

    def test_rejected(self, settings):
        session = MagicMock()
        session.post.return_value.ok = False
        session.post.return_value.status_code = 401
        session.post.return_value.json.return_value = {"message": "Invalid HMAC"}
        with pytest.raises(CarrierError) as exc:
            CheckoutClient(settings, session).create_session({"order_id": "ORD-1"})
        assert exc.value.status_code == 401
        assert exc.value.api_error == {"message": "Invalid HMAC"}

    def test_network_failure(self, settings):
        session = MagicMock()
        session.post.side_effect = requests.Timeout("slow")
        with pytest.raises(CarrierError):
            CheckoutClient(settings, session).create_session({"order_id": "ORD-1"})


class TestDiagnostics:
    def test_fully_configured(self, settings, monkeypatch):
        monkeypatch.setenv("APP_URL", "https://shop.example.com")
        report = diagnostics(settings)
        assert report["ok"] is True
        assert report["missing_config"] == []
        assert report["env_vars"]["SHIPROCKET_CHECKOUT_API_KEY"] == "set (ends with ...5678)"
        assert report["env_vars"]["SHIPROCKET_CHECKOUT_SECRET"] == f"set ({len(SECRET)} chars)"
        assert report["hmac_test"]["verifies"] is True
        assert SECRET not in json.dumps(report)

    def test_missing_configuration(self, monkeypatch):
        monkeypatch.delenv("APP_URL", raising=False)
        report = diagnostics(CarrierSettings())
        assert report["ok"] is False
        assert "SHIPROCKET_CHECKOUT_SECRET" in report["missing_config"]
        assert report["hmac_test"]["status"] == "skipped"
        assert report["summary"] == "Configuration issues detected"


class TestCheckoutOrderDetails:
    def test_extracts_fields(self):
        details = checkout_order_details(
            {
                "order_id": "SR-99",
                "total_amount_payable": "1299.00",
                "cart_data": {"items": [{"variant_id": "M", "quantity": 1}]},
                "payment_type": "COD",
                "status": "SUCCESS",
                "phone": "9876543210",
                "shipping_address": {"city": "Pune"},
            }
        )
        assert details["carrier_order_id"] == "SR-99"
        assert details["total_amount"] == 1299.0
        assert details["payment_type"] == "cod"
        assert details["status"] == "success"
        assert json.loads(details["items"]) == [{"variant_id": "M", "quantity": 1}]
        assert json.loads(details["shipping_address"]) == {"city": "Pune"}

    def test_requires_order_id(self):
        with pytest.raises(ValidationError):
            checkout_order_details({"total_amount": 10})

    def test_requires_total(self):
        with pytest.raises(ValidationError):
            checkout_order_details({"order_id": "SR-1"})
