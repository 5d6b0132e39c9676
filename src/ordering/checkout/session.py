"""Hosted checkout sessions on the carrier's checkout API.

The storefront hands the carrier a signed cart and redirects the shopper to
the checkout URL it gets back. Requests are signed with a base64 HMAC-SHA256
of the exact body sent, keyed with the checkout secret; the carrier signs
its order callbacks the same way.
"""

import base64
import hashlib
import hmac
import json
import os
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

import requests
import structlog
from protean.exceptions import ValidationError

from ordering.carrier.config import CarrierSettings
from ordering.carrier.errors import CarrierConfigurationError, CarrierError

logger = structlog.get_logger(__name__)

CHECKOUT_SUCCESS_PATH = "/orders/success"


def new_checkout_order_id(clock: Callable[[], float] = time.time) -> str:
    """`ORD-<epoch ms>-<0..999>`, the id the carrier's checkout knows an order by."""
    return f"ORD-{int(clock() * 1000)}-{random.randint(0, 999)}"


def sign_payload(body: str | bytes, secret: str) -> str:
    if isinstance(body, str):
        body = body.encode()
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_signature(body: str | bytes, signature: str | None, secret: str | None) -> bool:
    """Constant-time check of a body signature; nothing verifies without a secret."""
    if not secret or not signature:
        return False
    return hmac.compare_digest(sign_payload(body, secret), signature)


def build_session_payload(
    order_id: str,
    lines: list[dict] | None,
    redirect_url: str,
    customer: dict | None = None,
    total_amount: float | None = None,
) -> dict:
    """The carrier's create-session payload.

    `lines` are priced lines as produced by the catalogue. Without lines a
    single catch-all item for `total_amount` is sent.
    """
    if lines:
        cart_items = [
            {
                "variant_id": line.get("size") or "default",
                "quantity": line["quantity"],
                "selling_price": line["unit_price"],
                "title": line["product_name"],
                "sku": line.get("sku") or line["product_id"],
                "image_url": line.get("product_image"),
            }
            for line in lines
        ]
        sub_total = round(sum(line["total_price"] for line in lines), 2)
    elif total_amount:
        cart_items = [
            {
                "variant_id": "default",
                "quantity": 1,
                "selling_price": total_amount,
                "title": "Order",
                "sku": order_id,
            }
        ]
        sub_total = total_amount
    else:
        raise ValidationError({"cart_items": ["Cart is empty and no total amount was given"]})

    payload = {
        "order_id": order_id,
        "cart_items": cart_items,
        "sub_total": sub_total,
        "total_amount": sub_total,
        "shipping_charges": 0,
        "discount": 0,
        "redirect_url": redirect_url,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    details = {k: v for k, v in (customer or {}).items() if v}
    if details:
        payload["customer_details"] = details
    return payload


@dataclass(frozen=True)
class CheckoutSession:
    checkout_url: str | None
    session_id: str | None = None


class CheckoutClient:
    def __init__(self, settings: CarrierSettings | None = None, session: requests.Session | None = None) -> None:
        self.settings = settings or CarrierSettings.from_env()
        self.session = session or requests.Session()

    @property
    def redirect_url(self) -> str:
        return f"{self.settings.app_url}{CHECKOUT_SUCCESS_PATH}"

    def create_session(self, payload: dict) -> CheckoutSession:
        api_key = self.settings.checkout_api_key
        secret = self.settings.checkout_secret
        if not api_key or not secret:
            raise CarrierConfigurationError("Shiprocket checkout not configured")

        body = json.dumps(payload)
        logger.info("Creating checkout session", order_id=payload.get("order_id"))
        try:
            response = self.session.post(
                f"{self.settings.checkout_url}/create-session",
                data=body,
                headers={
                    "Content-Type": "application/json",
                    "X-Api-Key": f"Bearer {api_key}",
                    "X-Api-HMAC-SHA256": sign_payload(body, secret),
                },
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            raise CarrierError(f"Checkout session request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text[:500]}

        if not response.ok:
            logger.warning("Checkout session rejected", status_code=response.status_code, body=data)
            raise CarrierError("Shiprocket API error", status_code=response.status_code, api_error=data)

        return CheckoutSession(
            checkout_url=data.get("checkout_url") or data.get("url"),
            session_id=data.get("session_id"),
        )


def _mask_key(value: str | None) -> str:
    return f"set (ends with ...{value[-4:]})" if value else "missing"


def _mask_secret(value: str | None) -> str:
    return f"set ({len(value)} chars)" if value else "missing"


def diagnostics(settings: CarrierSettings | None = None) -> dict:
    """Checkout configuration report with secrets masked."""
    settings = settings or CarrierSettings.from_env()
    missing = [
        name
        for name, value in (
            ("SHIPROCKET_CHECKOUT_API_KEY", settings.checkout_api_key),
            ("SHIPROCKET_CHECKOUT_SECRET", settings.checkout_secret),
        )
        if not value
    ]
    missing += settings.missing_credentials()
    app_url_configured = bool(os.environ.get("APP_URL"))

    report = {
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": os.environ.get("PROTEAN_ENV", "development"),
        "env_vars": {
            "SHIPROCKET_EMAIL": settings.email or "missing",
            "SHIPROCKET_PASSWORD": _mask_secret(settings.password),
            "SHIPROCKET_CHECKOUT_API_KEY": _mask_key(settings.checkout_api_key),
            "SHIPROCKET_CHECKOUT_SECRET": _mask_secret(settings.checkout_secret),
            "APP_URL": settings.app_url if app_url_configured else "missing",
        },
        "config_valid": not missing,
        "missing_config": missing,
        "api_info": {
            "checkout_endpoint": f"{settings.checkout_url}/create-session",
            "header_format": {"X-Api-Key": "Bearer <API_KEY>", "X-Api-HMAC-SHA256": "<BASE64_HMAC>"},
            "redirect_url": f"{settings.app_url}{CHECKOUT_SUCCESS_PATH}",
        },
    }

    if settings.checkout_secret:
        test_payload = json.dumps({"test": "payload", "timestamp": report["timestamp"]})
        signature = sign_payload(test_payload, settings.checkout_secret)
        report["hmac_test"] = {
            "status": "ok",
            "test_payload_length": len(test_payload),
            "hmac_base64_length": len(signature),
            "hmac_base64_preview": f"{signature[:20]}...",
            "verifies": verify_signature(test_payload, signature, settings.checkout_secret),
        }
    else:
        report["hmac_test"] = {"status": "skipped", "reason": "SHIPROCKET_CHECKOUT_SECRET not configured"}

    report["ok"] = report["config_valid"] and app_url_configured
    report["summary"] = (
        "All checks passed - ready for checkout" if report["ok"] else "Configuration issues detected"
    )
    return report
