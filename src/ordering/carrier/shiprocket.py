"""Shiprocket carrier adapter: the real HTTP client.

Talks to Shiprocket's external REST API over a `requests.Session`. The
bearer token from `/auth/login` is cached process-wide and reused until five
minutes before its 24 hour validity runs out; a 401 from any call drops it so
the next call logs in again.
"""

import hmac
import threading
import time
from collections.abc import Callable

import requests
import structlog

from ordering.carrier.config import CarrierSettings
from ordering.carrier.errors import CarrierConfigurationError, CarrierError
from ordering.carrier.port import (
    AwbAssignment,
    CarrierOrder,
    CarrierOrderRequest,
    CarrierPort,
    CourierOption,
    LabelResult,
    ManifestResult,
    PickupLocation,
    PickupResult,
    Serviceability,
    Tracking,
    TrackingActivity,
)

logger = structlog.get_logger(__name__)

TOKEN_VALIDITY_SECONDS = 24 * 60 * 60
TOKEN_REFRESH_BUFFER_SECONDS = 5 * 60


class TokenCache:
    """Bearer token plus its expiry, guarded for use across threads."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self._lock = threading.Lock()
        self._token: str | None = None
        self._expires_at: float = 0.0

    def get(self) -> str | None:
        with self._lock:
            if self._token and self.clock() < self._expires_at - TOKEN_REFRESH_BUFFER_SECONDS:
                return self._token
            return None

    def store(self, token: str) -> None:
        with self._lock:
            self._token = token
            self._expires_at = self.clock() + TOKEN_VALIDITY_SECONDS

    def clear(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0

    @property
    def expires_at(self) -> float:
        return self._expires_at


_shared_token_cache = TokenCache()


def _decode(response: requests.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}


def _as_id(value) -> str | None:
    return None if value is None or value == "" else str(value)


def _as_number(value):
    """Carrier ids travel as numbers on the wire."""
    text = str(value)
    return int(text) if text.isdigit() else value


class ShiprocketCarrier(CarrierPort):
    def __init__(
        self,
        settings: CarrierSettings | None = None,
        session: requests.Session | None = None,
        token_cache: TokenCache | None = None,
    ) -> None:
        self.settings = settings or CarrierSettings.from_env()
        self.session = session or requests.Session()
        self.token_cache = token_cache or _shared_token_cache

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    def authenticate(self) -> str:
        """Return a valid bearer token, logging in when the cache is stale."""
        token = self.token_cache.get()
        if token:
            return token

        if not self.settings.has_credentials:
            missing = ", ".join(self.settings.missing_credentials())
            raise CarrierConfigurationError(f"Shiprocket credentials not configured. Set {missing}.")

        logger.info("Logging in to carrier", email=self.settings.email)
        try:
            response = self.session.post(
                f"{self.settings.base_url}/auth/login",
                json={"email": self.settings.email, "password": self.settings.password},
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            raise CarrierError(f"Authentication failed: {exc}") from exc

        if not response.ok:
            raise CarrierError(
                f"Authentication failed: {response.reason}",
                status_code=response.status_code,
                api_error=_decode(response),
            )

        token = _decode(response).get("token")
        if not token:
            raise CarrierError("Authentication failed: no token in response", status_code=response.status_code)
        self.token_cache.store(token)
        return token

    def _request(self, method: str, endpoint: str, json: dict | None = None, params: dict | None = None) -> dict:
        token = self.authenticate()
        try:
            response = self.session.request(
                method,
                f"{self.settings.base_url}{endpoint}",
                json=json,
                params=params,
                headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Carrier request failed", endpoint=endpoint, error=str(exc))
            raise CarrierError(f"API request failed: {endpoint}") from exc

        data = _decode(response)
        if not response.ok:
            if response.status_code == 401:
                self.token_cache.clear()
            logger.warning(
                "Carrier API returned an error",
                endpoint=endpoint,
                status_code=response.status_code,
                body=data,
            )
            raise CarrierError(f"API request failed: {endpoint}", status_code=response.status_code, api_error=data)
        return data

    # -------------------------------------------------------------------
    # Orders and AWB
    # -------------------------------------------------------------------
    def create_order(self, request: CarrierOrderRequest) -> CarrierOrder:
        payload = {
            "order_id": request.order_id,
            "order_date": request.order_date,
            "pickup_location": request.pickup_location,
            "billing_customer_name": request.billing_customer_name,
            "billing_last_name": request.billing_last_name,
            "billing_address": request.billing_address,
            "billing_address_2": request.billing_address_2,
            "billing_city": request.billing_city,
            "billing_pincode": request.billing_pincode,
            "billing_state": request.billing_state,
            "billing_country": request.billing_country,
            "billing_email": request.billing_email,
            "billing_phone": request.billing_phone,
            "shipping_is_billing": request.shipping_is_billing,
            "order_items": [
                {
                    "name": item.name,
                    "sku": item.sku,
                    "units": item.units,
                    "selling_price": item.selling_price,
                    "discount": item.discount,
                    "tax": item.tax,
                    "hsn": item.hsn,
                }
                for item in request.order_items
            ],
            "payment_method": request.payment_method,
            "sub_total": request.sub_total,
            "length": request.length,
            "breadth": request.breadth,
            "height": request.height,
            "weight": request.weight,
        }
        data = self._request("POST", "/orders/create/adhoc", json=payload)
        return CarrierOrder(
            order_id=_as_id(data.get("order_id")),
            shipment_id=_as_id(data.get("shipment_id")),
            status=data.get("status"),
            status_code=data.get("status_code"),
            awb_code=data.get("awb_code") or None,
            courier_company_id=_as_id(data.get("courier_company_id")),
            courier_name=data.get("courier_name") or None,
        )

    def assign_awb(self, shipment_id: str, courier_id: str | None = None) -> AwbAssignment:
        payload = {"shipment_id": _as_number(shipment_id)}
        if courier_id:
            payload["courier_id"] = _as_number(courier_id)
        data = self._request("POST", "/courier/assign/awb", json=payload)
        awb = (data.get("response") or {}).get("data") or {}
        return AwbAssignment(
            awb_code=awb.get("awb_code") or None,
            courier_company_id=_as_id(awb.get("courier_company_id")),
            courier_name=awb.get("courier_name"),
            shipment_id=_as_id(awb.get("shipment_id")),
            order_id=_as_id(awb.get("order_id")),
            label_url=awb.get("label_url"),
            routing_code=awb.get("routing_code"),
        )

    def cancel_orders(self, order_ids: list[str]) -> bool:
        self._request("POST", "/orders/cancel", json={"ids": [_as_number(i) for i in order_ids]})
        return True

    # -------------------------------------------------------------------
    # Pickup, labels and manifests
    # -------------------------------------------------------------------
    def schedule_pickup(self, shipment_ids: list[str]) -> PickupResult:
        data = self._request(
            "POST", "/courier/generate/pickup", json={"shipment_id": [_as_number(s) for s in shipment_ids]}
        )
        response = data.get("response") or {}
        return PickupResult(
            scheduled=data.get("pickup_status") == 1,
            pickup_scheduled_date=response.get("pickup_scheduled_date"),
            pickup_token_number=_as_id(response.get("pickup_token_number")),
        )

    def generate_label(self, shipment_ids: list[str]) -> LabelResult:
        data = self._request(
            "POST", "/courier/generate/label", json={"shipment_id": [_as_number(s) for s in shipment_ids]}
        )
        return LabelResult(created=data.get("label_created") == 1, label_url=data.get("label_url"))

    def generate_manifest(self, shipment_ids: list[str]) -> ManifestResult:
        data = self._request(
            "POST", "/manifests/generate", json={"shipment_id": [_as_number(s) for s in shipment_ids]}
        )
        return ManifestResult(manifest_url=data.get("manifest_url"))

    # -------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------
    def track_awb(self, awb_code: str) -> Tracking:
        return _parse_tracking(self._request("GET", f"/courier/track/awb/{awb_code}"))

    def track_shipment(self, shipment_id: str) -> Tracking:
        return _parse_tracking(self._request("GET", f"/courier/track/shipment/{shipment_id}"))

    # -------------------------------------------------------------------
    # Serviceability and settings
    # -------------------------------------------------------------------
    def check_serviceability(
        self,
        pickup_postcode: str,
        delivery_postcode: str,
        weight: float,
        cod: bool = False,
    ) -> Serviceability:
        data = self._request(
            "GET",
            "/courier/serviceability/",
            params={
                "pickup_postcode": pickup_postcode,
                "delivery_postcode": delivery_postcode,
                "weight": str(weight),
                "cod": "1" if cod else "0",
            },
        )
        body = data.get("data") or {}
        couriers = tuple(
            CourierOption(
                courier_company_id=str(c.get("courier_company_id")),
                courier_name=c.get("courier_name", ""),
                freight_charge=c.get("freight_charge"),
                cod_charges=c.get("cod_charges"),
                estimated_delivery_days=_as_id(c.get("estimated_delivery_days")),
                etd=c.get("etd"),
                rate=c.get("rate"),
            )
            for c in body.get("available_courier_companies") or []
            if not c.get("blocked")
        )
        return Serviceability(
            couriers=couriers,
            recommended_courier_id=_as_id(body.get("recommended_courier_company_id")),
        )

    def pickup_locations(self) -> list[PickupLocation]:
        data = self._request("GET", "/settings/company/pickup")
        addresses = (data.get("data") or {}).get("shipping_address") or []
        return [
            PickupLocation(
                id=str(a.get("id")),
                pickup_location=a.get("pickup_location", ""),
                address=a.get("address"),
                city=a.get("city"),
                state=a.get("state"),
                pin_code=_as_id(a.get("pin_code")),
                phone=_as_id(a.get("phone")),
                name=a.get("name"),
            )
            for a in addresses
        ]

    # -------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Check the static token Shiprocket sends in `X-Api-Key`.

        With no token configured every callback is accepted.
        """
        expected = self.settings.webhook_token
        if not expected:
            return True
        return hmac.compare_digest(expected.encode(), (signature or "").encode())


def _parse_tracking(data: dict) -> Tracking:
    # Tracking by AWB nests the payload under the AWB itself
    if "tracking_data" not in data and len(data) == 1:
        (only,) = data.values()
        if isinstance(only, dict) and "tracking_data" in only:
            data = only

    tracking = data.get("tracking_data") or {}
    tracks = tracking.get("shipment_track") or []
    current = tracks[0] if tracks else {}
    activities = tuple(
        TrackingActivity(
            date=a.get("date"),
            activity=a.get("activity"),
            location=a.get("location"),
            status_label=a.get("sr-status-label"),
        )
        for a in tracking.get("shipment_track_activities") or []
    )
    return Tracking(
        tracking_data=tracking,
        shipment_status=tracking.get("shipment_status"),
        current_status=current.get("current_status"),
        track_url=tracking.get("track_url"),
        etd=tracking.get("etd") or current.get("edd"),
        activities=activities,
    )


def reset_token_cache() -> None:
    """Forget the process-wide bearer token."""
    _shared_token_cache.clear()
