"""Carrier port: abstract interface for shipping carrier integrations.

Order handlers program against this interface; the Shiprocket adapter and
the fake adapter are swapped via configuration. Every operation returns an
immutable result object so callers never reach into raw API payloads.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CarrierOrderItem:
    name: str
    sku: str
    units: int
    selling_price: float
    discount: float = 0
    tax: float = 0
    hsn: str = ""


@dataclass(frozen=True)
class CarrierOrderRequest:
    """Everything the carrier needs to book an ad-hoc order."""

    order_id: str
    order_date: str  # YYYY-MM-DD HH:MM
    pickup_location: str
    billing_customer_name: str
    billing_last_name: str
    billing_address: str
    billing_address_2: str
    billing_city: str
    billing_pincode: str
    billing_state: str
    billing_country: str
    billing_email: str
    billing_phone: str
    order_items: tuple[CarrierOrderItem, ...]
    payment_method: str  # "COD" or "Prepaid"
    sub_total: float
    length: float
    breadth: float
    height: float
    weight: float
    shipping_is_billing: bool = True


@dataclass(frozen=True)
class CarrierOrder:
    order_id: str
    shipment_id: str
    status: str | None = None
    status_code: int | None = None
    awb_code: str | None = None
    courier_company_id: str | None = None
    courier_name: str | None = None


@dataclass(frozen=True)
class AwbAssignment:
    awb_code: str | None
    courier_company_id: str | None = None
    courier_name: str | None = None
    shipment_id: str | None = None
    order_id: str | None = None
    label_url: str | None = None
    routing_code: str | None = None


@dataclass(frozen=True)
class PickupResult:
    scheduled: bool
    pickup_scheduled_date: str | None = None
    pickup_token_number: str | None = None


@dataclass(frozen=True)
class LabelResult:
    created: bool
    label_url: str | None = None


@dataclass(frozen=True)
class ManifestResult:
    manifest_url: str | None = None


@dataclass(frozen=True)
class TrackingActivity:
    date: str | None
    activity: str | None
    location: str | None
    status_label: str | None = None


@dataclass(frozen=True)
class Tracking:
    """Tracking snapshot as reported by the carrier."""

    tracking_data: dict
    shipment_status: int | None = None
    current_status: str | None = None
    track_url: str | None = None
    etd: str | None = None
    activities: tuple[TrackingActivity, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CourierOption:
    courier_company_id: str
    courier_name: str
    freight_charge: float | None = None
    cod_charges: float | None = None
    estimated_delivery_days: str | None = None
    etd: str | None = None
    rate: float | None = None


@dataclass(frozen=True)
class Serviceability:
    couriers: tuple[CourierOption, ...]
    recommended_courier_id: str | None = None

    @property
    def serviceable(self) -> bool:
        return bool(self.couriers)


@dataclass(frozen=True)
class PickupLocation:
    id: str
    pickup_location: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pin_code: str | None = None
    phone: str | None = None
    name: str | None = None


class CarrierPort(ABC):
    """Abstract interface for carrier adapters.

    Failures surface as `CarrierError`; missing configuration as
    `CarrierConfigurationError`.
    """

    @abstractmethod
    def create_order(self, request: CarrierOrderRequest) -> CarrierOrder: ...

    @abstractmethod
    def assign_awb(self, shipment_id: str, courier_id: str | None = None) -> AwbAssignment: ...

    @abstractmethod
    def schedule_pickup(self, shipment_ids: list[str]) -> PickupResult: ...

    @abstractmethod
    def generate_label(self, shipment_ids: list[str]) -> LabelResult: ...

    @abstractmethod
    def generate_manifest(self, shipment_ids: list[str]) -> ManifestResult: ...

    @abstractmethod
    def track_awb(self, awb_code: str) -> Tracking: ...

    @abstractmethod
    def track_shipment(self, shipment_id: str) -> Tracking: ...

    @abstractmethod
    def check_serviceability(
        self,
        pickup_postcode: str,
        delivery_postcode: str,
        weight: float,
        cod: bool = False,
    ) -> Serviceability: ...

    @abstractmethod
    def pickup_locations(self) -> list[PickupLocation]: ...

    @abstractmethod
    def cancel_orders(self, order_ids: list[str]) -> bool: ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a tracking callback really comes from the carrier."""
        ...
