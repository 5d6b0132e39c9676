"""Fake carrier adapter: deterministic carrier for testing and development.

Hands out sequential order, shipment and AWB numbers. Failures can be
switched on for every operation or for a named subset, so the partial
failure paths of shipment creation can be exercised end to end.
"""

import itertools
from datetime import UTC, datetime, timedelta

from ordering.carrier.errors import CarrierError
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
from ordering.carrier.statuses import status_label

FAKE_COURIER_ID = "24"
FAKE_COURIER_NAME = "Fake Express"


class FakeCarrier(CarrierPort):
    """Fake carrier that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.fail_operations: set[str] = set()
        self.tracking_status = 18
        self.orders: dict[str, CarrierOrderRequest] = {}
        self.cancelled: list[str] = []
        self._order_numbers = itertools.count(100001)
        self._shipment_numbers = itertools.count(200001)
        self._awb_numbers = itertools.count(1)

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Carrier unavailable",
        fail_operations: list[str] | None = None,
        tracking_status: int | None = None,
    ):
        """Configure the fake carrier behavior for testing.

        `fail_operations` names the operations that fail while
        `should_succeed` stays True, e.g. `["assign_awb"]`.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.fail_operations = set(fail_operations or [])
        if tracking_status is not None:
            self.tracking_status = tracking_status

    def _check(self, operation: str) -> None:
        if not self.should_succeed or operation in self.fail_operations:
            raise CarrierError(
                f"{operation} failed: {self.failure_reason}",
                status_code=422,
                api_error={"message": self.failure_reason},
            )

    def create_order(self, request: CarrierOrderRequest) -> CarrierOrder:
        self._check("create_order")
        order_id = str(next(self._order_numbers))
        self.orders[order_id] = request
        return CarrierOrder(
            order_id=order_id,
            shipment_id=str(next(self._shipment_numbers)),
            status="NEW",
            status_code=1,
        )

    def assign_awb(self, shipment_id: str, courier_id: str | None = None) -> AwbAssignment:
        self._check("assign_awb")
        return AwbAssignment(
            awb_code=f"FAKEAWB{next(self._awb_numbers):08d}",
            courier_company_id=courier_id or FAKE_COURIER_ID,
            courier_name=FAKE_COURIER_NAME,
            shipment_id=shipment_id,
        )

    def schedule_pickup(self, shipment_ids: list[str]) -> PickupResult:
        self._check("schedule_pickup")
        pickup_date = (datetime.now(UTC) + timedelta(days=1)).strftime("%Y-%m-%d %H:%M:%S")
        return PickupResult(
            scheduled=True,
            pickup_scheduled_date=pickup_date,
            pickup_token_number=f"PKP-{shipment_ids[0]}",
        )

    def generate_label(self, shipment_ids: list[str]) -> LabelResult:
        self._check("generate_label")
        return LabelResult(
            created=True,
            label_url=f"https://fake-carrier.example.com/labels/{shipment_ids[0]}.pdf",
        )

    def generate_manifest(self, shipment_ids: list[str]) -> ManifestResult:
        self._check("generate_manifest")
        return ManifestResult(manifest_url=f"https://fake-carrier.example.com/manifests/{'-'.join(shipment_ids)}.pdf")

    def _tracking(self, awb_code: str) -> Tracking:
        now = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
        label = status_label(self.tracking_status, "UNKNOWN")
        return Tracking(
            tracking_data={
                "track_status": 1,
                "shipment_status": self.tracking_status,
                "shipment_track": [{"awb_code": awb_code, "current_status": label}],
            },
            shipment_status=self.tracking_status,
            current_status=label,
            track_url=f"https://fake-carrier.example.com/track/{awb_code}",
            activities=(TrackingActivity(date=now, activity=label, location="Hub, Mumbai", status_label=label),),
        )

    def track_awb(self, awb_code: str) -> Tracking:
        self._check("track_awb")
        return self._tracking(awb_code)

    def track_shipment(self, shipment_id: str) -> Tracking:
        self._check("track_shipment")
        return self._tracking(f"SHIPMENT-{shipment_id}")

    def check_serviceability(
        self,
        pickup_postcode: str,
        delivery_postcode: str,
        weight: float,
        cod: bool = False,
    ) -> Serviceability:
        self._check("check_serviceability")
        option = CourierOption(
            courier_company_id=FAKE_COURIER_ID,
            courier_name=FAKE_COURIER_NAME,
            freight_charge=round(40 + 20 * weight, 2),
            cod_charges=30.0 if cod else 0.0,
            estimated_delivery_days="3",
            rate=round(40 + 20 * weight, 2),
        )
        return Serviceability(couriers=(option,), recommended_courier_id=FAKE_COURIER_ID)

    def pickup_locations(self) -> list[PickupLocation]:
        self._check("pickup_locations")
        return [PickupLocation(id="1", pickup_location="Primary", city="Mumbai", state="Maharashtra", pin_code="400001")]

    def cancel_orders(self, order_ids: list[str]) -> bool:
        self._check("cancel_orders")
        self.cancelled.extend(order_ids)
        return True

    def verify_webhook_signature(self, _payload: str, _signature: str) -> bool:
        return True
