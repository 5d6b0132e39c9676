"""Order aggregate (CQRS): the core of the ordering domain.

An order is placed with priced lines and a shipping address, then handed to
the carrier. From there on the carrier owns the shipment; the order mirrors
what the carrier reports.

Status flow:
    pending → processing (AWB assigned) → shipped → delivered
    shipped → returned
    {pending, processing, shipped} → cancelled

Carrier tracking updates may move the status anywhere the carrier says;
only stale or repeated updates are dropped.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.carrier.port import AwbAssignment, CarrierOrder, PickupResult
from ordering.carrier.statuses import is_significant, order_status_for, status_label
from ordering.carrier.webhook import CarrierUpdate
from ordering.domain import ordering
from ordering.order.events import (
    AwbAssigned,
    CarrierErrorRecorded,
    CarrierOrderCreated,
    CarrierStatusUpdated,
    ManifestGenerated,
    OrderCancelled,
    OrderPlaced,
    PickupScheduled,
    ShippingLabelGenerated,
)

FREE_SHIPPING_THRESHOLD = 999.0
FLAT_SHIPPING_COST = 99.0


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentMethod(Enum):
    PREPAID = "prepaid"
    COD = "cod"


_NON_CANCELLABLE_STATUSES = {
    OrderStatus.DELIVERED,
    OrderStatus.RETURNED,
    OrderStatus.CANCELLED,
}


def shipping_cost_for(subtotal: float) -> float:
    return 0.0 if subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_COST


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    name = String(required=True, max_length=255)
    phone = String(required=True, max_length=20)
    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    pincode = String(required=True, max_length=10)
    country = String(max_length=100, default="India")


@ordering.value_object(part_of="Order")
class CarrierShipment:
    """What the carrier knows the order by."""

    carrier_order_id = String(max_length=50)
    carrier_shipment_id = String(max_length=50)
    awb_code = String(max_length=50)
    courier_id = String(max_length=50)
    courier_name = String(max_length=100)
    carrier_status = String(max_length=100)
    label_url = String(max_length=500)
    manifest_url = String(max_length=500)
    pickup_token = String(max_length=100)
    pickup_scheduled_date = String(max_length=50)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_image = String(max_length=500)
    size = String(max_length=20)
    sku = String(max_length=100)
    weight = Float(default=0.5)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)


@ordering.entity(part_of="Order")
class TimelineEntry:
    """A line on the customer's order history."""

    status = String(required=True, max_length=50)
    description = String(max_length=500)
    location = String(max_length=200)
    occurred_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    email = String(max_length=255)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    subtotal = Float(required=True, min_value=0.0)
    shipping_cost = Float(default=0.0)
    total = Float(required=True, min_value=0.0)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.PREPAID.value)
    shipping_address = ValueObject(ShippingAddress)
    items = HasMany(OrderItem)
    timeline = HasMany(TimelineEntry)
    shipment = ValueObject(CarrierShipment)
    # Lookup keys for carrier callbacks, mirrored from `shipment`
    carrier_order_id = String(max_length=50)
    awb_code = String(max_length=50)
    carrier_error = String(max_length=1000)
    tracking_data = Text()  # JSON snapshot of the last tracking update
    last_carrier_status_id = Integer()
    last_carrier_timestamp = String(max_length=50)
    last_carrier_event_at = DateTime()
    cancellation_reason = String(max_length=500)
    shipped_at = DateTime()
    delivered_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id: str,
        items: list[dict],
        shipping_address: dict | None,
        email: str | None = None,
        payment_method: str = PaymentMethod.PREPAID.value,
    ):
        """Place an order from priced lines."""
        if not items:
            raise ValidationError({"items": ["No items provided"]})
        if not shipping_address:
            raise ValidationError({"shipping_address": ["Shipping address required"]})

        now = datetime.now(UTC)
        subtotal = round(sum(line["total_price"] for line in items), 2)
        shipping_cost = shipping_cost_for(subtotal)
        order = cls(
            customer_id=customer_id,
            email=email,
            status=OrderStatus.PENDING.value,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            total=round(subtotal + shipping_cost, 2),
            payment_method=payment_method,
            shipping_address=ShippingAddress(**shipping_address),
            created_at=now,
            updated_at=now,
        )
        for line in items:
            order.add_items(OrderItem(**line))
        order.add_timeline(
            TimelineEntry(
                status=OrderStatus.PENDING.value,
                description="Order placed successfully",
                occurred_at=now,
            )
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=customer_id,
                email=email,
                items=json.dumps(items),
                subtotal=order.subtotal,
                shipping_cost=order.shipping_cost,
                total=order.total,
                payment_method=payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _shipment_with(self, **changes) -> CarrierShipment:
        current = self.shipment.to_dict() if self.shipment else {}
        current.update(changes)
        return CarrierShipment(**current)

    def _require_carrier_shipment(self) -> None:
        if not self.shipment or not self.shipment.carrier_shipment_id:
            raise ValidationError({"shipment": ["Order has no carrier shipment yet"]})

    def add_timeline_entry(self, status: str, description: str, location: str | None = None) -> None:
        self.add_timeline(
            TimelineEntry(
                status=status,
                description=description,
                location=location,
                occurred_at=datetime.now(UTC),
            )
        )

    def tracking_snapshot(self) -> dict:
        return json.loads(self.tracking_data) if self.tracking_data else {}

    # -------------------------------------------------------------------
    # Carrier shipment lifecycle
    # -------------------------------------------------------------------
    def assert_can_ship(self) -> None:
        if self.carrier_order_id:
            raise ValidationError({"carrier_order_id": ["Order already has a carrier shipment"]})
        current = OrderStatus(self.status)
        if current in _NON_CANCELLABLE_STATUSES:
            raise ValidationError({"status": [f"Cannot ship order in {current.value} state"]})

    def record_carrier_order(self, carrier_order: CarrierOrder) -> None:
        """Record the carrier order opened for this order."""
        self.assert_can_ship()

        now = datetime.now(UTC)
        self.shipment = self._shipment_with(
            carrier_order_id=carrier_order.order_id,
            carrier_shipment_id=carrier_order.shipment_id,
            carrier_status=carrier_order.status,
        )
        self.carrier_order_id = carrier_order.order_id
        self.carrier_error = None
        self.updated_at = now
        self.raise_(
            CarrierOrderCreated(
                order_id=str(self.id),
                carrier_order_id=carrier_order.order_id,
                carrier_shipment_id=carrier_order.shipment_id,
                carrier_status=carrier_order.status,
                created_at=now,
            )
        )

    def record_awb(self, assignment: AwbAssignment) -> None:
        """Record the waybill the carrier assigned; the order is now processing."""
        self._require_carrier_shipment()
        if not assignment.awb_code:
            raise ValidationError({"awb_code": ["Carrier did not return an AWB code"]})

        now = datetime.now(UTC)
        self.shipment = self._shipment_with(
            awb_code=assignment.awb_code,
            courier_id=assignment.courier_company_id,
            courier_name=assignment.courier_name,
            label_url=assignment.label_url or (self.shipment.label_url if self.shipment else None),
        )
        self.awb_code = assignment.awb_code
        self.status = OrderStatus.PROCESSING.value
        self.carrier_error = None
        self.updated_at = now
        self.raise_(
            AwbAssigned(
                order_id=str(self.id),
                awb_code=assignment.awb_code,
                courier_id=assignment.courier_company_id,
                courier_name=assignment.courier_name,
                assigned_at=now,
            )
        )

    def record_pickup(self, result: PickupResult) -> None:
        self._require_carrier_shipment()
        now = datetime.now(UTC)
        self.shipment = self._shipment_with(
            pickup_token=result.pickup_token_number,
            pickup_scheduled_date=result.pickup_scheduled_date,
        )
        self.updated_at = now
        self.raise_(
            PickupScheduled(
                order_id=str(self.id),
                pickup_scheduled_date=result.pickup_scheduled_date,
                pickup_token=result.pickup_token_number,
                scheduled_at=now,
            )
        )

    def record_label(self, label_url: str) -> None:
        self._require_carrier_shipment()
        now = datetime.now(UTC)
        self.shipment = self._shipment_with(label_url=label_url)
        self.updated_at = now
        self.raise_(ShippingLabelGenerated(order_id=str(self.id), label_url=label_url, generated_at=now))

    def record_manifest(self, manifest_url: str) -> None:
        self._require_carrier_shipment()
        now = datetime.now(UTC)
        self.shipment = self._shipment_with(manifest_url=manifest_url)
        self.updated_at = now
        self.raise_(ManifestGenerated(order_id=str(self.id), manifest_url=manifest_url, generated_at=now))

    def record_carrier_error(self, message: str) -> None:
        now = datetime.now(UTC)
        self.carrier_error = message[:1000]
        self.updated_at = now
        self.raise_(CarrierErrorRecorded(order_id=str(self.id), error=self.carrier_error, recorded_at=now))

    # -------------------------------------------------------------------
    # Carrier tracking updates
    # -------------------------------------------------------------------
    def is_stale(self, update: CarrierUpdate) -> bool:
        """True when the update was already applied or predates the last one."""
        if (
            self.last_carrier_timestamp is not None
            and update.shipment_status_id == self.last_carrier_status_id
            and update.carrier_timestamp == self.last_carrier_timestamp
        ):
            return True
        occurred_at = update.occurred_at
        last_event_at = self.last_carrier_event_at
        if occurred_at is None or last_event_at is None:
            return False
        # SQL providers hand DateTime columns back without a zone; they are stored in UTC.
        if last_event_at.tzinfo is None:
            last_event_at = last_event_at.replace(tzinfo=UTC)
        return occurred_at < last_event_at

    def apply_carrier_update(self, update: CarrierUpdate) -> bool:
        """Mirror a carrier tracking update onto the order.

        Returns False, changing nothing, for stale or repeated updates.
        """
        if self.is_stale(update):
            return False

        now = datetime.now(UTC)
        previous_status = self.status
        new_status = order_status_for(update.shipment_status_id)
        label = status_label(update.shipment_status_id, update.shipment_status)

        self.shipment = self._shipment_with(carrier_status=label)
        self.tracking_data = json.dumps(update.snapshot())
        self.last_carrier_status_id = update.shipment_status_id
        self.last_carrier_timestamp = update.carrier_timestamp
        if update.occurred_at:
            self.last_carrier_event_at = update.occurred_at.astimezone(UTC)

        if new_status != previous_status:
            self.status = new_status
            if new_status == OrderStatus.SHIPPED.value:
                self.shipped_at = now
            elif new_status == OrderStatus.DELIVERED.value:
                self.delivered_at = now

        location = update.last_scan_location or update.courier_name
        if is_significant(update.shipment_status_id):
            self.add_timeline_entry(new_status, update.current_status or label or "", location)

        self.updated_at = now
        self.raise_(
            CarrierStatusUpdated(
                order_id=str(self.id),
                awb_code=self.awb_code,
                shipment_status_id=update.shipment_status_id,
                carrier_status=label,
                previous_status=previous_status,
                order_status=self.status,
                description=update.current_status,
                location=location,
                occurred_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason: str | None = None) -> None:
        current = OrderStatus(self.status)
        if current in _NON_CANCELLABLE_STATUSES:
            raise ValidationError({"status": [f"Cannot cancel order in {current.value} state"]})

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.add_timeline_entry(OrderStatus.CANCELLED.value, reason or "Order cancelled")
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                carrier_order_id=self.carrier_order_id,
                reason=reason,
                cancelled_at=now,
            )
        )
