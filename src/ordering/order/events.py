"""Domain events for the Order aggregate.

Raised as an order moves from placement through the carrier's shipment
lifecycle. The shipment tracking projection is built from these.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    email = String()
    items = Text(required=True)  # JSON: list of priced lines
    subtotal = Float(required=True)
    shipping_cost = Float(required=True)
    total = Float(required=True)
    payment_method = String(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class CarrierOrderCreated:
    """The carrier accepted the order and opened a shipment for it."""

    __version__ = 1

    order_id = Identifier(required=True)
    carrier_order_id = String(required=True)
    carrier_shipment_id = String(required=True)
    carrier_status = String()
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class AwbAssigned:
    __version__ = 1

    order_id = Identifier(required=True)
    awb_code = String(required=True)
    courier_id = String()
    courier_name = String()
    assigned_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PickupScheduled:
    __version__ = 1

    order_id = Identifier(required=True)
    pickup_scheduled_date = String()
    pickup_token = String()
    scheduled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShippingLabelGenerated:
    __version__ = 1

    order_id = Identifier(required=True)
    label_url = String(required=True)
    generated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ManifestGenerated:
    __version__ = 1

    order_id = Identifier(required=True)
    manifest_url = String(required=True)
    generated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class CarrierErrorRecorded:
    """A carrier call made on behalf of the order failed."""

    __version__ = 1

    order_id = Identifier(required=True)
    error = String(required=True, max_length=1000)
    recorded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class CarrierStatusUpdated:
    """A carrier tracking update was applied to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    awb_code = String()
    shipment_status_id = Integer()
    carrier_status = String()
    previous_status = String(required=True)
    order_status = String(required=True)
    description = String(max_length=500)
    location = String(max_length=200)
    occurred_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    carrier_order_id = String()
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)
