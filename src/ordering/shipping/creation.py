"""Shipment creation: command and handler.

Runs the full carrier flow for a placed order: open a carrier order, assign
a waybill, schedule the pickup and generate the label. Carrier failures are
recorded on the order rather than raised, so they survive the unit of work
and the caller gets a `ShipmentOutcome` describing how far the flow got.
"""

from dataclasses import asdict, dataclass, field

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.carrier import get_carrier
from ordering.carrier.config import CarrierSettings
from ordering.carrier.errors import CarrierError
from ordering.carrier.port import CarrierOrderItem, CarrierOrderRequest
from ordering.carrier.webhook import CARRIER_TIMEZONE
from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus, PaymentMethod

logger = structlog.get_logger(__name__)

DEFAULT_WEIGHT = 0.5  # kg
DEFAULT_LENGTH = 20  # cm
DEFAULT_BREADTH = 15
DEFAULT_HEIGHT = 5

CREATED = "created"
CREATE_FAILED = "create_failed"
AWB_FAILED = "awb_failed"


@dataclass(frozen=True)
class ShipmentOutcome:
    status: str
    order_id: str
    carrier_order_id: str | None = None
    shipment_id: str | None = None
    awb_code: str | None = None
    courier_name: str | None = None
    label_url: str | None = None
    pickup_scheduled: bool = False
    error: str | None = None
    details: dict = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == CREATED

    def to_dict(self) -> dict:
        return asdict(self)


def build_carrier_order_request(
    order: Order,
    pickup_location: str,
    weight: float = DEFAULT_WEIGHT,
    length: float = DEFAULT_LENGTH,
    breadth: float = DEFAULT_BREADTH,
    height: float = DEFAULT_HEIGHT,
) -> CarrierOrderRequest:
    """Shape an order the way the carrier's ad-hoc order endpoint wants it."""
    address = order.shipping_address
    name_parts = (address.name or "").split()
    order_date = order.created_at.astimezone(CARRIER_TIMEZONE) if order.created_at else None

    return CarrierOrderRequest(
        order_id=str(order.id),
        order_date=order_date.strftime("%Y-%m-%d %H:%M") if order_date else "",
        pickup_location=pickup_location,
        billing_customer_name=name_parts[0] if name_parts else "Customer",
        billing_last_name=" ".join(name_parts[1:]),
        billing_address=address.line1 or "",
        billing_address_2=address.line2 or "",
        billing_city=address.city or "",
        billing_pincode=address.pincode or "",
        billing_state=address.state or "",
        billing_country="India",
        billing_email=order.email or "customer@example.com",
        billing_phone=address.phone or "",
        order_items=tuple(
            CarrierOrderItem(
                name=item.product_name,
                sku=item.sku or str(item.product_id),
                units=item.quantity,
                selling_price=item.unit_price,
            )
            for item in order.items or []
        ),
        payment_method="COD" if order.payment_method == PaymentMethod.COD.value else "Prepaid",
        sub_total=order.subtotal or order.total,
        length=length,
        breadth=breadth,
        height=height,
        weight=weight,
        shipping_is_billing=True,
    )


@ordering.command(part_of="Order")
class CreateShipment:
    order_id = Identifier(required=True)
    courier_id = String(max_length=50)
    weight = Float(default=DEFAULT_WEIGHT, min_value=0.01)
    length = Float(default=DEFAULT_LENGTH, min_value=0.1)
    breadth = Float(default=DEFAULT_BREADTH, min_value=0.1)
    height = Float(default=DEFAULT_HEIGHT, min_value=0.1)


@ordering.command_handler(part_of=Order)
class ShipmentCreationHandler:
    @handle(CreateShipment)
    def create_shipment(self, command) -> ShipmentOutcome:
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_can_ship()

        carrier = get_carrier()
        request = build_carrier_order_request(
            order,
            pickup_location=CarrierSettings.from_env().pickup_location,
            weight=command.weight or DEFAULT_WEIGHT,
            length=command.length or DEFAULT_LENGTH,
            breadth=command.breadth or DEFAULT_BREADTH,
            height=command.height or DEFAULT_HEIGHT,
        )

        # Step 1: carrier order
        try:
            carrier_order = carrier.create_order(request)
        except CarrierError as exc:
            logger.error("Carrier order creation failed", order_id=str(order.id), error=exc.message)
            order.record_carrier_error(exc.message)
            repo.add(order)
            return ShipmentOutcome(
                status=CREATE_FAILED,
                order_id=str(order.id),
                error=exc.message,
                details=exc.api_error,
            )
        order.record_carrier_order(carrier_order)

        # Step 2: waybill
        try:
            assignment = carrier.assign_awb(carrier_order.shipment_id, command.courier_id)
        except CarrierError as exc:
            return self._awb_failed(repo, order, carrier_order.order_id, exc.message, exc.api_error)
        if not assignment.awb_code:
            return self._awb_failed(repo, order, carrier_order.order_id, "no AWB code returned", {})
        order.record_awb(assignment)

        # Steps 3 and 4 are best effort
        pickup_scheduled = False
        try:
            pickup = carrier.schedule_pickup([carrier_order.shipment_id])
            if pickup.scheduled:
                order.record_pickup(pickup)
                pickup_scheduled = True
        except CarrierError as exc:
            logger.warning("Pickup scheduling failed", order_id=str(order.id), error=exc.message)

        label_url = None
        try:
            label = carrier.generate_label([carrier_order.shipment_id])
            if label.label_url:
                order.record_label(label.label_url)
                label_url = label.label_url
        except CarrierError as exc:
            logger.warning("Label generation failed", order_id=str(order.id), error=exc.message)

        order.add_timeline_entry(
            OrderStatus.PROCESSING.value,
            f"Shipment created with AWB: {assignment.awb_code}",
            f"Courier: {assignment.courier_name or 'Assigning'}",
        )
        repo.add(order)

        logger.info(
            "Shipment created",
            order_id=str(order.id),
            carrier_order_id=carrier_order.order_id,
            awb_code=assignment.awb_code,
        )
        return ShipmentOutcome(
            status=CREATED,
            order_id=str(order.id),
            carrier_order_id=carrier_order.order_id,
            shipment_id=carrier_order.shipment_id,
            awb_code=assignment.awb_code,
            courier_name=assignment.courier_name,
            label_url=label_url or (order.shipment.label_url if order.shipment else None),
            pickup_scheduled=pickup_scheduled,
        )

    def _awb_failed(self, repo, order, carrier_order_id, message, details) -> ShipmentOutcome:
        logger.error("AWB assignment failed", order_id=str(order.id), error=message)
        order.record_carrier_error(f"AWB assignment failed: {message}")
        repo.add(order)
        return ShipmentOutcome(
            status=AWB_FAILED,
            order_id=str(order.id),
            carrier_order_id=carrier_order_id,
            shipment_id=order.shipment.carrier_shipment_id if order.shipment else None,
            error=f"AWB assignment failed: {message}",
            details=details,
        )
