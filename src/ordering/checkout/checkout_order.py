"""Checkout orders: orders completed on the carrier's hosted checkout.

The carrier calls back once the shopper pays. Callbacks can repeat, so the
record is upserted by the carrier's order id.
"""

import json
from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering


@ordering.event(part_of="CheckoutOrder")
class CheckoutOrderRecorded:
    __version__ = 1

    checkout_order_id = Identifier(required=True)
    carrier_order_id = String(required=True)
    total_amount = Float(required=True)
    status = String(required=True)
    recorded_at = DateTime(required=True)


@ordering.aggregate
class CheckoutOrder:
    carrier_order_id = String(required=True, unique=True, max_length=100)
    customer_id = Identifier()
    items = Text(required=True)  # JSON list
    phone = String(max_length=20)
    email = String(max_length=255)
    payment_type = String(max_length=20)  # prepaid or cod
    total_amount = Float(required=True, min_value=0.0)
    status = String(max_length=50, default="paid")
    shipping_address = Text()  # JSON
    raw_payload = Text()  # JSON, as received
    created_at = DateTime()
    updated_at = DateTime()

    def record(self, details: dict, raw_payload: dict) -> None:
        now = datetime.now(UTC)
        for name, value in details.items():
            setattr(self, name, value)
        self.raw_payload = json.dumps(raw_payload)
        self.created_at = self.created_at or now
        self.updated_at = now
        self.raise_(
            CheckoutOrderRecorded(
                checkout_order_id=str(self.id),
                carrier_order_id=self.carrier_order_id,
                total_amount=self.total_amount,
                status=self.status,
                recorded_at=now,
            )
        )


def checkout_order_details(payload: dict) -> dict:
    """Pull the fields we keep out of a checkout callback."""
    if not isinstance(payload, dict):
        raise ValidationError({"payload": ["Checkout callback must be a JSON object"]})

    carrier_order_id = payload.get("order_id") or payload.get("sr_order_id")
    if not carrier_order_id:
        raise ValidationError({"order_id": ["Checkout callback carries no order id"]})

    total = payload.get("total_amount_payable", payload.get("total_amount"))
    if total is None:
        raise ValidationError({"total_amount": ["Checkout callback carries no total"]})

    items = (payload.get("cart_data") or {}).get("items") or payload.get("items") or []
    address = payload.get("shipping_address")
    return {
        "carrier_order_id": str(carrier_order_id),
        "customer_id": payload.get("customer_id"),
        "items": json.dumps(items),
        "phone": payload.get("phone"),
        "email": payload.get("email"),
        "payment_type": (payload.get("payment_type") or "prepaid").lower(),
        "total_amount": float(total),
        "status": (payload.get("status") or "paid").lower(),
        "shipping_address": json.dumps(address) if address else None,
    }


@ordering.command(part_of="CheckoutOrder")
class RecordCheckoutOrder:
    body = Text(required=True)  # raw callback JSON


@ordering.command_handler(part_of=CheckoutOrder)
class CheckoutOrderHandler:
    @handle(RecordCheckoutOrder)
    def record_checkout_order(self, command) -> str:
        try:
            payload = json.loads(command.body)
        except ValueError:
            raise ValidationError({"payload": ["Checkout callback is not valid JSON"]}) from None
        details = checkout_order_details(payload)

        repo = current_domain.repository_for(CheckoutOrder)
        results = repo._dao.query.filter(carrier_order_id=details["carrier_order_id"]).all()
        if results.items:
            checkout_order = results.first
        else:
            checkout_order = CheckoutOrder(
                carrier_order_id=details["carrier_order_id"],
                items=details["items"],
                total_amount=details["total_amount"],
            )
        checkout_order.record(details, payload)
        repo.add(checkout_order)
        return str(checkout_order.id)
