"""Tests for the Order aggregate: placement, carrier lifecycle and cancellation."""

import json

import pytest
from ordering.carrier.port import AwbAssignment, CarrierOrder, PickupResult
from ordering.order.events import (
    AwbAssigned,
    CarrierErrorRecorded,
    CarrierOrderCreated,
    OrderCancelled,
    OrderPlaced,
    PickupScheduled,
    ShippingLabelGenerated,
)
from ordering.order.order import (
    FLAT_SHIPPING_COST,
    Order,
    OrderStatus,
    shipping_cost_for,
)
from protean.exceptions import ValidationError

ADDRESS = {
    "name": "Asha Rao",
    "phone": "9876543210",
    "line1": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560001",
}


def _line(total_price=600.0, quantity=1, **overrides):
    line = {
        "product_id": "prod-1",
        "product_name": "Cotton Kurti",
        "sku": "COTTON-KURTI-M",
        "size": "M",
        "quantity": quantity,
        "unit_price": total_price / quantity,
        "total_price": total_price,
    }
    line.update(overrides)
    return line


def _order(lines=None, **overrides):
    kwargs = {
        "customer_id": "cust-1",
        "items": lines or [_line()],
        "shipping_address": ADDRESS,
        "email": "asha@example.com",
    }
    kwargs.update(overrides)
    return Order.place(**kwargs)


def _shipped_to_carrier(order):
    order.record_carrier_order(CarrierOrder(order_id="100001", shipment_id="200001", status="NEW"))
    return order


class TestShippingCost:
    def test_below_threshold_pays_flat_rate(self):
        assert shipping_cost_for(998.99) == FLAT_SHIPPING_COST

    def test_threshold_ships_free(self):
        assert shipping_cost_for(999.0) == 0.0


class TestOrderPlacement:
    def test_totals_with_shipping(self):
        order = _order()
        assert order.subtotal == 600.0
        assert order.shipping_cost == 99.0
        assert order.total == 699.0

    def test_free_shipping_over_threshold(self):
        order = _order([_line(700.0), _line(400.0, product_id="prod-2")])
        assert order.subtotal == 1100.0
        assert order.shipping_cost == 0.0
        assert order.total == 1100.0

    def test_initial_state(self):
        order = _order()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_method == "prepaid"
        assert order.shipping_address.country == "India"
        assert len(order.items) == 1
        assert [t.description for t in order.timeline] == ["Order placed successfully"]

    def test_raises_order_placed(self):
        order = _order()
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.total == 699.0
        assert json.loads(event.items)[0]["sku"] == "COTTON-KURTI-M"

    def test_requires_items(self):
        with pytest.raises(ValidationError) as exc:
            Order.place(customer_id="cust-1", items=[], shipping_address=ADDRESS)
        assert "items" in exc.value.messages

    def test_requires_address(self):
        with pytest.raises(ValidationError) as exc:
            Order.place(customer_id="cust-1", items=[_line()], shipping_address=None)
        assert "shipping_address" in exc.value.messages

    def test_rejects_unknown_payment_method(self):
        with pytest.raises(ValidationError):
            _order(payment_method="barter")


class TestCarrierLifecycle:
    def test_record_carrier_order(self):
        order = _shipped_to_carrier(_order())
        assert order.carrier_order_id == "100001"
        assert order.shipment.carrier_shipment_id == "200001"
        assert order.status == OrderStatus.PENDING.value
        assert isinstance(order._events[-1], CarrierOrderCreated)

    def test_cannot_ship_twice(self):
        order = _shipped_to_carrier(_order())
        with pytest.raises(ValidationError) as exc:
            order.assert_can_ship()
        assert "carrier_order_id" in exc.value.messages

    def test_cannot_ship_cancelled_order(self):
        order = _order()
        order.cancel("Changed mind")
        with pytest.raises(ValidationError):
            order.record_carrier_order(CarrierOrder(order_id="1", shipment_id="2"))

    def test_record_awb_moves_to_processing(self):
        order = _shipped_to_carrier(_order())
        order.record_awb(AwbAssignment(awb_code="AWB123", courier_company_id="24", courier_name="Delhivery"))
        assert order.status == OrderStatus.PROCESSING.value
        assert order.awb_code == "AWB123"
        assert order.shipment.awb_code == "AWB123"
        assert order.shipment.courier_name == "Delhivery"
        assert order.shipment.carrier_order_id == "100001"
        assert isinstance(order._events[-1], AwbAssigned)

    def test_awb_requires_carrier_shipment(self):
        with pytest.raises(ValidationError) as exc:
            _order().record_awb(AwbAssignment(awb_code="AWB123"))
        assert "shipment" in exc.value.messages

    def test_awb_requires_code(self):
        order = _shipped_to_carrier(_order())
        with pytest.raises(ValidationError):
            order.record_awb(AwbAssignment(awb_code=None))

    def test_record_pickup_and_label(self):
        order = _shipped_to_carrier(_order())
        order.record_pickup(PickupResult(scheduled=True, pickup_scheduled_date="2026-10-20", pickup_token_number="T1"))
        order.record_label("https://labels/1.pdf")

        assert order.shipment.pickup_token == "T1"
        assert order.shipment.pickup_scheduled_date == "2026-10-20"
        assert order.shipment.label_url == "https://labels/1.pdf"
        assert isinstance(order._events[-2], PickupScheduled)
        assert isinstance(order._events[-1], ShippingLabelGenerated)

    def test_record_manifest(self):
        order = _shipped_to_carrier(_order())
        order.record_manifest("https://manifests/1.pdf")
        assert order.shipment.manifest_url == "https://manifests/1.pdf"

    def test_record_carrier_error_is_truncated(self):
        order = _order()
        order.record_carrier_error("x" * 1500)
        assert len(order.carrier_error) == 1000
        assert isinstance(order._events[-1], CarrierErrorRecorded)

    def test_successful_step_clears_previous_error(self):
        order = _order()
        order.record_carrier_error("Carrier timed out")
        _shipped_to_carrier(order)
        assert order.carrier_error is None


class TestCancellation:
    def test_cancel_pending_order(self):
        order = _order()
        order.cancel("Customer request")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Customer request"
        assert order.timeline[-1].description == "Customer request"
        assert isinstance(order._events[-1], OrderCancelled)

    def test_cancel_without_reason(self):
        order = _order()
        order.cancel()
        assert order.timeline[-1].description == "Order cancelled"

    @pytest.mark.parametrize("status", ["delivered", "returned", "cancelled"])
    def test_terminal_orders_cannot_be_cancelled(self, status):
        order = _order()
        order.status = status
        with pytest.raises(ValidationError) as exc:
            order.cancel()
        assert "status" in exc.value.messages
