"""Application tests for creating carrier shipments."""

import pytest
from ordering.order.order import Order
from ordering.shipping.creation import (
    AWB_FAILED,
    CREATE_FAILED,
    CREATED,
    CreateShipment,
    build_carrier_order_request,
)
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain


def _create(order_id, **kwargs):
    return current_domain.process(CreateShipment(order_id=order_id, **kwargs), asynchronous=False)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestBuildCarrierOrderRequest:
    def test_shapes_order_for_carrier(self, placed_order):
        request = build_carrier_order_request(_order(placed_order), pickup_location="Warehouse", weight=1.2)
        assert request.order_id == placed_order
        assert request.pickup_location == "Warehouse"
        assert request.billing_customer_name == "Asha"
        assert request.billing_last_name == "Rao"
        assert request.billing_address_2 == "Indiranagar"
        assert request.payment_method == "Prepaid"
        assert request.sub_total == 1300.0
        assert request.weight == 1.2
        assert request.order_items[0].sku == "COTTON-KURTI-M"
        assert request.order_items[0].units == 2
        assert len(request.order_date) == len("2026-10-19 10:00")


class TestCreateShipmentHandler:
    def test_full_flow(self, placed_order, fake_carrier):
        outcome = _create(placed_order)

        assert outcome.status == CREATED
        assert outcome.succeeded
        assert outcome.carrier_order_id == "100001"
        assert outcome.awb_code == "FAKEAWB00000001"
        assert outcome.pickup_scheduled is True
        assert outcome.label_url.endswith("200001.pdf")

        order = _order(placed_order)
        assert order.status == "processing"
        assert order.carrier_order_id == "100001"
        assert order.awb_code == "FAKEAWB00000001"
        assert order.shipment.pickup_token == "PKP-200001"
        assert order.timeline[-1].description == "Shipment created with AWB: FAKEAWB00000001"
        assert order.carrier_error is None

    def test_dimensions_reach_the_carrier(self, placed_order, fake_carrier):
        _create(placed_order, weight=2.0, length=40)
        (request,) = fake_carrier.orders.values()
        assert request.weight == 2.0
        assert request.length == 40
        assert request.breadth == 15

    def test_chosen_courier(self, placed_order, fake_carrier):
        _create(placed_order, courier_id="51")
        assert _order(placed_order).shipment.courier_id == "51"

    def test_carrier_order_failure_is_recorded(self, placed_order, fake_carrier):
        fake_carrier.configure(should_succeed=False, failure_reason="Invalid pincode")
        outcome = _create(placed_order)

        assert outcome.status == CREATE_FAILED
        assert "Invalid pincode" in outcome.error
        assert outcome.details == {"message": "Invalid pincode"}

        order = _order(placed_order)
        assert order.status == "pending"
        assert order.carrier_order_id is None
        assert "Invalid pincode" in order.carrier_error

    def test_awb_failure_keeps_carrier_order(self, placed_order, fake_carrier):
        fake_carrier.configure(fail_operations=["assign_awb"])
        outcome = _create(placed_order)

        assert outcome.status == AWB_FAILED
        assert outcome.carrier_order_id == "100001"
        assert outcome.shipment_id == "200001"

        order = _order(placed_order)
        assert order.status == "pending"
        assert order.carrier_order_id == "100001"
        assert order.carrier_error.startswith("AWB assignment failed")

    def test_pickup_and_label_failures_do_not_fail_shipment(self, placed_order, fake_carrier):
        fake_carrier.configure(fail_operations=["schedule_pickup", "generate_label"])
        outcome = _create(placed_order)

        assert outcome.status == CREATED
        assert outcome.pickup_scheduled is False
        assert outcome.label_url is None
        assert _order(placed_order).status == "processing"

    def test_cannot_ship_twice(self, placed_order, fake_carrier):
        _create(placed_order)
        with pytest.raises(ValidationError):
            _create(placed_order)
        assert len(fake_carrier.orders) == 1
