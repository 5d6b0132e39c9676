"""Shared BDD fixtures and step definitions for the Ordering domain."""

import json

import pytest
from ordering.order.order import Order
from ordering.order.placement import PlaceOrder
from ordering.shipping.creation import CreateShipment
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def context():
    """Shared state between steps of one scenario."""
    return {"order_id": None, "outcome": None, "applied": None, "exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a placed order worth {total:f}"))
def placed_order_worth(context, address, fake_carrier, total):
    line = {
        "product_id": "prod-001",
        "product_name": "Cotton Kurti",
        "sku": "COTTON-KURTI-M",
        "size": "M",
        "quantity": 1,
        "unit_price": total,
        "total_price": total,
    }
    context["order_id"] = current_domain.process(
        PlaceOrder(customer_id="cust-001", items=json.dumps([line]), shipping_address=json.dumps(address)),
        asynchronous=False,
    )


@given(parsers.cfparse('the carrier is failing with "{reason}"'))
def carrier_failing(fake_carrier, reason):
    fake_carrier.configure(should_succeed=False, failure_reason=reason)


@given(parsers.cfparse('the carrier fails "{operation}"'))
def carrier_fails_operation(fake_carrier, operation):
    fake_carrier.configure(fail_operations=[operation])


@given("the order has been shipped")
def order_has_been_shipped(context):
    context["outcome"] = current_domain.process(CreateShipment(order_id=context["order_id"]), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
def _order(context) -> Order:
    return current_domain.repository_for(Order).get(context["order_id"])


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(context, status):
    assert _order(context).status == status


@then(parsers.cfparse('the order has AWB "{awb_code}"'))
def order_has_awb(context, awb_code):
    assert _order(context).awb_code == awb_code


@then(parsers.cfparse('the order has carrier order "{carrier_order_id}"'))
def order_has_carrier_order(context, carrier_order_id):
    assert _order(context).carrier_order_id == carrier_order_id


@then(parsers.cfparse('the order carrier error mentions "{text}"'))
def carrier_error_mentions(context, text):
    assert text in (_order(context).carrier_error or "")


@then(parsers.cfparse('the order timeline ends with "{status}"'))
def timeline_ends_with(context, status):
    assert _order(context).timeline[-1].status == status


@then("the action fails with a validation error")
def action_fails(context):
    assert isinstance(context["exc"], ValidationError)
