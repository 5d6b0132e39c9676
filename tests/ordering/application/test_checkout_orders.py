"""Application tests for recording hosted checkout orders."""

import json

import pytest
from ordering.checkout.checkout_order import CheckoutOrder, RecordCheckoutOrder, checkout_order_details
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

CALLBACK = {
    "order_id": "SR-CHK-1",
    "total_amount_payable": 1299.0,
    "payment_type": "PREPAID",
    "status": "SUCCESS",
    "email": "asha@example.com",
    "cart_data": {"items": [{"variant_id": "M", "quantity": 1, "price": 1299.0}]},
}


def _record(payload):
    return current_domain.process(RecordCheckoutOrder(body=json.dumps(payload)), asynchronous=False)


class TestRecordCheckoutOrder:
    def test_records_callback(self):
        checkout_order_id = _record(CALLBACK)
        checkout_order = current_domain.repository_for(CheckoutOrder).get(checkout_order_id)
        assert checkout_order.carrier_order_id == "SR-CHK-1"
        assert checkout_order.total_amount == 1299.0
        assert checkout_order.status == "success"
        assert json.loads(checkout_order.raw_payload) == CALLBACK

    def test_repeated_callback_updates_same_record(self):
        first = _record(CALLBACK)
        second = _record({**CALLBACK, "status": "REFUNDED"})

        assert first == second
        results = current_domain.repository_for(CheckoutOrder)._dao.query.all()
        assert results.total == 1
        assert results.first.status == "refunded"

    def test_callback_must_be_an_object(self):
        with pytest.raises(ValidationError) as exc:
            current_domain.process(RecordCheckoutOrder(body="[1, 2]"), asynchronous=False)
        assert "payload" in exc.value.messages

    def test_callback_must_be_json(self):
        with pytest.raises(ValidationError):
            current_domain.process(RecordCheckoutOrder(body="not json"), asynchronous=False)


class TestCheckoutOrderDetails:
    def test_missing_order_id(self):
        with pytest.raises(ValidationError) as exc:
            checkout_order_details({"total_amount": 10})
        assert "order_id" in exc.value.messages

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            checkout_order_details(["SR-1", 10])
