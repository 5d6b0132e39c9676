import json

import pytest


def _reset(domain):
    for _, provider in domain.providers.items():
        provider._data_reset()
    domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def run_around_tests(catalogue_domain, ordering_domain):
    """Push the ordering context before each test, cleanup both domains after."""
    ctx = ordering_domain.domain_context()
    ctx.push()

    yield

    _reset(ordering_domain)
    ctx.pop()

    with catalogue_domain.domain_context():
        _reset(catalogue_domain)


ADDRESS = {
    "name": "Asha Rao",
    "phone": "9876543210",
    "line1": "12 MG Road",
    "line2": "Indiranagar",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560001",
}


@pytest.fixture()
def address():
    return dict(ADDRESS)


@pytest.fixture()
def placed_order(address):
    """A pending order for one kurti, persisted through PlaceOrder."""
    from ordering.order.placement import PlaceOrder
    from protean.utils.globals import current_domain

    lines = [
        {
            "product_id": "prod-1",
            "product_name": "Cotton Kurti",
            "size": "M",
            "sku": "COTTON-KURTI-M",
            "quantity": 2,
            "unit_price": 650.0,
            "total_price": 1300.0,
        }
    ]
    return current_domain.process(
        PlaceOrder(
            customer_id="cust-1",
            email="asha@example.com",
            items=json.dumps(lines),
            shipping_address=json.dumps(address),
        ),
        asynchronous=False,
    )


@pytest.fixture()
def fake_carrier():
    from ordering.carrier import set_carrier
    from ordering.carrier.fake_adapter import FakeCarrier

    carrier = FakeCarrier()
    set_carrier(carrier)
    return carrier
