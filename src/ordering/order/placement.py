"""Order placement: command and handler."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, PaymentMethod


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    email = String(max_length=255)
    items = Text()  # JSON: list of priced lines
    shipping_address = Text()  # JSON: address dict
    payment_method = String(max_length=20, default=PaymentMethod.PREPAID.value)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = Order.place(
            customer_id=command.customer_id,
            email=command.email,
            items=json.loads(command.items) if command.items else [],
            shipping_address=json.loads(command.shipping_address) if command.shipping_address else None,
            payment_method=command.payment_method or PaymentMethod.PREPAID.value,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
