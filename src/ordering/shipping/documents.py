"""Pickup, label and manifest: standalone carrier steps.

Used to retry a step that failed during shipment creation, or to batch
manifests at the end of the day. Carrier failures propagate as
`CarrierError` and roll the unit of work back.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from ordering.carrier import get_carrier
from ordering.carrier.port import LabelResult, ManifestResult, PickupResult
from ordering.domain import ordering
from ordering.order.order import Order


def _shipment_id(order: Order) -> str:
    if not order.shipment or not order.shipment.carrier_shipment_id:
        raise ValidationError({"shipment": [f"Order {order.id} has no carrier shipment yet"]})
    return order.shipment.carrier_shipment_id


@ordering.command(part_of="Order")
class SchedulePickup:
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class GenerateLabel:
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class GenerateManifest:
    order_ids = Text(required=True)  # JSON list of order ids


@ordering.command_handler(part_of=Order)
class ShipmentDocumentsHandler:
    @handle(SchedulePickup)
    def schedule_pickup(self, command) -> PickupResult:
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        result = get_carrier().schedule_pickup([_shipment_id(order)])
        if result.scheduled:
            order.record_pickup(result)
            repo.add(order)
        return result

    @handle(GenerateLabel)
    def generate_label(self, command) -> LabelResult:
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        result = get_carrier().generate_label([_shipment_id(order)])
        if result.label_url:
            order.record_label(result.label_url)
            repo.add(order)
        return result

    @handle(GenerateManifest)
    def generate_manifest(self, command) -> ManifestResult:
        order_ids = json.loads(command.order_ids)
        if not order_ids:
            raise ValidationError({"order_ids": ["No orders provided"]})

        repo = current_domain.repository_for(Order)
        orders = [repo.get(order_id) for order_id in order_ids]
        result = get_carrier().generate_manifest([_shipment_id(order) for order in orders])
        if result.manifest_url:
            for order in orders:
                order.record_manifest(result.manifest_url)
                repo.add(order)
        return result
