"""Shipment tracking: customer-facing tracking page view."""

import json

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import AwbAssigned, CarrierStatusUpdated, OrderCancelled, ShippingLabelGenerated
from ordering.order.order import Order


@ordering.projection
class ShipmentTrackingView:
    order_id = Identifier(identifier=True, required=True)
    awb_code = String()
    courier_name = String()
    carrier_status = String()
    order_status = String(required=True)
    last_location = String()
    label_url = String()
    events_json = Text()  # JSON list of tracking events
    updated_at = DateTime()


def _view_for(order_id: str) -> ShipmentTrackingView:
    repo = current_domain.repository_for(ShipmentTrackingView)
    try:
        return repo.get(order_id)
    except ObjectNotFoundError:
        return ShipmentTrackingView(order_id=order_id, order_status="processing", events_json=json.dumps([]))


def _append_event(view: ShipmentTrackingView, entry: dict) -> None:
    existing = json.loads(view.events_json) if view.events_json else []
    existing.append(entry)
    view.events_json = json.dumps(existing)


@ordering.projector(projector_for=ShipmentTrackingView, aggregates=[Order])
class ShipmentTrackingProjector:
    @on(AwbAssigned)
    def on_awb_assigned(self, event):
        view = _view_for(event.order_id)
        view.awb_code = event.awb_code
        view.courier_name = event.courier_name
        view.carrier_status = "AWB_ASSIGNED"
        view.order_status = "processing"
        view.updated_at = event.assigned_at
        _append_event(
            view,
            {
                "status": "AWB_ASSIGNED",
                "location": "",
                "description": f"AWB {event.awb_code} assigned",
                "occurred_at": event.assigned_at.isoformat() if event.assigned_at else None,
            },
        )
        current_domain.repository_for(ShipmentTrackingView).add(view)

    @on(ShippingLabelGenerated)
    def on_label_generated(self, event):
        view = _view_for(event.order_id)
        view.label_url = event.label_url
        view.updated_at = event.generated_at
        current_domain.repository_for(ShipmentTrackingView).add(view)

    @on(CarrierStatusUpdated)
    def on_carrier_status_updated(self, event):
        view = _view_for(event.order_id)
        view.awb_code = event.awb_code or view.awb_code
        view.carrier_status = event.carrier_status
        view.order_status = event.order_status
        view.last_location = event.location or view.last_location
        view.updated_at = event.occurred_at
        _append_event(
            view,
            {
                "status": event.carrier_status,
                "location": event.location or "",
                "description": event.description or "",
                "occurred_at": event.occurred_at.isoformat() if event.occurred_at else None,
            },
        )
        current_domain.repository_for(ShipmentTrackingView).add(view)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        repo = current_domain.repository_for(ShipmentTrackingView)
        try:
            view = repo.get(event.order_id)
        except ObjectNotFoundError:
            return
        view.order_status = "cancelled"
        view.updated_at = event.cancelled_at
        _append_event(
            view,
            {
                "status": "CANCELLED",
                "location": "",
                "description": event.reason or "Order cancelled",
                "occurred_at": event.cancelled_at.isoformat() if event.cancelled_at else None,
            },
        )
        repo.add(view)
