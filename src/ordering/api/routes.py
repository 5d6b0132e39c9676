"""FastAPI routes for the Ordering domain.

Orders are priced and stock-checked against the Catalogue domain before
they are placed, so the order and checkout routes briefly switch into the
Catalogue domain context.
"""

import json
import os
from dataclasses import asdict

import structlog
from fastapi import APIRouter, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from catalogue.domain import catalogue
from catalogue.product.pricing import quote_items, reserve_items
from ordering.api.schemas import (
    CancelShipmentRequest,
    CarrierConfigResponse,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    ConfigureCarrierRequest,
    CreateShipmentRequest,
    GenerateManifestRequest,
    InitiateCheckoutRequest,
    PlaceOrderRequest,
    StatusResponse,
)
from ordering.carrier import get_carrier
from ordering.carrier.config import CarrierSettings
from ordering.carrier.errors import CarrierError
from ordering.carrier.fake_adapter import FakeCarrier
from ordering.checkout.checkout_order import RecordCheckoutOrder
from ordering.checkout.session import (
    CheckoutClient,
    build_session_payload,
    diagnostics,
    new_checkout_order_id,
    verify_signature,
)
from ordering.order.order import Order
from ordering.order.placement import PlaceOrder
from ordering.projections.shipment_tracking import ShipmentTrackingView
from ordering.shipping.cancellation import CancelShipment
from ordering.shipping.creation import AWB_FAILED, CREATE_FAILED, CreateShipment
from ordering.shipping.documents import GenerateLabel, GenerateManifest, SchedulePickup
from ordering.shipping.reconciliation import ReconcileCarrierUpdate
from ordering.shipping.refresh import RefreshTracking

logger = structlog.get_logger(__name__)

order_router = APIRouter(prefix="/orders", tags=["orders"])
shipment_router = APIRouter(prefix="/shipments", tags=["shipments"])
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


def _carrier_failure(exc: CarrierError) -> HTTPException:
    return HTTPException(status_code=500, detail=exc.to_dict())


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
@order_router.post("", status_code=201)
async def place_order(body: PlaceOrderRequest):
    """Price the items, place the order and take the stock."""
    with catalogue.domain_context():
        lines = quote_items([item.model_dump() for item in body.items])

    command = PlaceOrder(
        customer_id=body.customer_id,
        email=body.email,
        items=json.dumps(lines),
        shipping_address=json.dumps(body.shipping.to_domain()) if body.shipping else None,
        payment_method=body.payment_method,
    )
    order_id = current_domain.process(command, asynchronous=False)

    with catalogue.domain_context():
        reserve_items(lines)

    order = current_domain.repository_for(Order).get(order_id)
    return {"order": order.to_dict()}


@order_router.get("")
async def list_orders(customer_id: str = Query(...)):
    results = (
        current_domain.repository_for(Order)._dao.query.filter(customer_id=customer_id).order_by("-created_at").all()
    )
    return {"orders": [order.to_dict() for order in results.items]}


@order_router.get("/{order_id}")
async def get_order(order_id: str):
    return current_domain.repository_for(Order).get(order_id).to_dict()


@order_router.get("/{order_id}/tracking")
async def get_order_tracking(order_id: str):
    view = current_domain.repository_for(ShipmentTrackingView).get(order_id)
    data = view.to_dict()
    data["events"] = json.loads(view.events_json) if view.events_json else []
    data.pop("events_json", None)
    return data


# ---------------------------------------------------------------------------
# Shipment Router
# ---------------------------------------------------------------------------
@shipment_router.post("")
async def create_shipment(body: CreateShipmentRequest):
    """Create the carrier shipment: order, AWB, pickup and label."""
    command = CreateShipment(
        order_id=body.order_id,
        courier_id=body.courier_id,
        weight=body.weight,
        length=body.length,
        breadth=body.breadth,
        height=body.height,
    )
    outcome = current_domain.process(command, asynchronous=False)

    if outcome.status == CREATE_FAILED:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to create carrier order", "message": outcome.error, "details": outcome.details},
        )
    if outcome.status == AWB_FAILED:
        return JSONResponse(
            status_code=207,
            content={
                "warning": "Order created but AWB assignment failed",
                "carrier_order_id": outcome.carrier_order_id,
                "error": outcome.error,
                "details": outcome.details,
            },
        )
    return {"success": True, **outcome.to_dict()}


@shipment_router.post("/manifest")
async def generate_manifest(body: GenerateManifestRequest):
    try:
        result = current_domain.process(GenerateManifest(order_ids=json.dumps(body.order_ids)), asynchronous=False)
    except CarrierError as exc:
        raise _carrier_failure(exc) from exc
    return asdict(result)


@shipment_router.get("/serviceability")
async def check_serviceability(
    pickup_postcode: str,
    delivery_postcode: str,
    weight: float = Query(0.5, gt=0),
    cod: bool = False,
):
    try:
        result = get_carrier().check_serviceability(pickup_postcode, delivery_postcode, weight, cod)
    except CarrierError as exc:
        raise _carrier_failure(exc) from exc
    return {
        "serviceable": result.serviceable,
        "couriers": [asdict(courier) for courier in result.couriers],
        "recommended_courier_id": result.recommended_courier_id,
    }


@shipment_router.get("/track/{awb_code}")
async def track_awb(awb_code: str):
    try:
        tracking = get_carrier().track_awb(awb_code)
    except CarrierError as exc:
        if exc.status_code == 404:
            raise HTTPException(status_code=404, detail="Tracking information not found") from exc
        raise _carrier_failure(exc) from exc
    return asdict(tracking)


@shipment_router.get("/pickup-locations")
async def pickup_locations():
    try:
        locations = get_carrier().pickup_locations()
    except CarrierError as exc:
        raise _carrier_failure(exc) from exc
    return {"pickup_locations": [asdict(location) for location in locations]}


@shipment_router.post("/webhook")
async def carrier_webhook(request: Request, x_api_key: str = Header(default="")):
    """Receive a carrier tracking callback.

    Always answers 200 so the carrier does not retry.
    """
    raw = (await request.body()).decode("utf-8", errors="replace")
    if not get_carrier().verify_webhook_signature(raw, x_api_key):
        logger.warning("Carrier webhook rejected: bad token")
        return {"status": "ignored"}

    try:
        payload = json.loads(raw)
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        logger.error("Invalid carrier webhook payload")
        return {"status": "invalid payload"}

    try:
        current_domain.process(ReconcileCarrierUpdate(body=json.dumps(payload)), asynchronous=False)
    except Exception:
        logger.exception("Carrier webhook processing failed", awb=payload.get("awb"))
        return {"status": "error logged"}
    return {"status": "received"}


@shipment_router.get("/webhook")
async def carrier_webhook_health():
    return {"status": "Carrier webhook endpoint active"}


@shipment_router.post("/carrier/configure", response_model=CarrierConfigResponse)
async def configure_carrier(body: ConfigureCarrierRequest) -> CarrierConfigResponse:
    """Configure the FakeCarrier behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Carrier configuration not available in production")

    carrier = get_carrier()
    if not isinstance(carrier, FakeCarrier):
        raise HTTPException(status_code=400, detail="Carrier configuration only available for FakeCarrier")

    carrier.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        fail_operations=body.fail_operations,
        tracking_status=body.tracking_status,
    )
    return CarrierConfigResponse(
        carrier=type(carrier).__name__,
        should_succeed=carrier.should_succeed,
        failure_reason=carrier.failure_reason,
        fail_operations=sorted(carrier.fail_operations),
        tracking_status=carrier.tracking_status,
    )


@shipment_router.post("/{order_id}/pickup")
async def schedule_pickup(order_id: str):
    try:
        result = current_domain.process(SchedulePickup(order_id=order_id), asynchronous=False)
    except CarrierError as exc:
        raise _carrier_failure(exc) from exc
    return asdict(result)


@shipment_router.post("/{order_id}/label")
async def generate_label(order_id: str):
    try:
        result = current_domain.process(GenerateLabel(order_id=order_id), asynchronous=False)
    except CarrierError as exc:
        raise _carrier_failure(exc) from exc
    return asdict(result)


@shipment_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_shipment(order_id: str, body: CancelShipmentRequest) -> StatusResponse:
    try:
        current_domain.process(CancelShipment(order_id=order_id, reason=body.reason), asynchronous=False)
    except CarrierError as exc:
        raise _carrier_failure(exc) from exc
    return StatusResponse(status="cancelled")


@shipment_router.post("/{order_id}/refresh")
async def refresh_tracking(order_id: str):
    try:
        return current_domain.process(RefreshTracking(order_id=order_id), asynchronous=False)
    except CarrierError as exc:
        raise _carrier_failure(exc) from exc


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
@checkout_router.post("/initiate", response_model=CheckoutSessionResponse)
async def initiate_checkout(body: InitiateCheckoutRequest) -> CheckoutSessionResponse:
    """Open a hosted checkout session for a cart."""
    with catalogue.domain_context():
        lines = quote_items([item.model_dump() for item in body.items])

    client = CheckoutClient()
    order_id = new_checkout_order_id()
    payload = build_session_payload(
        order_id,
        lines,
        redirect_url=client.redirect_url,
        customer=body.customer.model_dump() if body.customer else None,
    )
    try:
        session = client.create_session(payload)
    except CarrierError as exc:
        raise _carrier_failure(exc) from exc
    return CheckoutSessionResponse(checkout_url=session.checkout_url, session_id=session.session_id, order_id=order_id)


@checkout_router.post("/session", response_model=CheckoutSessionResponse)
async def create_checkout_session(body: CheckoutSessionRequest) -> CheckoutSessionResponse:
    """Open a hosted checkout session for an order the caller already priced."""
    client = CheckoutClient()
    payload = build_session_payload(
        body.order_id,
        None,
        redirect_url=client.redirect_url,
        customer=body.customer.model_dump() if body.customer else None,
        total_amount=body.total_amount,
    )
    if body.cart_items:
        payload["cart_items"] = [item.model_dump(exclude_none=True) for item in body.cart_items]
    try:
        session = client.create_session(payload)
    except CarrierError as exc:
        raise _carrier_failure(exc) from exc
    return CheckoutSessionResponse(checkout_url=session.checkout_url, session_id=session.session_id, order_id=body.order_id)


@checkout_router.post("/webhook")
async def checkout_webhook(request: Request, x_api_hmac_sha256: str = Header(default="")):
    """Record an order completed on the hosted checkout."""
    raw = await request.body()
    if not verify_signature(raw, x_api_hmac_sha256, CarrierSettings.from_env().checkout_secret):
        raise HTTPException(status_code=401, detail="Invalid checkout webhook signature")

    checkout_order_id = current_domain.process(RecordCheckoutOrder(body=raw.decode("utf-8")), asynchronous=False)
    return {"status": "recorded", "checkout_order_id": checkout_order_id}


@checkout_router.get("/diagnostics")
async def checkout_diagnostics():
    report = diagnostics()
    return JSONResponse(status_code=200 if report["ok"] else 500, content=report)
