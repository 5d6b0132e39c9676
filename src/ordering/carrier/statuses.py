"""Carrier shipment status codes and how they map onto order status."""

SHIPMENT_STATUS_LABELS: dict[int, str] = {
    1: "AWB_ASSIGNED",
    2: "LABEL_GENERATED",
    3: "PICKUP_SCHEDULED",
    4: "PICKUP_QUEUED",
    5: "MANIFEST_GENERATED",
    6: "SHIPPED",
    7: "DELIVERED",
    8: "CANCELED",
    9: "RTO_INITIATED",
    10: "RTO_DELIVERED",
    12: "LOST",
    13: "PICKUP_ERROR",
    14: "RTO_ACKNOWLEDGED",
    15: "PICKUP_RESCHEDULED",
    16: "CANCELLATION_REQUESTED",
    17: "OUT_FOR_DELIVERY",
    18: "IN_TRANSIT",
    19: "OUT_FOR_PICKUP",
    20: "PICKUP_EXCEPTION",
    21: "UNDELIVERED",
    22: "DELAYED",
    38: "REACHED_DESTINATION_HUB",
    42: "PICKED_UP",
}

# Codes worth a line on the customer's order timeline
SIGNIFICANT_STATUS_CODES = frozenset({6, 7, 8, 9, 10, 17, 18, 21, 42})

_DELIVERED = {7}
_CANCELLED = {8, 16}
_SHIPPED = {6, 17, 18, 42}
_RETURNED = {9, 10, 14}


def status_label(code: int | None, fallback: str | None = None) -> str | None:
    """Carrier label for a status code, or `fallback` for unknown codes."""
    if code is None:
        return fallback
    return SHIPMENT_STATUS_LABELS.get(code, fallback)


def order_status_for(code: int | None) -> str:
    """Local order status implied by a carrier shipment status code."""
    if code in _DELIVERED:
        return "delivered"
    if code in _CANCELLED:
        return "cancelled"
    if code in _SHIPPED:
        return "shipped"
    if code in _RETURNED:
        return "returned"
    return "processing"


def is_significant(code: int | None) -> bool:
    return code in SIGNIFICANT_STATUS_CODES
