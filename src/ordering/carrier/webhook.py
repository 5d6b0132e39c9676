"""Carrier tracking callbacks, parsed into something the Order can apply."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

# Shiprocket reports local (India) time without an offset
CARRIER_TIMEZONE = timezone(timedelta(hours=5, minutes=30))

_TIMESTAMP_FORMATS = (
    "%d %m %Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d-%m-%Y %H:%M:%S",
)


def parse_carrier_timestamp(value: str | None) -> datetime | None:
    """Best-effort parse of a carrier timestamp; None when unrecognised."""
    if not value:
        return None
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = None
        for fmt in _TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=CARRIER_TIMEZONE)
    return parsed


def _as_int(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class CarrierUpdate:
    """One tracking update for a shipment, from a callback or a pull."""

    shipment_status_id: int | None
    shipment_status: str | None = None
    current_status: str | None = None
    current_status_id: int | None = None
    carrier_timestamp: str | None = None
    awb_code: str | None = None
    carrier_order_id: str | None = None
    courier_name: str | None = None
    etd: str | None = None
    is_return: bool = False
    scans: list = field(default_factory=list)
    pod_status: str | None = None
    pod: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CarrierUpdate":
        sr_order_id = payload.get("sr_order_id")
        return cls(
            shipment_status_id=_as_int(payload.get("shipment_status_id")),
            shipment_status=payload.get("shipment_status"),
            current_status=payload.get("current_status"),
            current_status_id=_as_int(payload.get("current_status_id")),
            carrier_timestamp=payload.get("current_timestamp"),
            awb_code=str(payload["awb"]) if payload.get("awb") else None,
            carrier_order_id=str(sr_order_id) if sr_order_id else None,
            courier_name=payload.get("courier_name"),
            etd=payload.get("etd"),
            is_return=bool(payload.get("is_return")),
            scans=list(payload.get("scans") or []),
            pod_status=payload.get("pod_status"),
            pod=payload.get("pod"),
        )

    @property
    def occurred_at(self) -> datetime | None:
        return parse_carrier_timestamp(self.carrier_timestamp)

    @property
    def last_scan_location(self) -> str | None:
        return self.scans[-1].get("location") if self.scans else None

    def snapshot(self) -> dict:
        """The tracking data kept on the order; replaces the previous one."""
        return {
            "current_status": self.current_status,
            "current_status_id": self.current_status_id,
            "shipment_status": self.shipment_status,
            "shipment_status_id": self.shipment_status_id,
            "timestamp": self.carrier_timestamp,
            "etd": self.etd,
            "is_return": int(self.is_return),
            "scans": self.scans,
            "pod_status": self.pod_status,
            "pod": self.pod,
        }
