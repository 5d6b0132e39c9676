"""Carrier adapter abstraction: pluggable shipping carrier integration."""

import os

from ordering.carrier.port import CarrierPort

_carrier_instance: CarrierPort | None = None


def get_carrier() -> CarrierPort:
    """Return the configured carrier adapter (singleton).

    Uses FakeCarrier by default. Set CARRIER_ADAPTER=shiprocket to talk to
    the real carrier.
    """
    global _carrier_instance
    if _carrier_instance is None:
        adapter = os.environ.get("CARRIER_ADAPTER", "fake")
        if adapter == "fake":
            from ordering.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier()
        elif adapter == "shiprocket":
            from ordering.carrier.shiprocket import ShiprocketCarrier

            _carrier_instance = ShiprocketCarrier()
        else:
            raise ValueError(f"Unknown carrier adapter: {adapter}")
    return _carrier_instance


def set_carrier(carrier: CarrierPort) -> None:
    """Override the active carrier (useful for tests)."""
    global _carrier_instance
    _carrier_instance = carrier


def reset_carrier():
    """Reset the carrier singleton (useful for testing)."""
    global _carrier_instance
    _carrier_instance = None
