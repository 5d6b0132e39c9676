"""Carrier settings read from the environment."""

import os
from dataclasses import dataclass

DEFAULT_BASE_URL = "https://apiv2.shiprocket.in/v1/external"
DEFAULT_CHECKOUT_URL = "https://apiv2.shiprocket.in/v1/checkout"
DEFAULT_PICKUP_LOCATION = "Primary"
DEFAULT_APP_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class CarrierSettings:
    email: str | None = None
    password: str | None = None
    base_url: str = DEFAULT_BASE_URL
    checkout_url: str = DEFAULT_CHECKOUT_URL
    pickup_location: str = DEFAULT_PICKUP_LOCATION
    checkout_api_key: str | None = None
    checkout_secret: str | None = None
    webhook_token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    app_url: str = DEFAULT_APP_URL

    @classmethod
    def from_env(cls) -> "CarrierSettings":
        return cls(
            email=os.environ.get("SHIPROCKET_EMAIL") or None,
            password=os.environ.get("SHIPROCKET_PASSWORD") or None,
            base_url=os.environ.get("SHIPROCKET_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            checkout_url=os.environ.get("SHIPROCKET_CHECKOUT_URL", DEFAULT_CHECKOUT_URL).rstrip("/"),
            pickup_location=os.environ.get("SHIPROCKET_PICKUP_LOCATION") or DEFAULT_PICKUP_LOCATION,
            checkout_api_key=os.environ.get("SHIPROCKET_CHECKOUT_API_KEY") or None,
            checkout_secret=os.environ.get("SHIPROCKET_CHECKOUT_SECRET") or None,
            webhook_token=os.environ.get("SHIPROCKET_WEBHOOK_TOKEN") or None,
            timeout=float(os.environ.get("SHIPROCKET_TIMEOUT") or DEFAULT_TIMEOUT),
            app_url=(os.environ.get("APP_URL") or DEFAULT_APP_URL).rstrip("/"),
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.email and self.password)

    def missing_credentials(self) -> list[str]:
        missing = []
        if not self.email:
            missing.append("SHIPROCKET_EMAIL")
        if not self.password:
            missing.append("SHIPROCKET_PASSWORD")
        return missing
