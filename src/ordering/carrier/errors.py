"""Carrier integration errors."""


class CarrierError(Exception):
    """A call to the carrier's API failed.

    `status_code` is the HTTP status the carrier answered with (None when the
    request never got a response) and `api_error` the decoded error body.
    """

    def __init__(self, message: str, status_code: int | None = None, api_error: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.api_error = api_error if api_error is not None else {}

    def to_dict(self) -> dict:
        return {"error": self.message, "status_code": self.status_code, "details": self.api_error}


class CarrierConfigurationError(CarrierError):
    """Credentials or keys the carrier needs are not configured."""
