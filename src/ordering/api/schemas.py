"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    name: str
    phone: str
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    pincode: str
    country: str = "India"

    def to_domain(self) -> dict:
        return {
            "name": self.name,
            "phone": self.phone,
            "line1": self.address_line1,
            "line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "country": self.country,
        }


class OrderLineRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)
    size: str | None = None


class CustomerSchema(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_id: str
    email: str | None = None
    items: list[OrderLineRequest]
    shipping: ShippingAddressSchema | None = None
    payment_method: str = Field(default="prepaid", pattern="^(prepaid|cod)$")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "email": "asha@example.com",
                    "items": [{"product_id": "prod-001", "quantity": 2, "size": "M"}],
                    "shipping": {
                        "name": "Asha Rao",
                        "phone": "9876543210",
                        "address_line1": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "pincode": "560001",
                    },
                    "payment_method": "prepaid",
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Shipment Request Schemas
# ---------------------------------------------------------------------------
class CreateShipmentRequest(BaseModel):
    order_id: str
    courier_id: str | None = None
    weight: float = Field(default=0.5, gt=0)
    length: float = Field(default=20, gt=0)
    breadth: float = Field(default=15, gt=0)
    height: float = Field(default=5, gt=0)


class CancelShipmentRequest(BaseModel):
    reason: str | None = None


class GenerateManifestRequest(BaseModel):
    order_ids: list[str] = Field(min_length=1)


class ConfigureCarrierRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Carrier unavailable"
    fail_operations: list[str] = Field(default_factory=list)
    tracking_status: int | None = None


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class InitiateCheckoutRequest(BaseModel):
    customer_id: str | None = None
    customer: CustomerSchema | None = None
    items: list[OrderLineRequest] = Field(min_length=1)


class CheckoutCartItem(BaseModel):
    variant_id: str
    quantity: int = Field(ge=1)
    selling_price: float = Field(ge=0)
    title: str
    sku: str
    image_url: str | None = None


class CheckoutSessionRequest(BaseModel):
    order_id: str
    total_amount: float = Field(gt=0)
    customer: CustomerSchema | None = None
    cart_items: list[CheckoutCartItem] | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------

class StatusResponse(BaseModel):
    status: str


class CarrierConfigResponse(BaseModel):
    carrier: str
    should_succeed: bool
    failure_reason: str
    fail_operations: list[str]
    tracking_status: int


class CheckoutSessionResponse(BaseModel):
    success: bool = True
    checkout_url: str | None = None
    session_id: str | None = None
    order_id: str | None = None
