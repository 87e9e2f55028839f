"""Pydantic request/response schemas for the Checkout API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    customer_id: str | None = None
    session_id: str | None = None
    currency: str = Field(default="INR", min_length=3, max_length=3)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "session_id": None,
                    "currency": "INR",
                }
            ]
        }
    }


class AddToCartRequest(BaseModel):
    product_ref: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int  # 0 or less removes the line


class ApplyCouponRequest(BaseModel):
    code: str


class UpdateShippingRequest(BaseModel):
    amount: float | None = Field(default=None, ge=0)
    delivery_option: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class CartLineResponse(BaseModel):
    product_ref: str
    quantity: int
    unit_price: float
    line_total: float


class CartSnapshotResponse(BaseModel):
    cart_id: str
    items: list[CartLineResponse]
    total_item_count: int
    subtotal: float
    discount_amount: float
    tax_amount: float
    shipping_amount: float
    total: float
    applied_coupon: str | None = None
    applied_coupon_kind: str | None = None
    coupon_status: str
    coupon_message: str | None = None
    is_open: bool
    currency: str


class CouponResultResponse(BaseModel):
    success: bool
    message: str
    discount: float | None = None
