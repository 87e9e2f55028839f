"""FastAPI routes for the Checkout domain — the cart ledger."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from checkout.api.schemas import (
    AddToCartRequest,
    ApplyCouponRequest,
    CartIdResponse,
    CartSnapshotResponse,
    CouponResultResponse,
    CreateCartRequest,
    StatusResponse,
    UpdateCartQuantityRequest,
    UpdateShippingRequest,
)
from checkout.ledger.coupons import RemoveCoupon, apply_coupon_to_cart
from checkout.ledger.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from checkout.ledger.ledger import CartLedger
from checkout.ledger.management import ClearCart, CreateCart, ToggleCartVisibility
from checkout.ledger.shipping import DELIVERY_OPTIONS, UpdateShipping
from checkout.ledger.submission import build_order_payload

cart_router = APIRouter(prefix="/carts", tags=["carts"])


def _snapshot(cart_id: str):
    return current_domain.repository_for(CartLedger).get(cart_id).snapshot()


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(
        customer_id=body.customer_id,
        session_id=body.session_id,
        currency=body.currency,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("/delivery-options")
async def list_delivery_options() -> dict:
    return {"options": [{"id": key, **option} for key, option in DELIVERY_OPTIONS.items()]}


@cart_router.get("/{cart_id}", response_model=CartSnapshotResponse)
async def get_cart(cart_id: str) -> CartSnapshotResponse:
    return CartSnapshotResponse(**_snapshot(cart_id).to_dict())


@cart_router.post("/{cart_id}/items", response_model=StatusResponse)
async def add_cart_item(cart_id: str, body: AddToCartRequest) -> StatusResponse:
    command = AddToCart(
        cart_id=cart_id,
        product_ref=body.product_ref,
        unit_price=body.unit_price,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/items/{product_ref}", response_model=StatusResponse)
async def update_cart_item_quantity(cart_id: str, product_ref: str, body: UpdateCartQuantityRequest) -> StatusResponse:
    command = UpdateCartQuantity(
        cart_id=cart_id,
        product_ref=product_ref,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items/{product_ref}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, product_ref: str) -> StatusResponse:
    command = RemoveFromCart(cart_id=cart_id, product_ref=product_ref)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items", response_model=StatusResponse)
async def clear_cart(cart_id: str) -> StatusResponse:
    current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/coupons", response_model=CouponResultResponse)
async def apply_cart_coupon(cart_id: str, body: ApplyCouponRequest):
    result = await apply_coupon_to_cart(cart_id, body.code)
    content = CouponResultResponse(
        success=result.success,
        message=result.message,
        discount=float(result.discount) if result.discount is not None else None,
    )
    if result.superseded:
        return JSONResponse(status_code=409, content=content.model_dump())
    if not result.success:
        return JSONResponse(status_code=400, content=content.model_dump())
    return content


@cart_router.delete("/{cart_id}/coupons", response_model=StatusResponse)
async def remove_cart_coupon(cart_id: str) -> StatusResponse:
    current_domain.process(RemoveCoupon(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/shipping", response_model=StatusResponse)
async def update_cart_shipping(cart_id: str, body: UpdateShippingRequest) -> StatusResponse:
    command = UpdateShipping(
        cart_id=cart_id,
        amount=body.amount,
        delivery_option=body.delivery_option,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/toggle", response_model=StatusResponse)
async def toggle_cart(cart_id: str) -> StatusResponse:
    current_domain.process(ToggleCartVisibility(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


@cart_router.get("/{cart_id}/order-payload")
async def get_order_payload(cart_id: str) -> dict:
    return build_order_payload(_snapshot(cart_id))
