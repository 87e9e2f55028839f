"""Shared BDD fixtures and step definitions for the cart ledger."""

import asyncio
from unittest.mock import Mock

import pytest
from checkout.coupons.fake_adapter import FakeCoupon, FakeCouponValidator
from checkout.coupons.http_adapter import HttpCouponValidator
from checkout.ledger.coupons import apply_coupon
from checkout.ledger.events import (
    CartCleared,
    CartCouponApplied,
    CartCouponRejected,
    CartCouponRemoved,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartShippingUpdated,
)
from checkout.ledger.ledger import CartLedger
from checkout.ledger.pricing import CouponKind
from pytest_bdd import given, parsers, then, when

# Map event name strings to classes for dynamic lookup in Then steps
_CART_EVENT_CLASSES = {
    "CartItemAdded": CartItemAdded,
    "CartQuantityUpdated": CartQuantityUpdated,
    "CartItemRemoved": CartItemRemoved,
    "CartCouponApplied": CartCouponApplied,
    "CartCouponRejected": CartCouponRejected,
    "CartCouponRemoved": CartCouponRemoved,
    "CartShippingUpdated": CartShippingUpdated,
    "CartCleared": CartCleared,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def validator():
    return FakeCouponValidator()


@pytest.fixture()
def outcome():
    """Container for the result of the last coupon application."""
    return {"result": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an empty cart", target_fixture="cart")
def empty_cart():
    cart = CartLedger.create(customer_id="cust-001")
    cart._events.clear()
    return cart


@given(parsers.cfparse('the cart holds product "{product_ref}" priced {price:d}'), target_fixture="cart")
def cart_holds_product(cart, product_ref, price):
    cart.add_item(product_ref, price)
    cart._events.clear()
    return cart


@given(parsers.cfparse('the coupon service knows "{code}" as a fixed discount of {value:d}'))
def coupon_service_knows_fixed(validator, code, value):
    validator.add_coupon(FakeCoupon(code, CouponKind.FIXED, value))


@given(parsers.cfparse('the coupon service answers "{message}"'), target_fixture="validator")
def coupon_service_answers(message):
    response = Mock(status_code=400)
    response.json.return_value = {"error": message}
    session = Mock()
    session.post.return_value = response
    return HttpCouponValidator("http://coupons.test/validate", session=session)


@given(parsers.cfparse('the coupon "{code}" was applied'), target_fixture="cart")
def coupon_was_applied(cart, validator, code):
    result = asyncio.run(apply_coupon(cart, code, validator))
    assert result.success, result.message
    cart._events.clear()
    return cart


# ---------------------------------------------------------------------------
# Given / When steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("shipping of {amount:d} is quoted"))
@when(parsers.cfparse("shipping of {amount:d} is quoted"))
def shipping_is_quoted(cart, amount):
    cart.update_shipping(amount)


@when(parsers.cfparse('the coupon "{code}" is applied'))
def coupon_is_applied(cart, validator, outcome, code):
    outcome["result"] = asyncio.run(apply_coupon(cart, code, validator))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the subtotal is {amount:d}"))
def subtotal_is(cart, amount):
    assert cart.snapshot().subtotal == amount


@then(parsers.cfparse("the tax is {amount:d}"))
def tax_is(cart, amount):
    assert cart.snapshot().tax_amount == amount


@then(parsers.cfparse("the discount is {amount:d}"))
def discount_is(cart, amount):
    assert cart.snapshot().discount_amount == amount


@then(parsers.cfparse("the shipping is {amount:d}"))
def shipping_is(cart, amount):
    assert cart.snapshot().shipping_amount == amount


@then(parsers.cfparse("the total is {amount:d}"))
def total_is(cart, amount):
    assert cart.snapshot().total == amount


@then(parsers.cfparse("the cart has {count:d} line"))
def cart_has_n_lines_singular(cart, count):
    assert len(cart.snapshot().items) == count


@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_n_lines(cart, count):
    assert len(cart.snapshot().items) == count


@then("no coupon is applied")
def no_coupon_applied(cart):
    snapshot = cart.snapshot()
    assert snapshot.applied_coupon is None
    assert snapshot.applied_coupon_kind is None


@then(parsers.cfparse("a {event_type} cart event is raised"))
def cart_event_raised(cart, event_type):
    event_cls = _CART_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in cart._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in cart._events]}"
