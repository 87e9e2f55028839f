"""Application tests for cart ledger commands."""

import pytest
from checkout.coupons.port import ValidatedCoupon
from checkout.ledger.coupons import RemoveCoupon
from checkout.ledger.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from checkout.ledger.ledger import CartLedger
from checkout.ledger.management import ClearCart, CreateCart, ToggleCartVisibility
from checkout.ledger.pricing import CouponKind
from checkout.ledger.shipping import UpdateShipping
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _create_cart(**overrides):
    defaults = {"customer_id": "cust-001"}
    defaults.update(overrides)
    return current_domain.process(CreateCart(**defaults), asynchronous=False)


def _add(cart_id, product_ref="prod-001", unit_price=1000.0, quantity=1):
    current_domain.process(
        AddToCart(cart_id=cart_id, product_ref=product_ref, unit_price=unit_price, quantity=quantity),
        asynchronous=False,
    )


def _load(cart_id):
    return current_domain.repository_for(CartLedger).get(cart_id)


class TestCreateCartCommand:
    def test_create_cart_persists(self):
        cart_id = _create_cart()
        ledger = _load(cart_id)
        assert ledger.customer_id == "cust-001"
        assert ledger.currency == "INR"
        assert ledger.items == []

    def test_create_guest_cart(self):
        cart_id = _create_cart(customer_id=None, session_id="sess-001")
        assert _load(cart_id).session_id == "sess-001"


class TestCartItemCommands:
    def test_add_item_persists(self):
        cart_id = _create_cart()
        _add(cart_id, quantity=2)
        snapshot = _load(cart_id).snapshot()
        assert snapshot.total_item_count == 2
        assert snapshot.subtotal == 2000
        assert snapshot.is_open is True

    def test_add_same_product_twice(self):
        cart_id = _create_cart()
        _add(cart_id)
        _add(cart_id, quantity=2)
        snapshot = _load(cart_id).snapshot()
        assert len(snapshot.items) == 1
        assert snapshot.total == 3540

    def test_update_quantity_persists(self):
        cart_id = _create_cart()
        _add(cart_id)
        current_domain.process(
            UpdateCartQuantity(cart_id=cart_id, product_ref="prod-001", quantity=5),
            asynchronous=False,
        )
        assert _load(cart_id).snapshot().items[0].quantity == 5

    def test_update_quantity_to_zero_removes(self):
        cart_id = _create_cart()
        _add(cart_id)
        current_domain.process(
            UpdateCartQuantity(cart_id=cart_id, product_ref="prod-001", quantity=0),
            asynchronous=False,
        )
        assert _load(cart_id).items == []

    def test_remove_item_persists(self):
        cart_id = _create_cart()
        _add(cart_id)
        _add(cart_id, product_ref="prod-002", unit_price=50.0)
        current_domain.process(
            RemoveFromCart(cart_id=cart_id, product_ref="prod-001"),
            asynchronous=False,
        )
        snapshot = _load(cart_id).snapshot()
        assert [line.product_ref for line in snapshot.items] == ["prod-002"]

    def test_add_with_zero_quantity_rejected(self):
        cart_id = _create_cart()
        with pytest.raises(ValidationError):
            _add(cart_id, quantity=0)

    def test_unknown_cart(self):
        with pytest.raises(ObjectNotFoundError):
            _add("no-such-cart")


class TestShippingCommand:
    def test_update_shipping_amount(self):
        cart_id = _create_cart()
        _add(cart_id)
        current_domain.process(UpdateShipping(cart_id=cart_id, amount=200.0), asynchronous=False)
        assert _load(cart_id).snapshot().total == 1380

    def test_update_shipping_by_delivery_option(self):
        cart_id = _create_cart()
        _add(cart_id)
        current_domain.process(
            UpdateShipping(cart_id=cart_id, delivery_option="express"),
            asynchronous=False,
        )
        assert _load(cart_id).snapshot().shipping_amount == 500

    def test_unknown_delivery_option(self):
        cart_id = _create_cart()
        with pytest.raises(ValidationError):
            current_domain.process(
                UpdateShipping(cart_id=cart_id, delivery_option="teleport"),
                asynchronous=False,
            )

    def test_missing_quote(self):
        cart_id = _create_cart()
        with pytest.raises(ValidationError):
            current_domain.process(UpdateShipping(cart_id=cart_id), asynchronous=False)


class TestCartLifecycleCommands:
    def test_clear_cart(self):
        cart_id = _create_cart()
        _add(cart_id)
        current_domain.process(UpdateShipping(cart_id=cart_id, amount=200.0), asynchronous=False)
        current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)

        snapshot = _load(cart_id).snapshot()
        assert snapshot.items == ()
        assert snapshot.total == 0
        assert snapshot.shipping_amount == 0

    def test_toggle_visibility(self):
        cart_id = _create_cart()
        current_domain.process(ToggleCartVisibility(cart_id=cart_id), asynchronous=False)
        assert _load(cart_id).is_open is True

    def test_remove_coupon(self):
        cart_id = _create_cart()
        _add(cart_id)
        repo = current_domain.repository_for(CartLedger)
        ledger = repo.get(cart_id)
        token = ledger.begin_coupon("SAVE200")
        ledger.settle_coupon(token, ValidatedCoupon("SAVE200", CouponKind.FIXED, 200))
        repo.add(ledger)

        current_domain.process(RemoveCoupon(cart_id=cart_id), asynchronous=False)

        ledger = _load(cart_id)
        assert ledger.applied_coupon is None
        assert ledger.snapshot().discount_amount == 0
