"""Domain events for the CartLedger aggregate."""

from protean.fields import Boolean, Float, Identifier, Integer, String, Text

from checkout.domain import checkout


@checkout.event(part_of="CartLedger")
class CartItemAdded:
    """A product was added to the cart (or its quantity was topped up)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    new_quantity = Integer(required=True)


@checkout.event(part_of="CartLedger")
class CartQuantityUpdated:
    """The quantity of a cart line was replaced."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@checkout.event(part_of="CartLedger")
class CartItemRemoved:
    """A cart line was removed, whatever its quantity."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    quantity = Integer(required=True)


@checkout.event(part_of="CartLedger")
class CartCouponApplied:
    """A validated coupon was committed to the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    coupon_code = Text(required=True)
    coupon_kind = String(required=True)
    discount_amount = Float(required=True)
    free_shipping = Boolean(default=False)


@checkout.event(part_of="CartLedger")
class CartCouponRejected:
    """The coupon service refused a code, or could not be reached."""

    __version__ = 1

    cart_id = Identifier(required=True)
    coupon_code = Text()
    reason = Text(required=True)


@checkout.event(part_of="CartLedger")
class CartCouponRemoved:
    """The applied coupon was taken off the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    coupon_code = Text(required=True)


@checkout.event(part_of="CartLedger")
class CartShippingUpdated:
    """A delivery quote was recorded against the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    quoted_amount = Float(required=True)
    shipping_amount = Float(required=True)


@checkout.event(part_of="CartLedger")
class CartCleared:
    """Every line, the coupon and the shipping charge were reset."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed_count = Integer(required=True)
