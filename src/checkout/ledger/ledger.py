"""Cart Ledger aggregate — line items, coupon and shipping for one shopper's cart.

The ledger stores only inputs: lines (with the unit price snapshotted when the
product was first added), the discount committed by the last accepted coupon,
and the effective shipping charge. Subtotal, tax and total are never stored;
``snapshot()`` derives all of them afresh, so they cannot drift from the items.

Coupon application is asynchronous and split in two steps. ``begin_coupon``
hands out a request token; ``settle_coupon`` / ``fail_coupon`` commit the
validation result only if that token is still the latest one issued. A slow
answer to an older request is discarded instead of overwriting a newer one.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from checkout.coupons.port import CouponRejection, ValidatedCoupon
from checkout.domain import checkout
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
from checkout.ledger.pricing import (
    CouponKind,
    PricedLine,
    coupon_discount,
    derive_totals,
    subtotal_of,
    to_decimal,
)
from checkout.ledger.snapshot import CartSnapshot, CouponResult, CouponState, CouponStatus

SUPERSEDED_MESSAGE = "Superseded by a newer coupon request"


def _format_value(value) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else f"{value:g}"


def _success_message(coupon: ValidatedCoupon) -> str:
    if coupon.kind == CouponKind.PERCENTAGE:
        return f"{_format_value(coupon.value)}% discount applied!"
    if coupon.kind == CouponKind.FIXED:
        return f"₹{_format_value(coupon.value)} discount applied!"
    return "Free shipping applied!"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@checkout.value_object(part_of="CartLedger")
class AppliedCoupon:
    """The coupon currently committed to the cart, as the coupon service described it."""

    code = Text(required=True)
    kind = String(required=True, max_length=20)
    value = Float(default=0.0)
    max_discount = Float()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@checkout.entity(part_of="CartLedger")
class LineItem:
    """One product in the cart.

    ``unit_price`` is captured on the first add and deliberately never
    refreshed: adding the same product again only raises the quantity.
    """

    product_ref = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    position = Integer(default=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@checkout.aggregate
class CartLedger:
    customer_id = Identifier()  # Nullable for guest carts
    session_id = String(max_length=255)
    currency = String(max_length=3, default="INR")
    items = HasMany(LineItem)
    discount_amount = Float(default=0.0, min_value=0.0)
    shipping_amount = Float(default=0.0, min_value=0.0)
    applied_coupon = ValueObject(AppliedCoupon)
    coupon_request_seq = Integer(default=0)
    coupon_status = String(choices=CouponStatus, default=CouponStatus.NOT_APPLIED.value)
    requested_coupon = Text()
    coupon_message = Text()
    is_open = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def free_shipping_coupon_keeps_shipping_at_zero(self):
        if self.applied_coupon_kind == CouponKind.FREE_SHIPPING and (self.shipping_amount or 0.0) != 0.0:
            raise ValidationError({"shipping_amount": ["Shipping must be zero while a free-shipping coupon is applied"]})

    @invariant.post
    def each_product_has_a_single_line(self):
        refs = [str(item.product_ref) for item in self.items]
        if len(refs) != len(set(refs)):
            raise ValidationError({"items": ["A product can only appear on one cart line"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id=None, session_id=None, currency="INR"):
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            session_id=session_id,
            currency=currency,
            coupon_status=CouponStatus.NOT_APPLIED.value,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def applied_coupon_kind(self) -> CouponKind | None:
        return CouponKind(self.applied_coupon.kind) if self.applied_coupon else None

    @property
    def coupon_state(self) -> CouponState:
        """Where the most recent coupon request stands.

        This tracks the last request, not the committed coupon: a rejected
        or pending request leaves ``applied_coupon`` and its discount in place.
        """
        status = CouponStatus(self.coupon_status or CouponStatus.NOT_APPLIED.value)
        if status == CouponStatus.APPLIED and self.applied_coupon:
            return CouponState(
                status=status,
                code=self.applied_coupon.code,
                kind=self.applied_coupon_kind,
                discount=to_decimal(self.discount_amount),
                message=self.coupon_message,
            )
        if status == CouponStatus.NOT_APPLIED:
            return CouponState(status=status)
        return CouponState(status=status, code=self.requested_coupon, message=self.coupon_message)

    def line_for(self, product_ref):
        return next((i for i in self.items if str(i.product_ref) == str(product_ref)), None)

    def priced_lines(self) -> list[PricedLine]:
        ordered = sorted(self.items, key=lambda item: item.position or 0)
        return [PricedLine(str(i.product_ref), i.quantity, to_decimal(i.unit_price)) for i in ordered]

    def snapshot(self) -> CartSnapshot:
        """Derive the full, immutable view of the cart from its current inputs."""
        lines = self.priced_lines()
        totals = derive_totals(lines, self.discount_amount, self.shipping_amount)
        return CartSnapshot(
            cart_id=str(self.id),
            items=tuple(lines),
            total_item_count=totals.total_item_count,
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            shipping_amount=totals.shipping_amount,
            total=totals.total,
            applied_coupon=self.applied_coupon.code if self.applied_coupon else None,
            applied_coupon_kind=self.applied_coupon_kind,
            coupon_state=self.coupon_state,
            is_open=bool(self.is_open),
            currency=self.currency,
        )

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_ref, unit_price, quantity=1):
        """Add a product, or top up its quantity if it is already in the cart.

        The price passed on a repeat add is ignored: the line keeps the price
        it was first added at. Opens the cart panel.
        """
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if unit_price is None or unit_price < 0:
            raise ValidationError({"unit_price": ["Unit price cannot be negative"]})

        existing = self.line_for(product_ref)
        if existing:
            existing.quantity += quantity
            line = existing
        else:
            line = LineItem(
                product_ref=product_ref,
                quantity=quantity,
                unit_price=float(unit_price),
                position=self._next_position(),
            )
            self.add_items(line)

        self.is_open = True
        self._touch()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_ref=str(product_ref),
                quantity=quantity,
                unit_price=line.unit_price,
                new_quantity=line.quantity,
            )
        )

    def remove_item(self, product_ref):
        """Remove a product's line entirely. Removing an absent product does nothing."""
        line = self.line_for(product_ref)
        if line is None:
            return

        quantity = line.quantity
        self.remove_items(line)
        self._touch()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                product_ref=str(product_ref),
                quantity=quantity,
            )
        )

    def update_quantity(self, product_ref, quantity):
        """Replace a line's quantity; zero or less removes the line.

        Unknown products are ignored, matching what the storefront has always done.
        """
        if quantity <= 0:
            self.remove_item(product_ref)
            return

        line = self.line_for(product_ref)
        if line is None:
            return

        previous_quantity = line.quantity
        line.quantity = quantity
        self._touch()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_ref=str(product_ref),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    # -------------------------------------------------------------------
    # Coupon management
    # -------------------------------------------------------------------
    def begin_coupon(self, code) -> int:
        """Record a new coupon request and return its token.

        Any request still in flight is superseded by this one.
        """
        with atomic_change(self):
            self.requested_coupon = code
            self.coupon_message = None
            self.coupon_request_seq = (self.coupon_request_seq or 0) + 1
            self.coupon_status = CouponStatus.APPLYING.value
        return self.coupon_request_seq

    def is_current_request(self, token) -> bool:
        return token == self.coupon_request_seq

    def settle_coupon(self, token, outcome: ValidatedCoupon | CouponRejection) -> CouponResult:
        """Commit the coupon service's answer for request ``token``."""
        if not self.is_current_request(token):
            return CouponResult(success=False, message=SUPERSEDED_MESSAGE, superseded=True)

        if isinstance(outcome, CouponRejection):
            return self._reject(outcome.message)

        discount = coupon_discount(
            outcome.kind,
            outcome.value,
            subtotal_of(self.priced_lines()),
            outcome.max_discount,
        )
        message = _success_message(outcome)
        code = outcome.code or self.requested_coupon

        with atomic_change(self):
            self.applied_coupon = AppliedCoupon(
                code=code,
                kind=outcome.kind.value,
                value=outcome.value,
                max_discount=outcome.max_discount,
            )
            self.discount_amount = float(discount)
            if outcome.kind == CouponKind.FREE_SHIPPING:
                self.shipping_amount = 0.0
            self.coupon_status = CouponStatus.APPLIED.value
            self.requested_coupon = code
            self.coupon_message = message
            self._touch()

        self.raise_(
            CartCouponApplied(
                cart_id=str(self.id),
                coupon_code=code,
                coupon_kind=outcome.kind.value,
                discount_amount=float(discount),
                free_shipping=outcome.kind == CouponKind.FREE_SHIPPING,
            )
        )
        return CouponResult(success=True, message=message, discount=discount)

    def fail_coupon(self, token, message) -> CouponResult:
        """Record that request ``token`` could not be validated at all."""
        if not self.is_current_request(token):
            return CouponResult(success=False, message=SUPERSEDED_MESSAGE, superseded=True)
        return self._reject(message)

    def _reject(self, message) -> CouponResult:
        # The previously applied coupon, discount and shipping stay as they were
        with atomic_change(self):
            self.coupon_message = message
            self.coupon_status = CouponStatus.REJECTED.value

        self.raise_(
            CartCouponRejected(
                cart_id=str(self.id),
                coupon_code=self.requested_coupon,
                reason=message,
            )
        )
        return CouponResult(success=False, message=message)

    def remove_coupon(self):
        """Take the applied coupon off and drop its discount.

        Shipping is left as it is: removing a free-shipping coupon does not
        bring back the earlier delivery quote until shipping is quoted again.
        Any coupon request still in flight is cancelled.
        """
        code = self.applied_coupon.code if self.applied_coupon else None

        with atomic_change(self):
            self.applied_coupon = None
            self.discount_amount = 0.0
            self.coupon_request_seq = (self.coupon_request_seq or 0) + 1
            self.coupon_status = CouponStatus.NOT_APPLIED.value
            self.requested_coupon = None
            self.coupon_message = None
            self._touch()

        if code:
            self.raise_(CartCouponRemoved(cart_id=str(self.id), coupon_code=code))

    # -------------------------------------------------------------------
    # Shipping
    # -------------------------------------------------------------------
    def update_shipping(self, amount):
        """Record a delivery quote; a free-shipping coupon keeps the charge at zero."""
        if amount is None or amount < 0:
            raise ValidationError({"amount": ["Shipping amount cannot be negative"]})

        effective = 0.0 if self.applied_coupon_kind == CouponKind.FREE_SHIPPING else float(amount)
        self.shipping_amount = effective
        self._touch()

        self.raise_(
            CartShippingUpdated(
                cart_id=str(self.id),
                quoted_amount=float(amount),
                shipping_amount=effective,
            )
        )

    # -------------------------------------------------------------------
    # Cart lifecycle
    # -------------------------------------------------------------------
    def clear(self):
        """Empty the cart and forget coupon and shipping. The panel stays as it was."""
        removed = len(self.items)

        with atomic_change(self):
            for line in list(self.items):
                self.remove_items(line)
            self.applied_coupon = None
            self.discount_amount = 0.0
            self.shipping_amount = 0.0
            self.coupon_request_seq = (self.coupon_request_seq or 0) + 1
            self.coupon_status = CouponStatus.NOT_APPLIED.value
            self.requested_coupon = None
            self.coupon_message = None
            self._touch()

        self.raise_(CartCleared(cart_id=str(self.id), items_removed_count=removed))

    def toggle_visibility(self):
        self.is_open = not self.is_open

    def _next_position(self):
        return max((item.position or 0 for item in self.items), default=0) + 1

    def _touch(self):
        self.updated_at = datetime.now(UTC)
