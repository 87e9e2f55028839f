"""Price derivation for the cart ledger.

Pure functions: every total is recomputed from the line items, the committed
discount and the effective shipping charge. Nothing here reads or mutates
aggregate state.

Tax is charged on the pre-discount subtotal (GST on the marked price). Money
is handled as ``Decimal`` and rounded half-up to whole currency units, the
way the storefront has always displayed rupee amounts.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

GST_RATE = Decimal("0.18")

_CENT = Decimal("0.01")
_UNIT = Decimal("1")


class CouponKind(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"


@dataclass(frozen=True)
class PricedLine:
    """One line as seen by the derivation: product, quantity, snapshotted price."""

    product_ref: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class CartTotals:
    total_item_count: int
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    total: Decimal


def to_decimal(amount) -> Decimal:
    """Convert a stored float/int/str amount without binary float noise."""
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount or 0))


def money(amount) -> Decimal:
    return to_decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)


def round_currency(amount) -> Decimal:
    """Round half-up to a whole currency unit (rupees, not paise)."""
    return to_decimal(amount).quantize(_UNIT, rounding=ROUND_HALF_UP)


def subtotal_of(lines) -> Decimal:
    return money(sum((line.line_total for line in lines), Decimal("0")))


def tax_on(subtotal) -> Decimal:
    return round_currency(to_decimal(subtotal) * GST_RATE)


def coupon_discount(kind: CouponKind, value, subtotal, max_discount=None) -> Decimal:
    """Discount granted by a validated coupon against the current subtotal.

    ``min_amount`` eligibility is the coupon service's call and is not
    re-checked here.
    """
    if kind == CouponKind.PERCENTAGE:
        discount = round_currency(to_decimal(subtotal) * to_decimal(value) / 100)
    elif kind == CouponKind.FIXED:
        discount = round_currency(value)
    else:
        return Decimal("0")

    if max_discount is not None:
        discount = min(discount, round_currency(max_discount))
    return max(discount, Decimal("0"))


def derive_totals(lines, discount_amount=0, shipping_amount=0) -> CartTotals:
    """Recompute every derived field from scratch."""
    lines = list(lines)
    subtotal = subtotal_of(lines)
    discount = money(discount_amount)
    shipping = money(shipping_amount)
    tax = tax_on(subtotal)

    # A discount larger than the subtotal never drives the total negative
    total = max(subtotal - discount + tax + shipping, Decimal("0"))

    return CartTotals(
        total_item_count=sum(line.quantity for line in lines),
        subtotal=subtotal,
        discount_amount=discount,
        tax_amount=tax,
        shipping_amount=shipping,
        total=money(total),
    )
