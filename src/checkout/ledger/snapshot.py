"""Read-only views of the cart ledger.

A ``CartSnapshot`` is derived in full from the ledger every time it is asked
for. It is frozen; renderers and the order submission step can hold on to
one without ever seeing it change underneath them.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from checkout.ledger.pricing import CouponKind, PricedLine


class CouponStatus(Enum):
    NOT_APPLIED = "NotApplied"
    APPLYING = "Applying"
    APPLIED = "Applied"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class CouponState:
    """Lifecycle of the most recent coupon request.

    NotApplied | Applying(code) | Applied(code, kind, discount) | Rejected(code, message)

    Describes the last request only. A later request that is still pending or
    was rejected does not take the committed coupon off the cart.
    """

    status: CouponStatus
    code: str | None = None
    kind: CouponKind | None = None
    discount: Decimal | None = None
    message: str | None = None


@dataclass(frozen=True)
class CouponResult:
    """Outcome reported to whoever asked for a coupon to be applied."""

    success: bool
    message: str
    discount: Decimal | None = None
    superseded: bool = False


@dataclass(frozen=True)
class CartSnapshot:
    cart_id: str
    items: tuple[PricedLine, ...]
    total_item_count: int
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    total: Decimal
    applied_coupon: str | None
    applied_coupon_kind: CouponKind | None
    coupon_state: CouponState
    is_open: bool
    currency: str

    def line_for(self, product_ref) -> PricedLine | None:
        return next((line for line in self.items if line.product_ref == str(product_ref)), None)

    def to_dict(self) -> dict:
        """Plain JSON-friendly rendering (amounts as floats)."""
        return {
            "cart_id": self.cart_id,
            "items": [
                {
                    "product_ref": line.product_ref,
                    "quantity": line.quantity,
                    "unit_price": float(line.unit_price),
                    "line_total": float(line.line_total),
                }
                for line in self.items
            ],
            "total_item_count": self.total_item_count,
            "subtotal": float(self.subtotal),
            "discount_amount": float(self.discount_amount),
            "tax_amount": float(self.tax_amount),
            "shipping_amount": float(self.shipping_amount),
            "total": float(self.total),
            "applied_coupon": self.applied_coupon,
            "applied_coupon_kind": self.applied_coupon_kind.value if self.applied_coupon_kind else None,
            "coupon_status": self.coupon_state.status.value,
            "coupon_message": self.coupon_state.message,
            "is_open": self.is_open,
            "currency": self.currency,
        }
