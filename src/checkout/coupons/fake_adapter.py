"""Configurable fake coupon service for development and testing.

Mirrors the storefront's coupon validation endpoint without any network
calls: unknown codes, inactive or expired coupons and exhausted usage limits
are rejected with the same messages the real service returns.

Responses can be held back per code (``hold``) so tests can control the
order in which overlapping validations resolve.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime

from checkout.coupons.port import (
    CouponRejection,
    CouponServiceUnavailable,
    CouponValidator,
    ValidatedCoupon,
)
from checkout.ledger.pricing import CouponKind


@dataclass
class FakeCoupon:
    code: str
    kind: CouponKind
    value: float
    min_amount: float | None = None
    max_discount: float | None = None
    is_active: bool = True
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    usage_limit: int | None = None
    usage_count: int = 0


def default_coupons() -> dict[str, FakeCoupon]:
    """The storefront's launch coupons.

    ``min_amount`` is reported back but never enforced here: validation only
    sees the code, not the cart, so there is no "minimum order amount"
    rejection from this service.
    """
    return {
        "WELCOME10": FakeCoupon("WELCOME10", CouponKind.PERCENTAGE, 10, min_amount=500),
        "SAVE200": FakeCoupon("SAVE200", CouponKind.FIXED, 200, min_amount=1000),
        "FREESHIP": FakeCoupon("FREESHIP", CouponKind.FREE_SHIPPING, 0, min_amount=799),
        "NEWUSER15": FakeCoupon("NEWUSER15", CouponKind.PERCENTAGE, 15, min_amount=1500),
    }


class FakeCouponValidator(CouponValidator):
    """In-memory coupon service."""

    def __init__(self, coupons: dict[str, FakeCoupon] | None = None) -> None:
        self.coupons: dict[str, FakeCoupon] = default_coupons() if coupons is None else dict(coupons)
        self.available: bool = True
        self.calls: list[str] = []
        self._gates: dict[str, asyncio.Event] = {}

    def add_coupon(self, coupon: FakeCoupon) -> None:
        self.coupons[coupon.code] = coupon

    def configure(self, available: bool) -> None:
        """Simulate the coupon service going down (or coming back)."""
        self.available = available

    def hold(self, code: str) -> asyncio.Event:
        """Block validations of ``code`` until the returned event is set."""
        gate = asyncio.Event()
        self._gates[code] = gate
        return gate

    async def validate(self, code: str) -> ValidatedCoupon | CouponRejection:
        self.calls.append(code)

        gate = self._gates.get(code)
        if gate is not None:
            await gate.wait()

        if not self.available:
            raise CouponServiceUnavailable("Coupon service unavailable")

        if not code:
            return CouponRejection("Coupon code is required")

        coupon = self.coupons.get(code)
        if coupon is None:
            return CouponRejection("Invalid coupon code")

        now = datetime.now(UTC)
        if (
            not coupon.is_active
            or (coupon.valid_from is not None and now < coupon.valid_from)
            or (coupon.valid_to is not None and now > coupon.valid_to)
        ):
            return CouponRejection("Coupon is not active or has expired")

        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            return CouponRejection("Coupon has reached its usage limit")

        return ValidatedCoupon(
            code=coupon.code,
            kind=coupon.kind,
            value=coupon.value,
            min_amount=coupon.min_amount,
            max_discount=coupon.max_discount,
        )
