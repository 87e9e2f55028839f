"""Coupon validation port (abstract interface).

Defines the contract the storefront's coupon service must satisfy. The
ledger only ever sees a ``ValidatedCoupon`` or a ``CouponRejection``;
transport problems surface as ``CouponServiceUnavailable``.

Eligibility (minimum order amount, validity window, usage limits) is the
service's responsibility. The ledger trusts a successful validation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from checkout.ledger.pricing import CouponKind


class CouponServiceUnavailable(Exception):
    """The coupon service could not be reached or answered garbage."""


@dataclass(frozen=True)
class ValidatedCoupon:
    """A coupon the service accepted, as described by its success payload."""

    code: str
    kind: CouponKind
    value: float
    min_amount: float | None = None
    max_discount: float | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "ValidatedCoupon":
        try:
            return cls(
                code=payload["code"],
                kind=CouponKind(payload["type"]),
                value=float(payload.get("value") or 0),
                min_amount=_optional_float(payload.get("minAmount")),
                max_discount=_optional_float(payload.get("maxDiscount")),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CouponServiceUnavailable(f"Malformed coupon payload: {payload!r}") from exc


@dataclass(frozen=True)
class CouponRejection:
    """The service refused the code; ``message`` is shown to the shopper."""

    message: str


def parse_validation_payload(payload) -> ValidatedCoupon | CouponRejection:
    """Interpret a raw ``{code, type, value, ...}`` or ``{error}`` response body."""
    if not isinstance(payload, dict):
        raise CouponServiceUnavailable(f"Unexpected coupon response: {payload!r}")
    if payload.get("error"):
        return CouponRejection(message=str(payload["error"]))
    return ValidatedCoupon.from_payload(payload)


def _optional_float(value):
    return None if value is None else float(value)


class CouponValidator(ABC):
    """Abstract coupon validation interface."""

    @abstractmethod
    async def validate(self, code: str) -> ValidatedCoupon | CouponRejection:
        """Ask the coupon service whether ``code`` may be applied."""
        ...
