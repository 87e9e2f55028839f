"""Coupon validator factory.

Provides get_validator() / set_validator() to swap implementations:
- FakeCouponValidator for development and testing (default)
- HttpCouponValidator for production, selected with COUPON_VALIDATOR=http
"""

import os

from checkout.coupons.port import CouponValidator

DEFAULT_COUPON_SERVICE_URL = "http://localhost:3000/api/coupons/validate"

_current_validator: CouponValidator | None = None


def get_validator() -> CouponValidator:
    """Return the configured coupon validator (singleton).

    Uses FakeCouponValidator by default. In production, configure via the
    COUPON_VALIDATOR, COUPON_SERVICE_URL and COUPON_SERVICE_TIMEOUT
    environment variables.
    """
    global _current_validator
    if _current_validator is None:
        adapter = os.environ.get("COUPON_VALIDATOR", "fake")
        if adapter == "fake":
            from checkout.coupons.fake_adapter import FakeCouponValidator

            _current_validator = FakeCouponValidator()
        elif adapter == "http":
            from checkout.coupons.http_adapter import HttpCouponValidator

            _current_validator = HttpCouponValidator(
                url=os.environ.get("COUPON_SERVICE_URL", DEFAULT_COUPON_SERVICE_URL),
                timeout=float(os.environ.get("COUPON_SERVICE_TIMEOUT", "5")),
            )
        else:
            raise ValueError(f"Unknown coupon validator: {adapter}")
    return _current_validator


def set_validator(validator: CouponValidator) -> None:
    """Override the active coupon validator (useful for tests)."""
    global _current_validator
    _current_validator = validator


def reset_validator() -> None:
    """Reset to the environment-configured validator."""
    global _current_validator
    _current_validator = None
