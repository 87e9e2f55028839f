"""HTTP coupon service adapter (production).

Posts ``{"code": ...}`` to the storefront's coupon validation endpoint. The
endpoint answers rejections with a non-2xx status and an ``{"error": ...}``
body, so the body decides the outcome, not the status code. Anything that
is not a readable JSON object is treated as the service being unavailable.

``requests`` is blocking; calls run on a worker thread so the event loop
stays free while a validation is in flight.
"""

import asyncio

import requests
import structlog

from checkout.coupons.port import (
    CouponRejection,
    CouponServiceUnavailable,
    CouponValidator,
    ValidatedCoupon,
    parse_validation_payload,
)

logger = structlog.get_logger(__name__)


class HttpCouponValidator(CouponValidator):
    """Validates coupons against a remote HTTP endpoint."""

    def __init__(self, url: str, timeout: float = 5.0, session: requests.Session | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    async def validate(self, code: str) -> ValidatedCoupon | CouponRejection:
        return await asyncio.to_thread(self._validate_blocking, code)

    def _validate_blocking(self, code: str) -> ValidatedCoupon | CouponRejection:
        try:
            response = self.session.post(self.url, json={"code": code}, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Coupon service request failed", url=self.url, error=str(exc))
            raise CouponServiceUnavailable(str(exc)) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning(
                "Coupon service returned a non-JSON body",
                url=self.url,
                status_code=response.status_code,
            )
            raise CouponServiceUnavailable(f"Non-JSON response ({response.status_code})") from exc

        if response.status_code >= 500 and not (isinstance(payload, dict) and payload.get("error")):
            raise CouponServiceUnavailable(f"Coupon service error ({response.status_code})")

        return parse_validation_payload(payload)
