"""Cart coupon management — applying and removing coupons.

Applying a coupon is the only ledger operation that waits on I/O: the code
is checked by the coupon service before anything is committed. Both entry
points follow the same sequence:

1. ``begin_coupon`` issues a request token (and supersedes older requests),
2. the coupon service is awaited,
3. ``settle_coupon`` / ``fail_coupon`` commit only if the token is still current.

A rejected code or an unreachable service never changes the cart's totals.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from checkout.coupons import get_validator
from checkout.coupons.port import CouponServiceUnavailable, CouponValidator
from checkout.domain import checkout
from checkout.ledger.ledger import CartLedger
from checkout.ledger.snapshot import CouponResult

logger = structlog.get_logger(__name__)

UNAVAILABLE_MESSAGE = "Unable to validate coupon. Please try again."


@checkout.command(part_of="CartLedger")
class RemoveCoupon:
    """Take the applied coupon off a cart."""

    cart_id = Identifier(required=True)


@checkout.command_handler(part_of=CartLedger)
class RemoveCouponHandler:
    @handle(RemoveCoupon)
    def remove_coupon(self, command):
        repo = current_domain.repository_for(CartLedger)
        ledger = repo.get(command.cart_id)
        ledger.remove_coupon()
        repo.add(ledger)


async def _validate(validator: CouponValidator, code: str, cart_id: str):
    """Ask the coupon service about ``code``; returns ``(outcome, failure_message)``."""
    try:
        return await validator.validate(code), None
    except CouponServiceUnavailable as exc:
        logger.warning(
            "Coupon service unavailable",
            cart_id=cart_id,
            coupon_code=code,
            error=str(exc),
        )
        return None, UNAVAILABLE_MESSAGE


def _commit(ledger: CartLedger, token: int, outcome, failure: str | None) -> CouponResult:
    if failure is not None:
        return ledger.fail_coupon(token, failure)
    return ledger.settle_coupon(token, outcome)


def _log_result(cart_id: str, code: str, token: int, result: CouponResult) -> None:
    if result.superseded:
        logger.info(
            "Discarded stale coupon result",
            cart_id=cart_id,
            coupon_code=code,
            request_token=token,
        )
    elif result.success:
        logger.info(
            "Coupon applied",
            cart_id=cart_id,
            coupon_code=code,
            discount=str(result.discount),
        )
    else:
        logger.info(
            "Coupon rejected",
            cart_id=cart_id,
            coupon_code=code,
            reason=result.message,
        )


async def apply_coupon(ledger: CartLedger, code: str, validator: CouponValidator | None = None) -> CouponResult:
    """Validate ``code`` and commit it to an in-memory ledger.

    Overlapping calls on the same ledger are sequenced: only the most
    recently started call can change it; earlier ones come back superseded.
    """
    validator = validator or get_validator()
    cart_id = str(ledger.id)

    token = ledger.begin_coupon(code)
    outcome, failure = await _validate(validator, code, cart_id)
    result = _commit(ledger, token, outcome, failure)

    _log_result(cart_id, code, token, result)
    return result


async def apply_coupon_to_cart(cart_id: str, code: str, validator: CouponValidator | None = None) -> CouponResult:
    """Validate ``code`` and commit it to a persisted cart.

    The request token is saved before the coupon service is awaited and the
    cart is reloaded afterwards, so concurrent requests for the same cart are
    sequenced by the stored token rather than by whichever finishes last.
    """
    validator = validator or get_validator()
    repo = current_domain.repository_for(CartLedger)

    ledger = repo.get(cart_id)
    token = ledger.begin_coupon(code)
    repo.add(ledger)

    outcome, failure = await _validate(validator, code, cart_id)

    ledger = repo.get(cart_id)
    result = _commit(ledger, token, outcome, failure)
    if not result.superseded:
        repo.add(ledger)

    _log_result(cart_id, code, token, result)
    return result
