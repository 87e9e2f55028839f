"""Checkout bounded context — the Cart Ledger.

Owns the shopping cart's line items and keeps its monetary totals
(subtotal, discount, tax, shipping, total) consistent with every change,
including coupons validated by an external coupon service.
"""

import structlog
from protean.domain import Domain

checkout = Domain(name="checkout")

logger = structlog.get_logger(__name__)
