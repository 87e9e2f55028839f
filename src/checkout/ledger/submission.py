"""Order submission payload — what the ledger hands to order creation.

The order service owns persistence and the final order shape; this module
only packages a snapshot into the contract that service consumes. Keys are
camelCase because that is the order endpoint's wire format.
"""

from checkout.ledger.snapshot import CartSnapshot


def build_order_payload(snapshot: CartSnapshot) -> dict:
    payload = {
        "lineItems": [
            {
                "id": line.product_ref,
                "productId": line.product_ref,
                "quantity": line.quantity,
                "price": float(line.unit_price),
                "totalDiscount": 0,
            }
            for line in snapshot.items
        ],
        "subtotal": float(snapshot.subtotal),
        "taxes": float(snapshot.tax_amount),
        "shipping": float(snapshot.shipping_amount),
        "totalPrice": float(snapshot.total),
        "currency": snapshot.currency,
    }
    if snapshot.applied_coupon:
        payload["couponCode"] = snapshot.applied_coupon
        payload["discount"] = float(snapshot.discount_amount)
    return payload
