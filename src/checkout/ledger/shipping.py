"""Shipping quotes — delivery options, command and handler.

The ledger does not price delivery itself; it records whatever quote the
checkout flow hands it. The storefront's delivery options are kept here so
the checkout can quote by option instead of by raw amount.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.ledger.ledger import CartLedger

DELIVERY_OPTIONS = {
    "standard": {"name": "Standard Delivery", "description": "5-7 business days", "price": 200.0},
    "express": {"name": "Express Delivery", "description": "2-3 business days", "price": 500.0},
    "premium": {"name": "White Glove Delivery", "description": "Professional installation & setup", "price": 1500.0},
}


def quote_for(delivery_option: str) -> float:
    """Shipping charge for a delivery option id."""
    try:
        return DELIVERY_OPTIONS[delivery_option]["price"]
    except KeyError:
        raise ValidationError({"delivery_option": [f"Unknown delivery option: {delivery_option}"]}) from None


@checkout.command(part_of="CartLedger")
class UpdateShipping:
    """Record a delivery quote, either as an amount or as a delivery option id."""

    cart_id = Identifier(required=True)
    amount = Float(min_value=0.0)
    delivery_option = String(max_length=50)


@checkout.command_handler(part_of=CartLedger)
class UpdateShippingHandler:
    @handle(UpdateShipping)
    def update_shipping(self, command):
        if command.delivery_option:
            amount = quote_for(command.delivery_option)
        elif command.amount is not None:
            amount = command.amount
        else:
            raise ValidationError({"amount": ["Either an amount or a delivery option is required"]})

        repo = current_domain.repository_for(CartLedger)
        ledger = repo.get(command.cart_id)
        ledger.update_shipping(amount)
        repo.add(ledger)
