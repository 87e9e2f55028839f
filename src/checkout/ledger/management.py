"""Cart management — commands and handler.

Handles cart creation, emptying the cart and the cart panel's visibility.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.ledger.ledger import CartLedger


@checkout.command(part_of="CartLedger")
class CreateCart:
    """Create an empty cart for a registered customer or a guest session."""

    customer_id = Identifier()  # Optional for guest carts
    session_id = String(max_length=255)
    currency = String(max_length=3, default="INR")


@checkout.command(part_of="CartLedger")
class ClearCart:
    """Remove every line, the coupon and the shipping charge."""

    cart_id = Identifier(required=True)


@checkout.command(part_of="CartLedger")
class ToggleCartVisibility:
    cart_id = Identifier(required=True)


@checkout.command_handler(part_of=CartLedger)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        ledger = CartLedger.create(
            customer_id=command.customer_id,
            session_id=command.session_id,
            currency=command.currency or "INR",
        )
        current_domain.repository_for(CartLedger).add(ledger)
        return str(ledger.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(CartLedger)
        ledger = repo.get(command.cart_id)
        ledger.clear()
        repo.add(ledger)

    @handle(ToggleCartVisibility)
    def toggle_cart_visibility(self, command):
        repo = current_domain.repository_for(CartLedger)
        ledger = repo.get(command.cart_id)
        ledger.toggle_visibility()
        repo.add(ledger)
