"""Cart line management — commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.ledger.ledger import CartLedger


@checkout.command(part_of="CartLedger")
class AddToCart:
    cart_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(default=1, min_value=1)


@checkout.command(part_of="CartLedger")
class UpdateCartQuantity:
    """Set a line's quantity. Zero or a negative number removes the line."""

    cart_id = Identifier(required=True)
    product_ref = Identifier(required=True)
    quantity = Integer(required=True)


@checkout.command(part_of="CartLedger")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    product_ref = Identifier(required=True)


@checkout.command_handler(part_of=CartLedger)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(CartLedger)
        ledger = repo.get(command.cart_id)
        ledger.add_item(
            product_ref=command.product_ref,
            unit_price=command.unit_price,
            quantity=command.quantity or 1,
        )
        repo.add(ledger)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(CartLedger)
        ledger = repo.get(command.cart_id)
        ledger.update_quantity(
            product_ref=command.product_ref,
            quantity=command.quantity,
        )
        repo.add(ledger)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(CartLedger)
        ledger = repo.get(command.cart_id)
        ledger.remove_item(product_ref=command.product_ref)
        repo.add(ledger)
