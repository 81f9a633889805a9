"""Cart item management: commands and handler.

A cart is addressed by its owner rather than its id: the authenticated user
when there is one, otherwise the guest session. The first item added for an
owner creates the cart.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.serialization import serialized_per_owner
from ordering.catalog.product import Product
from ordering.domain import logger, ordering
from ordering.exceptions import InvalidQuantity, NotFound


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    product_id = Identifier(required=True)
    quantity = Integer(default=1)


@ordering.command(part_of="ShoppingCart")
class UpdateCartItem:
    user_id = Identifier()
    session_id = String(max_length=255)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    product_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    user_id = Identifier()
    session_id = String(max_length=255)


def _owner(command) -> dict:
    if command.user_id:
        return {"user_id": command.user_id}
    if command.session_id:
        return {"session_id": command.session_id}
    raise ValidationError({"owner": ["Authentication or session ID required"]})


def _load_product(product_id) -> Product:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError as exc:
        raise NotFound("Product not found") from exc


def _existing_cart(repo, owner) -> ShoppingCart:
    cart = repo.active_for(**owner)
    if cart is None:
        raise NotFound("Cart not found")
    return cart


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @serialized_per_owner
    @handle(AddToCart)
    def add_to_cart(self, command):
        owner = _owner(command)
        if command.quantity is None or command.quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1")

        product = _load_product(command.product_id)
        product.ensure_available(command.quantity)

        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.active_for(**owner)
        if cart is None:
            cart = ShoppingCart.create(**owner)
            logger.info("cart_created", cart_id=str(cart.id), **owner)

        cart.add_item(
            product_id=str(product.id),
            quantity=command.quantity,
            unit_price=product.unit_price,
        )
        repo.add(cart)
        return str(cart.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        owner = _owner(command)
        if command.quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1")

        repo = current_domain.repository_for(ShoppingCart)
        cart = _existing_cart(repo, owner)
        if cart.item_for(command.product_id) is None:
            raise NotFound("Item not found in cart")

        product = _load_product(command.product_id)
        product.ensure_available(command.quantity)

        cart.update_item_quantity(command.product_id, command.quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = _existing_cart(repo, _owner(command))
        cart.remove_item(command.product_id)
        repo.add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = _existing_cart(repo, _owner(command))
        cart.clear()
        repo.add(cart)
        return str(cart.id)
