"""Catalog maintenance: commands the catalog collaborator uses to seed and adjust products."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.catalog.product import Product
from ordering.domain import logger, ordering


@ordering.command(part_of="Product")
class RegisterProduct:
    name = String(required=True, max_length=200)
    sku = String(required=True, max_length=50)
    regular_price = Float(required=True, min_value=0.0)
    sale_price = Float(min_value=0.0)
    quantity = Integer(default=0, min_value=0)
    track_quantity = Boolean(default=True)
    low_stock_threshold = Integer(default=10, min_value=0)


@ordering.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)


@ordering.command_handler(part_of=Product)
class CatalogHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        product = Product.create(
            name=command.name,
            sku=command.sku,
            regular_price=command.regular_price,
            sale_price=command.sale_price,
            quantity=command.quantity,
            track_quantity=command.track_quantity,
            low_stock_threshold=command.low_stock_threshold,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("product_registered", product_id=str(product.id), sku=product.sku)
        return str(product.id)

    @handle(RestockProduct)
    def restock_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restock(command.quantity)
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)
