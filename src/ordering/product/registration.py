"""Catalogue management — commands and handler used by admin collaborators."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.product.product import Product, Variant


@ordering.command(part_of="Product")
class RegisterProduct:
    name = String(required=True, max_length=255)
    category = String(required=True, max_length=20)
    region = String(required=True, max_length=100)
    roast = String(required=True, max_length=10)
    description = Text(required=True)
    base_price = Float()
    tasting_notes = Text()
    processing = String(max_length=100)
    bestseller = Boolean(default=False)


@ordering.command(part_of="Product")
class AddVariant:
    product_id = Identifier(required=True)
    label = String(required=True, max_length=50)
    weight_grams = Integer(required=True)
    sku = String(required=True, max_length=50)
    price = Float(required=True)
    compare_at_price = Float()
    stock_qty = Integer(default=0)


@ordering.command(part_of="Product")
class RestockVariant:
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    stock_qty = Integer(required=True)


@ordering.command_handler(part_of=Product)
class CatalogueHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        product = Product.register(
            name=command.name,
            category=command.category,
            region=command.region,
            roast=command.roast,
            description=command.description,
            base_price=command.base_price,
            tasting_notes=command.tasting_notes,
            processing=command.processing,
            bestseller=command.bestseller or False,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(AddVariant)
    def add_variant(self, command):
        taken = current_domain.repository_for(Variant)._dao.query.filter(sku=command.sku).all()
        if taken.total:
            raise ValidationError({"sku": [f"SKU {command.sku} is already in use"]})

        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        variant = product.add_variant(
            label=command.label,
            weight_grams=command.weight_grams,
            sku=command.sku,
            price=command.price,
            stock_qty=command.stock_qty or 0,
            compare_at_price=command.compare_at_price,
        )
        repo.add(product)
        return str(variant.id)

    @handle(RestockVariant)
    def restock_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restock(command.variant_id, command.stock_qty)
        repo.add(product)
