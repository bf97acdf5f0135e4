"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Product")
class ProductRegistered:
    """A coffee was added to the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    category = String(required=True)
    registered_at = DateTime(required=True)


@ordering.event(part_of="Product")
class VariantAdded:
    """A purchasable weight/size was added to a product."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    sku = String(required=True)
    label = String(required=True)
    price = Float(required=True)
    stock_qty = Integer(required=True)


@ordering.event(part_of="Product")
class VariantStockReserved:
    """Stock was taken for an order being placed."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@ordering.event(part_of="Product")
class VariantStockRestored:
    """Stock taken by a cancelled or refunded order was put back."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_stock = Integer(required=True)


@ordering.event(part_of="Product")
class VariantRestocked:
    """An admin set a new on-hand stock count for a variant."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
