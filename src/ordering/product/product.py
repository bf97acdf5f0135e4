"""Product aggregate root with the Variant entity.

A Product is a coffee in the catalogue; its Variants are the purchasable
weights, each with its own price and stock. Checkout always prices from the
variant, never from the product's legacy ``base_price``.

Stock is only ever decremented through ``reserve_stock``, a conditional
decrement that refuses to run when the variant does not hold enough units,
so ``stock_qty`` can never go negative.
"""

import re
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Integer, String, Text

from ordering.domain import ordering
from ordering.errors import InsufficientStock, VariantNotFound


class ProductCategory(Enum):
    AFRICA = "africa"
    AMERICA = "america"
    ASIA = "asia"
    PREMIUM = "premium"
    ALL = "all"


class RoastLevel(Enum):
    LIGHT = "Light"
    MEDIUM = "Medium"
    DARK = "Dark"


def slugify(name):
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


@ordering.entity(part_of="Product")
class Variant:
    """A purchasable weight of a coffee, e.g. the 250g bag."""

    label: String(required=True, max_length=50)
    weight_grams: Integer(required=True, min_value=1)
    sku: String(required=True, max_length=50)
    price: Float(required=True, min_value=0.0)
    compare_at_price: Float(min_value=0.0)
    stock_qty: Integer(default=0, min_value=0)
    active: Boolean(default=True)

    @property
    def purchasable(self):
        return bool(self.active) and (self.stock_qty or 0) > 0


@ordering.aggregate
class Product:
    """Product aggregate root."""

    name: String(required=True, max_length=255)
    slug: String(max_length=255)
    category: String(required=True, choices=ProductCategory)
    region: String(required=True, max_length=100)
    roast: String(required=True, choices=RoastLevel)
    description: Text(required=True)
    tasting_notes: Text()
    processing: String(max_length=100, default="Washed")
    base_price: Float(min_value=0.0)  # Legacy display price, never used at checkout
    bestseller: Boolean(default=False)
    active: Boolean(default=True)
    variants: HasMany(Variant)
    created_at: DateTime(default=datetime.now)
    updated_at: DateTime(default=datetime.now)

    @invariant.post
    def variant_skus_must_be_unique(self):
        skus = [v.sku for v in self.variants]
        if len(skus) != len(set(skus)):
            raise ValidationError({"variants": ["Variant SKUs must be unique"]})

    @classmethod
    def register(
        cls,
        name,
        category,
        region,
        roast,
        description,
        base_price=None,
        tasting_notes=None,
        processing=None,
        bestseller=False,
    ):
        from ordering.product.events import ProductRegistered

        now = datetime.now(UTC)
        product = cls(
            name=name,
            slug=slugify(name),
            category=category,
            region=region,
            roast=roast,
            description=description,
            base_price=base_price,
            tasting_notes=tasting_notes,
            processing=processing or "Washed",
            bestseller=bestseller,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductRegistered(
                product_id=product.id,
                name=name,
                category=category,
                registered_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Variant lookup
    # -------------------------------------------------------------------
    @property
    def variant_index(self):
        """Variants keyed by their id."""
        return {str(v.id): v for v in self.variants}

    @property
    def in_stock(self):
        return any(v.purchasable for v in self.variants)

    def purchasable_variant(self, variant_id):
        """Return the active variant with ``variant_id`` or raise VariantNotFound."""
        variant = self.variant_index.get(str(variant_id))
        if variant is None or not variant.active:
            raise VariantNotFound(f"Variant not found: {variant_id}", product_id=str(self.id), variant_id=str(variant_id))
        return variant

    # -------------------------------------------------------------------
    # Catalogue management
    # -------------------------------------------------------------------
    def add_variant(self, label, weight_grams, sku, price, stock_qty=0, compare_at_price=None):
        from ordering.product.events import VariantAdded

        variant = Variant(
            label=label,
            weight_grams=weight_grams,
            sku=sku,
            price=price,
            compare_at_price=compare_at_price,
            stock_qty=stock_qty,
        )
        self.add_variants(variant)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantAdded(
                product_id=self.id,
                variant_id=variant.id,
                sku=sku,
                label=label,
                price=price,
                stock_qty=stock_qty,
            )
        )
        return variant

    def restock(self, variant_id, stock_qty):
        from ordering.product.events import VariantRestocked

        if stock_qty < 0:
            raise ValidationError({"stock_qty": ["Stock cannot be negative"]})

        variant = self.variant_index.get(str(variant_id))
        if variant is None:
            raise VariantNotFound(f"Variant not found: {variant_id}", product_id=str(self.id), variant_id=str(variant_id))

        previous = variant.stock_qty or 0
        variant.stock_qty = stock_qty
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantRestocked(
                product_id=self.id,
                variant_id=variant.id,
                previous_stock=previous,
                new_stock=stock_qty,
            )
        )

    # -------------------------------------------------------------------
    # Stock movements driven by orders
    # -------------------------------------------------------------------
    def ensure_available(self, variant_id, quantity):
        """Raise InsufficientStock unless the variant holds ``quantity`` units."""
        variant = self.purchasable_variant(variant_id)
        available = variant.stock_qty or 0
        if quantity > available:
            raise InsufficientStock(
                f"Insufficient stock for {self.name} ({variant.label}). Available: {available}",
                product_id=str(self.id),
                variant_id=str(variant.id),
                requested=quantity,
                available=available,
            )
        return variant

    def reserve_stock(self, variant_id, quantity):
        """Decrement stock iff the variant holds at least ``quantity`` units."""
        from ordering.product.events import VariantStockReserved

        variant = self.ensure_available(variant_id, quantity)
        variant.stock_qty = variant.stock_qty - quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantStockReserved(
                product_id=self.id,
                variant_id=variant.id,
                quantity=quantity,
                remaining=variant.stock_qty,
            )
        )
        return variant

    def restore_stock(self, variant_id, quantity):
        """Put ``quantity`` units back onto a variant, active or not.

        Returns False when the variant no longer exists on this product.
        """
        from ordering.product.events import VariantStockRestored

        variant = self.variant_index.get(str(variant_id))
        if variant is None:
            return False

        variant.stock_qty = (variant.stock_qty or 0) + quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantStockRestored(
                product_id=self.id,
                variant_id=variant.id,
                quantity=quantity,
                new_stock=variant.stock_qty,
            )
        )
        return True
