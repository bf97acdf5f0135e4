"""Order placement — command and handler.

The handler is the order transaction engine: inside a single unit of work it
loads every referenced product, validates products, variants and stock,
prices the cart from catalogue data, decrements stock, allocates an order
number and persists the order. Any error rolls the whole unit of work back,
so a failed placement leaves no stock decremented and no number consumed.
"""

import json
from collections import OrderedDict

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.errors import InvalidFulfillment, ProductNotFound
from ordering.numbering.sequence import next_order_number
from ordering.order.order import (
    ADDRESS_FIELDS,
    REQUIRED_ADDRESS_FIELDS,
    FulfillmentType,
    Order,
    PaymentMethod,
)
from ordering.order.pricing import calculate_pricing, line_total
from ordering.product.product import Product
from ordering.shared import settings


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, variant_id, quantity}
    fulfillment_type = String(required=True, choices=FulfillmentType)
    delivery_address = Text()  # JSON: address dict, required for DELIVERY
    notes = String(max_length=1000)
    payment_method = String(required=True, choices=PaymentMethod)


def _parse_lines(raw_items):
    lines = json.loads(raw_items) if isinstance(raw_items, str) else raw_items
    if not lines:
        raise ValidationError({"items": ["At least one item is required"]})

    if not isinstance(lines, list):
        raise ValidationError({"items": ["Items must be a list"]})

    parsed = []
    for line in lines:
        if not isinstance(line, dict):
            raise ValidationError({"items": ["Each item must be an object"]})
        missing = [key for key in ("product_id", "variant_id") if not line.get(key)]
        if missing:
            raise ValidationError({key: ["is required"] for key in missing})

        quantity = line.get("quantity")
        # bool is an int subclass
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError({"quantity": ["Quantity must be a whole number"]})
        if not 1 <= quantity <= settings.MAX_LINE_QUANTITY:
            raise ValidationError({"quantity": [f"Quantity must be between 1 and {settings.MAX_LINE_QUANTITY}"]})
        parsed.append(
            {
                "product_id": str(line["product_id"]),
                "variant_id": str(line["variant_id"]),
                "quantity": quantity,
            }
        )
    return parsed


def _delivery_address(fulfillment_type, raw_address):
    """Return the address snapshot to store, or None for pickups."""
    if FulfillmentType(fulfillment_type) != FulfillmentType.DELIVERY:
        return None

    address = json.loads(raw_address) if isinstance(raw_address, str) and raw_address else raw_address or {}
    missing = [field for field in REQUIRED_ADDRESS_FIELDS if not address.get(field)]
    if missing:
        raise InvalidFulfillment(
            "Delivery address required for delivery orders",
            missing_fields=missing,
        )
    return {field: address[field] for field in ADDRESS_FIELDS if address.get(field)}


def _load_product(repo, product_id):
    try:
        product = repo.get(product_id)
    except ObjectNotFoundError:
        raise ProductNotFound(f"Product not found: {product_id}", product_id=product_id) from None
    if not product.active:
        raise ProductNotFound(f"Product not found: {product_id}", product_id=product_id)
    return product


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines = _parse_lines(command.items)
        address = _delivery_address(command.fulfillment_type, command.delivery_address)

        product_repo = current_domain.repository_for(Product)
        products = OrderedDict()
        requested = OrderedDict()  # (product_id, variant_id) -> total quantity

        # 1-2. Load and validate everything before touching stock
        for line in lines:
            product_id = line["product_id"]
            if product_id not in products:
                products[product_id] = _load_product(product_repo, product_id)
            products[product_id].purchasable_variant(line["variant_id"])

            key = (product_id, line["variant_id"])
            requested[key] = requested.get(key, 0) + line["quantity"]

        for (product_id, variant_id), quantity in requested.items():
            products[product_id].ensure_available(variant_id, quantity)

        # 3-4. Price from the catalogue, snapshot and decrement
        order_lines = []
        for line in lines:
            product = products[line["product_id"]]
            variant = product.reserve_stock(line["variant_id"], line["quantity"])
            order_lines.append(
                {
                    "product_id": str(product.id),
                    "variant_id": str(variant.id),
                    "product_name": product.name,
                    "variant_label": variant.label,
                    "weight_grams": variant.weight_grams,
                    "sku": variant.sku,
                    "unit_price": variant.price,
                    "quantity": line["quantity"],
                    "line_total": line_total(variant.price, line["quantity"]),
                }
            )

        for product in products.values():
            product_repo.add(product)

        # 5. Pricing
        pricing = calculate_pricing(
            [line["line_total"] for line in order_lines],
            command.fulfillment_type,
        )

        # 6-7. Number and persist
        order = Order.place(
            order_no=next_order_number(),
            customer_id=command.customer_id,
            lines=order_lines,
            pricing=pricing,
            payment_method=command.payment_method,
            fulfillment_type=command.fulfillment_type,
            delivery_address=address,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_no=order.order_no,
            customer_id=str(command.customer_id),
            line_count=len(order_lines),
            grand_total=pricing["grand_total"],
        )
        return str(order.id)
