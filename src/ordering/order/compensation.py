"""Compensating stock restoration for cancelled and refunded orders."""

from collections import OrderedDict

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.domain import logger
from ordering.product.product import Product


def restore_order_stock(order):
    """Put every line's quantity back onto its variant.

    Must run inside the unit of work that records the status change. Lines
    whose product or variant has since been removed from the catalogue are
    skipped and logged; there is nothing left to restore them onto.
    """
    by_product = OrderedDict()
    for item in order.items:
        by_product.setdefault(str(item.product_id), []).append(item)

    repo = current_domain.repository_for(Product)
    restored = 0
    for product_id, items in by_product.items():
        try:
            product = repo.get(product_id)
        except ObjectNotFoundError:
            logger.warning(
                "stock_restore_skipped",
                order_no=order.order_no,
                product_id=product_id,
                reason="product_missing",
            )
            continue

        for item in items:
            if product.restore_stock(item.variant_id, item.quantity):
                restored += item.quantity
            else:
                logger.warning(
                    "stock_restore_skipped",
                    order_no=order.order_no,
                    product_id=product_id,
                    variant_id=str(item.variant_id),
                    reason="variant_missing",
                )
        repo.add(product)

    logger.info("stock_restored", order_no=order.order_no, units=restored)
    return restored
