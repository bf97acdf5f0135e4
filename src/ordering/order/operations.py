"""Application-facing entry points of the order transaction engine.

Each function builds the corresponding command, runs it through the
transaction boundary and returns the persisted result. These are the calls
the HTTP layer (and any other driving adapter) makes.
"""

import json

from protean.utils.globals import current_domain

from ordering.order.cancellation import CancelOrder
from ordering.order.notes import UpdateAdminNotes
from ordering.order.order import Order
from ordering.order.payment import RecordPayment
from ordering.order.placement import PlaceOrder
from ordering.order.status import AdvanceOrderStatus
from ordering.shared.transaction import execute


def create_order(customer_id, items, fulfillment, payment):
    """Place an order and return the persisted ``Order``.

    ``items`` is a list of ``{product_id, variant_id, quantity}`` mappings,
    ``fulfillment`` a mapping with ``type`` plus optional ``address`` and
    ``notes``, and ``payment`` a mapping with ``method``.
    """
    order_id = execute(
        PlaceOrder(
            customer_id=str(customer_id),
            items=json.dumps([_line(item) for item in items]),
            fulfillment_type=fulfillment["type"],
            delivery_address=json.dumps(fulfillment["address"]) if fulfillment.get("address") else None,
            notes=fulfillment.get("notes"),
            payment_method=payment["method"],
        )
    )
    return current_domain.repository_for(Order).get(order_id)


def advance_status(order_id, new_status, actor_role, actor_id=None, note=None):
    """Move an order to ``new_status`` and return the updated ``Order``.

    The status it moved from is available as ``order.previous_status``.
    """
    execute(
        AdvanceOrderStatus(
            order_id=str(order_id),
            status=new_status,
            actor_role=actor_role,
            actor_id=actor_id,
            note=note,
        )
    )
    return current_domain.repository_for(Order).get(order_id)


def cancel_order(customer_id, order_id):
    """Cancel a customer's own order and return the updated ``Order``."""
    execute(CancelOrder(order_id=str(order_id), customer_id=str(customer_id)))
    return current_domain.repository_for(Order).get(order_id)


def update_admin_notes(order_id, admin_notes):
    return execute(UpdateAdminNotes(order_id=str(order_id), admin_notes=admin_notes))


def record_payment(order_id, status, provider=None, transaction_id=None):
    return execute(
        RecordPayment(
            order_id=str(order_id),
            status=status,
            provider=provider,
            transaction_id=transaction_id,
        )
    )


def _line(item):
    if not isinstance(item, dict):
        return item
    return {
        "product_id": str(item["product_id"]) if item.get("product_id") else None,
        "variant_id": str(item["variant_id"]) if item.get("variant_id") else None,
        "quantity": item.get("quantity"),
    }
