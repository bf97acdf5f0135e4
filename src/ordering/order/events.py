"""Domain events for the Order aggregate.

Events are immutable facts raised alongside each state change and stored in
the event store when the unit of work commits.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order; stock has been taken and pricing locked."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_no = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line snapshots
    item_count = Integer(required=True)
    fulfillment_type = String(required=True)
    payment_method = String(required=True)
    subtotal = Float(required=True)
    delivery_fee = Float(required=True)
    vat = Float(required=True)
    grand_total = Float(required=True)
    currency = String(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved from one lifecycle status to another."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_no = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    actor_role = String(required=True)
    actor_id = String()
    note = String()
    stock_restored = Boolean(default=False)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentRecorded:
    """The payment status of an order changed outside of a refund."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    provider = String()
    transaction_id = String()
    recorded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderAdminNotesUpdated:
    """Back-office staff edited the internal notes of an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    admin_notes = Text()
    updated_at = DateTime(required=True)
