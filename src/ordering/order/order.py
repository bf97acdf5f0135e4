"""Order aggregate — the immutable record of a placed order and its lifecycle.

Everything a customer saw at checkout is captured as a snapshot when the
order is placed: product names, variant labels and prices on the line items,
the delivery address and the pricing breakdown. Later catalogue or address
book edits never alter a historical order.

State Machine (7 states):
    PENDING_CONFIRMATION → CONFIRMED → PREPARING → OUT_FOR_DELIVERY → DELIVERED
    CANCELLED, REFUNDED (from any non-terminal state)
    DELIVERED, CANCELLED and REFUNDED are terminal.

Back-office staff may jump forward over intermediate states; customers may
only cancel. Every status change appends exactly one entry to ``history``.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.errors import CancellationNotAllowed, InvalidTransition
from ordering.order.events import (
    OrderAdminNotesUpdated,
    OrderPaymentRecorded,
    OrderPlaced,
    OrderStatusChanged,
)
from ordering.shared.money import amounts_match, round_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING_CONFIRMATION = "PENDING_CONFIRMATION"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentMethod(Enum):
    COD = "COD"
    CARD = "CARD"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class FulfillmentType(Enum):
    DELIVERY = "DELIVERY"
    PICKUP = "PICKUP"


class ActorRole(Enum):
    CUSTOMER = "CUSTOMER"
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    STAFF = "STAFF"
    SYSTEM = "SYSTEM"


ADMIN_ROLES = frozenset({ActorRole.OWNER, ActorRole.MANAGER, ActorRole.STAFF})

# State machine transition map. Forward jumps along the happy path are allowed.
_VALID_TRANSITIONS = {
    OrderStatus.PENDING_CONFIRMATION: {
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.PREPARING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.PREPARING: {
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.OUT_FOR_DELIVERY: {
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

TERMINAL_STATES = frozenset(status for status, targets in _VALID_TRANSITIONS.items() if not targets)

# Entering one of these puts the ordered stock back on the shelf
COMPENSATING_STATES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

# States from which the customer may still cancel
CUSTOMER_CANCELLABLE_STATES = frozenset({OrderStatus.PENDING_CONFIRMATION, OrderStatus.CONFIRMED})

REQUIRED_ADDRESS_FIELDS = ("name", "phone", "street", "city", "emirate")
ADDRESS_FIELDS = (*REQUIRED_ADDRESS_FIELDS, "building", "apartment", "instructions")


def can_transition(current, target):
    return target in _VALID_TRANSITIONS.get(current, set())


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class AddressSnapshot:
    """The delivery address as entered at checkout.

    Independent of the customer's live address book; it never changes once
    recorded on an order.
    """

    name = String(required=True, max_length=150)
    phone = String(required=True, max_length=30)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    emirate = String(required=True, max_length=100)
    building = String(max_length=100)
    apartment = String(max_length=50)
    instructions = String(max_length=500)


@ordering.value_object(part_of="Order")
class OrderPricing:
    """Pricing breakdown computed server-side at placement and locked thereafter."""

    subtotal = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    vat = Float(default=0.0, min_value=0.0)
    grand_total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="AED")

    @invariant.post
    def grand_total_must_balance(self):
        expected = round_money(self.subtotal - self.discount + self.delivery_fee + self.vat)
        if not amounts_match(self.grand_total, expected):
            raise ValidationError(
                {"grand_total": [f"Grand total {self.grand_total} does not match breakdown ({expected})"]}
            )


@ordering.value_object(part_of="Order")
class PaymentDetails:
    method = String(required=True, choices=PaymentMethod)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    provider = String(max_length=50)
    transaction_id = String(max_length=255)


@ordering.value_object(part_of="Order")
class FulfillmentDetails:
    type = String(required=True, choices=FulfillmentType)
    notes = String(max_length=1000)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line of the order, snapshotting the product and variant as sold."""

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    variant_label = String(required=True, max_length=50)
    weight_grams = Integer(required=True)
    sku = String(required=True, max_length=50)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1, max_value=99)
    line_total = Float(required=True, min_value=0.0)


@ordering.entity(part_of="Order")
class StatusChange:
    """One append-only entry of the order's status history."""

    position = Integer(required=True, min_value=1)
    status = String(required=True, choices=OrderStatus)
    changed_at = DateTime(required=True)
    actor_role = String(required=True, choices=ActorRole)
    actor_id = String(max_length=255)
    note = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_no = String(required=True, max_length=30, unique=True)
    customer_id = Identifier(required=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING_CONFIRMATION.value,
    )
    items = HasMany(OrderItem)
    pricing = ValueObject(OrderPricing)
    payment = ValueObject(PaymentDetails)
    fulfillment = ValueObject(FulfillmentDetails)
    delivery_address = ValueObject(AddressSnapshot)
    history = HasMany(StatusChange)
    admin_notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order must contain at least one item"]})

    @invariant.post
    def history_must_end_in_current_status(self):
        if not self.history:
            raise ValidationError({"history": ["An order must have at least one history entry"]})
        if self.timeline[-1].status != self.status:
            raise ValidationError({"history": ["Latest history entry must match the order status"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_no,
        customer_id,
        lines,
        pricing,
        payment_method,
        fulfillment_type,
        delivery_address=None,
        notes=None,
    ):
        """Create a new order from lines already priced and reserved.

        Args:
            order_no: Freshly allocated order number.
            customer_id: The customer placing the order.
            lines: List of dicts with product_id, variant_id, product_name,
                   variant_label, weight_grams, sku, unit_price, quantity,
                   line_total.
            pricing: Dict with subtotal, discount, delivery_fee, vat,
                     grand_total, currency.
            payment_method: COD or CARD.
            fulfillment_type: DELIVERY or PICKUP.
            delivery_address: Dict with the address fields, for deliveries.
            notes: Free-text customer notes.
        """
        now = datetime.now(UTC)

        order = cls(
            order_no=order_no,
            customer_id=customer_id,
            status=OrderStatus.PENDING_CONFIRMATION.value,
            items=[OrderItem(**line) for line in lines],
            pricing=OrderPricing(**pricing),
            payment=PaymentDetails(method=payment_method, status=PaymentStatus.PENDING.value),
            fulfillment=FulfillmentDetails(type=fulfillment_type, notes=notes or ""),
            delivery_address=AddressSnapshot(**delivery_address) if delivery_address else None,
            history=[
                StatusChange(
                    position=1,
                    status=OrderStatus.PENDING_CONFIRMATION.value,
                    changed_at=now,
                    actor_role=ActorRole.CUSTOMER.value,
                    actor_id=str(customer_id),
                    note="Order placed",
                )
            ],
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_no=order_no,
                customer_id=str(customer_id),
                items=json.dumps(lines),
                item_count=sum(line["quantity"] for line in lines),
                fulfillment_type=fulfillment_type,
                payment_method=payment_method,
                subtotal=order.pricing.subtotal,
                delivery_fee=order.pricing.delivery_fee,
                vat=order.pricing.vat,
                grand_total=order.pricing.grand_total,
                currency=order.pricing.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def timeline(self):
        """History entries in the order they were appended."""
        return sorted(self.history, key=lambda entry: entry.position)

    @property
    def previous_status(self):
        """Status held before the most recent transition, None for a fresh order."""
        timeline = self.timeline
        return timeline[-2].status if len(timeline) > 1 else None

    @property
    def is_terminal(self):
        return OrderStatus(self.status) in TERMINAL_STATES

    def belongs_to(self, customer_id):
        return str(self.customer_id) == str(customer_id)

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target, actor_role):
        current = OrderStatus(self.status)
        if current in TERMINAL_STATES:
            raise InvalidTransition(
                f"Order {self.order_no} is {current.value} and can no longer change status",
                current=current.value,
                target=target.value,
            )
        if actor_role == ActorRole.CUSTOMER and target != OrderStatus.CANCELLED:
            raise InvalidTransition(
                "Customers may only cancel orders",
                current=current.value,
                target=target.value,
            )
        if not can_transition(current, target):
            raise InvalidTransition(
                f"Cannot transition from {current.value} to {target.value}",
                current=current.value,
                target=target.value,
            )

    def change_status(self, new_status, actor_role, actor_id=None, note=None):
        """Move the order to ``new_status`` and record who did it.

        Returns True when the transition requires the ordered stock to be
        restored (entering CANCELLED or REFUNDED from a non-terminal state).
        The caller owns the stock restoration, in the same unit of work.
        """
        target = OrderStatus(new_status)
        role = ActorRole(actor_role)
        self._assert_can_transition(target, role)

        previous = self.status
        restores_stock = target in COMPENSATING_STATES
        now = datetime.now(UTC)

        with atomic_change(self):
            self.status = target.value
            self.add_history(
                StatusChange(
                    position=len(self.history) + 1,
                    status=target.value,
                    changed_at=now,
                    actor_role=role.value,
                    actor_id=str(actor_id) if actor_id is not None else None,
                    note=note or f"Status changed from {previous}",
                )
            )
            if target == OrderStatus.REFUNDED and self.payment.status == PaymentStatus.PAID.value:
                self._replace_payment(status=PaymentStatus.REFUNDED.value)
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_no=self.order_no,
                previous_status=previous,
                new_status=target.value,
                actor_role=role.value,
                actor_id=str(actor_id) if actor_id is not None else None,
                note=note,
                stock_restored=restores_stock,
                changed_at=now,
            )
        )
        return restores_stock

    def cancel_by_customer(self, customer_id):
        """Customer-initiated cancellation, only before preparation starts."""
        current = OrderStatus(self.status)
        if current not in CUSTOMER_CANCELLABLE_STATES:
            raise CancellationNotAllowed(
                "Order cannot be cancelled at this stage",
                status=current.value,
            )

        restores_stock = self.change_status(
            OrderStatus.CANCELLED.value,
            ActorRole.CUSTOMER.value,
            actor_id=customer_id,
            note="Cancelled by customer",
        )
        # Collected payments are handed back on customer cancellation
        if self.payment.status == PaymentStatus.PAID.value:
            self._replace_payment(status=PaymentStatus.REFUNDED.value)
        return restores_stock

    # -------------------------------------------------------------------
    # Payment & back-office
    # -------------------------------------------------------------------
    def _replace_payment(self, **changes):
        current = self.payment.to_dict()
        current.update(changes)
        self.payment = PaymentDetails(**current)

    def record_payment(self, status, provider=None, transaction_id=None):
        """Record the outcome of a payment, e.g. cash collected on delivery."""
        target = PaymentStatus(status)
        if target not in (PaymentStatus.PAID, PaymentStatus.FAILED):
            raise ValidationError({"payment": ["Payment can only be recorded as PAID or FAILED"]})
        if OrderStatus(self.status) in COMPENSATING_STATES:
            raise ValidationError({"payment": [f"Cannot record payment on a {self.status} order"]})
        if self.payment.status == PaymentStatus.REFUNDED.value:
            raise ValidationError({"payment": ["Payment has already been refunded"]})

        previous = self.payment.status
        now = datetime.now(UTC)
        self._replace_payment(
            status=target.value,
            provider=provider or self.payment.provider,
            transaction_id=transaction_id or self.payment.transaction_id,
        )
        self.updated_at = now

        self.raise_(
            OrderPaymentRecorded(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                provider=provider,
                transaction_id=transaction_id,
                recorded_at=now,
            )
        )
        return previous

    def update_admin_notes(self, admin_notes):
        previous = self.admin_notes
        now = datetime.now(UTC)
        self.admin_notes = admin_notes
        self.updated_at = now

        self.raise_(
            OrderAdminNotesUpdated(
                order_id=str(self.id),
                admin_notes=admin_notes,
                updated_at=now,
            )
        )
        return previous
