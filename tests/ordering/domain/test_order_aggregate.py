"""Tests for the Order aggregate — placement snapshot, invariants and back-office updates."""

import pytest
from ordering.order.events import OrderAdminNotesUpdated, OrderPaymentRecorded, OrderPlaced
from ordering.order.order import (
    ActorRole,
    Order,
    OrderPricing,
    OrderStatus,
    PaymentStatus,
)
from protean.exceptions import ValidationError


class TestOrderPlacement:
    def test_starts_pending_confirmation(self, order):
        assert order.status == OrderStatus.PENDING_CONFIRMATION.value

    def test_first_history_entry(self, order):
        assert len(order.history) == 1
        entry = order.timeline[0]
        assert entry.status == OrderStatus.PENDING_CONFIRMATION.value
        assert entry.actor_role == ActorRole.CUSTOMER.value
        assert entry.actor_id == "cust-001"
        assert entry.note == "Order placed"

    def test_line_snapshot(self, order):
        item = order.items[0]
        assert item.product_name == "Ethiopia Yirgacheffe"
        assert item.variant_label == "250g"
        assert item.unit_price == 26.0
        assert item.line_total == 52.0

    def test_payment_pending(self, order):
        assert order.payment.method == "COD"
        assert order.payment.status == PaymentStatus.PENDING.value

    def test_pickup_has_no_address(self, order):
        assert order.delivery_address is None
        assert order.fulfillment.type == "PICKUP"

    def test_delivery_address_snapshot(self, order_factory):
        order = order_factory(
            fulfillment_type="DELIVERY",
            delivery_address={
                "name": "Layla Haddad",
                "phone": "+971501234567",
                "street": "Al Wasl Road",
                "city": "Dubai",
                "emirate": "Dubai",
            },
        )
        assert order.delivery_address.emirate == "Dubai"
        assert order.pricing.delivery_fee == 15.0

    def test_raises_order_placed(self, order_factory):
        order = order_factory()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.order_no == "CBW-2025-000001"
        assert event.item_count == 2
        assert event.grand_total == 54.6

    def test_owner_check(self, order):
        assert order.belongs_to("cust-001")
        assert not order.belongs_to("cust-002")


class TestOrderInvariants:
    def test_order_requires_items(self):
        with pytest.raises(ValidationError):
            Order.place(
                order_no="CBW-2025-000009",
                customer_id="cust-001",
                lines=[],
                pricing={"subtotal": 0.0, "grand_total": 0.0},
                payment_method="COD",
                fulfillment_type="PICKUP",
            )

    def test_pricing_must_balance(self):
        with pytest.raises(ValidationError):
            OrderPricing(subtotal=52.0, delivery_fee=0.0, vat=2.6, grand_total=60.0)

    def test_balanced_pricing_accepted(self):
        pricing = OrderPricing(subtotal=52.0, delivery_fee=15.0, vat=3.35, grand_total=70.35)
        assert pricing.grand_total == 70.35

    def test_quantity_bounds_enforced(self, order_factory):
        with pytest.raises(ValidationError):
            order_factory(quantity=100)


class TestAdminNotes:
    def test_update_returns_previous(self, order):
        assert order.update_admin_notes("Call before delivery") is None
        assert order.update_admin_notes("Left at reception") == "Call before delivery"
        assert order.admin_notes == "Left at reception"

    def test_raises_event(self, order):
        order.update_admin_notes("Gift wrap")
        assert isinstance(order._events[-1], OrderAdminNotesUpdated)

    def test_notes_do_not_touch_status(self, order):
        order.update_admin_notes("Gift wrap")
        assert order.status == OrderStatus.PENDING_CONFIRMATION.value
        assert len(order.history) == 1


class TestRecordPayment:
    def test_mark_paid(self, order):
        previous = order.record_payment("PAID", provider="courier", transaction_id="COD-123")
        assert previous == PaymentStatus.PENDING.value
        assert order.payment.status == PaymentStatus.PAID.value
        assert order.payment.provider == "courier"
        assert order.payment.method == "COD"
        assert isinstance(order._events[-1], OrderPaymentRecorded)

    def test_mark_failed(self, order):
        order.record_payment("FAILED")
        assert order.payment.status == PaymentStatus.FAILED.value

    def test_pending_is_not_recordable(self, order):
        with pytest.raises(ValidationError):
            order.record_payment("PENDING")

    def test_cannot_record_on_cancelled_order(self, order):
        order.change_status("CANCELLED", "OWNER", actor_id="admin-1")
        with pytest.raises(ValidationError):
            order.record_payment("PAID")
