"""Tests for Order state machine — valid transitions and invalid transition guards."""

import pytest
from ordering.errors import CancellationNotAllowed, InvalidTransition
from ordering.order.events import OrderStatusChanged
from ordering.order.order import Order, OrderStatus, PaymentStatus, can_transition


def _make_order():
    return Order.place(
        order_no="CBW-2025-000001",
        customer_id="cust-001",
        lines=[
            {
                "product_id": "prod-001",
                "variant_id": "var-001",
                "product_name": "Ethiopia Yirgacheffe",
                "variant_label": "250g",
                "weight_grams": 250,
                "sku": "ETH-YIR-250",
                "unit_price": 26.0,
                "quantity": 2,
                "line_total": 52.0,
            }
        ],
        pricing={"subtotal": 52.0, "delivery_fee": 0.0, "vat": 2.6, "grand_total": 54.6, "currency": "AED"},
        payment_method="COD",
        fulfillment_type="PICKUP",
    )


_HAPPY_PATH = [
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]


def _order_at_state(target_status):
    """Create an order and advance it along the happy path to the desired state."""
    order = _make_order()
    if target_status == OrderStatus.PENDING_CONFIRMATION:
        return order

    if target_status in (OrderStatus.CANCELLED, OrderStatus.REFUNDED):
        order.change_status(target_status.value, "MANAGER", actor_id="admin-1")
        return order

    for status in _HAPPY_PATH:
        order.change_status(status.value, "STAFF", actor_id="admin-1")
        if status == target_status:
            return order
    raise AssertionError(f"unreachable state {target_status}")


class TestTransitionGraph:
    @pytest.mark.parametrize(
        "current, target",
        [
            (OrderStatus.PENDING_CONFIRMATION, OrderStatus.CONFIRMED),
            (OrderStatus.CONFIRMED, OrderStatus.PREPARING),
            (OrderStatus.PREPARING, OrderStatus.OUT_FOR_DELIVERY),
            (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED),
            (OrderStatus.PENDING_CONFIRMATION, OrderStatus.PREPARING),
            (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.REFUNDED),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (OrderStatus.CONFIRMED, OrderStatus.PENDING_CONFIRMATION),
            (OrderStatus.DELIVERED, OrderStatus.OUT_FOR_DELIVERY),
            (OrderStatus.CONFIRMED, OrderStatus.CONFIRMED),
            (OrderStatus.CANCELLED, OrderStatus.CONFIRMED),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition(current, target)


class TestChangeStatus:
    def test_advance_appends_history(self):
        order = _make_order()
        order.change_status("CONFIRMED", "OWNER", actor_id="admin-1", note="Called the customer")

        assert order.status == OrderStatus.CONFIRMED.value
        assert len(order.history) == 2
        latest = order.timeline[-1]
        assert latest.status == OrderStatus.CONFIRMED.value
        assert latest.actor_role == "OWNER"
        assert latest.actor_id == "admin-1"
        assert latest.note == "Called the customer"

    def test_default_note_names_previous_status(self):
        order = _make_order()
        order.change_status("CONFIRMED", "OWNER")
        assert order.timeline[-1].note == "Status changed from PENDING_CONFIRMATION"

    def test_raises_status_changed_event(self):
        order = _make_order()
        order._events.clear()
        order.change_status("CONFIRMED", "OWNER", actor_id="admin-1")

        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "PENDING_CONFIRMATION"
        assert event.new_status == "CONFIRMED"
        assert event.stock_restored is False

    def test_forward_jump_allowed(self):
        order = _make_order()
        order.change_status("OUT_FOR_DELIVERY", "MANAGER")
        assert order.status == OrderStatus.OUT_FOR_DELIVERY.value
        assert len(order.history) == 2

    def test_backwards_move_rejected(self):
        order = _order_at_state(OrderStatus.PREPARING)
        with pytest.raises(InvalidTransition):
            order.change_status("CONFIRMED", "OWNER")
        assert order.status == OrderStatus.PREPARING.value

    def test_same_status_rejected(self):
        order = _order_at_state(OrderStatus.CONFIRMED)
        with pytest.raises(InvalidTransition):
            order.change_status("CONFIRMED", "OWNER")

    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED])
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_terminal_states_are_final(self, terminal, target):
        order = _order_at_state(terminal)
        history_length = len(order.history)

        with pytest.raises(InvalidTransition) as exc:
            order.change_status(target.value, "OWNER")

        assert exc.value.code == "INVALID_TRANSITION"
        assert order.status == terminal.value
        assert len(order.history) == history_length

    def test_customer_actor_may_only_cancel(self):
        order = _make_order()
        with pytest.raises(InvalidTransition):
            order.change_status("CONFIRMED", "CUSTOMER")

    @pytest.mark.parametrize("target", ["CANCELLED", "REFUNDED"])
    def test_compensating_states_request_stock_restore(self, target):
        order = _order_at_state(OrderStatus.PREPARING)
        assert order.change_status(target, "OWNER") is True

    def test_regular_advance_does_not_restore_stock(self):
        order = _make_order()
        assert order.change_status("CONFIRMED", "OWNER") is False

    def test_refund_flips_paid_payment(self):
        order = _order_at_state(OrderStatus.OUT_FOR_DELIVERY)
        order.record_payment("PAID")
        order.change_status("REFUNDED", "OWNER")
        assert order.payment.status == PaymentStatus.REFUNDED.value

    def test_refund_leaves_pending_payment(self):
        order = _make_order()
        order.change_status("REFUNDED", "OWNER")
        assert order.payment.status == PaymentStatus.PENDING.value


class TestCustomerCancellation:
    @pytest.mark.parametrize("status", [OrderStatus.PENDING_CONFIRMATION, OrderStatus.CONFIRMED])
    def test_cancellable_states(self, status):
        order = _order_at_state(status)
        assert order.cancel_by_customer("cust-001") is True

        assert order.status == OrderStatus.CANCELLED.value
        latest = order.timeline[-1]
        assert latest.actor_role == "CUSTOMER"
        assert latest.actor_id == "cust-001"
        assert latest.note == "Cancelled by customer"

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PREPARING, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, OrderStatus.CANCELLED],
    )
    def test_too_late_to_cancel(self, status):
        order = _order_at_state(status)
        with pytest.raises(CancellationNotAllowed) as exc:
            order.cancel_by_customer("cust-001")
        assert exc.value.code == "CANCELLATION_NOT_ALLOWED"
        assert order.status == status.value

    def test_paid_payment_refunded_on_cancel(self):
        order = _order_at_state(OrderStatus.CONFIRMED)
        order.record_payment("PAID")
        order.cancel_by_customer("cust-001")
        assert order.payment.status == PaymentStatus.REFUNDED.value

    def test_pending_payment_untouched_on_cancel(self):
        order = _make_order()
        order.cancel_by_customer("cust-001")
        assert order.payment.status == PaymentStatus.PENDING.value
