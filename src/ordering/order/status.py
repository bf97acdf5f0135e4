"""Order status transitions — command and handler.

Used by the back office (and system processes) to move an order through its
lifecycle. Entering CANCELLED or REFUNDED restores the ordered stock in the
same unit of work as the status write.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.errors import OrderNotFound
from ordering.order.compensation import restore_order_stock
from ordering.order.order import ActorRole, Order, OrderStatus


@ordering.command(part_of="Order")
class AdvanceOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    actor_role = String(required=True, choices=ActorRole)
    actor_id = String(max_length=255)
    note = String(max_length=500)


def load_order(order_id):
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise OrderNotFound("Order not found", order_id=str(order_id)) from None


@ordering.command_handler(part_of=Order)
class AdvanceOrderStatusHandler:
    @handle(AdvanceOrderStatus)
    def advance_status(self, command):
        order = load_order(command.order_id)
        previous_status = order.status

        restores_stock = order.change_status(
            command.status,
            command.actor_role,
            actor_id=command.actor_id,
            note=command.note,
        )
        if restores_stock:
            restore_order_stock(order)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_status_changed",
            order_no=order.order_no,
            previous_status=previous_status,
            new_status=order.status,
            actor_role=command.actor_role,
            stock_restored=restores_stock,
        )
        return {
            "order_id": str(order.id),
            "previous_status": previous_status,
            "status": order.status,
        }
