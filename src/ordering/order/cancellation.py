"""Customer-initiated order cancellation — command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.errors import OrderNotFound
from ordering.order.compensation import restore_order_stock
from ordering.order.order import Order
from ordering.order.status import load_order


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id)
        # Someone else's order is reported exactly like a missing one
        if not order.belongs_to(command.customer_id):
            raise OrderNotFound("Order not found", order_id=str(command.order_id))

        previous_status = order.status
        if order.cancel_by_customer(command.customer_id):
            restore_order_stock(order)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_cancelled_by_customer",
            order_no=order.order_no,
            customer_id=str(command.customer_id),
            previous_status=previous_status,
        )
        return {
            "order_id": str(order.id),
            "previous_status": previous_status,
            "status": order.status,
        }
