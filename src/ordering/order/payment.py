"""Order payment recording — command and handler.

Cash-on-Delivery orders are marked PAID when the courier collects the cash;
card payments are not yet supported by the storefront, but a gateway callback
would record its outcome the same way.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import Order, PaymentStatus
from ordering.order.status import load_order


@ordering.command(part_of="Order")
class RecordPayment:
    order_id = Identifier(required=True)
    status = String(required=True, choices=PaymentStatus)
    provider = String(max_length=50)
    transaction_id = String(max_length=255)


@ordering.command_handler(part_of=Order)
class RecordPaymentHandler:
    @handle(RecordPayment)
    def record_payment(self, command):
        order = load_order(command.order_id)
        previous = order.record_payment(
            command.status,
            provider=command.provider,
            transaction_id=command.transaction_id,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_payment_recorded",
            order_no=order.order_no,
            previous_status=previous,
            new_status=order.payment.status,
        )
        return {
            "order_id": str(order.id),
            "previous_status": previous,
            "status": order.payment.status,
        }
