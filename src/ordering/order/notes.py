"""Back-office notes on an order — command and handler."""

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.status import load_order


@ordering.command(part_of="Order")
class UpdateAdminNotes:
    order_id = Identifier(required=True)
    admin_notes = Text()


@ordering.command_handler(part_of=Order)
class UpdateAdminNotesHandler:
    @handle(UpdateAdminNotes)
    def update_admin_notes(self, command):
        order = load_order(command.order_id)
        previous = order.update_admin_notes(command.admin_notes)
        current_domain.repository_for(Order).add(order)
        return {"order_id": str(order.id), "previous_notes": previous, "admin_notes": order.admin_notes}
