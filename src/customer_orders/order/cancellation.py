"""Order cancellation: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from shared.persistence import persist

from customer_orders.domain import customer_orders
from customer_orders.order.customer_order import CustomerOrder


@customer_orders.command(part_of="CustomerOrder")
class CancelCustomerOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@customer_orders.command_handler(part_of=CustomerOrder)
class CancelCustomerOrderHandler:
    @handle(CancelCustomerOrder)
    def cancel_customer_order(self, command):
        order = current_domain.repository_for(CustomerOrder).get(command.order_id)
        order.cancel(reason=command.reason)
        persist(order)
        return str(order.id)
