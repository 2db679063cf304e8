"""Direct status updates: command and handler.

Unlike the progress notifications, a direct update is strict: a move the
transition table forbids is rejected with ``InvalidTransitionError``.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from shared.persistence import persist

from customer_orders.domain import customer_orders
from customer_orders.order.customer_order import CustomerOrder, CustomerOrderStatus


@customer_orders.command(part_of="CustomerOrder")
class UpdateCustomerOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, choices=CustomerOrderStatus)


@customer_orders.command_handler(part_of=CustomerOrder)
class UpdateCustomerOrderStatusHandler:
    @handle(UpdateCustomerOrderStatus)
    def update_customer_order_status(self, command):
        order = current_domain.repository_for(CustomerOrder).get(command.order_id)
        order.update_status(CustomerOrderStatus(command.new_status))
        persist(order)
        return str(order.id)
