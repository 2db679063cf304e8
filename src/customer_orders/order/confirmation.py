"""Order confirmation: command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain
from shared.persistence import persist

from customer_orders.domain import customer_orders
from customer_orders.order.customer_order import CustomerOrder


@customer_orders.command(part_of="CustomerOrder")
class ConfirmCustomerOrder:
    order_id = Identifier(required=True)


@customer_orders.command_handler(part_of=CustomerOrder)
class ConfirmCustomerOrderHandler:
    @handle(ConfirmCustomerOrder)
    def confirm_customer_order(self, command):
        order = current_domain.repository_for(CustomerOrder).get(command.order_id)
        if order.confirm():
            persist(order)
        return str(order.id)
