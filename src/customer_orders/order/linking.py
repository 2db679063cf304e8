"""Linking a customer order to the manufacturing order that builds it."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain
from shared.persistence import persist

from customer_orders.domain import customer_orders
from customer_orders.order.customer_order import CustomerOrder


@customer_orders.command(part_of="CustomerOrder")
class LinkManufacturingOrder:
    order_id = Identifier(required=True)
    manufacturing_order_id = Identifier(required=True)


@customer_orders.command_handler(part_of=CustomerOrder)
class LinkManufacturingOrderHandler:
    @handle(LinkManufacturingOrder)
    def link_manufacturing_order(self, command):
        order = current_domain.repository_for(CustomerOrder).get(command.order_id)
        order.link_manufacturing_order(command.manufacturing_order_id)
        persist(order)
        return str(order.id)
