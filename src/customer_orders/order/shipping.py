"""Shipping and delivery notifications: commands and handler.

Both are guarded: they only move an order sitting in the expected
predecessor state and leave any other order untouched.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain
from shared.persistence import persist

from customer_orders.domain import customer_orders
from customer_orders.order.customer_order import CustomerOrder


@customer_orders.command(part_of="CustomerOrder")
class MarkCustomerOrderShipped:
    order_id = Identifier(required=True)


@customer_orders.command(part_of="CustomerOrder")
class MarkCustomerOrderDelivered:
    order_id = Identifier(required=True)


@customer_orders.command_handler(part_of=CustomerOrder)
class ShippingHandler:
    @handle(MarkCustomerOrderShipped)
    def mark_shipped(self, command):
        order = current_domain.repository_for(CustomerOrder).get(command.order_id)
        if order.mark_as_shipped():
            persist(order)
        return str(order.id)

    @handle(MarkCustomerOrderDelivered)
    def mark_delivered(self, command):
        order = current_domain.repository_for(CustomerOrder).get(command.order_id)
        if order.mark_as_delivered():
            persist(order)
        return str(order.id)
