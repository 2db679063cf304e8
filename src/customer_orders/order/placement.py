"""Order placement: command and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from shared.persistence import persist

from customer_orders.domain import customer_orders
from customer_orders.order.customer_order import CustomerInfo, CustomerOrder


@customer_orders.command(part_of="CustomerOrder")
class PlaceCustomerOrder:
    """Place a new customer order. ``order_id`` is generated when omitted."""

    order_id = Identifier()
    customer_id = Identifier(required=True)
    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=254)
    customer_address = String(required=True, max_length=500)
    items = Text(required=True)  # JSON list of item dicts


@customer_orders.command_handler(part_of=CustomerOrder)
class PlaceCustomerOrderHandler:
    @handle(PlaceCustomerOrder)
    def place_customer_order(self, command):
        if command.order_id and current_domain.repository_for(CustomerOrder).exists(command.order_id):
            raise ValidationError({"order_id": [f"Customer order {command.order_id} already exists"]})

        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        order = CustomerOrder.place(
            customer_info=CustomerInfo.of(
                customer_id=command.customer_id,
                name=command.customer_name,
                email=command.customer_email,
                address=command.customer_address,
            ),
            items_data=items_data,
            order_id=command.order_id,
        )
        persist(order)
        return str(order.id)
