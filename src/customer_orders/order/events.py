"""CustomerOrder domain events: immutable facts about customer order state changes.

All events are past tense, versioned, and carry the ids the Manufacturing
context needs to correlate them with its own orders.
"""

from protean.fields import DateTime, Identifier, String

from customer_orders.domain import customer_orders


@customer_orders.event(part_of="CustomerOrder")
class CustomerOrderPlaced:
    """A customer placed a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total_amount = String(required=True)  # Decimal as text
    currency = String(required=True, max_length=3)
    placed_at = DateTime(required=True)


@customer_orders.event(part_of="CustomerOrder")
class CustomerOrderStatusUpdated:
    """A customer order moved to a new lifecycle status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    updated_at = DateTime(required=True)


@customer_orders.event(part_of="CustomerOrder")
class CustomerOrderCancelled:
    """A customer order was cancelled before delivery."""

    __version__ = 1

    order_id = Identifier(required=True)
    manufacturing_order_id = Identifier()
    reason = String(required=True, max_length=500)
    previous_status = String(required=True)
    cancelled_at = DateTime(required=True)
