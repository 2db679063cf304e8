"""Cross-domain event contracts for CustomerOrders domain events.

The manufacturing context consumes these to create manufacturing orders for
confirmed customer orders and to stop work on cancelled ones. They are
registered as external events via domain.register_external_event() with
matching __type__ strings.

The source-of-truth events are in src/customer_orders/order/events.py.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, String


class CustomerOrderPlaced(BaseEvent):
    """A customer placed a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total_amount = String(required=True)  # Decimal as text
    currency = String(required=True, max_length=3)
    placed_at = DateTime(required=True)


class CustomerOrderStatusUpdated(BaseEvent):
    """A customer order moved to a new lifecycle status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    updated_at = DateTime(required=True)


class CustomerOrderCancelled(BaseEvent):
    """A customer order was cancelled.

    ``manufacturing_order_id`` is empty when the order was never linked.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    manufacturing_order_id = Identifier()
    reason = String(required=True, max_length=500)
    previous_status = String(required=True)
    cancelled_at = DateTime(required=True)
