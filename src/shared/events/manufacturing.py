"""Cross-domain event contracts for Manufacturing domain events.

The customer-order context consumes these to link customer orders to their
manufacturing order and to follow its progress. They are registered as
external events via domain.register_external_event() with matching __type__
strings.

The source-of-truth events are in src/manufacturing/order/events.py.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, Integer, String


class ManufacturingOrderCreated(BaseEvent):
    """A manufacturing order was created, optionally for a customer order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_order_id = Identifier()
    product_code = String(required=True)
    quantity = Integer(required=True)
    created_at = DateTime(required=True)


class ManufacturingOrderStatusChanged(BaseEvent):
    """A manufacturing order moved to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


class ManufacturingOrderCompleted(BaseEvent):
    """Production of a manufacturing order finished."""

    __version__ = 1

    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)
