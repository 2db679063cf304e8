"""ManufacturingOrder domain events: immutable facts about manufacturing order state changes.

All events are past tense and versioned. Cancellation is reported as a
status change to CANCELLED; completion additionally raises
ManufacturingOrderCompleted.
"""

from protean.fields import DateTime, Identifier, Integer, String

from manufacturing.domain import manufacturing


@manufacturing.event(part_of="ManufacturingOrder")
class ManufacturingOrderCreated:
    """A manufacturing order was created, optionally for a customer order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_order_id = Identifier()
    product_code = String(required=True)
    quantity = Integer(required=True)
    created_at = DateTime(required=True)


@manufacturing.event(part_of="ManufacturingOrder")
class ManufacturingOrderStatusChanged:
    """A manufacturing order moved to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@manufacturing.event(part_of="ManufacturingOrder")
class ManufacturingOrderCompleted:
    """Production of a manufacturing order finished."""

    __version__ = 1

    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)
