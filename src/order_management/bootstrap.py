"""Composition root: initialises both contexts and links them through the event bus.

The correlation handlers live as Protean event handlers in each context.
Delivery between the two contexts goes through ``shared.event_bus.bus``,
which this module subscribes them to.
"""

import structlog
from protean.domain import Domain
from shared.event_bus import EventBus, bus
from shared.events.customer_orders import CustomerOrderCancelled, CustomerOrderStatusUpdated
from shared.events.manufacturing import (
    ManufacturingOrderCompleted,
    ManufacturingOrderCreated,
    ManufacturingOrderStatusChanged,
)
from shared.locking import aggregate_locks
from shared.logging import configure_logging
from shared.settings import custom_setting

from customer_orders.domain import customer_orders
from manufacturing.domain import manufacturing

logger = structlog.get_logger(__name__)


def init_domains() -> tuple[Domain, Domain]:
    """Initialise both domains. Call once per process."""
    customer_orders.init()
    manufacturing.init()
    return customer_orders, manufacturing


def wire_event_bus(event_bus: EventBus = bus) -> EventBus:
    """Subscribe the correlation handlers, replacing any earlier subscriptions."""
    from customer_orders.order.manufacturing_events import ManufacturingOrderEventHandler
    from manufacturing.order.customer_order_events import CustomerOrderEventHandler

    event_bus.clear_handlers()

    manufacturing_side = CustomerOrderEventHandler()
    event_bus.register(CustomerOrderStatusUpdated, manufacturing, manufacturing_side.on_customer_order_status_updated)
    event_bus.register(CustomerOrderCancelled, manufacturing, manufacturing_side.on_customer_order_cancelled)

    customer_side = ManufacturingOrderEventHandler()
    event_bus.register(ManufacturingOrderCreated, customer_orders, customer_side.on_manufacturing_order_created)
    event_bus.register(
        ManufacturingOrderStatusChanged,
        customer_orders,
        customer_side.on_manufacturing_order_status_changed,
    )
    event_bus.register(ManufacturingOrderCompleted, customer_orders, customer_side.on_manufacturing_order_completed)

    event_bus.max_attempts = int(custom_setting("delivery_max_attempts", manufacturing))
    event_bus.dead_letter_capacity = int(custom_setting("dead_letter_capacity", manufacturing))
    aggregate_locks.timeout = float(custom_setting("lock_timeout_seconds", manufacturing))

    logger.info(
        "Correlation handlers registered",
        max_attempts=event_bus.max_attempts,
        dead_letter_capacity=event_bus.dead_letter_capacity,
        lock_timeout=aggregate_locks.timeout,
    )
    return event_bus


def bootstrap(log_dir: str | None = None) -> EventBus:
    """Configure logging, initialise both domains and wire the bus."""
    configure_logging(log_dir)
    init_domains()
    return wire_event_bus(bus)
