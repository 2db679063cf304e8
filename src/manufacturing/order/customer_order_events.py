"""Inbound cross-domain event handler: Manufacturing reacts to CustomerOrders events.

A confirmed customer order gets a manufacturing order automatically while
the ``auto_create_manufacturing_orders`` setting is on. The new order reuses
the customer order's id and records it as ``customer_order_id``. A cancelled
customer order cancels the manufacturing order it references, or, when it
was never linked, the open manufacturing orders built for it.

Both reactions check for existing state first, so a redelivered event is
absorbed without side effects.

Cross-domain events are imported from shared.events.customer_orders and
registered as external events via manufacturing.register_external_event().
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.event_bus import dispatch
from shared.events.customer_orders import CustomerOrderCancelled, CustomerOrderStatusUpdated
from shared.locking import aggregate_locks
from shared.persistence import persist
from shared.settings import custom_setting

from manufacturing.domain import manufacturing
from manufacturing.order.creation import CreateManufacturingOrder
from manufacturing.order.manufacturing_order import ManufacturingOrder

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
manufacturing.register_external_event(CustomerOrderStatusUpdated, "CustomerOrders.CustomerOrderStatusUpdated.v1")
manufacturing.register_external_event(CustomerOrderCancelled, "CustomerOrders.CustomerOrderCancelled.v1")

# Customer order status, as carried on the wire
_CONFIRMED = "CONFIRMED"


@manufacturing.event_handler(part_of=ManufacturingOrder, stream_category="customer_orders::customer_order")
class CustomerOrderEventHandler:
    """Reacts to CustomerOrders domain events."""

    @handle(CustomerOrderStatusUpdated)
    def on_customer_order_status_updated(self, event: CustomerOrderStatusUpdated) -> None:
        """Create a manufacturing order for a newly confirmed customer order."""
        if event.new_status != _CONFIRMED:
            return

        order_id = str(event.order_id)
        if not custom_setting("auto_create_manufacturing_orders"):
            logger.info("Automatic manufacturing order creation is disabled", customer_order_id=order_id)
            return

        repo = current_domain.repository_for(ManufacturingOrder)
        with aggregate_locks.hold(current_domain.name, order_id):
            if repo.exists(order_id) or repo.find_by_customer_order_id(order_id):
                logger.info("Manufacturing order already exists for customer order", customer_order_id=order_id)
                return

            now = datetime.now(UTC)
            dispatch(
                CreateManufacturingOrder(
                    order_id=order_id,
                    customer_order_id=order_id,
                    product_code=f"AUTO-{int(now.timestamp() * 1000)}",
                    description=f"Auto-created manufacturing order for confirmed customer order: {order_id}",
                    quantity=1,
                    specifications="Auto-generated specifications based on confirmed customer order",
                    expected_start=now + timedelta(days=int(custom_setting("auto_create_start_offset_days"))),
                    expected_completion=now + timedelta(days=int(custom_setting("auto_create_duration_days"))),
                )
            )
        logger.info("Manufacturing order auto-created", order_id=order_id, customer_order_id=order_id)

    @handle(CustomerOrderCancelled)
    def on_customer_order_cancelled(self, event: CustomerOrderCancelled) -> None:
        """Stop work on the manufacturing order of a cancelled customer order."""
        customer_order_id = str(event.order_id)
        repo = current_domain.repository_for(ManufacturingOrder)

        if event.manufacturing_order_id:
            order_ids = [str(event.manufacturing_order_id)]
        else:
            order_ids = [str(order.id) for order in repo.find_by_customer_order_id(customer_order_id)]

        if not order_ids:
            logger.info("No manufacturing order found for cancelled customer order", customer_order_id=customer_order_id)
            return

        for order_id in order_ids:
            with aggregate_locks.hold(current_domain.name, order_id):
                order = repo.find_by_id(order_id)
                if order is None:
                    logger.info(
                        "Referenced manufacturing order no longer exists",
                        order_id=order_id,
                        customer_order_id=customer_order_id,
                    )
                    continue

                if not order.is_open():
                    logger.info(
                        "Manufacturing order not cancelled, already final",
                        order_id=order_id,
                        customer_order_id=customer_order_id,
                        status=order.status,
                    )
                    continue

                order.cancel(reason=f"Customer order cancelled: {event.reason}"[:500])
                persist(order)
                logger.info(
                    "Manufacturing order cancelled due to customer order cancellation",
                    order_id=order_id,
                    customer_order_id=customer_order_id,
                )
