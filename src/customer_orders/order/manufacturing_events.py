"""Inbound cross-domain event handler: CustomerOrders reacts to Manufacturing events.

Links a customer order to the manufacturing order created for it, and moves
every linked customer order along as manufacturing starts, completes or is
cancelled. A manufacturing order without a matching customer order is
legitimate (it may have been created standalone) and is simply skipped.

Every load-mutate-save runs under the customer order's lock and re-reads
the order inside it. Redelivered events find the order already in the target
state and change nothing.

Cross-domain events are imported from shared.events.manufacturing and
registered as external events via customer_orders.register_external_event().
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.manufacturing import (
    ManufacturingOrderCompleted,
    ManufacturingOrderCreated,
    ManufacturingOrderStatusChanged,
)
from shared.locking import aggregate_locks
from shared.persistence import persist

from customer_orders.domain import customer_orders
from customer_orders.order.customer_order import CustomerOrder, CustomerOrderStatus

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
customer_orders.register_external_event(ManufacturingOrderCreated, "Manufacturing.ManufacturingOrderCreated.v1")
customer_orders.register_external_event(
    ManufacturingOrderStatusChanged, "Manufacturing.ManufacturingOrderStatusChanged.v1"
)
customer_orders.register_external_event(ManufacturingOrderCompleted, "Manufacturing.ManufacturingOrderCompleted.v1")

# Manufacturing statuses, as carried on the wire
_IN_PROGRESS = "IN_PROGRESS"
_CANCELLED = "CANCELLED"

_UNCANCELLABLE = {CustomerOrderStatus.CANCELLED, CustomerOrderStatus.DELIVERED}


@customer_orders.event_handler(part_of=CustomerOrder, stream_category="manufacturing::manufacturing_order")
class ManufacturingOrderEventHandler:
    """Reacts to Manufacturing domain events to keep customer orders in step."""

    @handle(ManufacturingOrderCreated)
    def on_manufacturing_order_created(self, event: ManufacturingOrderCreated) -> None:
        """Link the customer order the manufacturing order was created for."""
        manufacturing_order_id = str(event.order_id)
        if not event.customer_order_id:
            logger.info(
                "Standalone manufacturing order, nothing to link",
                manufacturing_order_id=manufacturing_order_id,
            )
            return

        customer_order_id = str(event.customer_order_id)
        repo = current_domain.repository_for(CustomerOrder)
        with aggregate_locks.hold(current_domain.name, customer_order_id):
            order = repo.find_by_id(customer_order_id)
            if order is None:
                logger.info(
                    "No customer order found for manufacturing order",
                    customer_order_id=customer_order_id,
                    manufacturing_order_id=manufacturing_order_id,
                )
                return

            if order.manufacturing_order_id:
                logger.info(
                    "Customer order already linked",
                    customer_order_id=customer_order_id,
                    linked_to=str(order.manufacturing_order_id),
                    manufacturing_order_id=manufacturing_order_id,
                )
                return

            order.link_manufacturing_order(manufacturing_order_id)
            persist(order)

    @handle(ManufacturingOrderStatusChanged)
    def on_manufacturing_order_status_changed(self, event: ManufacturingOrderStatusChanged) -> None:
        """Follow manufacturing start and cancellation on every linked customer order."""
        manufacturing_order_id = str(event.order_id)
        if event.new_status == _IN_PROGRESS:
            self._for_each_linked(manufacturing_order_id, self._start)
        elif event.new_status == _CANCELLED:
            self._for_each_linked(manufacturing_order_id, self._cancel)
        else:
            logger.debug(
                "Manufacturing status change needs no customer order update",
                manufacturing_order_id=manufacturing_order_id,
                new_status=event.new_status,
            )

    @handle(ManufacturingOrderCompleted)
    def on_manufacturing_order_completed(self, event: ManufacturingOrderCompleted) -> None:
        """Mark every linked customer order as manufactured."""
        self._for_each_linked(str(event.order_id), self._complete)

    # -------------------------------------------------------------------
    # Fan-out over linked customer orders
    # -------------------------------------------------------------------
    def _for_each_linked(self, manufacturing_order_id: str, action) -> None:
        repo = current_domain.repository_for(CustomerOrder)
        order_ids = [str(order.id) for order in repo.find_by_manufacturing_order_id(manufacturing_order_id)]
        if not order_ids:
            logger.info(
                "No customer orders linked to manufacturing order",
                manufacturing_order_id=manufacturing_order_id,
            )
            return

        for order_id in order_ids:
            with aggregate_locks.hold(current_domain.name, order_id):
                order = repo.get(order_id)
                if action(order, manufacturing_order_id):
                    persist(order)

    @staticmethod
    def _start(order: CustomerOrder, manufacturing_order_id: str) -> bool:
        return order.notify_manufacturing_started()

    @staticmethod
    def _complete(order: CustomerOrder, manufacturing_order_id: str) -> bool:
        return order.notify_manufacturing_completed()

    @staticmethod
    def _cancel(order: CustomerOrder, manufacturing_order_id: str) -> bool:
        if order.current_status in _UNCANCELLABLE:
            logger.info(
                "Customer order not cancelled, already final",
                order_id=str(order.id),
                status=order.status,
                manufacturing_order_id=manufacturing_order_id,
            )
            return False
        order.cancel(reason=f"Manufacturing order {manufacturing_order_id} was cancelled")
        return True
