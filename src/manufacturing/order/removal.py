"""Administrative delete of a manufacturing order.

Removal is a hard delete and raises no event; linked customer orders keep
their reference.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from manufacturing.domain import manufacturing
from manufacturing.order.manufacturing_order import ManufacturingOrder

logger = structlog.get_logger(__name__)


@manufacturing.command(part_of="ManufacturingOrder")
class RemoveManufacturingOrder:
    order_id = Identifier(required=True)


@manufacturing.command_handler(part_of=ManufacturingOrder)
class RemoveManufacturingOrderHandler:
    @handle(RemoveManufacturingOrder)
    def remove_manufacturing_order(self, command):
        repo = current_domain.repository_for(ManufacturingOrder)
        order = repo.get(command.order_id)
        repo._dao.delete(order)
        logger.info("Manufacturing order removed", order_id=str(command.order_id), status=order.status)
