"""Manufacturing completion: command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain
from shared.persistence import persist

from manufacturing.domain import manufacturing
from manufacturing.order.manufacturing_order import ManufacturingOrder


@manufacturing.command(part_of="ManufacturingOrder")
class CompleteManufacturingOrder:
    order_id = Identifier(required=True)


@manufacturing.command_handler(part_of=ManufacturingOrder)
class CompleteManufacturingOrderHandler:
    @handle(CompleteManufacturingOrder)
    def complete_manufacturing_order(self, command):
        order = current_domain.repository_for(ManufacturingOrder).get(command.order_id)
        if order.complete():
            persist(order)
        return str(order.id)
