"""Manufacturing cancellation: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from shared.persistence import persist

from manufacturing.domain import manufacturing
from manufacturing.order.manufacturing_order import ManufacturingOrder


@manufacturing.command(part_of="ManufacturingOrder")
class CancelManufacturingOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@manufacturing.command_handler(part_of=ManufacturingOrder)
class CancelManufacturingOrderHandler:
    @handle(CancelManufacturingOrder)
    def cancel_manufacturing_order(self, command):
        order = current_domain.repository_for(ManufacturingOrder).get(command.order_id)
        order.cancel(reason=command.reason)
        persist(order)
        return str(order.id)
