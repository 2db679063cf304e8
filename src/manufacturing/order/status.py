"""Manufacturing status changes: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from shared.persistence import persist

from manufacturing.domain import manufacturing
from manufacturing.order.manufacturing_order import ManufacturingOrder, ManufacturingOrderStatus


@manufacturing.command(part_of="ManufacturingOrder")
class ChangeManufacturingOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, choices=ManufacturingOrderStatus)


@manufacturing.command_handler(part_of=ManufacturingOrder)
class ChangeManufacturingOrderStatusHandler:
    @handle(ChangeManufacturingOrderStatus)
    def change_manufacturing_order_status(self, command):
        order = current_domain.repository_for(ManufacturingOrder).get(command.order_id)
        order.change_status(ManufacturingOrderStatus(command.new_status))
        persist(order)
        return str(order.id)
