"""Manufacturing order creation: command and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from shared.persistence import persist

from manufacturing.domain import manufacturing
from manufacturing.order.manufacturing_order import ManufacturingOrder, ProductSpecification, Timeline
from manufacturing.order.scheduling import ManufacturingScheduler


@manufacturing.command(part_of="ManufacturingOrder")
class CreateManufacturingOrder:
    """Create a pending manufacturing order.

    ``order_id`` is generated when omitted. ``customer_order_id`` names the
    customer order it is built for, if any.
    """

    order_id = Identifier()
    customer_order_id = Identifier()
    product_code = String(required=True, max_length=100)
    description = String(required=True, max_length=500)
    quantity = Integer(required=True, min_value=1)
    specifications = Text(required=True)
    expected_start = DateTime(required=True)
    expected_completion = DateTime(required=True)


@manufacturing.command_handler(part_of=ManufacturingOrder)
class CreateManufacturingOrderHandler:
    @handle(CreateManufacturingOrder)
    def create_manufacturing_order(self, command):
        if command.order_id and current_domain.repository_for(ManufacturingOrder).exists(command.order_id):
            raise ValidationError({"order_id": [f"Manufacturing order {command.order_id} already exists"]})

        order = ManufacturingOrder.create(
            product_spec=ProductSpecification(
                product_code=command.product_code.strip(),
                description=command.description.strip(),
                quantity=command.quantity,
                specifications=command.specifications.strip(),
            ),
            timeline=Timeline(
                expected_start=command.expected_start,
                expected_completion=command.expected_completion,
            ),
            order_id=command.order_id,
            customer_order_id=command.customer_order_id,
        )
        ManufacturingScheduler().validate_scheduling(order)
        persist(order)
        return str(order.id)
