"""Query operations over stored customer orders.

List queries lift the DAO's default page size so callers always see every
matching order.
"""

from customer_orders.domain import customer_orders
from customer_orders.order.customer_order import (
    CUSTOMER_ORDER_LIFECYCLE,
    CustomerOrder,
    CustomerOrderStatus,
)

_ACTIVE_STATUSES = [status.value for status in CustomerOrderStatus if not CUSTOMER_ORDER_LIFECYCLE.is_terminal(status)]


@customer_orders.repository(part_of=CustomerOrder)
class CustomerOrderRepository:
    def _find_all(self, **filters) -> list[CustomerOrder]:
        return self._dao.query.filter(**filters).limit(None).all().items

    def find_by_id(self, order_id) -> CustomerOrder | None:
        return self._dao.query.filter(id=str(order_id)).all().first

    def exists(self, order_id) -> bool:
        return self.find_by_id(order_id) is not None

    def find_by_customer_id(self, customer_id) -> list[CustomerOrder]:
        return self._find_all(customer_id=str(customer_id))

    def find_by_status(self, status: CustomerOrderStatus | str) -> list[CustomerOrder]:
        value = status.value if isinstance(status, CustomerOrderStatus) else status
        return self._find_all(status=value)

    def find_by_manufacturing_order_id(self, manufacturing_order_id) -> list[CustomerOrder]:
        """All customer orders linked to one manufacturing order (there may be several)."""
        return self._find_all(manufacturing_order_id=str(manufacturing_order_id))

    def find_active(self) -> list[CustomerOrder]:
        return self._find_all(status__in=_ACTIVE_STATUSES)
