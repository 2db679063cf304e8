"""Query operations over stored manufacturing orders."""

from datetime import datetime

from manufacturing.domain import manufacturing
from manufacturing.order.manufacturing_order import ManufacturingOrder, ManufacturingOrderStatus

_OPEN_STATUSES = [ManufacturingOrderStatus.PENDING.value, ManufacturingOrderStatus.IN_PROGRESS.value]


@manufacturing.repository(part_of=ManufacturingOrder)
class ManufacturingOrderRepository:
    def _find_all(self, **filters) -> list[ManufacturingOrder]:
        return self._dao.query.filter(**filters).limit(None).all().items

    def find_by_id(self, order_id) -> ManufacturingOrder | None:
        return self._dao.query.filter(id=str(order_id)).all().first

    def exists(self, order_id) -> bool:
        return self.find_by_id(order_id) is not None

    def find_by_status(self, status: ManufacturingOrderStatus | str) -> list[ManufacturingOrder]:
        value = status.value if isinstance(status, ManufacturingOrderStatus) else status
        return self._find_all(status=value)

    def count_by_status(self, status: ManufacturingOrderStatus | str) -> int:
        value = status.value if isinstance(status, ManufacturingOrderStatus) else status
        return self._dao.query.filter(status=value).all().total

    def find_by_customer_order_id(self, customer_order_id) -> list[ManufacturingOrder]:
        return self._find_all(customer_order_id=str(customer_order_id))

    def find_overdue(self, now: datetime | None = None) -> list[ManufacturingOrder]:
        """Open orders whose expected completion has passed.

        Stored timelines may hold naive datetimes, so the date comparison runs
        on the loaded orders rather than in the store.
        """
        return [order for order in self._find_all(status__in=_OPEN_STATUSES) if order.is_overdue(now)]
