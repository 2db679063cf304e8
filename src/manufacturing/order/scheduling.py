"""Scheduling rules for new manufacturing orders."""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from shared.settings import custom_setting

from manufacturing.order.manufacturing_order import ManufacturingOrder, ManufacturingOrderStatus, as_utc

logger = structlog.get_logger(__name__)


class ManufacturingScheduler:
    """Decides whether a new order fits the shop floor.

    The number of orders that may be IN_PROGRESS at once comes from the
    ``max_concurrent_orders`` setting unless given explicitly.
    """

    def __init__(self, max_concurrent_orders: int | None = None):
        self._max_concurrent_orders = max_concurrent_orders

    @property
    def max_concurrent_orders(self) -> int:
        if self._max_concurrent_orders is not None:
            return self._max_concurrent_orders
        return int(custom_setting("max_concurrent_orders"))

    def _repository(self):
        return current_domain.repository_for(ManufacturingOrder)

    def can_schedule_new_order(self) -> bool:
        in_progress = self._repository().count_by_status(ManufacturingOrderStatus.IN_PROGRESS)
        return in_progress < self.max_concurrent_orders

    def validate_scheduling(self, order: ManufacturingOrder, now: datetime | None = None) -> None:
        now = as_utc(now) or datetime.now(UTC)
        if not self.can_schedule_new_order():
            logger.warning(
                "Manufacturing capacity reached",
                order_id=str(order.id),
                max_concurrent_orders=self.max_concurrent_orders,
            )
            raise ValidationError({"status": ["Cannot schedule new order: maximum concurrent orders reached"]})

        if as_utc(order.timeline.expected_start) < now:
            raise ValidationError({"timeline": ["Cannot schedule order with start date in the past"]})

    def orders_requiring_attention(self, now: datetime | None = None) -> list[ManufacturingOrder]:
        return self._repository().find_overdue(now)
