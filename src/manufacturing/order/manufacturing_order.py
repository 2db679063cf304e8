"""ManufacturingOrder aggregate (CQRS): the core of the manufacturing domain.

State Machine:
    PENDING → IN_PROGRESS → COMPLETED
    {PENDING, IN_PROGRESS} → CANCELLED

Entering IN_PROGRESS for the first time stamps the timeline's actual start;
entering COMPLETED stamps the actual completion and raises
ManufacturingOrderCompleted next to the status change.
"""

from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text, ValueObject
from shared.state_machine import StateMachine

from manufacturing.domain import manufacturing
from manufacturing.order.events import (
    ManufacturingOrderCompleted,
    ManufacturingOrderCreated,
    ManufacturingOrderStatusChanged,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ManufacturingOrderStatus(Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


_VALID_TRANSITIONS = {
    ManufacturingOrderStatus.PENDING: {ManufacturingOrderStatus.IN_PROGRESS, ManufacturingOrderStatus.CANCELLED},
    ManufacturingOrderStatus.IN_PROGRESS: {ManufacturingOrderStatus.COMPLETED, ManufacturingOrderStatus.CANCELLED},
    ManufacturingOrderStatus.COMPLETED: set(),  # terminal
    ManufacturingOrderStatus.CANCELLED: set(),  # terminal
}

MANUFACTURING_LIFECYCLE = StateMachine("manufacturing order", _VALID_TRANSITIONS)

_OPEN_STATUSES = {ManufacturingOrderStatus.PENDING, ManufacturingOrderStatus.IN_PROGRESS}


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@manufacturing.value_object(part_of="ManufacturingOrder")
class ProductSpecification:
    """What to build and how many."""

    product_code: String(required=True, max_length=100)
    description: String(required=True, max_length=500)
    quantity: Integer(required=True, min_value=1)
    specifications: Text(required=True)

    @invariant.post
    def values_must_not_be_blank(self):
        for field_name in ("product_code", "description", "specifications"):
            value = getattr(self, field_name)
            if value is not None and not str(value).strip():
                raise ValidationError({field_name: [f"{field_name.replace('_', ' ').capitalize()} cannot be blank"]})


@manufacturing.value_object(part_of="ManufacturingOrder")
class Timeline:
    """Planned and actual production dates."""

    expected_start: DateTime(required=True)
    expected_completion: DateTime(required=True)
    actual_start: DateTime()
    actual_completion: DateTime()

    @invariant.post
    def completion_must_not_precede_start(self):
        if (
            self.expected_start
            and self.expected_completion
            and as_utc(self.expected_completion) < as_utc(self.expected_start)
        ):
            raise ValidationError({"expected_completion": ["Expected completion date cannot be before start date"]})
        if self.actual_start and self.actual_completion and as_utc(self.actual_completion) < as_utc(self.actual_start):
            raise ValidationError(
                {"actual_completion": ["Actual completion date cannot be before actual start date"]},
            )

    def with_actual_start(self, moment: datetime) -> "Timeline":
        return Timeline(
            expected_start=self.expected_start,
            expected_completion=self.expected_completion,
            actual_start=moment,
            actual_completion=self.actual_completion,
        )

    def with_actual_completion(self, moment: datetime) -> "Timeline":
        return Timeline(
            expected_start=self.expected_start,
            expected_completion=self.expected_completion,
            actual_start=self.actual_start,
            actual_completion=moment,
        )

    def duration_in_days(self) -> int:
        """Actual duration once both actual dates are known, planned duration before."""
        if self.actual_start and self.actual_completion:
            return (as_utc(self.actual_completion) - as_utc(self.actual_start)).days
        return (as_utc(self.expected_completion) - as_utc(self.expected_start)).days

    def is_past_due(self, now: datetime | None = None) -> bool:
        now = as_utc(now) or datetime.now(UTC)
        return self.actual_completion is None and now > as_utc(self.expected_completion)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@manufacturing.aggregate
class ManufacturingOrder:
    customer_order_id = Identifier()
    product_spec = ValueObject(ProductSpecification, required=True)
    status = String(
        choices=ManufacturingOrderStatus,
        default=ManufacturingOrderStatus.PENDING.value,
    )
    timeline = ValueObject(Timeline, required=True)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        product_spec: ProductSpecification,
        timeline: Timeline,
        order_id: str | None = None,
        customer_order_id: str | None = None,
    ):
        """Create a pending manufacturing order."""
        now = datetime.now(UTC)
        identity = {"id": order_id} if order_id else {}
        order = cls(
            **identity,
            customer_order_id=customer_order_id,
            product_spec=product_spec,
            status=ManufacturingOrderStatus.PENDING.value,
            timeline=timeline,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            ManufacturingOrderCreated(
                order_id=str(order.id),
                customer_order_id=str(customer_order_id) if customer_order_id else None,
                product_code=product_spec.product_code,
                quantity=product_spec.quantity,
                created_at=now,
            )
        )
        logger.info(
            "Manufacturing order created",
            order_id=str(order.id),
            customer_order_id=str(customer_order_id) if customer_order_id else None,
            product_code=product_spec.product_code,
        )
        return order

    # -------------------------------------------------------------------
    # Queries on state
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> ManufacturingOrderStatus:
        return ManufacturingOrderStatus(self.status)

    def is_open(self) -> bool:
        return self.current_status in _OPEN_STATUSES

    def is_in_progress(self) -> bool:
        return self.current_status == ManufacturingOrderStatus.IN_PROGRESS

    def is_completed(self) -> bool:
        return self.current_status == ManufacturingOrderStatus.COMPLETED

    def is_cancelled(self) -> bool:
        return self.current_status == ManufacturingOrderStatus.CANCELLED

    def is_overdue(self, now: datetime | None = None) -> bool:
        return self.is_open() and self.timeline.is_past_due(now)

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def _apply_status(self, target: ManufacturingOrderStatus) -> None:
        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        if target == ManufacturingOrderStatus.IN_PROGRESS and self.timeline.actual_start is None:
            self.timeline = self.timeline.with_actual_start(now)

        self.raise_(
            ManufacturingOrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )
        logger.info(
            "Manufacturing order status changed",
            order_id=str(self.id),
            previous_status=previous,
            new_status=target.value,
        )

        if target == ManufacturingOrderStatus.COMPLETED:
            self.timeline = self.timeline.with_actual_completion(now)
            self.raise_(ManufacturingOrderCompleted(order_id=str(self.id), completed_at=now))
            logger.info("Manufacturing order completed", order_id=str(self.id))

    def change_status(self, new_status: ManufacturingOrderStatus) -> None:
        """Strict transition: raises ``InvalidTransitionError`` when the table forbids it."""
        if new_status is None:
            raise ValidationError({"status": ["New status cannot be empty"]})
        MANUFACTURING_LIFECYCLE.advance(self.current_status, new_status)
        self._apply_status(new_status)

    def complete(self) -> bool:
        """Finish production, starting it first when still pending.

        Returns ``False`` without raising anything when already completed.
        """
        if self.current_status == ManufacturingOrderStatus.COMPLETED:
            return False
        if self.current_status == ManufacturingOrderStatus.PENDING:
            self.change_status(ManufacturingOrderStatus.IN_PROGRESS)
        self.change_status(ManufacturingOrderStatus.COMPLETED)
        return True

    def cancel(self, reason: str | None = None) -> None:
        MANUFACTURING_LIFECYCLE.advance(self.current_status, ManufacturingOrderStatus.CANCELLED)
        self.cancellation_reason = reason
        self._apply_status(ManufacturingOrderStatus.CANCELLED)
