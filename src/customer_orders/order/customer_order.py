"""CustomerOrder aggregate (CQRS): the core of the customer orders domain.

A customer order is placed with its line items, confirmed, then follows the
manufacturing order built for it until it is shipped and delivered. Progress
notifications coming from manufacturing are guarded: they only move the
order when it sits in the exact predecessor state and are silently ignored
otherwise, so duplicate or late deliveries change nothing.

State Machine:
    PLACED → CONFIRMED → MANUFACTURING_IN_PROGRESS → MANUFACTURING_COMPLETED → SHIPPED → DELIVERED
    {PLACED, CONFIRMED, MANUFACTURING_IN_PROGRESS, MANUFACTURING_COMPLETED} → CANCELLED
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject
from shared.exceptions import InvalidTransitionError
from shared.state_machine import StateMachine

from customer_orders.domain import customer_orders
from customer_orders.order.events import (
    CustomerOrderCancelled,
    CustomerOrderPlaced,
    CustomerOrderStatusUpdated,
)
from customer_orders.shared.money import Money

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class CustomerOrderStatus(Enum):
    PLACED = "PLACED"
    CONFIRMED = "CONFIRMED"
    MANUFACTURING_IN_PROGRESS = "MANUFACTURING_IN_PROGRESS"
    MANUFACTURING_COMPLETED = "MANUFACTURING_COMPLETED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


_VALID_TRANSITIONS = {
    CustomerOrderStatus.PLACED: {CustomerOrderStatus.CONFIRMED, CustomerOrderStatus.CANCELLED},
    CustomerOrderStatus.CONFIRMED: {
        CustomerOrderStatus.MANUFACTURING_IN_PROGRESS,
        CustomerOrderStatus.CANCELLED,
    },
    CustomerOrderStatus.MANUFACTURING_IN_PROGRESS: {
        CustomerOrderStatus.MANUFACTURING_COMPLETED,
        CustomerOrderStatus.CANCELLED,
    },
    CustomerOrderStatus.MANUFACTURING_COMPLETED: {
        CustomerOrderStatus.SHIPPED,
        CustomerOrderStatus.CANCELLED,
    },
    CustomerOrderStatus.SHIPPED: {CustomerOrderStatus.DELIVERED},
    CustomerOrderStatus.DELIVERED: set(),  # terminal
    CustomerOrderStatus.CANCELLED: set(),  # terminal
}

CUSTOMER_ORDER_LIFECYCLE = StateMachine("customer order", _VALID_TRANSITIONS)

# (minimum total, rate), highest tier first
_VOLUME_DISCOUNT_TIERS = ((Decimal("1000"), Decimal("0.10")), (Decimal("500"), Decimal("0.05")))


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@customer_orders.value_object(part_of="CustomerOrder")
class CustomerInfo:
    """Who placed the order and where it goes.

    Build through ``CustomerInfo.of`` to get surrounding whitespace stripped.
    """

    customer_id: Identifier(required=True)
    name: String(required=True, max_length=200)
    email: String(required=True, max_length=254)
    address: String(required=True, max_length=500)

    @invariant.post
    def values_must_not_be_blank(self):
        for field_name in ("name", "email", "address"):
            value = getattr(self, field_name)
            if value is not None and not str(value).strip():
                raise ValidationError({field_name: [f"{field_name.capitalize()} cannot be blank"]})

    @classmethod
    def of(cls, customer_id: str, name: str, email: str, address: str) -> "CustomerInfo":
        return cls(
            customer_id=customer_id,
            name=name.strip() if isinstance(name, str) else name,
            email=email.strip() if isinstance(email, str) else email,
            address=address.strip() if isinstance(address, str) else address,
        )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@customer_orders.entity(part_of="CustomerOrder")
class OrderItem:
    """A line item. ``position`` keeps the order the items were declared in."""

    position = Integer(required=True, min_value=1)
    product_code = String(required=True, max_length=100)
    description = String(required=True, max_length=500)
    quantity = Integer(required=True, min_value=1)
    unit_price = ValueObject(Money, required=True)

    @invariant.post
    def unit_price_must_be_positive(self):
        if self.unit_price is not None and not self.unit_price.is_positive():
            raise ValidationError({"unit_price": ["Unit price must be positive"]})

    @property
    def total_price(self) -> Money:
        return self.unit_price.multiply(self.quantity)


def _build_item(position: int, item_data: dict) -> OrderItem:
    unit_price = item_data.get("unit_price")
    if unit_price is None:
        raise ValidationError({"unit_price": ["Unit price is required"]})
    if not isinstance(unit_price, Money):
        unit_price = Money.of(unit_price, item_data.get("currency", "USD"))
    product_code = item_data.get("product_code")
    description = item_data.get("description")
    return OrderItem(
        position=position,
        product_code=product_code.strip() if isinstance(product_code, str) else product_code,
        description=description.strip() if isinstance(description, str) else description,
        quantity=item_data.get("quantity"),
        unit_price=unit_price,
    )


def calculate_total(items: list[OrderItem]) -> Money:
    """Sum of the item totals. All items must share one currency."""
    if not items:
        raise ValidationError({"items": ["Cannot calculate total for empty items list"]})
    total = Money.zero(items[0].unit_price.currency)
    for item in items:
        total = total.add(item.total_price)
    return total


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@customer_orders.aggregate
class CustomerOrder:
    customer_id = Identifier(required=True)
    customer_info = ValueObject(CustomerInfo, required=True)
    items = HasMany(OrderItem)
    total_amount = ValueObject(Money)
    status = String(
        choices=CustomerOrderStatus,
        default=CustomerOrderStatus.PLACED.value,
    )
    manufacturing_order_id = Identifier()
    cancellation_reason = String(max_length=500)
    placed_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_info: CustomerInfo,
        items_data: list[dict],
        order_id: str | None = None,
    ):
        """Place a new order.

        Each item dict carries ``product_code``, ``description``,
        ``quantity``, ``unit_price`` (a ``Money`` or a decimal amount) and,
        for plain amounts, ``currency``.
        """
        if not items_data:
            raise ValidationError({"items": ["Order must have at least one item"]})

        items = [_build_item(position, item_data) for position, item_data in enumerate(items_data, start=1)]
        total = calculate_total(items)

        now = datetime.now(UTC)
        identity = {"id": order_id} if order_id else {}
        order = cls(
            **identity,
            customer_id=customer_info.customer_id,
            customer_info=customer_info,
            total_amount=total,
            status=CustomerOrderStatus.PLACED.value,
            placed_at=now,
            updated_at=now,
        )
        order.add_items(items)
        order.raise_(
            CustomerOrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_info.customer_id),
                total_amount=total.amount,
                currency=total.currency,
                placed_at=now,
            )
        )
        logger.info(
            "Customer order placed",
            order_id=str(order.id),
            total_amount=str(total),
            item_count=len(items),
        )
        return order

    # -------------------------------------------------------------------
    # Queries on state
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> CustomerOrderStatus:
        return CustomerOrderStatus(self.status)

    @property
    def ordered_items(self) -> list[OrderItem]:
        return sorted(self.items, key=lambda item: item.position)

    def is_active(self) -> bool:
        return not CUSTOMER_ORDER_LIFECYCLE.is_terminal(self.current_status)

    def is_cancelled(self) -> bool:
        return self.current_status == CustomerOrderStatus.CANCELLED

    def is_delivered(self) -> bool:
        return self.current_status == CustomerOrderStatus.DELIVERED

    def volume_discount(self) -> Money:
        """Discount earned by the order total: 10% from 1000, 5% from 500, else none."""
        total = self.total_amount
        for threshold, rate in _VOLUME_DISCOUNT_TIERS:
            if total.value >= threshold:
                return total.multiply(rate)
        return Money.zero(total.currency)

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def _apply_status(self, target: CustomerOrderStatus) -> None:
        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            CustomerOrderStatusUpdated(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                updated_at=now,
            )
        )
        logger.info(
            "Customer order status updated",
            order_id=str(self.id),
            previous_status=previous,
            new_status=target.value,
        )

    def update_status(self, new_status: CustomerOrderStatus) -> None:
        """Strict transition: raises ``InvalidTransitionError`` when the table forbids it.

        Moving to CANCELLED goes through ``cancel`` so the cancellation event
        is raised.
        """
        if new_status is None:
            raise ValidationError({"status": ["New status cannot be empty"]})
        CUSTOMER_ORDER_LIFECYCLE.advance(self.current_status, new_status)
        if new_status == CustomerOrderStatus.CANCELLED:
            self.cancel(reason="Cancelled via status update")
            return
        self._apply_status(new_status)

    def _guarded(self, expected_from: CustomerOrderStatus, target: CustomerOrderStatus) -> bool:
        moved_to = CUSTOMER_ORDER_LIFECYCLE.try_advance(self.current_status, expected_from, target)
        if moved_to is None:
            logger.debug(
                "Customer order notification ignored",
                order_id=str(self.id),
                status=self.status,
                expected=expected_from.value,
            )
            return False
        self._apply_status(moved_to)
        return True

    def confirm(self) -> bool:
        return self._guarded(CustomerOrderStatus.PLACED, CustomerOrderStatus.CONFIRMED)

    def notify_manufacturing_started(self) -> bool:
        return self._guarded(CustomerOrderStatus.CONFIRMED, CustomerOrderStatus.MANUFACTURING_IN_PROGRESS)

    def notify_manufacturing_completed(self) -> bool:
        return self._guarded(
            CustomerOrderStatus.MANUFACTURING_IN_PROGRESS,
            CustomerOrderStatus.MANUFACTURING_COMPLETED,
        )

    def mark_as_shipped(self) -> bool:
        return self._guarded(CustomerOrderStatus.MANUFACTURING_COMPLETED, CustomerOrderStatus.SHIPPED)

    def mark_as_delivered(self) -> bool:
        return self._guarded(CustomerOrderStatus.SHIPPED, CustomerOrderStatus.DELIVERED)

    # -------------------------------------------------------------------
    # Correlation
    # -------------------------------------------------------------------
    def link_manufacturing_order(self, manufacturing_order_id: str) -> None:
        """Record which manufacturing order builds this order. Status is untouched."""
        if not manufacturing_order_id:
            raise ValidationError({"manufacturing_order_id": ["Manufacturing order ID cannot be empty"]})
        self.manufacturing_order_id = manufacturing_order_id
        self.updated_at = datetime.now(UTC)
        logger.info(
            "Customer order linked to manufacturing order",
            order_id=str(self.id),
            manufacturing_order_id=str(manufacturing_order_id),
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason: str) -> None:
        """Cancel the order. Delivered and already cancelled orders cannot be cancelled."""
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["Cancellation reason is required"]})
        current = self.current_status
        if CUSTOMER_ORDER_LIFECYCLE.is_terminal(current):
            raise InvalidTransitionError("customer order", current.value, CustomerOrderStatus.CANCELLED.value)

        now = datetime.now(UTC)
        self.status = CustomerOrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now
        self.raise_(
            CustomerOrderCancelled(
                order_id=str(self.id),
                manufacturing_order_id=str(self.manufacturing_order_id) if self.manufacturing_order_id else None,
                reason=reason,
                previous_status=current.value,
                cancelled_at=now,
            )
        )
        logger.info(
            "Customer order cancelled",
            order_id=str(self.id),
            previous_status=current.value,
            reason=reason,
        )
