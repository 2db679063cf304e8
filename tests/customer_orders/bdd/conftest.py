"""Shared BDD fixtures and step definitions for the CustomerOrders domain."""

import pytest
from customer_orders.order.customer_order import CustomerInfo, CustomerOrder, CustomerOrderStatus
from customer_orders.order.events import (
    CustomerOrderCancelled,
    CustomerOrderPlaced,
    CustomerOrderStatusUpdated,
)
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

# Map event name strings to classes for dynamic lookup
_EVENT_CLASSES = {
    "CustomerOrderPlaced": CustomerOrderPlaced,
    "CustomerOrderStatusUpdated": CustomerOrderStatusUpdated,
    "CustomerOrderCancelled": CustomerOrderCancelled,
}

# Notifications that walk a freshly placed order forward
_WALK = {
    CustomerOrderStatus.CONFIRMED: "confirm",
    CustomerOrderStatus.MANUFACTURING_IN_PROGRESS: "notify_manufacturing_started",
    CustomerOrderStatus.MANUFACTURING_COMPLETED: "notify_manufacturing_completed",
    CustomerOrderStatus.SHIPPED: "mark_as_shipped",
    CustomerOrderStatus.DELIVERED: "mark_as_delivered",
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def outcome():
    """Return value of the last guarded notification."""
    return {"applied": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a placed customer order", target_fixture="order")
def placed_order():
    order = CustomerOrder.place(
        customer_info=CustomerInfo.of(
            customer_id="cust-001",
            name="Ada Lovelace",
            email="ada@example.com",
            address="12 Analytical Way",
        ),
        items_data=[
            {
                "product_code": "WIDGET-01",
                "description": "Industrial widget",
                "quantity": 5,
                "unit_price": "150.00",
                "currency": "USD",
            }
        ],
        order_id="co-bdd",
    )
    order._events.clear()
    return order


@given(parsers.cfparse('the customer order has reached "{status}"'))
def order_reached(order, status):
    target = CustomerOrderStatus(status)
    for step, method in _WALK.items():
        if order.current_status == target:
            break
        getattr(order, method)()
        if step == target:
            break
    assert order.current_status == target
    order._events.clear()


@given("the customer order was cancelled")
def order_was_cancelled(order):
    order.cancel("Changed mind")
    order._events.clear()


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the customer order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then("the action fails with a validation error")
def action_fails_with_validation_error(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then("the notification is applied")
def notification_applied(outcome):
    assert outcome["applied"] is True


@then("the notification is ignored")
def notification_ignored(outcome):
    assert outcome["applied"] is False


@then("no event is raised")
def no_event_raised(order):
    assert order._events == []


@then(parsers.cfparse("a {event_type} event is raised"))
def generic_event_raised(order, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"
