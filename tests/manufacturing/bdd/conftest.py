"""Shared BDD fixtures and step definitions for the Manufacturing domain."""

from datetime import UTC, datetime, timedelta

import pytest
from manufacturing.order.events import (
    ManufacturingOrderCompleted,
    ManufacturingOrderCreated,
    ManufacturingOrderStatusChanged,
)
from manufacturing.order.manufacturing_order import (
    ManufacturingOrder,
    ManufacturingOrderStatus,
    ProductSpecification,
    Timeline,
)
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

_EVENT_CLASSES = {
    "ManufacturingOrderCreated": ManufacturingOrderCreated,
    "ManufacturingOrderStatusChanged": ManufacturingOrderStatusChanged,
    "ManufacturingOrderCompleted": ManufacturingOrderCompleted,
}


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a pending manufacturing order", target_fixture="order")
def pending_order():
    now = datetime.now(UTC)
    order = ManufacturingOrder.create(
        product_spec=ProductSpecification(
            product_code="GEAR-42",
            description="Hardened steel gear",
            quantity=10,
            specifications="Module 2, 42 teeth",
        ),
        timeline=Timeline(expected_start=now + timedelta(days=1), expected_completion=now + timedelta(days=7)),
        order_id="mo-bdd",
    )
    order._events.clear()
    return order


@given("production has started")
def production_started(order):
    order.change_status(ManufacturingOrderStatus.IN_PROGRESS)
    order._events.clear()


@given("production has finished")
def production_finished(order):
    order.complete()
    order._events.clear()


@given("the manufacturing order was cancelled")
def order_was_cancelled(order):
    order.cancel("Scrapped")
    order._events.clear()


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the manufacturing order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then("the action fails with a validation error")
def action_fails_with_validation_error(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then("no event is raised")
def no_event_raised(order):
    assert order._events == []


@then(parsers.cfparse("a {event_type} event is raised"))
def generic_event_raised(order, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"
