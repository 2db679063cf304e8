"""Fixtures for cross-context correlation tests.

Commands go through ``shared.event_bus.dispatch`` so events raised in one
context reach the other through the bus, exactly as in the running system.
"""

import json

import pytest


@pytest.fixture
def place_order():
    from customer_orders.domain import customer_orders
    from customer_orders.order.placement import PlaceCustomerOrder
    from shared.event_bus import dispatch

    def _place(order_id, quantity=5, unit_price="150.00"):
        return dispatch(
            PlaceCustomerOrder(
                order_id=order_id,
                customer_id="cust-001",
                customer_name="Ada Lovelace",
                customer_email="ada@example.com",
                customer_address="12 Analytical Way",
                items=json.dumps(
                    [
                        {
                            "product_code": "WIDGET-01",
                            "description": "Industrial widget",
                            "quantity": quantity,
                            "unit_price": unit_price,
                            "currency": "USD",
                        }
                    ]
                ),
            ),
            customer_orders,
        )

    return _place


@pytest.fixture
def customer_order():
    """Load a customer order from its own context."""
    from customer_orders.domain import customer_orders
    from customer_orders.order.customer_order import CustomerOrder

    def _load(order_id):
        with customer_orders.domain_context():
            return customer_orders.repository_for(CustomerOrder).find_by_id(order_id)

    return _load


@pytest.fixture
def manufacturing_order():
    """Load a manufacturing order from its own context."""
    from manufacturing.domain import manufacturing
    from manufacturing.order.manufacturing_order import ManufacturingOrder

    def _load(order_id):
        with manufacturing.domain_context():
            return manufacturing.repository_for(ManufacturingOrder).find_by_id(order_id)

    return _load


@pytest.fixture
def manufacturing_orders_for():
    from manufacturing.domain import manufacturing
    from manufacturing.order.manufacturing_order import ManufacturingOrder

    def _find(customer_order_id):
        with manufacturing.domain_context():
            return manufacturing.repository_for(ManufacturingOrder).find_by_customer_order_id(customer_order_id)

    return _find


@pytest.fixture
def no_dead_letters():
    from shared.event_bus import bus

    yield
    assert bus.dead_letters == []


@pytest.fixture
def recorded_events():
    """Record every correlation event the bus delivers, keyed by type name.

    The production subscriptions are restored afterwards.
    """
    from collections import defaultdict

    from customer_orders.domain import customer_orders
    from order_management.bootstrap import wire_event_bus
    from shared.event_bus import bus
    from shared.events.customer_orders import CustomerOrderCancelled, CustomerOrderStatusUpdated
    from shared.events.manufacturing import (
        ManufacturingOrderCompleted,
        ManufacturingOrderCreated,
        ManufacturingOrderStatusChanged,
    )

    recorded = defaultdict(list)
    for event_cls in (
        CustomerOrderStatusUpdated,
        CustomerOrderCancelled,
        ManufacturingOrderCreated,
        ManufacturingOrderStatusChanged,
        ManufacturingOrderCompleted,
    ):
        bus.register(event_cls, customer_orders, lambda event: recorded[type(event).__name__].append(event))

    yield recorded

    wire_event_bus(bus)
