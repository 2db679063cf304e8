import pytest


@pytest.fixture(autouse=True)
def customer_orders_ctx():
    """Push the customer_orders domain context for each test."""
    from customer_orders.domain import customer_orders

    ctx = customer_orders.domain_context()
    ctx.push()
    yield customer_orders
    ctx.pop()


@pytest.fixture
def customer_info():
    from customer_orders.order.customer_order import CustomerInfo

    return CustomerInfo.of(
        customer_id="cust-001",
        name="Ada Lovelace",
        email="ada@example.com",
        address="12 Analytical Way, London",
    )


@pytest.fixture
def widget_items():
    return [
        {
            "product_code": "WIDGET-01",
            "description": "Industrial widget",
            "quantity": 5,
            "unit_price": "150.00",
            "currency": "USD",
        }
    ]
