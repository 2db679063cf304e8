from datetime import UTC, datetime, timedelta

import pytest


@pytest.fixture(autouse=True)
def manufacturing_ctx():
    """Push the manufacturing domain context for each test."""
    from manufacturing.domain import manufacturing

    ctx = manufacturing.domain_context()
    ctx.push()
    yield manufacturing
    ctx.pop()


@pytest.fixture
def product_spec():
    from manufacturing.order.manufacturing_order import ProductSpecification

    return ProductSpecification(
        product_code="GEAR-42",
        description="Hardened steel gear",
        quantity=10,
        specifications="Module 2, 42 teeth, case hardened",
    )


@pytest.fixture
def timeline():
    from manufacturing.order.manufacturing_order import Timeline

    now = datetime.now(UTC)
    return Timeline(expected_start=now + timedelta(days=1), expected_completion=now + timedelta(days=7))
