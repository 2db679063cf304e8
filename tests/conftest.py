import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Configure logging, initialise both domains and wire the event bus.

    Runs before collection so that test modules import already-initialised
    domains.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from order_management.bootstrap import bootstrap

    bootstrap()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


def _reset_domain(domain):
    with domain.domain_context():
        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()

        for _, broker in current_domain.brokers.items():
            broker._data_reset()

        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from customer_orders.domain import customer_orders
    from manufacturing.domain import manufacturing
    from shared.event_bus import bus
    from shared.locking import aggregate_locks

    _reset_domain(customer_orders)
    _reset_domain(manufacturing)
    bus.reset()
    aggregate_locks.clear()


@pytest.fixture
def auto_create_disabled():
    """Switch off automatic manufacturing order creation for one test."""
    from manufacturing.domain import manufacturing

    custom = manufacturing.config.setdefault("custom", {})
    previous = custom.get("auto_create_manufacturing_orders", True)
    custom["auto_create_manufacturing_orders"] = False
    yield
    custom["auto_create_manufacturing_orders"] = previous
