"""Saving an aggregate and handing its raised events to the bus."""

from typing import Any

from protean.utils.globals import current_domain

from shared.event_bus import bus


def persist(aggregate: Any) -> list[Any]:
    """Store ``aggregate`` in the active domain and stage the events it raised.

    The events are snapshotted before the write. If the repository raises,
    nothing is staged and the aggregate keeps its buffer, so a retried save
    publishes each event once.
    """
    pending = list(aggregate._events)
    current_domain.repository_for(type(aggregate)).add(aggregate)
    aggregate._events.clear()
    bus.stage(pending)
    return pending
