"""In-process event bus linking the customer-order and manufacturing contexts.

Events only reach subscribers once the write that raised them has committed.
The two steps are explicit:

1. ``stage`` is called by ``shared.persistence.persist`` right after an
   aggregate is handed to its repository. Staged events belong to the
   innermost open ``unit_of_work`` block and are thrown away if that block
   raises.
2. ``flush`` is called once the outermost unit of work has completed. It
   drains the ready queue in FIFO order and delivers each event to every
   handler registered for its type name, inside the handler's own domain
   context and its own unit of work.

Events staged by handlers join the ready queue of the flush already running.

A failing handler is retried up to ``max_attempts`` times, except for
validation failures. What still fails is kept as a ``DeadLetter`` and
logged. It is never raised back into the command whose write already
committed. The bus keeps at most ``dead_letter_capacity`` letters, oldest
dropped first, until a consumer takes them with ``drain_dead_letters``.
"""

import threading
from collections import defaultdict, deque
from collections.abc import Callable, Iterable
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from protean.exceptions import ValidationError

from shared.locking import aggregate_locks
from shared.logging import log_context

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DEAD_LETTER_CAPACITY = 1000


@dataclass(frozen=True)
class Subscription:
    event_type: str
    domain: Any
    handler: Callable[[Any], Any]

    @property
    def handler_name(self) -> str:
        return getattr(self.handler, "__qualname__", repr(self.handler))


@dataclass(frozen=True)
class DeadLetter:
    event: Any
    handler_name: str
    error: BaseException
    attempts: int
    failed_at: datetime


def event_type_of(event: Any) -> str:
    """Discriminator shared by an event and its cross-context contract."""
    return type(event).__name__


class EventBus:
    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        dead_letter_capacity: int = DEFAULT_DEAD_LETTER_CAPACITY,
    ):
        self.max_attempts = max_attempts
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)
        self._dead_letters: deque[DeadLetter] = deque(maxlen=dead_letter_capacity)
        self._dead_letters_lock = threading.Lock()
        self._local = threading.local()

    # -------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------
    def register(self, event_cls: type, domain: Any, handler: Callable[[Any], Any]) -> None:
        """Deliver events named like ``event_cls`` to ``handler`` inside ``domain``."""
        self._subscriptions[event_cls.__name__].append(Subscription(event_cls.__name__, domain, handler))

    def subscriptions_for(self, event_type: str) -> list[Subscription]:
        return list(self._subscriptions.get(event_type, []))

    def clear_handlers(self) -> None:
        self._subscriptions.clear()

    # -------------------------------------------------------------------
    # Staging
    # -------------------------------------------------------------------
    def _state(self):
        state = self._local
        if not hasattr(state, "scopes"):
            state.scopes = []
            state.ready = deque()
            state.flushing = False
        return state

    @contextmanager
    def unit_of_work(self):
        """Scope staged events to a block that must complete for them to count."""
        state = self._state()
        state.scopes.append([])
        try:
            yield
        except BaseException:
            discarded = state.scopes.pop()
            if discarded:
                logger.info(
                    "Discarding events staged by a failed unit of work",
                    event_types=[event_type_of(e) for e in discarded],
                )
            raise
        staged = state.scopes.pop()
        if state.scopes:
            state.scopes[-1].extend(staged)
        else:
            state.ready.extend(staged)

    def stage(self, events: Iterable[Any]) -> None:
        """Queue events raised by a write.

        Outside any unit of work the write is taken as already committed and
        the events go straight to the ready queue.
        """
        state = self._state()
        events = list(events)
        if not events:
            return
        if state.scopes:
            state.scopes[-1].extend(events)
        else:
            state.ready.extend(events)

    def pending(self) -> list[Any]:
        """Events ready for delivery on this thread, oldest first."""
        return list(self._state().ready)

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    def flush(self) -> int:
        """Deliver every ready event. Returns the number of events delivered."""
        state = self._state()
        if state.flushing or state.scopes:
            return 0

        delivered = 0
        state.flushing = True
        try:
            while state.ready:
                event = state.ready.popleft()
                self.publish(event)
                delivered += 1
        finally:
            state.flushing = False
        return delivered

    def publish(self, event: Any) -> None:
        """Hand one committed event to all of its subscribers."""
        event_type = event_type_of(event)
        subscriptions = self._subscriptions.get(event_type, [])
        logger.debug("Publishing domain event", event_type=event_type, subscribers=len(subscriptions))
        for subscription in list(subscriptions):
            self._deliver(subscription, event)

    def _deliver(self, subscription: Subscription, event: Any) -> None:
        attempt = 0
        while True:
            attempt += 1
            try:
                with (
                    log_context(event_type=subscription.event_type, handler=subscription.handler_name),
                    subscription.domain.domain_context(),
                    self.unit_of_work(),
                ):
                    subscription.handler(event)
                return
            except ValidationError as exc:
                self._dead_letter(subscription, event, exc, attempt)
                return
            except Exception as exc:
                if attempt >= self.max_attempts:
                    self._dead_letter(subscription, event, exc, attempt)
                    return
                logger.warning(
                    "Event delivery failed, redelivering",
                    event_type=subscription.event_type,
                    handler=subscription.handler_name,
                    attempt=attempt,
                    error=str(exc),
                )

    def _dead_letter(self, subscription: Subscription, event: Any, error: BaseException, attempts: int) -> None:
        letter = DeadLetter(
            event=event,
            handler_name=subscription.handler_name,
            error=error,
            attempts=attempts,
            failed_at=datetime.now(UTC),
        )
        with self._dead_letters_lock:
            if len(self._dead_letters) == self._dead_letters.maxlen:
                dropped = self._dead_letters[0]
                logger.warning(
                    "Dead letter capacity reached, dropping oldest",
                    event_type=event_type_of(dropped.event),
                    handler=dropped.handler_name,
                    capacity=self._dead_letters.maxlen,
                )
            self._dead_letters.append(letter)
        logger.error(
            "Event delivery abandoned",
            event_type=subscription.event_type,
            handler=subscription.handler_name,
            attempts=attempts,
            error=str(error),
            exc_info=error,
        )

    @property
    def dead_letters(self) -> list[DeadLetter]:
        with self._dead_letters_lock:
            return list(self._dead_letters)

    def drain_dead_letters(self) -> list[DeadLetter]:
        """Hand over every kept dead letter, oldest first, and forget them."""
        with self._dead_letters_lock:
            letters = list(self._dead_letters)
            self._dead_letters.clear()
        return letters

    @property
    def dead_letter_capacity(self) -> int:
        return self._dead_letters.maxlen

    @dead_letter_capacity.setter
    def dead_letter_capacity(self, capacity: int) -> None:
        with self._dead_letters_lock:
            self._dead_letters = deque(self._dead_letters, maxlen=capacity)

    def reset(self) -> None:
        """Drop queued events and dead letters; keeps registrations."""
        with self._dead_letters_lock:
            self._dead_letters.clear()
        state = self._state()
        state.scopes.clear()
        state.ready.clear()
        state.flushing = False


bus = EventBus()


def dispatch(command: Any, domain: Any = None) -> Any:
    """Process a command synchronously, then publish what it committed.

    With ``domain`` given, its context is pushed first; otherwise the active
    domain context is used. Commands carrying an ``order_id`` hold that
    order's lock for the whole command, commit included.
    """
    from protean.utils.globals import current_domain

    context = domain.domain_context() if domain is not None else nullcontext()
    with context:
        order_id = getattr(command, "order_id", None)
        lock = aggregate_locks.hold(current_domain.name, order_id) if order_id else nullcontext()
        with log_context(command=type(command).__name__, order_id=order_id), lock, bus.unit_of_work():
            result = current_domain.process(command, asynchronous=False)
    bus.flush()
    return result
