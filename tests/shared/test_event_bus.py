"""Tests for the in-process event bus: staging, delivery, retry and dead letters."""

import pytest
from customer_orders.domain import customer_orders
from protean.exceptions import ValidationError
from shared.event_bus import EventBus


class Ping:
    def __init__(self, n):
        self.n = n


class Pong:
    pass


@pytest.fixture
def event_bus():
    return EventBus(max_attempts=3)


@pytest.fixture
def received():
    return []


class TestRegistration:
    def test_subscriptions_are_keyed_by_class_name(self, event_bus, received):
        event_bus.register(Ping, customer_orders, received.append)
        assert len(event_bus.subscriptions_for("Ping")) == 1
        assert event_bus.subscriptions_for("Pong") == []

    def test_clear_handlers(self, event_bus, received):
        event_bus.register(Ping, customer_orders, received.append)
        event_bus.clear_handlers()
        assert event_bus.subscriptions_for("Ping") == []

    def test_events_without_subscribers_are_dropped(self, event_bus):
        event_bus.stage([Pong()])
        assert event_bus.flush() == 1


class TestStagingAndFlush:
    def test_events_outside_unit_of_work_are_ready(self, event_bus):
        event_bus.stage([Ping(1)])
        assert [e.n for e in event_bus.pending()] == [1]

    def test_flush_delivers_in_order(self, event_bus, received):
        event_bus.register(Ping, customer_orders, received.append)
        event_bus.stage([Ping(1), Ping(2)])
        event_bus.stage([Ping(3)])

        assert event_bus.flush() == 3
        assert [e.n for e in received] == [1, 2, 3]
        assert event_bus.pending() == []

    def test_nothing_is_ready_while_unit_of_work_is_open(self, event_bus, received):
        event_bus.register(Ping, customer_orders, received.append)
        with event_bus.unit_of_work():
            event_bus.stage([Ping(1)])
            assert event_bus.pending() == []
            assert event_bus.flush() == 0
        assert [e.n for e in event_bus.pending()] == [1]

    def test_failed_unit_of_work_discards_its_events(self, event_bus):
        with pytest.raises(RuntimeError):
            with event_bus.unit_of_work():
                event_bus.stage([Ping(1)])
                raise RuntimeError("write failed")
        assert event_bus.pending() == []

    def test_nested_failure_keeps_outer_events(self, event_bus):
        with event_bus.unit_of_work():
            event_bus.stage([Ping(1)])
            with pytest.raises(RuntimeError):
                with event_bus.unit_of_work():
                    event_bus.stage([Ping(2)])
                    raise RuntimeError("inner write failed")
        assert [e.n for e in event_bus.pending()] == [1]

    def test_events_staged_by_handlers_join_the_running_flush(self, event_bus, received):
        def relay(event):
            event_bus.stage([Pong()])

        event_bus.register(Ping, customer_orders, relay)
        event_bus.register(Pong, customer_orders, received.append)
        event_bus.stage([Ping(1)])

        assert event_bus.flush() == 2
        assert len(received) == 1

    def test_handlers_run_inside_their_domain_context(self, event_bus):
        seen = []

        def handler(event):
            from protean.utils.globals import current_domain

            seen.append(current_domain.name)

        event_bus.register(Ping, customer_orders, handler)
        event_bus.publish(Ping(1))
        assert seen == ["customer_orders"]


class TestFailureContainment:
    def test_transient_failure_is_retried(self, event_bus, received):
        calls = []

        def flaky(event):
            calls.append(event)
            if len(calls) < 2:
                raise ConnectionError("store unavailable")
            received.append(event)

        event_bus.register(Ping, customer_orders, flaky)
        event_bus.publish(Ping(1))

        assert len(calls) == 2
        assert len(received) == 1
        assert event_bus.dead_letters == []

    def test_persistent_failure_is_dead_lettered(self, event_bus):
        calls = []

        def broken(event):
            calls.append(event)
            raise RuntimeError("boom")

        event_bus.register(Ping, customer_orders, broken)
        event_bus.publish(Ping(1))

        assert len(calls) == 3
        [letter] = event_bus.dead_letters
        assert letter.event.n == 1
        assert letter.attempts == 3
        assert isinstance(letter.error, RuntimeError)
        assert "broken" in letter.handler_name

    def test_validation_errors_are_not_retried(self, event_bus):
        calls = []

        def rejecting(event):
            calls.append(event)
            raise ValidationError({"status": ["not allowed"]})

        event_bus.register(Ping, customer_orders, rejecting)
        event_bus.publish(Ping(1))

        assert len(calls) == 1
        assert event_bus.dead_letters[0].attempts == 1

    def test_one_failing_handler_does_not_block_others(self, event_bus, received):
        def broken(event):
            raise RuntimeError("boom")

        event_bus.register(Ping, customer_orders, broken)
        event_bus.register(Ping, customer_orders, received.append)
        event_bus.publish(Ping(1))

        assert len(received) == 1
        assert len(event_bus.dead_letters) == 1

    def test_events_staged_by_a_failed_attempt_are_discarded(self, event_bus, received):
        calls = []

        def half_done(event):
            calls.append(event)
            event_bus.stage([Pong()])
            if len(calls) == 1:
                raise ConnectionError("lost connection")

        event_bus.register(Ping, customer_orders, half_done)
        event_bus.register(Pong, customer_orders, received.append)
        event_bus.stage([Ping(1)])
        event_bus.flush()

        assert len(calls) == 2
        assert len(received) == 1

    def test_reset_drops_queue_and_dead_letters(self, event_bus):
        def broken(event):
            raise RuntimeError("boom")

        event_bus.register(Ping, customer_orders, broken)
        event_bus.publish(Ping(1))
        event_bus.stage([Ping(2)])

        event_bus.reset()
        assert event_bus.dead_letters == []
        assert event_bus.pending() == []
        assert len(event_bus.subscriptions_for("Ping")) == 1


class TestDeadLetterRetention:
    @staticmethod
    def _broken(event):
        raise ValidationError({"status": ["not allowed"]})

    def test_oldest_letters_dropped_beyond_capacity(self):
        event_bus = EventBus(dead_letter_capacity=3)
        event_bus.register(Ping, customer_orders, self._broken)
        for n in range(5):
            event_bus.publish(Ping(n))

        assert [letter.event.n for letter in event_bus.dead_letters] == [2, 3, 4]

    def test_drain_hands_over_and_forgets(self, event_bus):
        event_bus.register(Ping, customer_orders, self._broken)
        event_bus.publish(Ping(1))
        event_bus.publish(Ping(2))

        drained = event_bus.drain_dead_letters()

        assert [letter.event.n for letter in drained] == [1, 2]
        assert event_bus.dead_letters == []

    def test_shrinking_capacity_keeps_newest(self, event_bus):
        event_bus.register(Ping, customer_orders, self._broken)
        for n in range(4):
            event_bus.publish(Ping(n))

        event_bus.dead_letter_capacity = 2

        assert event_bus.dead_letter_capacity == 2
        assert [letter.event.n for letter in event_bus.dead_letters] == [2, 3]
