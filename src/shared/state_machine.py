"""Transition tables with a strict and a guarded way of moving between states.

Both order lifecycles are plain ``Enum`` classes plus a mapping of each state
to the set of states it may move to. ``StateMachine`` wraps that mapping and
offers the two policies the aggregates need:

- ``advance`` rejects any move the table forbids (explicit commands).
- ``try_advance`` only moves when the order sits in the exact expected
  predecessor state, and otherwise reports "nothing to do" without raising
  (notifications that may arrive twice or out of order).
"""

from enum import Enum

from shared.exceptions import InvalidTransitionError


class StateMachine:
    def __init__(self, subject: str, transitions: dict[Enum, set[Enum]]):
        self.subject = subject
        self._transitions = transitions

    def allowed_targets(self, current: Enum) -> set[Enum]:
        return set(self._transitions.get(current, set()))

    def can_transition(self, current: Enum, target: Enum) -> bool:
        return target in self._transitions.get(current, set())

    def is_terminal(self, state: Enum) -> bool:
        return not self._transitions.get(state)

    def advance(self, current: Enum, target: Enum) -> Enum:
        """Return ``target`` if the move is allowed, raise otherwise."""
        if not self.can_transition(current, target):
            raise InvalidTransitionError(self.subject, current.value, target.value)
        return target

    def try_advance(self, current: Enum, expected_from: Enum, target: Enum) -> Enum | None:
        """Return ``target`` when ``current`` is ``expected_from`` and the move is allowed.

        Returns ``None`` in every other case.
        """
        if current != expected_from or not self.can_transition(current, target):
            return None
        return target
