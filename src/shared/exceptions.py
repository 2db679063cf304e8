"""Error types shared by the customer-order and manufacturing contexts.

Validation problems surface as Protean's ``ValidationError``. A rejected
state-machine move is a ``ValidationError`` too, but a typed one, so callers
can tell "the input was malformed" apart from "the order is not in a state
that allows this".
"""

from protean.exceptions import ValidationError


class InvalidTransitionError(ValidationError):
    """A lifecycle transition that the transition table does not allow."""

    def __init__(self, subject: str, current: str, target: str):
        self.subject = subject
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition {subject} from {current} to {target}"]})


class AggregateLockTimeout(Exception):
    """Another worker held an aggregate's lock for longer than the allowed wait."""

    def __init__(self, scope: str, aggregate_id: str, timeout: float):
        self.scope = scope
        self.aggregate_id = aggregate_id
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for lock on {scope}:{aggregate_id}")
