"""Error taxonomy for the AML monitoring engine.

Only missing entities and malformed requests are errors. A rule that does
not fire, or a user with no history, is a normal outcome and never raises.
"""


class AmlError(Exception):
    """Base class for all engine errors."""


class NotFound(AmlError):
    """A referenced transaction, alert, or user does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ValidationFailure(AmlError):
    """A review request (or other caller input) is malformed."""


class TransientDependencyFailure(AmlError):
    """A notification or audit sink could not be reached."""
