"""Domain error taxonomy.

All of these are local, recoverable conditions. Services raise them and the
caller (HTTP shell, bulk loop, script) decides how to report them.
"""


class ExpenseFlowError(Exception):
    """Base class for every error raised by the expense core."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(ExpenseFlowError):
    """Malformed or missing required fields."""


class ConflictError(ValidationError):
    """A uniqueness constraint would be violated (e.g. duplicate active email)."""


class NotFoundError(ExpenseFlowError):
    """A referenced entity id does not exist."""


class NotAuthorizedError(ExpenseFlowError):
    """The actor is not the designated approver or owner for the action."""


class AlreadyProcessedError(ExpenseFlowError):
    """The approval step has already been resolved."""


class InvalidStateError(ExpenseFlowError):
    """The entity is not in a state that permits the action."""
