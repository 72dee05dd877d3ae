"""
Typed outcomes of a workflow transition attempt.

Each exception carries a stable ``code`` that the API layer returns to
clients alongside the HTTP status listed here.
"""


class TransitionError(Exception):
    """Base class for a transition attempt that was not applied."""

    code = "transition_error"
    status_code = 400
    default_message = "Transition could not be applied."

    def __init__(self, message=None, *, transaction_id=None, current_status=None, action=None):
        self.message = message or self.default_message
        self.transaction_id = transaction_id
        self.current_status = current_status
        self.action = action
        super().__init__(self.message)


class TransactionNotFound(TransitionError):
    code = "not_found"
    status_code = 404
    default_message = "Transaction not found."


class TerminalStateError(TransitionError):
    code = "terminal_state"
    status_code = 422
    default_message = "Transaction is in a terminal state and cannot change."


class TransitionForbidden(TransitionError):
    code = "forbidden"
    status_code = 403
    default_message = "You are not allowed to perform this action in the current state."


class TransitionConflict(TransitionError):
    code = "conflict"
    status_code = 409
    default_message = "Transaction status changed concurrently; reload and retry."


class HistoryIntegrityError(Exception):
    """Validation history does not chain into the stored status."""

    def __init__(self, message, *, transaction_id=None, record_id=None):
        self.transaction_id = transaction_id
        self.record_id = record_id
        super().__init__(message)
