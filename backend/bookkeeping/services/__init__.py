# bookkeeping/services/__init__.py
from .role_authority import RoleAuthority
from .transaction_service import TransactionService
from .transaction_store import TransactionStore
from .validation_history import ValidationHistoryLog, VerificationResult
from .validation_workflow import (
    TERMINAL_STATUSES,
    TransitionResult,
    ValidationWorkflowService,
    next_status,
)

__all__ = [
    "RoleAuthority",
    "TransactionService",
    "TransactionStore",
    "ValidationHistoryLog",
    "VerificationResult",
    "ValidationWorkflowService",
    "TransitionResult",
    "TERMINAL_STATUSES",
    "next_status",
]
