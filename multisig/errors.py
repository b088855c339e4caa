"""
Error taxonomy for the custody engine.

Every rejected operation raises one of the classes below. Callers branch on
``kind`` (or on the class) and log ``context`` for detail.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    CONFIGURATION = "configuration"
    NOT_AUTHORIZED = "not_authorized"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    ALREADY_EXECUTED = "already_executed"
    DUPLICATE_APPROVAL = "duplicate_approval"
    INSUFFICIENT_APPROVALS = "insufficient_approvals"
    TRANSFER_FAILED = "transfer_failed"


class CustodyError(Exception):
    """Base class for every error the registry and ledger report."""

    kind: ErrorKind
    recoverable = True

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict:
        return {
            'error': self.kind.value,
            'message': self.message,
            'context': self.context,
        }


class ConfigurationError(CustodyError):
    """Bad signer list or threshold. Raised at construction only."""
    kind = ErrorKind.CONFIGURATION
    recoverable = False


class NotAuthorized(CustodyError):
    kind = ErrorKind.NOT_AUTHORIZED


class UnknownTransaction(CustodyError):
    kind = ErrorKind.UNKNOWN_TRANSACTION

    def __init__(self, tx_id: Any, **kwargs):
        super().__init__(f"Unknown transaction {tx_id}", **kwargs)
        self.tx_id = tx_id


class AlreadyExecuted(CustodyError):
    kind = ErrorKind.ALREADY_EXECUTED

    def __init__(self, tx_id: int, **kwargs):
        super().__init__(f"Transaction {tx_id} already executed", **kwargs)
        self.tx_id = tx_id


class DuplicateApproval(CustodyError):
    kind = ErrorKind.DUPLICATE_APPROVAL

    def __init__(self, tx_id: int, signer: str, **kwargs):
        super().__init__(f"Transaction {tx_id} already approved by {signer}", **kwargs)
        self.tx_id = tx_id
        self.signer = signer


class InsufficientApprovals(CustodyError):
    kind = ErrorKind.INSUFFICIENT_APPROVALS

    def __init__(self, tx_id: int, approvals: int, threshold: int, **kwargs):
        super().__init__(
            f"Not enough approvals for transaction {tx_id}: {approvals} of {threshold}",
            **kwargs
        )
        self.tx_id = tx_id
        self.approvals = approvals
        self.threshold = threshold


class TransferFailed(CustodyError):
    """The transfer primitive rejected the movement; execution was rolled back."""
    kind = ErrorKind.TRANSFER_FAILED

    def __init__(self, tx_id: int, reason: str, **kwargs):
        super().__init__(f"Transfer for transaction {tx_id} failed: {reason}", **kwargs)
        self.tx_id = tx_id
        self.reason = reason
