"""
Multi-signature custody engine
Threshold-approved transfers out of a shared pool
"""

from .errors import (
    ErrorKind,
    CustodyError,
    ConfigurationError,
    NotAuthorized,
    UnknownTransaction,
    AlreadyExecuted,
    DuplicateApproval,
    InsufficientApprovals,
    TransferFailed,
)
from .registry import Registry
from .ledger import Transaction, TransactionLedger
from .transfer import Pool, TransferPrimitive, TransferResult
from .events import EventBus, Submitted, Executed, Deposited
from .wallet import MultiSigWallet
from .config import WalletConfig, load_config

__version__ = "0.1.0"
__all__ = [
    "ErrorKind",
    "CustodyError",
    "ConfigurationError",
    "NotAuthorized",
    "UnknownTransaction",
    "AlreadyExecuted",
    "DuplicateApproval",
    "InsufficientApprovals",
    "TransferFailed",
    "Registry",
    "Transaction",
    "TransactionLedger",
    "Pool",
    "TransferPrimitive",
    "TransferResult",
    "EventBus",
    "Submitted",
    "Executed",
    "Deposited",
    "MultiSigWallet",
    "WalletConfig",
    "load_config",
]
