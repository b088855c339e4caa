"""
Value-transfer primitive consumed by the ledger, plus an in-memory pool.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .atomic import AtomicBoundary, Checkpointable
from .logging_config import get_logger

logger = get_logger(__name__)

ReceiverHook = Callable[[int, bytes], Optional[bool]]


def validate_amount(amount) -> int:
    """Reject anything that is not a non-negative integer magnitude"""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Amount must be an integer, got {amount!r}")
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    return amount


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a transfer attempt"""
    ok: bool
    reason: str = ""

    @classmethod
    def success(cls) -> 'TransferResult':
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> 'TransferResult':
        return cls(ok=False, reason=reason)


class TransferPrimitive(ABC):
    """The only path by which value leaves the pool"""

    @abstractmethod
    def transfer(self, destination: str, amount: int, payload: bytes) -> TransferResult:
        """
        Move ``amount`` to ``destination`` and forward ``payload``.

        Implementations may run arbitrary receiver code, including calls back
        into the ledger, before returning.
        """
        pass


class Pool(TransferPrimitive, Checkpointable):
    """Single-asset in-memory pool with programmable destinations"""

    def __init__(self, initial_balance: int = 0, lock: Optional[threading.RLock] = None):
        self._balance = validate_amount(initial_balance)
        self._credits: Dict[str, int] = {}
        self._receivers: Dict[str, ReceiverHook] = {}
        self._lock = lock if lock is not None else threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Lock guarding balances; a ledger settling through this pool must share it"""
        return self._lock

    @property
    def balance(self) -> int:
        return self._balance

    def balance_of(self, identity: str) -> int:
        """Value credited to an external account by past transfers"""
        return self._credits.get(identity, 0)

    def deposit(self, sender: str, amount: int) -> int:
        """Receive value into the pool and return the new balance"""
        validate_amount(amount)
        with self._lock:
            self._balance += amount
            logger.info("pool_deposit", sender=sender, amount=amount, balance=self._balance)
            return self._balance

    def register_receiver(self, destination: str, hook: ReceiverHook) -> None:
        """
        Attach receiver code to a destination.

        The hook runs as ``hook(amount, payload)`` after the destination has
        been credited. Returning ``False`` or raising rejects the transfer.
        """
        with self._lock:
            self._receivers[destination] = hook

    def unregister_receiver(self, destination: str) -> None:
        with self._lock:
            self._receivers.pop(destination, None)

    def transfer(self, destination: str, amount: int, payload: bytes = b"") -> TransferResult:
        with self._lock:
            if amount > self._balance:
                return TransferResult.failure(
                    f"insufficient pool balance: need {amount}, have {self._balance}"
                )

            hook = self._receivers.get(destination)
            try:
                with AtomicBoundary(self):
                    self._balance -= amount
                    self._credits[destination] = self.balance_of(destination) + amount
                    if hook is not None and hook(amount, payload) is False:
                        raise _ReceiverRejected("destination rejected transfer")
            except Exception as exc:
                logger.warning(
                    "pool_receiver_rejected",
                    destination=destination,
                    amount=amount,
                    reason=str(exc),
                )
                return TransferResult.failure(str(exc) or type(exc).__name__)

            return TransferResult.success()

    def snapshot(self):
        return self._balance, dict(self._credits)

    def restore(self, state) -> None:
        self._balance, credits = state
        self._credits = dict(credits)


class _ReceiverRejected(Exception):
    pass
