"""
Transaction ledger: proposals, approvals and exactly-once execution.

Execution marks the transaction executed before the transfer primitive runs,
inside an atomic boundary that also covers the primitive's own state. A
re-entrant call made by receiver code therefore sees the transaction as
executed, and a failed transfer leaves no trace.
"""

import threading
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .atomic import AtomicBoundary, Checkpointable
from .errors import (
    AlreadyExecuted,
    ConfigurationError,
    CustodyError,
    DuplicateApproval,
    InsufficientApprovals,
    TransferFailed,
    UnknownTransaction,
)
from .events import Event, EventBus, Executed, Submitted
from .logging_config import get_ledger_logger
from .registry import Registry
from .transfer import TransferPrimitive, TransferResult, validate_amount


@dataclass
class Transaction:
    """A proposed transfer out of the pool; never deleted"""
    tx_id: int
    destination: str
    amount: int
    payload: bytes = b""
    approvals: List[str] = field(default_factory=list)
    executed: bool = False

    @property
    def approval_count(self) -> int:
        return len(self.approvals)

    def copy(self) -> 'Transaction':
        return Transaction(
            tx_id=self.tx_id,
            destination=self.destination,
            amount=self.amount,
            payload=self.payload,
            approvals=list(self.approvals),
            executed=self.executed,
        )

    def to_dict(self) -> dict:
        return {
            'id': self.tx_id,
            'destination': self.destination,
            'amount': self.amount,
            'payload': '0x' + self.payload.hex(),
            'approvals': list(self.approvals),
            'executed': self.executed,
        }


def normalize_payload(payload: Union[bytes, bytearray, str, None]) -> bytes:
    """Accept raw bytes or a 0x-prefixed hex string"""
    if payload is None:
        return b""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if isinstance(payload, str):
        text = payload[2:] if payload.startswith(('0x', '0X')) else payload
        try:
            return bytes.fromhex(text)
        except ValueError:
            raise ValueError(f"Payload is not valid hex: {payload!r}") from None
    raise ValueError(f"Payload must be bytes or hex string, got {type(payload).__name__}")


class TransactionLedger(Checkpointable):

    def __init__(
        self,
        registry: Registry,
        primitive: TransferPrimitive,
        events: Optional[EventBus] = None,
        lock: Optional[threading.RLock] = None
    ):
        self.registry = registry
        self.primitive = primitive
        self.events = events if events is not None else EventBus()
        self._lock = self._resolve_lock(primitive, lock)
        self._transactions: List[Transaction] = []
        self._pending_events: List[Event] = []
        self._boundary_depth = 0
        self.logger = get_ledger_logger(__name__, registry.registry_id)

    # Mutators

    def submit(self, caller: str, destination: str, amount: int, payload=b"") -> int:
        """Record a new pending transfer and return its id"""
        with self._lock:
            self._authorize(caller, "submit")

            if not isinstance(destination, str) or not destination:
                raise ValueError(f"Destination must be a non-empty string, got {destination!r}")
            validate_amount(amount)
            payload = normalize_payload(payload)

            tx = Transaction(
                tx_id=len(self._transactions),
                destination=destination,
                amount=amount,
                payload=payload,
            )
            self._transactions.append(tx)

            self.logger.info(
                "transaction_submitted",
                tx_id=tx.tx_id,
                caller=caller,
                destination=destination,
                amount=amount,
            )
            self._emit(Submitted(tx.tx_id, destination, amount))
            self._flush_events()
            return tx.tx_id

    def approve(self, caller: str, tx_id: int) -> None:
        with self._lock:
            self._authorize(caller, "approve")
            tx = self._get(tx_id)

            if tx.executed:
                self._reject(AlreadyExecuted(tx_id, context={'caller': caller}))

            if caller in tx.approvals:
                self._reject(DuplicateApproval(tx_id, caller))

            tx.approvals.append(caller)
            self.logger.info(
                "transaction_approved",
                tx_id=tx_id,
                signer=caller,
                approvals=tx.approval_count,
                threshold=self.registry.threshold,
            )

    def execute(self, caller: str, tx_id: int) -> None:
        """
        Settle a transaction that has reached quorum.

        Any caller may trigger execution. The executed flag is set before the
        transfer primitive runs; if the primitive fails, the flag, the
        primitive's state and anything re-entrant callers changed in between
        are restored, and ``TransferFailed`` is raised.
        """
        with self._lock:
            tx = self._get(tx_id)

            if tx.executed:
                self._reject(AlreadyExecuted(tx_id, context={'caller': caller}))

            threshold = self.registry.threshold
            if tx.approval_count < threshold:
                self._reject(InsufficientApprovals(tx_id, tx.approval_count, threshold))

            self._boundary_depth += 1
            try:
                with AtomicBoundary(*self._participants()):
                    tx.executed = True
                    self._emit(Executed(tx_id))
                    result = self._invoke_transfer(tx)
                    if not result.ok:
                        raise TransferFailed(
                            tx_id,
                            result.reason,
                            context={'destination': tx.destination, 'amount': tx.amount}
                        )
            except TransferFailed as exc:
                self.logger.warning(
                    "transfer_rolled_back",
                    tx_id=tx_id,
                    caller=caller,
                    reason=exc.reason,
                )
                raise
            finally:
                self._boundary_depth -= 1

            self.logger.info(
                "transaction_executed",
                tx_id=tx_id,
                caller=caller,
                destination=tx.destination,
                amount=tx.amount,
            )
            self._flush_events()

    # Queries

    def transaction_count(self) -> int:
        with self._lock:
            return len(self._transactions)

    def get_transaction(self, tx_id: int) -> Transaction:
        """Detached copy of the transaction record"""
        with self._lock:
            return self._get(tx_id).copy()

    def destination(self, tx_id: int) -> str:
        return self.get_transaction(tx_id).destination

    def amount(self, tx_id: int) -> int:
        return self.get_transaction(tx_id).amount

    def payload(self, tx_id: int) -> bytes:
        return self.get_transaction(tx_id).payload

    def is_executed(self, tx_id: int) -> bool:
        return self.get_transaction(tx_id).executed

    def approval_count(self, tx_id: int) -> int:
        return self.get_transaction(tx_id).approval_count

    def approvers(self, tx_id: int) -> Tuple[str, ...]:
        return tuple(self.get_transaction(tx_id).approvals)

    def has_approved(self, tx_id: int, signer: str) -> bool:
        return signer in self.get_transaction(tx_id).approvals

    def notify(self, event: Event) -> None:
        """Publish an event, deferred until any open execution commits"""
        with self._lock:
            self._emit(event)
            self._flush_events()

    def pending_ids(self) -> List[int]:
        with self._lock:
            return [tx.tx_id for tx in self._transactions if not tx.executed]

    # Checkpointable

    def snapshot(self):
        return (
            len(self._transactions),
            [(list(tx.approvals), tx.executed) for tx in self._transactions],
            len(self._pending_events),
        )

    def restore(self, state) -> None:
        count, records, pending = state
        del self._transactions[count:]
        for tx, (approvals, executed) in zip(self._transactions, records):
            tx.approvals = approvals
            tx.executed = executed
        del self._pending_events[pending:]

    # Internals

    @staticmethod
    def _resolve_lock(primitive: TransferPrimitive, lock: Optional[threading.RLock]):
        # Rollback restores the primitive's snapshot, so both must be guarded by one lock
        primitive_lock = getattr(primitive, 'lock', None)
        if primitive_lock is None:
            return lock if lock is not None else threading.RLock()
        if lock is not None and lock is not primitive_lock:
            raise ConfigurationError("Ledger lock must be the transfer primitive's lock")
        return primitive_lock

    def _participants(self) -> List[Checkpointable]:
        participants: List[Checkpointable] = [self]
        if isinstance(self.primitive, Checkpointable):
            participants.append(self.primitive)
        return participants

    def _invoke_transfer(self, tx: Transaction) -> TransferResult:
        try:
            return self.primitive.transfer(tx.destination, tx.amount, tx.payload)
        except Exception as exc:
            raise TransferFailed(tx.tx_id, str(exc) or type(exc).__name__) from exc

    def _get(self, tx_id: int) -> Transaction:
        if isinstance(tx_id, bool) or not isinstance(tx_id, int):
            self._reject(UnknownTransaction(tx_id))
        if not 0 <= tx_id < len(self._transactions):
            self._reject(UnknownTransaction(tx_id))
        return self._transactions[tx_id]

    def _authorize(self, caller: str, action: str) -> None:
        try:
            self.registry.require_signer(caller, action)
        except CustodyError as exc:
            self._reject(exc)

    def _reject(self, exc: CustodyError) -> None:
        self.logger.info(
            "transaction_rejected",
            error_kind=exc.kind.value,
            reason=exc.message,
            **exc.context
        )
        raise exc

    def _emit(self, event: Event) -> None:
        self._pending_events.append(event)

    def _flush_events(self) -> None:
        if self._boundary_depth:
            return
        events, self._pending_events = self._pending_events, []
        for event in events:
            self.events.publish(event)
