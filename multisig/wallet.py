from typing import List, Optional, Sequence

from .config import WalletConfig
from .events import Deposited, EventBus
from .ledger import Transaction, TransactionLedger
from .logging_config import get_logger
from .registry import Registry
from .transfer import Pool

logger = get_logger(__name__)


class MultiSigWallet:
    """High-level interface: registry, ledger and pool behind one lock"""

    def __init__(
        self,
        signers: Sequence[str],
        threshold: int,
        pool: Optional[Pool] = None,
        events: Optional[EventBus] = None
    ):
        self.registry = Registry(signers, threshold)
        self.pool = pool if pool is not None else Pool()
        self._lock = self.pool.lock
        self.events = events if events is not None else EventBus()
        self.ledger = TransactionLedger(self.registry, self.pool, self.events, lock=self._lock)

    @classmethod
    def from_config(cls, config: WalletConfig) -> 'MultiSigWallet':
        wallet = cls(config.signers, config.threshold)
        if config.initial_balance:
            wallet.receive("genesis", config.initial_balance)
        return wallet

    @property
    def wallet_id(self) -> str:
        return self.registry.registry_id

    # Pool

    def receive(self, sender: str, amount: int) -> int:
        """Accept funds into the pool from any sender"""
        with self._lock:
            balance = self.pool.deposit(sender, amount)
            self.ledger.notify(Deposited(sender, amount, balance))
            return balance

    def balance(self) -> int:
        return self.pool.balance

    # Registry

    def is_signer(self, identity: str) -> bool:
        return self.registry.is_signer(identity)

    def threshold(self) -> int:
        return self.registry.threshold

    def signers(self, index: int) -> str:
        return self.registry.signer_at(index)

    def signer_count(self) -> int:
        return self.registry.signer_count()

    # Ledger

    def submit_transaction(self, caller: str, destination: str, amount: int, payload=b"") -> int:
        return self.ledger.submit(caller, destination, amount, payload)

    def approve_transaction(self, caller: str, tx_id: int) -> None:
        self.ledger.approve(caller, tx_id)

    def execute_transaction(self, caller: str, tx_id: int) -> None:
        self.ledger.execute(caller, tx_id)

    def transaction_count(self) -> int:
        return self.ledger.transaction_count()

    def get_transaction(self, tx_id: int) -> Transaction:
        return self.ledger.get_transaction(tx_id)

    def approvals(self, tx_id: int, signer: str) -> bool:
        """Whether ``signer`` has approved ``tx_id``"""
        return self.ledger.has_approved(tx_id, signer)

    def pending_transactions(self) -> List[Transaction]:
        return [self.ledger.get_transaction(i) for i in self.ledger.pending_ids()]

    def to_dict(self) -> dict:
        return {
            'wallet_id': self.wallet_id,
            'signers': list(self.registry.signers),
            'threshold': self.registry.threshold,
            'balance': self.balance(),
            'transaction_count': self.transaction_count(),
        }
