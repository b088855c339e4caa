"""
Notification channel for external observers.

Events are observational only: a failing subscriber is logged and never
affects ledger or pool state.
"""

import threading
from dataclasses import dataclass, asdict
from typing import Callable, List, Union

from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Submitted:
    tx_id: int
    destination: str
    amount: int
    name = "TransactionSubmitted"


@dataclass(frozen=True)
class Executed:
    tx_id: int
    name = "TransactionExecuted"


@dataclass(frozen=True)
class Deposited:
    sender: str
    amount: int
    balance: int
    name = "Deposit"


Event = Union[Submitted, Executed, Deposited]
Subscriber = Callable[[Event], None]


def event_to_dict(event: Event) -> dict:
    data = asdict(event)
    data['event'] = event.name
    return data


class EventBus:

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._history: List[Event] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` and return a function that removes it"""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: Event) -> None:
        with self._lock:
            self._history.append(event)
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception("event_subscriber_failed", event=event.name)

    @property
    def history(self) -> List[Event]:
        with self._lock:
            return list(self._history)
