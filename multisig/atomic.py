"""
All-or-nothing boundary around the external transfer call.

Participants are snapshotted on entry. If anything inside the block raises,
every participant is restored in reverse order and the exception propagates.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Tuple


class Checkpointable(ABC):
    """State that can be captured and put back verbatim"""

    @abstractmethod
    def snapshot(self) -> Any:
        pass

    @abstractmethod
    def restore(self, state: Any) -> None:
        pass


class AtomicBoundary:

    def __init__(self, *participants: Checkpointable):
        self.participants = participants
        self._snapshots: List[Tuple[Checkpointable, Any]] = []
        self.rolled_back = False

    def __enter__(self) -> 'AtomicBoundary':
        self._snapshots = [(p, p.snapshot()) for p in self.participants]
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            for participant, state in reversed(self._snapshots):
                participant.restore(state)
            self.rolled_back = True
        self._snapshots = []
        return False
