import hashlib
from typing import Iterable, Tuple

from .errors import ConfigurationError, NotAuthorized


class Registry:
    """Immutable signer set and quorum size"""

    def __init__(self, signers: Iterable[str], threshold: int):
        signers = tuple(signers)

        if not signers:
            raise ConfigurationError("Signer list must not be empty")

        if len(set(signers)) != len(signers):
            duplicates = sorted({s for s in signers if signers.count(s) > 1})
            raise ConfigurationError(
                "Duplicate signers not allowed",
                context={'duplicates': duplicates}
            )

        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise ConfigurationError(f"Threshold must be an integer, got {threshold!r}")

        if threshold < 1:
            raise ConfigurationError(f"Threshold must be at least 1, got {threshold}")

        if threshold > len(signers):
            raise ConfigurationError(
                f"Threshold {threshold} exceeds signer count {len(signers)}",
                context={'threshold': threshold, 'signer_count': len(signers)}
            )

        self._signers = signers
        self._signer_set = frozenset(signers)
        self._threshold = threshold
        self.registry_id = self._generate_registry_id()

    def _generate_registry_id(self) -> str:
        """Deterministic ID from the ordered signer set and threshold"""
        hasher = hashlib.sha256()
        hasher.update(b"MULTISIG_REGISTRY_V1")

        for signer in self._signers:
            hasher.update(signer.encode())
            hasher.update(b"\x00")

        hasher.update(self._threshold.to_bytes(4, 'little'))
        return hasher.hexdigest()

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def signers(self) -> Tuple[str, ...]:
        return self._signers

    def is_signer(self, identity: str) -> bool:
        """Check if identity belongs to the signer set"""
        return identity in self._signer_set

    def signer_at(self, index: int) -> str:
        """Signer at ``index`` in construction order"""
        if isinstance(index, bool) or not isinstance(index, int):
            raise IndexError(f"Signer index must be an integer, got {index!r}")
        if not 0 <= index < len(self._signers):
            raise IndexError(f"Signer index {index} out of range")
        return self._signers[index]

    def signer_count(self) -> int:
        return len(self._signers)

    def require_signer(self, caller: str, action: str) -> None:
        if not self.is_signer(caller):
            raise NotAuthorized("Not a signer", context={'caller': caller, 'action': action})

    def to_dict(self) -> dict:
        return {
            'registry_id': self.registry_id,
            'signers': list(self._signers),
            'threshold': self._threshold,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Registry':
        registry = cls(data['signers'], data['threshold'])
        expected = data.get('registry_id')
        if expected is not None and expected != registry.registry_id:
            raise ConfigurationError("Registry ID does not match signer set")
        return registry
