"""Wallet configuration with layered precedence: defaults < YAML file < overrides."""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml

from .errors import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class WalletConfig:
    """Signer set, quorum and runtime settings for one wallet"""

    signers: List[str]
    threshold: int
    initial_balance: int = 0
    log_level: str = "INFO"
    log_json: bool = False

    def __post_init__(self):
        if not isinstance(self.signers, (list, tuple)) or not self.signers:
            raise ConfigurationError("Config must list at least one signer")
        if any(not isinstance(s, str) or not s for s in self.signers):
            raise ConfigurationError("Signers must be non-empty strings")
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
            raise ConfigurationError(f"Threshold must be an integer, got {self.threshold!r}")
        if isinstance(self.initial_balance, bool) or not isinstance(self.initial_balance, int) \
                or self.initial_balance < 0:
            raise ConfigurationError(
                f"Initial balance must be a non-negative integer, got {self.initial_balance!r}"
            )
        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level {self.log_level!r}")

    @classmethod
    def two_of_three(cls, signers: Sequence[str], initial_balance: int = 0) -> 'WalletConfig':
        """Three signers, any two of which can move funds"""
        if len(signers) != 3:
            raise ConfigurationError(f"Two-of-three needs exactly 3 signers, got {len(signers)}")
        return cls(signers=list(signers), threshold=2, initial_balance=initial_balance)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WalletConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")

        missing = [name for name in ('signers', 'threshold') if name not in data]
        if missing:
            raise ConfigurationError(f"Missing config keys: {', '.join(missing)}")

        values = dict(data)
        if isinstance(values['signers'], tuple):
            values['signers'] = list(values['signers'])
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULTS: Dict[str, Any] = {
    'initial_balance': 0,
    'log_level': "INFO",
    'log_json': False,
}


def load_config(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> WalletConfig:
    """
    Build a WalletConfig.

    Priority order:
    1. Explicit overrides (highest priority)
    2. YAML file at ``path``
    3. Built-in defaults (lowest priority)
    """
    config = dict(DEFAULTS)

    if path is not None:
        config.update(_load_yaml(Path(path)))

    if overrides:
        config.update(overrides)

    return WalletConfig.from_dict(config)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    # Settings may sit under a top-level ``wallet`` key
    nested = data.get('wallet')
    return nested if isinstance(nested, dict) else data
