"""
BridgeStake TOML Configuration Loader

Loads the [bridge] and [pool] sections of a deployment file with
environment variable overrides (dataclass + from_dict + from_file).

Environment variable mapping:
    [bridge] source_chain_id  → BRIDGESTAKE_SOURCE_CHAIN_ID
    [bridge] threshold        → BRIDGESTAKE_THRESHOLD
    [bridge] validators       → BRIDGESTAKE_VALIDATORS (comma separated)
    [pool] reward_rate        → BRIDGESTAKE_REWARD_RATE
    [pool] min_stake_time     → BRIDGESTAKE_MIN_STAKE_TIME
    [pool] daily_withdrawal_cap → BRIDGESTAKE_DAILY_WITHDRAWAL_CAP

Amounts are token base units. TOML integers stop at 2**63 - 1, so large
amounts may be written as strings, including exponent form ("100000e18").
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    BRIDGE_LOCK_PERIOD,
    BRIDGE_MAX_TRANSFER,
    BRIDGE_MIN_TRANSFER,
    DEFAULT_DAILY_WITHDRAWAL_CAP,
    DEFAULT_MIN_STAKE_TIME,
    MAX_REWARD_RATE,
    MAX_VALIDATORS,
    MIN_THRESHOLD,
    STAKE_MAX_AMOUNT,
    STAKE_MIN_AMOUNT,
    UINT256_MAX,
    WITHDRAWAL_WINDOW,
)
from ..crypto.address import is_null_address, is_valid_address, normalize_address
from ..exceptions import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)


def parse_amount(value: Any, name: str = "amount") -> int:
    """
    Parse an integer amount from an int or numeric string.

    Raises:
        ConfigurationError: if the value is not a non-negative integer
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got bool")
    if isinstance(value, int):
        result = value
    else:
        try:
            parsed = Decimal(str(value).strip().replace("_", ""))
        except InvalidOperation:
            raise ConfigurationError(f"{name} is not a number: {value!r}") from None
        if not parsed.is_finite():
            raise ConfigurationError(f"{name} is not a number: {value!r}")
        if parsed != parsed.to_integral_value():
            raise ConfigurationError(f"{name} must be a whole number of base units: {value!r}")
        result = int(parsed)
    if result < 0 or result > UINT256_MAX:
        raise ConfigurationError(f"{name} out of range: {value!r}")
    return result


def parse_int(value: Any, name: str) -> int:
    """Parse a plain integer setting (chain id, seconds, counts)."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got bool")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


    return result


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass
class BridgeConfig:
    """[bridge] section."""
    source_chain_id: int = 1
    threshold: int = 2
    validators: List[str] = field(default_factory=list)
    max_validators: int = MAX_VALIDATORS
    lock_period: int = BRIDGE_LOCK_PERIOD
    min_transfer: int = BRIDGE_MIN_TRANSFER
    max_transfer: int = BRIDGE_MAX_TRANSFER

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeConfig":
        return cls(
            source_chain_id=parse_int(data.get("source_chain_id", 1), "source_chain_id"),
            threshold=parse_int(data.get("threshold", 2), "threshold"),
            validators=list(data.get("validators", [])),
            max_validators=parse_int(data.get("max_validators", MAX_VALIDATORS), "max_validators"),
            lock_period=parse_int(data.get("lock_period", BRIDGE_LOCK_PERIOD), "lock_period"),
            min_transfer=parse_amount(data.get("min_transfer", BRIDGE_MIN_TRANSFER), "min_transfer"),
            max_transfer=parse_amount(data.get("max_transfer", BRIDGE_MAX_TRANSFER), "max_transfer"),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("BRIDGESTAKE_SOURCE_CHAIN_ID"):
            self.source_chain_id = parse_int(v, "BRIDGESTAKE_SOURCE_CHAIN_ID")
        if v := os.environ.get("BRIDGESTAKE_THRESHOLD"):
            self.threshold = parse_int(v, "BRIDGESTAKE_THRESHOLD")
        if v := os.environ.get("BRIDGESTAKE_VALIDATORS"):
            self.validators = [a.strip() for a in v.split(",") if a.strip()]

    def validate(self) -> None:
        if self.source_chain_id < 0:
            raise ConfigurationError("bridge.source_chain_id must be >= 0")
        if not MIN_THRESHOLD <= self.threshold <= self.max_validators:
            raise ConfigurationError(
                f"bridge.threshold must be in [{MIN_THRESHOLD}, {self.max_validators}]"
            )
        if self.max_validators > MAX_VALIDATORS:
            raise ConfigurationError(f"bridge.max_validators cannot exceed {MAX_VALIDATORS}")
        if len(self.validators) > self.max_validators:
            raise ConfigurationError("bridge.validators exceeds max_validators")
        seen = set()
        for address in self.validators:
            if not is_valid_address(address) or is_null_address(address):
                raise ConfigurationError(f"bridge.validators has invalid address {address!r}")
            normalized = normalize_address(address)
            if normalized in seen:
                raise ConfigurationError(f"bridge.validators lists {address} twice")
            seen.add(normalized)
        if self.lock_period < 0:
            raise ConfigurationError("bridge.lock_period must be >= 0")
        if not 0 < self.min_transfer <= self.max_transfer:
            raise ConfigurationError("bridge transfer bounds must satisfy 0 < min <= max")


@dataclass
class PoolConfig:
    """[pool] section."""
    reward_rate: int = 0
    min_stake_time: int = DEFAULT_MIN_STAKE_TIME
    min_stake: int = STAKE_MIN_AMOUNT
    max_stake: int = STAKE_MAX_AMOUNT
    daily_withdrawal_cap: int = DEFAULT_DAILY_WITHDRAWAL_CAP
    withdrawal_window: int = WITHDRAWAL_WINDOW
    supported_chains: List[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolConfig":
        return cls(
            reward_rate=parse_amount(data.get("reward_rate", 0), "reward_rate"),
            min_stake_time=parse_int(data.get("min_stake_time", DEFAULT_MIN_STAKE_TIME), "min_stake_time"),
            min_stake=parse_amount(data.get("min_stake", STAKE_MIN_AMOUNT), "min_stake"),
            max_stake=parse_amount(data.get("max_stake", STAKE_MAX_AMOUNT), "max_stake"),
            daily_withdrawal_cap=parse_amount(
                data.get("daily_withdrawal_cap", DEFAULT_DAILY_WITHDRAWAL_CAP),
                "daily_withdrawal_cap",
            ),
            withdrawal_window=parse_int(data.get("withdrawal_window", WITHDRAWAL_WINDOW), "withdrawal_window"),
            supported_chains=[parse_int(c, "supported_chains") for c in data.get("supported_chains", [])],
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("BRIDGESTAKE_REWARD_RATE"):
            self.reward_rate = parse_amount(v, "BRIDGESTAKE_REWARD_RATE")
        if v := os.environ.get("BRIDGESTAKE_MIN_STAKE_TIME"):
            self.min_stake_time = parse_int(v, "BRIDGESTAKE_MIN_STAKE_TIME")
        if v := os.environ.get("BRIDGESTAKE_DAILY_WITHDRAWAL_CAP"):
            self.daily_withdrawal_cap = parse_amount(v, "BRIDGESTAKE_DAILY_WITHDRAWAL_CAP")

    def validate(self) -> None:
        if self.reward_rate > MAX_REWARD_RATE:
            raise ConfigurationError(f"pool.reward_rate cannot exceed {MAX_REWARD_RATE}")
        if self.min_stake_time < 0:
            raise ConfigurationError("pool.min_stake_time must be >= 0")
        if not 0 < self.min_stake <= self.max_stake:
            raise ConfigurationError("pool stake bounds must satisfy 0 < min <= max")
        if self.daily_withdrawal_cap <= 0:
            raise ConfigurationError("pool.daily_withdrawal_cap must be > 0")
        if self.withdrawal_window <= 0:
            raise ConfigurationError("pool.withdrawal_window must be > 0")
        if len(set(self.supported_chains)) != len(self.supported_chains):
            raise ConfigurationError("pool.supported_chains has duplicates")
        if any(c < 0 for c in self.supported_chains):
            raise ConfigurationError("pool.supported_chains must be >= 0")


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass
class DeploymentConfig:
    """Complete deployment configuration loaded from TOML."""
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    pool: PoolConfig = field(default_factory=PoolConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentConfig":
        return cls(
            bridge=BridgeConfig.from_dict(data.get("bridge", {})),
            pool=PoolConfig.from_dict(data.get("pool", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "DeploymentConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults with environment overrides applied.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {config_path}, using defaults")
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            try:
                raw = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigurationError(f"Invalid TOML in {config_path}: {exc}") from exc

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        self.bridge.apply_env()
        self.pool.apply_env()

    def validate(self) -> bool:
        """
        Validate all sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.bridge.validate()
        self.pool.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "bridge": {
                "source_chain_id": self.bridge.source_chain_id,
                "threshold": self.bridge.threshold,
                "validators": list(self.bridge.validators),
                "max_validators": self.bridge.max_validators,
                "lock_period": self.bridge.lock_period,
                "min_transfer": str(self.bridge.min_transfer),
                "max_transfer": str(self.bridge.max_transfer),
            },
            "pool": {
                "reward_rate": str(self.pool.reward_rate),
                "min_stake_time": self.pool.min_stake_time,
                "min_stake": str(self.pool.min_stake),
                "max_stake": str(self.pool.max_stake),
                "daily_withdrawal_cap": str(self.pool.daily_withdrawal_cap),
                "withdrawal_window": self.pool.withdrawal_window,
                "supported_chains": list(self.pool.supported_chains),
            },
        }


def load_config(path: Optional[str] = None) -> DeploymentConfig:
    """
    Load and validate deployment configuration.

    Resolution order:
        1. Explicit *path* argument
        2. BRIDGESTAKE_CONFIG env var
        3. ./bridgestake.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("BRIDGESTAKE_CONFIG", "bridgestake.toml")

    cfg = DeploymentConfig.from_file(path)
    cfg.validate()
    return cfg
