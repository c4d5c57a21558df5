"""
BridgeStake Configuration

Loads bridge and pool settings from TOML.
Environment variables override TOML values.
"""

from .loader import (
    BridgeConfig,
    DeploymentConfig,
    PoolConfig,
    load_config,
    parse_amount,
    parse_int,
)

__all__ = [
    "BridgeConfig",
    "DeploymentConfig",
    "PoolConfig",
    "load_config",
    "parse_amount",
    "parse_int",
]
