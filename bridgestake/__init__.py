"""
BridgeStake Package

Validator-gated cross-chain bridge and a staking pool that can relay
positions through it.

Core imports are lazily loaded. For direct module access, import from
submodules:

    from bridgestake.runtime import Runtime, ManualClock
    from bridgestake.bridge import BridgeGateway
    from bridgestake.staking import StakingPool
    from bridgestake.tokens import Token
"""

# Lazy imports so importing the package does not configure logging
def __getattr__(name):
    if name in ('Runtime', 'ManualClock'):
        from . import runtime
        return getattr(runtime, name)
    elif name == 'BridgeGateway':
        from .bridge import BridgeGateway
        return BridgeGateway
    elif name == 'StakingPool':
        from .staking import StakingPool
        return StakingPool
    elif name == 'Token':
        from .tokens import Token
        return Token
    elif name == 'BridgeStakeError':
        from .exceptions import BridgeStakeError
        return BridgeStakeError
    raise AttributeError(f"module 'bridgestake' has no attribute {name!r}")

__all__ = ['Runtime', 'ManualClock', 'BridgeGateway', 'StakingPool', 'Token', 'BridgeStakeError']
