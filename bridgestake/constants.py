"""
BridgeStake Constants

This module consolidates protocol constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: CHANGING THE VALUES BELOW CHANGES THE RULES EVERY DEPLOYED BRIDGE AND
# POOL ENFORCE. TRANSFER HASHES AND REWARD MATH ARE ONLY COMPATIBLE BETWEEN
# INSTANCES THAT AGREE ON THEM.

# ==================================================================================
# ARITHMETIC
# ==================================================================================
UINT256_MAX = 2 ** 256 - 1
TOKEN_DECIMALS = 18
TOKEN_UNIT = 10 ** TOKEN_DECIMALS

# Fixed-point scale of the reward-per-token accumulator
REWARD_PRECISION = 10 ** 18

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'


# ==================================================================================
# BRIDGE PARAMETERS
# ==================================================================================
BRIDGE_MIN_TRANSFER = 1 * TOKEN_UNIT
BRIDGE_MAX_TRANSFER = 1_000_000 * TOKEN_UNIT
BRIDGE_LOCK_PERIOD = 60 * 60  # 1 hour between initiation and release
MAX_VALIDATORS = 21
MIN_THRESHOLD = 1


# ==================================================================================
# STAKING PARAMETERS
# ==================================================================================
STAKE_MIN_AMOUNT = 1 * TOKEN_UNIT
STAKE_MAX_AMOUNT = 1_000_000 * TOKEN_UNIT
DEFAULT_MIN_STAKE_TIME = 7 * 24 * 60 * 60  # 7 days
MAX_REWARD_RATE = 1_000 * TOKEN_UNIT  # per second

WITHDRAWAL_WINDOW = 24 * 60 * 60
DEFAULT_DAILY_WITHDRAWAL_CAP = 100_000 * TOKEN_UNIT


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Only calls ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in LOGGER_DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
