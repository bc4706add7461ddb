"""
Dexter Constants

This module consolidates global constants and the `.env` backed logger
settings used throughout the codebase. Venue specific on-chain constants
live beside each venue adapter.
"""
import ast
import re
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
    'DEXTER_LOG_FILE':                 '',
    'LOG_INCLUDE_RESPONSE_CONTENT':    'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5
LOG_MAX_PATH_LENGTH = 320  # Maximum URL length to log (truncates longer URLs)


# ==================================================================================
# NATIVE UNIT
# ==================================================================================
LOVELACE = 'lovelace'
NATIVE_DECIMALS = 6
POLICY_ID_HEX_LENGTH = 56


# ==================================================================================
# PRICING DEFAULTS
# ==================================================================================
DEFAULT_FEE_DENOMINATOR = 10_000
BPS_DENOMINATOR = 10_000


# ==================================================================================
# PLATFORM FEE DEFAULTS
# ==================================================================================
DEFAULT_PLATFORM_FEE_ADDRESS = (
    'addr1q9s6m9d8yedfcf53yhq5j5zsg0s58wpzamwexrxpfelgz2wgk0s9l9fqc93tyc8zu4z7hp9dlska2kew9trdg8nscjcq3sk5s3'
)
DEFAULT_PLATFORM_FEE_LOVELACE = 2_000_000


# ==================================================================================
# TRANSACTION METADATA
# ==================================================================================
METADATA_MESSAGE_KEY = 674  # CIP-20 transaction message label


# ==================================================================================
# VALIDATION PATTERNS
# ==================================================================================
# Hex strings may be empty (e.g. the native unit's policy id)
VALID_HEX_PATTERN = re.compile(r'^(?:[0-9a-fA-F]{2})*$')


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

    def __hash__(self):
        return hash(bool(self))


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
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
