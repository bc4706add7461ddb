"""
Dexter: multi-venue DEX order construction

Prices swaps against constant-product pools and assembles the payments a
wallet needs to place or cancel orders.  For direct module access, import
from submodules:

    from dexter.dex import CSwap, LiquidityPool
    from dexter.plutus import encode, decode
    from dexter.providers import MockDataProvider
"""

from .config import DexterConfig, RequestConfig, load_config
from .constants import LOVELACE
from .dexter import Dexter

__all__ = ['Dexter', 'DexterConfig', 'RequestConfig', 'LOVELACE', 'load_config']
