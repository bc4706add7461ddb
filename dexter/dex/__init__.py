"""
Dexter venues: shared models, constant-product pricing and venue adapters.
"""

from .base import BaseDex
from .cswap import CSwap
from .models import (
    AddressType,
    Asset,
    AssetBalance,
    LiquidityPool,
    PayToAddress,
    PlutusScript,
    SpendUTxO,
    SwapFee,
    Token,
    UTxO,
)
from .pricing import (
    ConstantProductPricing,
    ImpactConvention,
    corresponding_reserves,
    minimum_receive,
    on_chain_slippage_bps,
)
from .saturnswap_amm import SaturnSwapAMM

__all__ = [
    # Adapters
    "BaseDex", "CSwap", "SaturnSwapAMM",
    # Models
    "AddressType", "Asset", "AssetBalance", "LiquidityPool", "PayToAddress",
    "PlutusScript", "SpendUTxO", "SwapFee", "Token", "UTxO",
    # Pricing
    "ConstantProductPricing", "ImpactConvention", "corresponding_reserves",
    "minimum_receive", "on_chain_slippage_bps",
]
