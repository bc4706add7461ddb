"""
Dexter Configuration

Loads dexter.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    DexterConfig,
    PlatformFeeConfig,
    RequestConfig,
    SaturnSwapConfig,
    load_config,
)

__all__ = [
    "DexterConfig",
    "PlatformFeeConfig",
    "RequestConfig",
    "SaturnSwapConfig",
    "load_config",
]
