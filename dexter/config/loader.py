"""
Dexter TOML Configuration Loader

Loads dexter.toml with environment variable overrides.  Every section is a
dataclass with ``from_dict`` and ``apply_env``; pure components (fee
composer, order assemblers) receive these objects explicitly and never read
the process environment themselves.

Environment variable mapping:
    [request] timeout           → DEXTER_REQUEST_TIMEOUT
    [request] proxy_url         → DEXTER_PROXY_URL
    [platform_fee] address      → DEXTER_PLATFORM_FEE_ADDRESS
    [platform_fee] lovelace     → DEXTER_PLATFORM_FEE_LOVELACE
    [saturnswap] base_url       → SATURN_API_BASE_URL
    [saturnswap] api_key        → SATURN_API_KEY (or SATURN_API_TOKEN)

API keys MUST come from env vars, never TOML.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dexter.constants import DEFAULT_PLATFORM_FEE_ADDRESS, DEFAULT_PLATFORM_FEE_LOVELACE
from dexter.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SATURN_API_BASE_URL = "https://api.saturnswap.xyz"


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class RequestConfig:
    """[request] section: outbound HTTP settings for venue APIs."""
    timeout: float = 5.0
    proxy_url: str = ""
    retries: int = 3

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequestConfig":
        return cls(
            timeout=float(data.get("timeout", 5.0)),
            proxy_url=data.get("proxy_url", ""),
            retries=int(data.get("retries", 3)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("DEXTER_REQUEST_TIMEOUT"):
            self.timeout = float(v)
        if v := os.environ.get("DEXTER_PROXY_URL"):
            self.proxy_url = v


@dataclass
class PlatformFeeConfig:
    """[platform_fee] section."""
    address: str = DEFAULT_PLATFORM_FEE_ADDRESS
    lovelace: int = DEFAULT_PLATFORM_FEE_LOVELACE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlatformFeeConfig":
        return cls(
            address=data.get("address", DEFAULT_PLATFORM_FEE_ADDRESS),
            lovelace=int(data.get("lovelace", DEFAULT_PLATFORM_FEE_LOVELACE)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("DEXTER_PLATFORM_FEE_ADDRESS"):
            self.address = v
        if v := os.environ.get("DEXTER_PLATFORM_FEE_LOVELACE"):
            try:
                self.lovelace = int(v)
            except ValueError:
                raise ConfigurationError(f"DEXTER_PLATFORM_FEE_LOVELACE must be an integer: {v!r}") from None

    @property
    def enabled(self) -> bool:
        return bool(self.address) and self.lovelace > 0


@dataclass
class SaturnSwapConfig:
    """[saturnswap] section."""
    base_url: str = DEFAULT_SATURN_API_BASE_URL
    api_key: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SaturnSwapConfig":
        return cls(base_url=data.get("base_url", DEFAULT_SATURN_API_BASE_URL))

    def apply_env(self) -> None:
        if v := os.environ.get("SATURN_API_BASE_URL"):
            self.base_url = v
        if v := os.environ.get("SATURN_API_KEY") or os.environ.get("SATURN_API_TOKEN"):
            self.api_key = v

    @property
    def authorization(self) -> Optional[str]:
        if not self.api_key:
            return None
        return self.api_key if self.api_key.startswith("Bearer ") else f"Bearer {self.api_key}"


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class DexterConfig:
    """Complete toolkit configuration."""
    should_fetch_metadata: bool = True
    should_submit_orders: bool = False
    metadata_msg_branding: str = "Dexter"
    request: RequestConfig = field(default_factory=RequestConfig)
    platform_fee: PlatformFeeConfig = field(default_factory=PlatformFeeConfig)
    saturnswap: SaturnSwapConfig = field(default_factory=SaturnSwapConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DexterConfig":
        general = data.get("dexter", {})
        return cls(
            should_fetch_metadata=general.get("should_fetch_metadata", True),
            should_submit_orders=general.get("should_submit_orders", False),
            metadata_msg_branding=general.get("metadata_msg_branding", "Dexter"),
            request=RequestConfig.from_dict(data.get("request", {})),
            platform_fee=PlatformFeeConfig.from_dict(data.get("platform_fee", {})),
            saturnswap=SaturnSwapConfig.from_dict(data.get("saturnswap", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "DexterConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults with environment overrides applied.
        """
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.request.apply_env()
        self.platform_fee.apply_env()
        self.saturnswap.apply_env()

        if v := os.environ.get("DEXTER_SUBMIT_ORDERS"):
            self.should_submit_orders = v.strip().lower() in ("1", "true", "yes")

    def validate(self) -> bool:
        """
        Raises:
            ConfigurationError: on the first invalid setting
        """
        if self.request.timeout <= 0:
            raise ConfigurationError(f"request.timeout must be positive: {self.request.timeout}")
        if self.request.retries < 0:
            raise ConfigurationError(f"request.retries must be >= 0: {self.request.retries}")
        if self.platform_fee.lovelace < 0:
            raise ConfigurationError(f"platform_fee.lovelace must be >= 0: {self.platform_fee.lovelace}")
        if not self.saturnswap.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"saturnswap.base_url must be an http(s) URL: {self.saturnswap.base_url}")
        return True


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> DexterConfig:
    """
    Load toolkit configuration.

    Resolution order:
        1. Explicit *path* argument
        2. DEXTER_CONFIG env var
        3. ./dexter.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("DEXTER_CONFIG", "dexter.toml")

    return DexterConfig.from_file(path)
