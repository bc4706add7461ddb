"""
Test suite for Dexter configuration and logging

Covers:
  - dexter.toml loading and section defaults
  - Environment variable overrides
  - Validation
  - Logger setup and log sanitising
"""

import logging

import pytest

# ---------------------------------------------------------------------------
# Config imports
# ---------------------------------------------------------------------------
from dexter.config import (
    DexterConfig,
    PlatformFeeConfig,
    RequestConfig,
    SaturnSwapConfig,
    load_config,
)
from dexter.constants import DEFAULT_PLATFORM_FEE_ADDRESS, DEFAULT_PLATFORM_FEE_LOVELACE

# ---------------------------------------------------------------------------
# Logger imports
# ---------------------------------------------------------------------------
from dexter.logger import LogManager, TerminalSafeFormatter, get_logger

# ---------------------------------------------------------------------------
# Exception imports
# ---------------------------------------------------------------------------
from dexter.exceptions import ConfigurationError


ENV_VARS = (
    "DEXTER_CONFIG",
    "DEXTER_REQUEST_TIMEOUT",
    "DEXTER_PROXY_URL",
    "DEXTER_PLATFORM_FEE_ADDRESS",
    "DEXTER_PLATFORM_FEE_LOVELACE",
    "DEXTER_SUBMIT_ORDERS",
    "SATURN_API_BASE_URL",
    "SATURN_API_KEY",
    "SATURN_API_TOKEN",
)

CONFIG_TOML = """
[dexter]
should_submit_orders = true
metadata_msg_branding = "Acme"

[request]
timeout = 10
retries = 1
proxy_url = "https://proxy.test"

[platform_fee]
address = "addr1qconfigured"
lovelace = 1500000

[saturnswap]
base_url = "https://saturn.test"
api_key = "never-read-from-file"
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "dexter.toml"
    path.write_text(CONFIG_TOML)
    return path


# ============================================================================
#  LOADING
# ============================================================================

class TestLoading:
    """TOML and defaults."""

    def test_defaults(self):
        cfg = DexterConfig()
        assert cfg.should_fetch_metadata is True
        assert cfg.should_submit_orders is False
        assert cfg.request.timeout == 5.0
        assert cfg.request.retries == 3
        assert cfg.platform_fee.address == DEFAULT_PLATFORM_FEE_ADDRESS
        assert cfg.platform_fee.lovelace == DEFAULT_PLATFORM_FEE_LOVELACE
        assert cfg.saturnswap.base_url == "https://api.saturnswap.xyz"
        assert cfg.saturnswap.authorization is None

    def test_from_file(self, config_file):
        cfg = DexterConfig.from_file(str(config_file))

        assert cfg.should_submit_orders is True
        assert cfg.metadata_msg_branding == "Acme"
        assert cfg.request.timeout == 10.0
        assert cfg.request.retries == 1
        assert cfg.request.proxy_url == "https://proxy.test"
        assert cfg.platform_fee.address == "addr1qconfigured"
        assert cfg.platform_fee.lovelace == 1_500_000
        assert cfg.saturnswap.base_url == "https://saturn.test"

    def test_api_key_not_read_from_file(self, config_file):
        cfg = DexterConfig.from_file(str(config_file))
        assert cfg.saturnswap.api_key == ""

    def test_missing_file(self, tmp_path):
        cfg = DexterConfig.from_file(str(tmp_path / "absent.toml"))
        assert cfg == DexterConfig()

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "dexter.toml"
        path.write_text("[request\ntimeout = ")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            DexterConfig.from_file(str(path))

    def test_load_config_from_env_path(self, config_file, monkeypatch):
        monkeypatch.setenv("DEXTER_CONFIG", str(config_file))
        assert load_config().metadata_msg_branding == "Acme"

    def test_load_config_explicit_path(self, config_file):
        assert load_config(str(config_file)).request.retries == 1


# ============================================================================
#  ENVIRONMENT OVERRIDES
# ============================================================================

class TestEnvironment:
    """Environment variables win over TOML."""

    def test_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("DEXTER_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("DEXTER_PLATFORM_FEE_ADDRESS", "addr1qenv")
        monkeypatch.setenv("DEXTER_PLATFORM_FEE_LOVELACE", "0")
        monkeypatch.setenv("SATURN_API_BASE_URL", "https://saturn.env")
        monkeypatch.setenv("DEXTER_SUBMIT_ORDERS", "no")

        cfg = DexterConfig.from_file(str(config_file))

        assert cfg.request.timeout == 2.5
        assert cfg.platform_fee.address == "addr1qenv"
        assert cfg.platform_fee.lovelace == 0
        assert cfg.platform_fee.enabled is False
        assert cfg.saturnswap.base_url == "https://saturn.env"
        assert cfg.should_submit_orders is False

    def test_api_key(self, monkeypatch):
        monkeypatch.setenv("SATURN_API_KEY", "key")
        monkeypatch.setenv("SATURN_API_TOKEN", "token")
        cfg = SaturnSwapConfig()
        cfg.apply_env()
        assert cfg.authorization == "Bearer key"

    def test_api_token_fallback(self, monkeypatch):
        monkeypatch.setenv("SATURN_API_TOKEN", "Bearer token")
        cfg = SaturnSwapConfig()
        cfg.apply_env()
        assert cfg.authorization == "Bearer token"

    def test_bad_fee_amount(self, monkeypatch):
        monkeypatch.setenv("DEXTER_PLATFORM_FEE_LOVELACE", "two ada")
        with pytest.raises(ConfigurationError):
            PlatformFeeConfig().apply_env()

    def test_submit_orders_flag(self, monkeypatch):
        monkeypatch.setenv("DEXTER_SUBMIT_ORDERS", "true")
        cfg = DexterConfig()
        cfg.apply_env()
        assert cfg.should_submit_orders is True


# ============================================================================
#  VALIDATION
# ============================================================================

class TestValidation:
    """DexterConfig.validate."""

    def test_defaults_valid(self):
        assert DexterConfig().validate() is True

    @pytest.mark.parametrize("cfg", [
        DexterConfig(request=RequestConfig(timeout=0)),
        DexterConfig(request=RequestConfig(retries=-1)),
        DexterConfig(platform_fee=PlatformFeeConfig(lovelace=-1)),
        DexterConfig(saturnswap=SaturnSwapConfig(base_url="ftp://saturn.test")),
    ])
    def test_invalid(self, cfg):
        with pytest.raises(ConfigurationError):
            cfg.validate()


# ============================================================================
#  LOGGING
# ============================================================================

class TestLogging:
    """Package logger setup."""

    def test_singleton(self):
        assert LogManager() is LogManager()

    def test_get_logger_configures_package(self):
        logger = get_logger("dexter.tests")
        assert logger.name == "dexter.tests"
        assert LogManager().is_configured
        assert logging.getLogger("dexter").handlers

    def test_venue_modules_use_package_logger(self):
        from dexter.dex import cswap, cswap_orderbook, saturnswap_amm

        assert LogManager().is_configured
        for module in (cswap, cswap_orderbook, saturnswap_amm):
            assert module.logger.name.startswith("dexter.dex.")
            assert module.logger is get_logger(module.__name__)
        assert logging.getLogger("dexter").handlers

    def test_sanitize(self):
        assert TerminalSafeFormatter.sanitize("\x1b[31mred\x1b[0m\r\x07") == "red"
        assert TerminalSafeFormatter.sanitize("tab\tok\n") == "tab\tok\n"

    def test_invalid_format_falls_back(self):
        assert LogManager.validate_log_format("%(nope)s") == str(LogManager.validate_log_format(""))
