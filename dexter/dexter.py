"""
Dexter facade: venue registry plus provider wiring and request factories.
"""

from __future__ import annotations

from typing import Dict, Optional

from dexter.config import DexterConfig, RequestConfig
from dexter.dex.base import BaseDex
from dexter.dex.cswap import CSwap
from dexter.dex.saturnswap_amm import SaturnSwapAMM
from dexter.exceptions import WalletNotLoaded
from dexter.logger import get_logger
from dexter.providers.data import BaseDataProvider
from dexter.providers.wallet import BaseWalletProvider
from dexter.requests import CancelSwapRequest, FetchRequest, SwapRequest

logger = get_logger(__name__)


class Dexter:

    def __init__(self, config: Optional[DexterConfig] = None, request_config: Optional[RequestConfig] = None):
        self.config = config or DexterConfig()
        if request_config is not None:
            self.config.request = request_config
        self.request_config = self.config.request

        self.data_provider: Optional[BaseDataProvider] = None
        self.wallet_provider: Optional[BaseWalletProvider] = None

        self.available_dexes: Dict[str, BaseDex] = {
            CSwap.identifier: CSwap(),
            SaturnSwapAMM.identifier: SaturnSwapAMM(self.config.saturnswap, self.request_config),
        }
        logger.debug(f"Dexter ready with venues: {', '.join(self.available_dexes)}")

    def dex_by_name(self, name: str) -> Optional[BaseDex]:
        return self.available_dexes.get(name)

    def register_dex(self, dex: BaseDex) -> "Dexter":
        self.available_dexes[dex.identifier] = dex
        return self

    def with_data_provider(self, data_provider: BaseDataProvider) -> "Dexter":
        self.data_provider = data_provider
        return self

    def with_wallet_provider(self, wallet_provider: BaseWalletProvider) -> "Dexter":
        self.wallet_provider = wallet_provider
        return self

    def new_fetch_request(self) -> FetchRequest:
        return FetchRequest(self)

    def new_swap_request(self) -> SwapRequest:
        return SwapRequest(self)

    def new_cancel_swap_request(self) -> CancelSwapRequest:
        if self.wallet_provider is None:
            raise WalletNotLoaded("Wallet provider must be set before requesting a cancel order")
        if not self.wallet_provider.is_wallet_loaded:
            raise WalletNotLoaded("Wallet must be loaded before requesting a cancel order")
        return CancelSwapRequest(self)

    async def close(self) -> None:
        """Release HTTP clients held by API-backed venues."""
        for dex in self.available_dexes.values():
            api = getattr(dex, "api", None)
            if api is not None:
                await api.close()
