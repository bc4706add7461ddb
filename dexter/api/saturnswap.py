"""
SaturnSwap aggregator API client.

Only the AMM facade is used:

  GET  /v1/aggregator/pools             {"pools": [AmmPool, ...]}
  GET  /v1/aggregator/pools/by-pool     ?id=<poolId>
  POST /v1/aggregator/amm/quote         AmmQuoteRequest -> AmmQuoteResponse
  POST /v1/aggregator/amm/build-order   AmmBuildRequest -> {"unsignedCborHex", ...}

Raw payloads are returned untouched; the venue adapter validates them.
"""

from typing import Any, Dict, List, Optional

import httpx

from ..config import RequestConfig, SaturnSwapConfig
from ..exceptions import ApiError
from .base import BaseApi


class SaturnSwapApi(BaseApi):

    def __init__(
        self,
        saturnswap_config: Optional[SaturnSwapConfig] = None,
        request_config: Optional[RequestConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = saturnswap_config or SaturnSwapConfig()
        headers = {}
        if self.config.authorization:
            headers["Authorization"] = self.config.authorization
        super().__init__(self.config.base_url, request_config, headers=headers, client=client)

    async def get_amm_pools(self) -> List[Dict[str, Any]]:
        data = await self.get("/v1/aggregator/pools")
        if not isinstance(data, dict):
            raise ApiError(f"Unexpected pools payload: {type(data).__name__}")
        pools = data.get("pools") or []
        if not isinstance(pools, list):
            raise ApiError("Pools payload 'pools' is not a list")
        return pools

    async def get_amm_pool_by_id(self, pool_id: str) -> Optional[Dict[str, Any]]:
        return await self.get("/v1/aggregator/pools/by-pool", params={"id": pool_id})

    async def amm_quote(
        self,
        pool_id: str,
        direction: str,
        amount: int,
        slippage_bps: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await self.post("/v1/aggregator/amm/quote", _amm_request(pool_id, direction, amount, slippage_bps))

    async def amm_build_order(
        self,
        pool_id: str,
        direction: str,
        amount: int,
        change_address: str,
        slippage_bps: Optional[int] = None,
        partner_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = _amm_request(pool_id, direction, amount, slippage_bps)
        payload["changeAddress"] = change_address
        if partner_address:
            payload["partnerAddress"] = partner_address
        return await self.post("/v1/aggregator/amm/build-order", payload)


def _amm_request(pool_id: str, direction: str, amount: int, slippage_bps: Optional[int]) -> Dict[str, Any]:
    if direction not in ("in", "out"):
        raise ValueError(f"direction must be 'in' or 'out', got {direction!r}")
    payload: Dict[str, Any] = {"poolId": pool_id, "direction": direction}
    payload["swapInAmount" if direction == "in" else "swapOutAmount"] = amount
    if slippage_bps is not None:
        payload["slippageBps"] = slippage_bps
    return payload
