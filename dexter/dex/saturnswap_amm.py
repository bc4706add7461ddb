"""
SaturnSwap AMM Venue Adapter

API-backed constant-product venue.  Pools come from the aggregator REST API
rather than chain datums, and orders are built server-side: the adapter
only quotes locally, hands out the unsigned transaction the API builds and
can have a wallet sign and submit it.

Price impact uses the marginal convention (pre vs post-trade marginal
price), so its figures are not comparable with CSwap's.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Sequence

from dexter.api.saturnswap import SaturnSwapApi
from dexter.config import RequestConfig, SaturnSwapConfig
from dexter.constants import LOVELACE
from dexter.dex.base import BaseDex
from dexter.dex.models import Asset, LiquidityPool, PayToAddress, SpendUTxO, SwapFee, Token, UTxO
from dexter.dex.pricing import ConstantProductPricing, ImpactConvention
from dexter.exceptions import ApiError, InvalidPoolError, MalformedRecord, UnsupportedOperation, WalletNotLoaded
from dexter.logger import get_logger
from dexter.plutus.template import DatumParameters
from dexter.providers.wallet import BaseWalletProvider, TransactionStatus

logger = get_logger(__name__)


def unit_to_token(unit: Any) -> Token:
    """
    ``lovelace`` (or empty) is the native unit, anything else ``policy.name``.

    Raises:
        MalformedRecord: unit is not a string or not valid hex
    """
    if unit is None or unit == "" or unit == LOVELACE:
        return LOVELACE
    if not isinstance(unit, str):
        raise MalformedRecord(f"Asset unit must be a string, got {type(unit).__name__}")
    try:
        return Asset.from_identifier(unit)
    except ValueError as e:
        raise MalformedRecord(f"Invalid asset unit {unit!r}: {e}") from e


def _unit_of(raw: Any) -> Any:
    # The backend sends either {"unit": "..."} or the bare unit string
    if isinstance(raw, Mapping):
        return raw.get("unit")
    return raw


def _to_int(raw: Any, name: str) -> int:
    if isinstance(raw, bool):
        raise MalformedRecord(f"{name} must be an integer, got {raw!r}")
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        raise MalformedRecord(f"{name} must be an integer, got {raw!r}") from None
    if not value.is_finite() or value != value.to_integral_value():
        raise MalformedRecord(f"{name} must be an integer, got {raw!r}")
    return int(value)


class SaturnSwapAMM(BaseDex):
    """SaturnSwap AMM pools through the aggregator API."""

    identifier = "SaturnSwap-AMM"
    pricing = ConstantProductPricing(fee_denominator=10_000, impact_convention=ImpactConvention.MARGINAL)

    def __init__(
        self,
        saturnswap_config: Optional[SaturnSwapConfig] = None,
        request_config: Optional[RequestConfig] = None,
        api: Optional[SaturnSwapApi] = None,
    ):
        self.api = api or SaturnSwapApi(saturnswap_config, request_config)

    async def liquidity_pools(self, provider=None) -> List[LiquidityPool]:
        """
        All AMM pools the API lists.

        Raises:
            ApiError: the pools endpoint itself failed
        """
        raw_pools = await self.api.get_amm_pools()
        pools: List[LiquidityPool] = []
        for raw in raw_pools:
            pool = self.pool_from_record(raw)
            if pool is not None:
                pools.append(pool)

        dropped = len(raw_pools) - len(pools)
        if dropped:
            logger.warning(f"SaturnSwap-AMM: dropped {dropped} of {len(raw_pools)} pool records")
        return pools

    def pool_from_record(self, raw: Any) -> Optional[LiquidityPool]:
        """Validate one raw pool record; None when any required field is unusable."""
        if not isinstance(raw, Mapping):
            logger.debug(f"SaturnSwap-AMM: pool record is not an object: {raw!r}")
            return None

        pool_id = raw.get("poolId") or raw.get("id")
        try:
            if not pool_id or not isinstance(pool_id, str):
                raise MalformedRecord("missing pool id")
            asset_a = unit_to_token(_unit_of(raw.get("assetA")))
            asset_b = unit_to_token(_unit_of(raw.get("assetB")))
            reserve_a = _to_int(raw.get("reserveA", 0), "reserveA")
            reserve_b = _to_int(raw.get("reserveB", 0), "reserveB")
            fee = raw.get("feePercent", 0)
            if isinstance(fee, bool) or not isinstance(fee, (int, float, str)):
                raise MalformedRecord(f"feePercent must be numeric, got {fee!r}")

            return LiquidityPool(
                dex=self.identifier,
                asset_a=asset_a,
                asset_b=asset_b,
                reserve_a=reserve_a,
                reserve_b=reserve_b,
                pool_fee_percent=Decimal(str(fee)),
                identifier=pool_id,
            )
        except (MalformedRecord, InvalidPoolError, InvalidOperation) as e:
            logger.debug(f"SaturnSwap-AMM: skipping pool {pool_id!r}: {e}")
            return None

    # -----------------------------------------------------------------------
    # Server-built orders
    # -----------------------------------------------------------------------

    async def amm_quote(self, pool_id: str, direction: str, amount: int, slippage_bps: Optional[int] = None):
        return await self.api.amm_quote(pool_id, direction, amount, slippage_bps)

    async def create_amm_unsigned_hex(
        self,
        pool_id: str,
        direction: str,
        amount: int,
        change_address: str,
        slippage_bps: Optional[int] = None,
        partner_address: Optional[str] = None,
    ) -> str:
        """
        Unsigned transaction CBOR built by the API, ready for local signing.

        Raises:
            ApiError: the API did not return a transaction
        """
        data = await self.api.amm_build_order(
            pool_id, direction, amount, change_address, slippage_bps, partner_address
        )
        unsigned = data.get("unsignedCborHex") if isinstance(data, Mapping) else None
        if not unsigned:
            raise ApiError(f"AMM build for pool {pool_id} did not return an unsigned CBOR hex")
        return unsigned

    async def build_amm_sign_submit(
        self,
        pool_id: str,
        direction: str,
        amount: int,
        change_address: str,
        wallet: Optional[BaseWalletProvider],
        slippage_bps: Optional[int] = None,
        partner_address: Optional[str] = None,
    ) -> str:
        """
        Have the API build the order, then sign and submit it with ``wallet``.

        Returns:
            str: the submitted transaction hash

        Raises:
            WalletNotLoaded: no wallet, or the wallet is not loaded
            ApiError: the API did not return a transaction
        """
        if wallet is None or not wallet.is_wallet_loaded:
            raise WalletNotLoaded("A loaded wallet is required to sign SaturnSwap-AMM orders")

        unsigned = await self.create_amm_unsigned_hex(
            pool_id, direction, amount, change_address, slippage_bps, partner_address
        )
        transaction = wallet.new_transaction_from_hex(unsigned)
        try:
            transaction.status = TransactionStatus.SIGNING
            await transaction.sign()
            transaction.status = TransactionStatus.SUBMITTING
            await transaction.submit()
            transaction.status = TransactionStatus.SUBMITTED
        except Exception as e:
            logger.error(f"SaturnSwap-AMM order on {pool_id} failed: {e}")
            transaction.fail(e)
            raise

        logger.info(f"SaturnSwap-AMM order on {pool_id} submitted: {transaction.hash}")
        return transaction.hash

    def build_swap_order(
        self,
        liquidity_pool: LiquidityPool,
        swap_parameters: DatumParameters,
        spend_utxos: Sequence[SpendUTxO] = (),
    ) -> List[PayToAddress]:
        raise UnsupportedOperation(
            "SaturnSwap-AMM orders are built by the API: use create_amm_unsigned_hex and sign locally"
        )

    def build_cancel_swap_order(self, tx_outputs: Sequence[UTxO], return_address: str) -> List[PayToAddress]:
        raise UnsupportedOperation("SaturnSwap-AMM does not support cancelling orders")

    def swap_order_fees(self) -> List[SwapFee]:
        return []
