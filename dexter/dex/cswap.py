"""
CSwap Venue Adapter

Orderbook-settled constant-product venue on Cardano:
  - Pools live at a single script address with a datum naming both assets,
    the LP fee (per 10 000) and the LP token
  - Only ADA-paired pools are listed (ADA is always asset A)
  - Swaps are placed as orders at the orderbook address with an inline datum
    and picked up by CSwap batchers
  - Cancels spend the order output back to its owner with the V3 validator

Every order carries a 2 ADA deposit (returned) and a 0.69 ADA batcher fee
(consumed).  The platform take rate is applied to the target quantity before
encoding, so the datum already reflects what the batcher must deliver.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence

from dexter.constants import LOVELACE
from dexter.dex.base import BaseDex
from dexter.dex.definitions import cswap as definitions
from dexter.dex.models import (
    AddressType,
    Asset,
    AssetBalance,
    LiquidityPool,
    PayToAddress,
    PlutusScript,
    SpendUTxO,
    SwapFee,
    UTxO,
    is_native,
    token_from_policy_and_name,
)
from dexter.dex.pricing import ConstantProductPricing, ImpactConvention, on_chain_slippage_bps
from dexter.exceptions import (
    ConfigurationError,
    InvalidPoolError,
    MalformedRecord,
    MissingCredentials,
    MissingParameter,
    OrderNotFound,
    ShapeMismatch,
)
from dexter.logger import get_logger
from dexter.plutus import DefinitionBuilder, PlutusData, decode_hex, encode_hex
from dexter.plutus.template import DatumParameterKey as K, DatumParameters

logger = get_logger(__name__)


class CSwap(BaseDex):
    """CSwap pools and orderbook orders."""

    identifier = "CSwap"
    pricing = ConstantProductPricing(fee_denominator=10_000, impact_convention=ImpactConvention.REALIZED)

    def __init__(
        self,
        pool_address: str = definitions.POOL_ADDRESS,
        order_address: str = definitions.ORDER_ADDRESS,
    ):
        self.pool_address = pool_address
        self.order_address = order_address
        self.cancel_redeemer = definitions.CANCEL_REDEEMER
        self.order_script = PlutusScript("PlutusV3", definitions.ORDERBOOK_SCRIPT_CBOR)

        self._pool_builder = DefinitionBuilder(definitions.POOL_DATUM)
        self._order_to_native = DefinitionBuilder(definitions.ORDER_DATUM_TO_NATIVE)
        self._order_to_token = DefinitionBuilder(definitions.ORDER_DATUM_TO_TOKEN)

    # -----------------------------------------------------------------------
    # Pool discovery
    # -----------------------------------------------------------------------

    async def liquidity_pool_addresses(self) -> List[str]:
        return [self.pool_address]

    async def liquidity_pools(self, provider=None) -> List[LiquidityPool]:
        if provider is None:
            raise ConfigurationError("CSwap pool discovery requires a data provider")

        pools: List[LiquidityPool] = []
        skipped = 0
        for address in await self.liquidity_pool_addresses():
            for utxo in await provider.utxos(address):
                pool = await self.liquidity_pool_from_utxo(provider, utxo)
                if pool is None:
                    skipped += 1
                    continue
                pools.append(pool)

        if skipped:
            logger.debug(f"CSwap: skipped {skipped} pool outputs, kept {len(pools)}")
        return pools

    async def liquidity_pool_from_utxo(self, provider, utxo: UTxO) -> Optional[LiquidityPool]:
        """
        Map one pool output to a ``LiquidityPool``.

        Returns None for outputs that carry no datum, are not ADA-paired,
        hold an empty side, or whose datum does not match the pool layout.
        """
        ref = f"{utxo.tx_hash}#{utxo.output_index}"
        try:
            datum = await self._resolve_datum(provider, utxo)
            if datum is None:
                return None
            params = self._pool_builder.pull_parameters(datum)
        except (MalformedRecord, ShapeMismatch) as e:
            logger.debug(f"CSwap: unreadable pool datum at {ref}: {e}")
            return None

        # ADA must be asset A
        if params[K.PoolAssetAPolicyId] or params[K.PoolAssetAAssetName]:
            return None

        try:
            asset_b = Asset(params[K.PoolAssetBPolicyId], params[K.PoolAssetBAssetName])
            ada_balance = utxo.balance_of(LOVELACE)
            token_balance = utxo.balance_of(asset_b)
            if ada_balance == 0 or token_balance == 0:
                return None

            lp_token = None
            if params[K.LpTokenPolicyId]:
                lp_token = Asset(params[K.LpTokenPolicyId], params[K.LpTokenAssetName])

            return LiquidityPool(
                dex=self.identifier,
                asset_a=LOVELACE,
                asset_b=asset_b,
                reserve_a=max(0, ada_balance - definitions.MIN_POOL_ADA),
                reserve_b=token_balance,
                address=utxo.address,
                market_order_address=self.order_address,
                limit_order_address=self.order_address,
                pool_fee_percent=Decimal(params[K.LpFee]) / 100,
                lp_token=lp_token,
                total_lp_tokens=params[K.TotalLpTokens],
                identifier=asset_b.identifier(),
            )
        except (InvalidPoolError, ValueError, TypeError) as e:
            logger.warning(f"CSwap: invalid pool at {ref}: {e}")
            return None

    @staticmethod
    async def _resolve_datum(provider, utxo: UTxO) -> Optional[PlutusData]:
        if utxo.datum:
            return decode_hex(utxo.datum)
        if utxo.datum_hash:
            return await provider.datum_value(utxo.datum_hash)
        return None

    # -----------------------------------------------------------------------
    # Order assembly
    # -----------------------------------------------------------------------

    def build_swap_order(
        self,
        liquidity_pool: LiquidityPool,
        swap_parameters: DatumParameters,
        spend_utxos: Sequence[SpendUTxO] = (),
    ) -> List[PayToAddress]:
        """
        One contract payment to the orderbook address.

        Raises:
            MissingCredentials: sender key hashes absent or empty
            MissingParameter: a required swap parameter is absent
            InsufficientLiquidity: propagated from pricing
        """
        for key in (K.SenderPubKeyHash, K.SenderStakingKeyHash):
            if not swap_parameters.get(key):
                raise MissingCredentials(
                    f"CSwap order for pool {liquidity_pool.uuid} requires {key}"
                )

        for key in (K.SwapInAmount, K.MinReceive):
            if key not in swap_parameters:
                raise MissingParameter(key)

        swap_in_token = token_from_policy_and_name(
            swap_parameters.get(K.SwapInTokenPolicyId, ""),
            swap_parameters.get(K.SwapInTokenAssetName, ""),
        )
        swap_out_token = token_from_policy_and_name(
            swap_parameters.get(K.SwapOutTokenPolicyId, ""),
            swap_parameters.get(K.SwapOutTokenAssetName, ""),
        )
        swap_in_amount = int(swap_parameters[K.SwapInAmount])
        min_receive = int(swap_parameters[K.MinReceive])

        estimated = self.estimated_receive(liquidity_pool, swap_in_token, swap_in_amount)
        slippage_bps = on_chain_slippage_bps(min_receive, estimated)

        target = min_receive * (10_000 - definitions.PLATFORM_FEE_10K) // 10_000
        if is_native(swap_out_token):
            target += definitions.CONTRACT_LOVELACE
            builder = self._order_to_native
        else:
            builder = self._order_to_token

        datum = builder.push_parameters({
            **swap_parameters,
            K.SwapInTokenPolicyId: swap_parameters.get(K.SwapInTokenPolicyId, ""),
            K.SwapInTokenAssetName: swap_parameters.get(K.SwapInTokenAssetName, ""),
            K.SwapOutTokenPolicyId: swap_parameters.get(K.SwapOutTokenPolicyId, ""),
            K.SwapOutTokenAssetName: swap_parameters.get(K.SwapOutTokenAssetName, ""),
            K.TargetQuantity: target,
            K.SlippageBps: slippage_bps,
            K.PlatformFee: definitions.PLATFORM_FEE_10K,
        })

        lovelace = definitions.CONTRACT_LOVELACE + definitions.BATCHER_FEE
        balances = []
        if is_native(swap_in_token):
            lovelace += swap_in_amount
        else:
            balances.append(AssetBalance(swap_in_token, swap_in_amount))
        balances.insert(0, AssetBalance(LOVELACE, lovelace))

        logger.debug(
            f"CSwap: order on {liquidity_pool.uuid} in={swap_in_amount} "
            f"min={min_receive} target={target} slippage_bps={slippage_bps}"
        )
        return [
            PayToAddress(
                address=self.order_address,
                address_type=AddressType.CONTRACT,
                asset_balances=balances,
                datum=encode_hex(datum),
                is_inline_datum=True,
                spend_utxos=spend_utxos,
            )
        ]

    def build_cancel_swap_order(self, tx_outputs: Sequence[UTxO], return_address: str) -> List[PayToAddress]:
        relevant = next((u for u in tx_outputs if u.address == self.order_address), None)
        if relevant is None:
            raise OrderNotFound(
                f"No output at CSwap order address among {len(tx_outputs)} outputs"
            )

        return [
            PayToAddress(
                address=return_address,
                address_type=AddressType.BASE,
                asset_balances=relevant.asset_balances,
                is_inline_datum=False,
                spend_utxos=(
                    SpendUTxO(
                        utxo=relevant,
                        redeemer=self.cancel_redeemer,
                        validator=self.order_script,
                        signer=return_address,
                    ),
                ),
            )
        ]

    def swap_order_fees(self) -> List[SwapFee]:
        return [
            SwapFee(
                id="batcherFee",
                title="Batcher Fee",
                description="CSWAP batcher fee required by the orderbook.",
                value=definitions.BATCHER_FEE,
                is_returned=False,
            ),
            SwapFee(
                id="deposit",
                title="Deposit ADA",
                description="Minimum ADA bundled with the order; returned on completion or cancel.",
                value=definitions.CONTRACT_LOVELACE,
                is_returned=True,
            ),
        ]
