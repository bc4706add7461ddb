"""
Venue Adapter Contract

Every venue implements the same capabilities:

  - liquidity_pools(provider)         discover pools (never raises per record)
  - build_swap_order(pool, params)    payments placing a swap
  - build_cancel_swap_order(outs, to) payments cancelling a swap
  - swap_order_fees()                 fee disclosure

Pricing is delegated to the venue's ``ConstantProductPricing`` after the
pool reserves are oriented to the swap direction.  Adapters hold only
immutable configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, ClassVar, List, Optional, Sequence

from dexter.dex.models import LiquidityPool, PayToAddress, SpendUTxO, SwapFee, Token, UTxO
from dexter.dex.pricing import ConstantProductPricing, corresponding_reserves
from dexter.plutus.template import DatumParameters

if TYPE_CHECKING:
    from dexter.providers.data import BaseDataProvider


class BaseDex(ABC):
    """Capability interface shared by venue adapters."""

    identifier: ClassVar[str] = ""
    pricing: ConstantProductPricing = ConstantProductPricing()

    # -- Discovery ----------------------------------------------------------

    @abstractmethod
    async def liquidity_pools(self, provider: Optional["BaseDataProvider"] = None) -> List[LiquidityPool]:
        """All pools the venue currently exposes; malformed records are skipped."""

    # -- Order assembly -----------------------------------------------------

    @abstractmethod
    def build_swap_order(
        self,
        liquidity_pool: LiquidityPool,
        swap_parameters: DatumParameters,
        spend_utxos: Sequence[SpendUTxO] = (),
    ) -> List[PayToAddress]:
        ...

    @abstractmethod
    def build_cancel_swap_order(self, tx_outputs: Sequence[UTxO], return_address: str) -> List[PayToAddress]:
        ...

    @abstractmethod
    def swap_order_fees(self) -> List[SwapFee]:
        ...

    # -- Pricing ------------------------------------------------------------

    def estimated_receive(self, liquidity_pool: LiquidityPool, swap_in_token: Token, swap_in_amount: int) -> int:
        reserve_in, reserve_out = corresponding_reserves(liquidity_pool, swap_in_token)
        return self.pricing.estimated_receive(
            reserve_in, reserve_out, swap_in_amount, liquidity_pool.pool_fee_percent
        )

    def estimated_give(self, liquidity_pool: LiquidityPool, swap_out_token: Token, swap_out_amount: int) -> int:
        reserve_out, reserve_in = corresponding_reserves(liquidity_pool, swap_out_token)
        return self.pricing.estimated_give(
            reserve_out, reserve_in, swap_out_amount, liquidity_pool.pool_fee_percent
        )

    def price_impact_percent(self, liquidity_pool: LiquidityPool, swap_in_token: Token, swap_in_amount: int) -> Decimal:
        reserve_in, reserve_out = corresponding_reserves(liquidity_pool, swap_in_token)
        return self.pricing.price_impact_percent(
            reserve_in, reserve_out, swap_in_amount, liquidity_pool.pool_fee_percent
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.identifier}>"
