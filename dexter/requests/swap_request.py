"""
Swap Request

Fluent builder for one swap against one liquidity pool:

    request = (dexter.new_swap_request()
               .for_liquidity_pool(pool)
               .with_swap_in_token(LOVELACE)
               .with_swap_in_amount(10_000_000)
               .with_slippage_percent(0.5))
    transaction = await request.complete()

Pricing is delegated to the pool's venue adapter; the request only holds
the caller's choices.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Sequence

from dexter.constants import METADATA_MESSAGE_KEY
from dexter.dex.base import BaseDex
from dexter.dex.models import LiquidityPool, PayToAddress, SpendUTxO, SwapFee, Token, token_policy_and_name, tokens_match
from dexter.dex.pricing import minimum_receive
from dexter.exceptions import InvalidSwapRequest, UnknownTokenError, WalletNotLoaded
from dexter.fees import append_platform_fee_if_missing
from dexter.logger import get_logger
from dexter.plutus.template import DatumParameterKey, DatumParameters
from dexter.providers.wallet import DexTransaction, TransactionStatus

if TYPE_CHECKING:
    from dexter.dexter import Dexter

logger = get_logger(__name__)


class SwapRequest:

    def __init__(self, dexter: "Dexter"):
        self._dexter = dexter
        self.liquidity_pool: Optional[LiquidityPool] = None
        self.swap_in_token: Optional[Token] = None
        self.swap_out_token: Optional[Token] = None
        self.swap_in_amount: int = 0
        self.slippage_percent: Decimal = Decimal("1.0")
        self.spend_utxos: List[SpendUTxO] = []

    # -----------------------------------------------------------------------
    # Builders
    # -----------------------------------------------------------------------

    def for_liquidity_pool(self, liquidity_pool: LiquidityPool) -> "SwapRequest":
        self.liquidity_pool = liquidity_pool
        return self

    def with_swap_in_token(self, swap_in_token: Token) -> "SwapRequest":
        pool = self._require_pool()
        if tokens_match(swap_in_token, pool.asset_a):
            self.swap_out_token = pool.asset_b
        elif tokens_match(swap_in_token, pool.asset_b):
            self.swap_out_token = pool.asset_a
        else:
            raise UnknownTokenError(f"Swap in token must be in pool {pool.uuid}")
        self.swap_in_token = swap_in_token
        return self

    def with_swap_out_token(self, swap_out_token: Token) -> "SwapRequest":
        pool = self._require_pool()
        if tokens_match(swap_out_token, pool.asset_a):
            self.swap_in_token = pool.asset_b
        elif tokens_match(swap_out_token, pool.asset_b):
            self.swap_in_token = pool.asset_a
        else:
            raise UnknownTokenError(f"Swap out token must be in pool {pool.uuid}")
        self.swap_out_token = swap_out_token
        return self

    def flip(self) -> "SwapRequest":
        """
        Reverse the direction.  The previous swap-in amount becomes the wanted
        swap-out amount and the new swap-in amount is priced from it.
        """
        if self.swap_in_token is None or self.swap_out_token is None:
            return self
        previous_amount = self.swap_in_amount
        self.swap_in_token, self.swap_out_token = self.swap_out_token, self.swap_in_token
        if self.liquidity_pool is not None:
            self.with_swap_out_amount(previous_amount)
        return self

    def with_swap_in_amount(self, swap_in_amount: int) -> "SwapRequest":
        self.swap_in_amount = max(0, int(swap_in_amount))
        return self

    def with_swap_out_amount(self, swap_out_amount: int) -> "SwapRequest":
        if self.swap_out_token is None:
            raise InvalidSwapRequest("Swap out token must be set before the swap out amount")
        pool = self._require_pool()
        self.swap_in_amount = self._dex().estimated_give(pool, self.swap_out_token, max(0, int(swap_out_amount)))
        return self

    def with_slippage_percent(self, slippage_percent) -> "SwapRequest":
        slippage = Decimal(str(slippage_percent))
        if slippage < 0:
            raise InvalidSwapRequest(f"Slippage percent must be non-negative: {slippage}")
        self.slippage_percent = slippage
        return self

    def with_spend_utxos(self, spend_utxos: Sequence[SpendUTxO]) -> "SwapRequest":
        self.spend_utxos = list(spend_utxos)
        return self

    # -----------------------------------------------------------------------
    # Quotes
    # -----------------------------------------------------------------------

    def get_estimated_receive(self, liquidity_pool: Optional[LiquidityPool] = None) -> int:
        pool = liquidity_pool or self._require_pool()
        return self._dex(pool).estimated_receive(pool, self._require_swap_in_token(), self.swap_in_amount)

    def get_minimum_receive(self, liquidity_pool: Optional[LiquidityPool] = None) -> int:
        return minimum_receive(self.get_estimated_receive(liquidity_pool), self.slippage_percent)

    def get_price_impact_percent(self) -> Decimal:
        pool = self._require_pool()
        return self._dex().price_impact_percent(pool, self._require_swap_in_token(), self.swap_in_amount)

    def get_swap_fees(self) -> List[SwapFee]:
        return self._dex().swap_order_fees()

    async def get_payments_to_addresses(self) -> List[PayToAddress]:
        """
        Venue payments for this swap, before the platform fee.

        Raises:
            WalletNotLoaded: no loaded wallet to take credentials from
            InvalidSwapRequest: request is incomplete
        """
        wallet = self._dexter.wallet_provider
        if wallet is None or not wallet.is_wallet_loaded:
            raise WalletNotLoaded("Wallet must be loaded before building swap payments")

        pool = self._require_pool()
        self._validate()
        in_policy, in_name = token_policy_and_name(self.swap_in_token)
        out_policy, out_name = token_policy_and_name(self.swap_out_token)

        parameters: DatumParameters = {
            DatumParameterKey.SenderPubKeyHash: wallet.public_key_hash(),
            DatumParameterKey.SenderStakingKeyHash: wallet.staking_key_hash(),
            DatumParameterKey.ReceiverPubKeyHash: wallet.public_key_hash(),
            DatumParameterKey.ReceiverStakingKeyHash: wallet.staking_key_hash(),
            DatumParameterKey.SwapInAmount: self.swap_in_amount,
            DatumParameterKey.SwapInTokenPolicyId: in_policy,
            DatumParameterKey.SwapInTokenAssetName: in_name,
            DatumParameterKey.SwapOutTokenPolicyId: out_policy,
            DatumParameterKey.SwapOutTokenAssetName: out_name,
            DatumParameterKey.MinReceive: self.get_minimum_receive(),
        }
        return self._dex().build_swap_order(pool, parameters, self.spend_utxos)

    # -----------------------------------------------------------------------
    # Completion
    # -----------------------------------------------------------------------

    async def complete(self) -> DexTransaction:
        """
        Build payments, append the platform fee and hand them to the wallet.
        Signs and submits only when ``config.should_submit_orders`` is set.

        Errors after the transaction exists are recorded on it (status
        ERRORED) and re-raised.
        """
        wallet = self._dexter.wallet_provider
        if wallet is None or not wallet.is_wallet_loaded:
            raise WalletNotLoaded("Wallet must be loaded before completing a swap")

        transaction = wallet.create_transaction()
        try:
            payments = await self.get_payments_to_addresses()
            fee = self._dexter.config.platform_fee
            payments = append_platform_fee_if_missing(payments, fee.address, fee.lovelace)

            transaction.status = TransactionStatus.BUILDING
            await transaction.pay_to_addresses(payments)
            wallet.attach_metadata(transaction, METADATA_MESSAGE_KEY, {
                "msg": [f"[{self._dexter.config.metadata_msg_branding}] {self.liquidity_pool.dex} Swap"],
            })

            if self._dexter.config.should_submit_orders:
                transaction.status = TransactionStatus.SIGNING
                await transaction.sign()
                transaction.status = TransactionStatus.SUBMITTING
                await transaction.submit()
                transaction.status = TransactionStatus.SUBMITTED
                logger.info(f"Swap order submitted on {self.liquidity_pool.uuid}: {transaction.hash}")
        except Exception as e:
            logger.error(f"Swap order failed: {e}")
            transaction.fail(e)
            raise
        return transaction

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _require_pool(self) -> LiquidityPool:
        if self.liquidity_pool is None:
            raise InvalidSwapRequest("Liquidity pool must be set")
        return self.liquidity_pool

    def _require_swap_in_token(self) -> Token:
        if self.swap_in_token is None:
            raise InvalidSwapRequest("Swap in token must be set")
        return self.swap_in_token

    def _dex(self, liquidity_pool: Optional[LiquidityPool] = None) -> BaseDex:
        pool = liquidity_pool or self._require_pool()
        dex = self._dexter.dex_by_name(pool.dex)
        if dex is None:
            raise InvalidSwapRequest(f"Unknown venue {pool.dex!r} for pool {pool.uuid}")
        return dex

    def _validate(self) -> None:
        if self.swap_in_token is None or self.swap_out_token is None:
            raise InvalidSwapRequest("Swap in and swap out tokens must be set")
        if self.swap_in_amount <= 0:
            raise InvalidSwapRequest("Swap in amount must be positive")
