"""
CSwap Orderbook View

Reconstructs the best resting prices from open CSwap orders and compares
them with the AMM-implied price of the matching pool.

Prices are in lovelace per on-chain token unit (no decimal scaling):
  - bid: ADA -> token orders, ADA offered / minimum tokens wanted (highest wins)
  - ask: token -> ADA orders, minimum ADA wanted / tokens offered (lowest wins)

The order deposit and batcher fee are excluded from the ADA leg.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from dexter.constants import LOVELACE
from dexter.dex.definitions import cswap as definitions
from dexter.dex.models import Asset, LiquidityPool, Token, UTxO, is_native, token_from_policy_and_name
from dexter.exceptions import MalformedRecord, ShapeMismatch
from dexter.logger import get_logger
from dexter.plutus import DefinitionBuilder, PlutusConstr, PlutusData, PlutusList, decode_hex
from dexter.plutus.template import DatumParameterKey as K

logger = get_logger(__name__)

ZERO = Decimal("0")

_target_row = DefinitionBuilder(definitions.TARGET_ROW)
_input_row = DefinitionBuilder(definitions.INPUT_ROW)


@dataclass(frozen=True)
class AmmImpliedPrice:
    ada_per_token: Decimal
    token_per_ada: Decimal


@dataclass(frozen=True)
class TopOfBook:
    best_bid: Optional[Decimal] = None
    best_ask: Optional[Decimal] = None

    @property
    def spread(self) -> Optional[Decimal]:
        if self.best_bid is None or self.best_ask is None:
            return None
        return self.best_ask - self.best_bid


@dataclass(frozen=True)
class _OrderLegs:
    in_token: Token
    out_token: Token
    min_out: int


def amm_implied_price(pool: LiquidityPool) -> AmmImpliedPrice:
    """Display price of an ADA-paired pool in both directions."""
    ada_per_token = pool.price
    token_per_ada = Decimal(1) / ada_per_token if ada_per_token > 0 else ZERO
    return AmmImpliedPrice(ada_per_token, token_per_ada)


def _parse_order_datum(datum: PlutusData) -> _OrderLegs:
    """
    Read the first input row and the primary target row of an order datum.

    The primary target row is the first one naming a token; the ADA deposit
    row only counts when nothing else is targeted.

    Raises:
        ShapeMismatch: datum does not look like a CSwap order
    """
    if not isinstance(datum, PlutusConstr) or len(datum.fields) < 3:
        raise ShapeMismatch("Expected order constructor with at least 3 fields")
    targets, inputs = datum.fields[1], datum.fields[2]
    if not isinstance(targets, PlutusList) or not targets.items:
        raise ShapeMismatch("Empty or missing target rows", "$.fields[1]")
    if not isinstance(inputs, PlutusList) or not inputs.items:
        raise ShapeMismatch("Empty or missing input rows", "$.fields[2]")

    # Input rows always carry a literal zero quantity
    in_params = _input_row.pull_parameters(inputs[0])

    rows = [_target_row.pull_parameters(row) for row in targets.items]
    chosen = next(
        (r for r in rows if r[K.SwapOutTokenPolicyId] or r[K.SwapOutTokenAssetName]),
        rows[0],
    )
    return _OrderLegs(
        in_token=token_from_policy_and_name(in_params[K.SwapInTokenPolicyId], in_params[K.SwapInTokenAssetName]),
        out_token=token_from_policy_and_name(chosen[K.SwapOutTokenPolicyId], chosen[K.SwapOutTokenAssetName]),
        min_out=chosen[K.TargetQuantity],
    )


def _order_price(utxo: UTxO, legs: _OrderLegs, token: Asset) -> Tuple[str, Optional[Decimal]]:
    if is_native(legs.in_token) and legs.out_token == token:
        ada_in = utxo.balance_of(LOVELACE) - definitions.CONTRACT_LOVELACE - definitions.BATCHER_FEE
        if ada_in > 0 and legs.min_out > 0:
            return "bid", Decimal(ada_in) / Decimal(legs.min_out)
    elif legs.in_token == token and is_native(legs.out_token):
        token_in = utxo.balance_of(token)
        min_ada_out = legs.min_out - definitions.CONTRACT_LOVELACE
        if token_in > 0 and min_ada_out > 0:
            return "ask", Decimal(min_ada_out) / Decimal(token_in)
    return "", None


async def top_of_book(provider, token: Asset, order_address: str = definitions.ORDER_ADDRESS) -> TopOfBook:
    """
    Best bid and ask for ``token`` across all open orders at ``order_address``.

    Orders whose datum cannot be resolved or parsed are skipped.
    """
    best_bid: Optional[Decimal] = None
    best_ask: Optional[Decimal] = None

    for utxo in await provider.utxos(order_address):
        ref = f"{utxo.tx_hash}#{utxo.output_index}"
        try:
            if utxo.datum:
                datum = decode_hex(utxo.datum)
            elif utxo.datum_hash:
                datum = await provider.datum_value(utxo.datum_hash)
            else:
                continue
            legs = _parse_order_datum(datum)
        except (MalformedRecord, ShapeMismatch, ValueError) as e:
            logger.debug(f"CSwap orderbook: skipping order {ref}: {e}")
            continue

        side, price = _order_price(utxo, legs, token)
        if side == "bid" and (best_bid is None or price > best_bid):
            best_bid = price
        elif side == "ask" and (best_ask is None or price < best_ask):
            best_ask = price

    return TopOfBook(best_bid, best_ask)
