"""
Constant-Product Pricing Engine

Swap economics for x * y = k pools with a proportional input fee:

  fee_numerator     = round_half_up(fee_percent / 100 * FEE_DENOM)
  estimated_receive = floor(a * (D - n) * R_out / (R_in * D + a * (D - n)))
  estimated_give    = ceil(b * R_in * D / ((R_out - b) * (D - n)))
  minimum_receive   = floor(estimated / (1 + slippage / 100))

Receive rounds down and give rounds up, so neither estimate can promise
more than the pool delivers.  The fee denominator and the price-impact
convention are per-venue settings:

  - REALIZED: symmetric difference between the average execution price
    and the pre-trade pool price
  - MARGINAL: relative drop of the marginal price, pre vs post trade

The two conventions are not numerically comparable across venues.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_FLOOR, ROUND_HALF_UP
from enum import Enum
from typing import Tuple, Union

from dexter.constants import BPS_DENOMINATOR, DEFAULT_FEE_DENOMINATOR
from dexter.dex.models import LiquidityPool, Token, token_identifier, tokens_match
from dexter.exceptions import InsufficientLiquidity, UnknownTokenError

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Reserves are uint128+; 78 digits keeps every intermediate exact
_CTX = Context(prec=78)

Percent = Union[Decimal, int, float, str]


def _to_decimal(value: Percent) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR, context=_CTX))


# ---------------------------------------------------------------------------
# Impact conventions
# ---------------------------------------------------------------------------

class ImpactConvention(str, Enum):
    REALIZED = "realized"
    MARGINAL = "marginal"


# ---------------------------------------------------------------------------
# Pricing model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConstantProductPricing:
    """Per-venue pricing rules.  Pure and stateless."""
    fee_denominator: int = DEFAULT_FEE_DENOMINATOR
    impact_convention: ImpactConvention = ImpactConvention.REALIZED

    def __post_init__(self):
        if self.fee_denominator <= 0:
            raise ValueError(f"fee_denominator must be positive: {self.fee_denominator}")

    def fee_numerator(self, fee_percent: Percent) -> int:
        fee = _to_decimal(fee_percent)
        scaled = _CTX.multiply(_CTX.divide(fee, HUNDRED), Decimal(self.fee_denominator))
        return int(scaled.to_integral_value(rounding=ROUND_HALF_UP, context=_CTX))

    def fee_modifier(self, fee_percent: Percent) -> int:
        """Share of the input that reaches the curve, in denominator units."""
        return self.fee_denominator - self.fee_numerator(fee_percent)

    def estimated_receive(
        self,
        reserve_in: int,
        reserve_out: int,
        amount_in: int,
        fee_percent: Percent,
    ) -> int:
        """
        Output for an exact input, rounded down.

        Raises:
            ValueError: on negative amounts
        """
        if reserve_in < 0 or reserve_out < 0 or amount_in < 0:
            raise ValueError(
                f"Reserves and amount must be non-negative: ({reserve_in}, {reserve_out}, {amount_in})"
            )
        modifier = self.fee_modifier(fee_percent)
        numerator = amount_in * modifier * reserve_out
        denominator = reserve_in * self.fee_denominator + amount_in * modifier
        if denominator <= 0:
            return 0
        return numerator // denominator

    def estimated_give(
        self,
        reserve_out: int,
        reserve_in: int,
        amount_out: int,
        fee_percent: Percent,
    ) -> int:
        """
        Input required to receive at least ``amount_out``, rounded up.

        Raises:
            InsufficientLiquidity: if ``amount_out`` would drain the out reserve
        """
        if reserve_in < 0 or reserve_out < 0 or amount_out < 0:
            raise ValueError(
                f"Reserves and amount must be non-negative: ({reserve_out}, {reserve_in}, {amount_out})"
            )
        if amount_out == 0:
            return 0
        if amount_out >= reserve_out:
            raise InsufficientLiquidity(
                f"Requested {amount_out} but out reserve is only {reserve_out}"
            )
        modifier = self.fee_modifier(fee_percent)
        if modifier <= 0:
            raise InsufficientLiquidity(f"Fee {fee_percent}% leaves nothing to swap")
        numerator = amount_out * reserve_in * self.fee_denominator
        denominator = (reserve_out - amount_out) * modifier
        return -(-numerator // denominator)

    def price_impact_percent(
        self,
        reserve_in: int,
        reserve_out: int,
        amount_in: int,
        fee_percent: Percent,
    ) -> Decimal:
        """Price impact in percent under this venue's convention."""
        if amount_in == 0 or reserve_in == 0 or reserve_out == 0:
            return ZERO
        out = self.estimated_receive(reserve_in, reserve_out, amount_in, fee_percent)

        if self.impact_convention is ImpactConvention.MARGINAL:
            p0 = _CTX.divide(Decimal(reserve_out), Decimal(reserve_in))
            p1 = _CTX.divide(Decimal(reserve_out - out), Decimal(reserve_in + amount_in))
            return _CTX.multiply(_CTX.divide(p0 - p1, p0), HUNDRED)

        # Symmetric difference is bounded by 200 % as the swap price diverges
        if out == 0:
            return Decimal(200)
        swap_price = _CTX.divide(Decimal(amount_in), Decimal(out))
        pool_price = _CTX.divide(Decimal(reserve_in), Decimal(reserve_out))
        mean = _CTX.divide(swap_price + pool_price, Decimal(2))
        return _CTX.multiply(_CTX.divide(abs(swap_price - pool_price), mean), HUNDRED)


# ---------------------------------------------------------------------------
# Slippage helpers
# ---------------------------------------------------------------------------

def minimum_receive(estimated_receive: int, slippage_percent: Percent) -> int:
    """floor(estimated / (1 + slippage / 100))."""
    slippage = _to_decimal(slippage_percent)
    if slippage < 0:
        raise ValueError(f"Slippage must be non-negative: {slippage}")
    divisor = _CTX.add(Decimal(1), _CTX.divide(slippage, HUNDRED))
    return _floor(_CTX.divide(Decimal(estimated_receive), divisor))


def on_chain_slippage_bps(
    min_receive: int,
    estimated_receive: int,
    bps_denominator: int = BPS_DENOMINATOR,
) -> int:
    """
    Discrete slippage tolerance stored in order datums, re-derived from the
    two continuous amounts and clamped to [0, denominator].
    """
    if estimated_receive <= 0:
        return bps_denominator
    ratio = _CTX.divide(Decimal(min_receive), Decimal(estimated_receive))
    bps = _CTX.multiply(Decimal(1) - ratio, Decimal(bps_denominator))
    rounded = int(bps.to_integral_value(rounding=ROUND_HALF_UP, context=_CTX))
    return max(0, min(bps_denominator, rounded))


def corresponding_reserves(pool: LiquidityPool, token: Token) -> Tuple[int, int]:
    """
    (reserve of ``token``, reserve of the other side).

    Raises:
        UnknownTokenError: if ``token`` is not in the pool
    """
    if tokens_match(pool.asset_a, token):
        return pool.reserve_a, pool.reserve_b
    if tokens_match(pool.asset_b, token):
        return pool.reserve_b, pool.reserve_a
    raise UnknownTokenError(
        f"Token {token_identifier(token, '.')} is not part of pool {pool.uuid}"
    )
