"""
Test suite for the constant-product pricing engine

Covers:
  - Fee numerator rounding
  - estimated_receive / estimated_give rounding and bounds
  - Price impact conventions
  - minimum_receive and on-chain slippage bps
  - Pool models and reserve orientation
"""

from decimal import Decimal

import pytest

# ---------------------------------------------------------------------------
# Pricing imports
# ---------------------------------------------------------------------------
from dexter.dex.pricing import (
    ConstantProductPricing,
    ImpactConvention,
    corresponding_reserves,
    minimum_receive,
    on_chain_slippage_bps,
)

# ---------------------------------------------------------------------------
# Model imports
# ---------------------------------------------------------------------------
from dexter.constants import LOVELACE
from dexter.dex.models import Asset, LiquidityPool, token_from_policy_and_name, tokens_match

# ---------------------------------------------------------------------------
# Exception imports
# ---------------------------------------------------------------------------
from dexter.exceptions import InsufficientLiquidity, InvalidPoolError, UnknownTokenError


TOKEN = Asset("f66d78b4a3cb3d37afa0ec36461e51ecbde00f26c8f0a68f94b69880", "69555344")

REALIZED = ConstantProductPricing(10_000, ImpactConvention.REALIZED)
MARGINAL = ConstantProductPricing(10_000, ImpactConvention.MARGINAL)


# ============================================================================
#  FEES
# ============================================================================

class TestFeeNumerator:
    """Percent fees to integer numerators."""

    def test_common_fees(self):
        assert REALIZED.fee_numerator(Decimal("0.3")) == 30
        assert REALIZED.fee_numerator(Decimal("0.85")) == 85
        assert REALIZED.fee_numerator(1) == 100

    def test_half_rounds_up(self):
        assert REALIZED.fee_numerator("0.005") == 1
        assert ConstantProductPricing(1_000).fee_numerator("0.85") == 9

    def test_float_input(self):
        assert REALIZED.fee_numerator(0.3) == 30

    def test_bad_denominator(self):
        with pytest.raises(ValueError):
            ConstantProductPricing(0)


# ============================================================================
#  RECEIVE / GIVE
# ============================================================================

class TestEstimatedReceive:
    """Exact input quotes."""

    def test_small_swap_against_deep_native_side(self):
        out = REALIZED.estimated_receive(1_000_000_000000, 10_000_000, 10_000_000, Decimal("0.85"))
        assert out == 99
        assert minimum_receive(out, Decimal("0.5")) == 98

    def test_zero_amount(self):
        assert REALIZED.estimated_receive(1_000, 1_000, 0, "0.3") == 0

    def test_empty_pool(self):
        assert REALIZED.estimated_receive(0, 0, 100, "0.3") == 0

    def test_never_drains_reserve(self):
        out = REALIZED.estimated_receive(1_000, 1_000, 10**30, "0.3")
        assert out < 1_000

    def test_monotonic_in_amount(self):
        previous = 0
        for amount in (1, 10, 100, 1_000, 10_000, 100_000):
            out = REALIZED.estimated_receive(1_000_000, 1_000_000, amount, "0.3")
            assert out >= previous
            previous = out

    def test_negative_amount(self):
        with pytest.raises(ValueError):
            REALIZED.estimated_receive(1_000, 1_000, -1, "0.3")

    def test_large_reserves_exact(self):
        reserve = 2**127
        out = REALIZED.estimated_receive(reserve, reserve, reserve, 0)
        assert out == reserve // 2


class TestEstimatedGive:
    """Exact output quotes."""

    def test_reverse_extraction(self):
        give = REALIZED.estimated_give(
            30_817_255_371_488, 349_805_856_622_734, 10_000_000_000000, Decimal("0.3")
        )
        assert give == 168_542_118_380_811

    def test_give_covers_requested_output(self):
        give = REALIZED.estimated_give(30_817_255_371_488, 349_805_856_622_734, 10_000_000_000000, "0.3")
        received = REALIZED.estimated_receive(349_805_856_622_734, 30_817_255_371_488, give, "0.3")
        assert received >= 10_000_000_000000

    def test_zero_amount(self):
        assert REALIZED.estimated_give(1_000, 1_000, 0, "0.3") == 0

    def test_drain_rejected(self):
        with pytest.raises(InsufficientLiquidity):
            REALIZED.estimated_give(1_000, 1_000, 1_000, "0.3")
        with pytest.raises(InsufficientLiquidity):
            REALIZED.estimated_give(1_000, 1_000, 5_000, "0.3")

    def test_rounds_up(self):
        # 10 * 1000 * 10000 / (990 * 10000) = 10.1...
        assert REALIZED.estimated_give(1_000, 1_000, 10, 0) == 11


# ============================================================================
#  PRICE IMPACT
# ============================================================================

class TestPriceImpact:
    """Both impact conventions."""

    def test_zero_amount(self):
        assert REALIZED.price_impact_percent(1_000, 1_000, 0, "0.3") == 0
        assert MARGINAL.price_impact_percent(1_000, 1_000, 0, "0.3") == 0

    def test_realized(self):
        # out = 90; swap price 100/90 vs pool price 1
        impact = REALIZED.price_impact_percent(1_000, 1_000, 100, 0)
        assert Decimal("10.52") < impact < Decimal("10.53")

    def test_marginal(self):
        # p0 = 1, p1 = 910 / 1100
        impact = MARGINAL.price_impact_percent(1_000, 1_000, 100, 0)
        assert Decimal("17.27") < impact < Decimal("17.28")

    def test_realized_bounded_when_nothing_out(self):
        assert REALIZED.price_impact_percent(10**12, 10, 1, 0) == Decimal(200)

    def test_conventions_differ(self):
        assert REALIZED.price_impact_percent(1_000, 1_000, 100, 0) != MARGINAL.price_impact_percent(
            1_000, 1_000, 100, 0
        )


# ============================================================================
#  SLIPPAGE
# ============================================================================

class TestSlippage:
    """Minimum receive and datum slippage."""

    def test_minimum_receive(self):
        assert minimum_receive(1_000, 0) == 1_000
        assert minimum_receive(1_000, 1) == 990
        assert minimum_receive(99, "0.5") == 98

    def test_minimum_receive_negative(self):
        with pytest.raises(ValueError):
            minimum_receive(1_000, -1)

    def test_bps(self):
        assert on_chain_slippage_bps(98, 99) == 101
        assert on_chain_slippage_bps(99, 99) == 0

    def test_bps_clamped(self):
        assert on_chain_slippage_bps(120, 100) == 0
        assert on_chain_slippage_bps(0, 0) == 10_000
        assert on_chain_slippage_bps(-50, 100) == 10_000


# ============================================================================
#  MODELS
# ============================================================================

class TestPoolModel:
    """Pool validation and orientation."""

    def _pool(self, **overrides):
        fields = dict(
            dex="CSwap", asset_a=LOVELACE, asset_b=TOKEN,
            reserve_a=1_000_000, reserve_b=2_000_000, pool_fee_percent=Decimal("0.3"),
        )
        fields.update(overrides)
        return LiquidityPool(**fields)

    def test_negative_reserve(self):
        with pytest.raises(InvalidPoolError):
            self._pool(reserve_a=-1)

    def test_fee_range(self):
        with pytest.raises(InvalidPoolError):
            self._pool(pool_fee_percent=Decimal(100))
        with pytest.raises(InvalidPoolError):
            self._pool(pool_fee_percent=Decimal("-0.1"))

    def test_orientation(self):
        pool = self._pool()
        assert corresponding_reserves(pool, LOVELACE) == (1_000_000, 2_000_000)
        assert corresponding_reserves(pool, TOKEN) == (2_000_000, 1_000_000)

    def test_unknown_token(self):
        with pytest.raises(UnknownTokenError):
            corresponding_reserves(self._pool(), Asset("ab" * 28, ""))

    def test_uuid(self):
        assert self._pool().uuid == f"CSwap:lovelace-{TOKEN.identifier('.')}"
        assert self._pool(identifier="pool1").uuid == "CSwap:pool1"

    def test_price_scaled_by_decimals(self):
        token = Asset(TOKEN.policy_id, TOKEN.name_hex, decimals=6)
        pool = self._pool(asset_b=token)
        assert pool.price == Decimal("0.5")

    def test_token_helpers(self):
        assert tokens_match(LOVELACE, token_from_policy_and_name("", ""))
        assert token_from_policy_and_name(TOKEN.policy_id, TOKEN.name_hex) == TOKEN
        assert not tokens_match(LOVELACE, TOKEN)
        assert TOKEN.asset_name == "iUSD"

    def test_asset_identifier_parsing(self):
        assert Asset.from_identifier(TOKEN.identifier()) == TOKEN
        assert Asset.from_identifier(TOKEN.identifier(".")) == TOKEN
