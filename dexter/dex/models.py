"""
Dexter DEX Data Models

Venue-independent values passed between adapters, pricing and order
assembly:

  - Token: the ``LOVELACE`` sentinel or an ``Asset``
  - LiquidityPool: normalised reserves, fee and identity of a pair
  - UTxO / AssetBalance: what data providers hand us
  - PayToAddress / SpendUTxO: what order assembly hands to a wallet

Every model is frozen; corrected copies are produced with
``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

from dexter.constants import LOVELACE, NATIVE_DECIMALS, POLICY_ID_HEX_LENGTH, VALID_HEX_PATTERN
from dexter.exceptions import InvalidPoolError

ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Asset:
    """
    A native token.  Equality is by (policy_id, name_hex); ``decimals`` is a
    display hint and never used in settlement math.
    """
    policy_id: str
    name_hex: str
    decimals: int = field(default=0, compare=False)

    def __post_init__(self):
        if not VALID_HEX_PATTERN.match(self.policy_id) or not VALID_HEX_PATTERN.match(self.name_hex):
            raise ValueError(f"Asset policy/name must be hex: {self.policy_id!r}, {self.name_hex!r}")
        object.__setattr__(self, "policy_id", self.policy_id.lower())
        object.__setattr__(self, "name_hex", self.name_hex.lower())

    @classmethod
    def from_identifier(cls, unit: str, decimals: int = 0) -> "Asset":
        """Parse ``policy.name`` or ``policy`` + ``name`` concatenated."""
        if "." in unit:
            policy_id, name_hex = unit.split(".", 1)
        else:
            policy_id, name_hex = unit[:POLICY_ID_HEX_LENGTH], unit[POLICY_ID_HEX_LENGTH:]
        return cls(policy_id, name_hex, decimals)

    def identifier(self, delimiter: str = "") -> str:
        return f"{self.policy_id}{delimiter}{self.name_hex}"

    @property
    def asset_name(self) -> str:
        """Asset name decoded as UTF-8 when printable, else the raw hex."""
        try:
            return bytes.fromhex(self.name_hex).decode("utf-8")
        except UnicodeDecodeError:
            return self.name_hex


Token = Union[str, Asset]


def is_native(token: Token) -> bool:
    return token == LOVELACE


def tokens_match(a: Token, b: Token) -> bool:
    if is_native(a) or is_native(b):
        return is_native(a) and is_native(b)
    return a == b


def token_identifier(token: Token, delimiter: str = "") -> str:
    return LOVELACE if is_native(token) else token.identifier(delimiter)


def token_decimals(token: Token) -> int:
    return NATIVE_DECIMALS if is_native(token) else token.decimals


def token_policy_and_name(token: Token) -> Tuple[str, str]:
    """Datum spelling of a token: the native unit is ('', '')."""
    return ("", "") if is_native(token) else (token.policy_id, token.name_hex)


def token_from_policy_and_name(policy_id: str, name_hex: str) -> Token:
    if policy_id == "" and name_hex == "":
        return LOVELACE
    return Asset(policy_id, name_hex)


# ---------------------------------------------------------------------------
# Chain values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AssetBalance:
    asset: Token
    quantity: int


def balance_of(balances: Tuple[AssetBalance, ...], token: Token) -> int:
    return sum(b.quantity for b in balances if tokens_match(b.asset, token))


@dataclass(frozen=True)
class UTxO:
    """An unspent output as resolved by a data provider."""
    tx_hash: str
    output_index: int
    address: str
    asset_balances: Tuple[AssetBalance, ...] = ()
    datum_hash: Optional[str] = None
    datum: Optional[str] = None      # inline datum, CBOR hex

    def __post_init__(self):
        object.__setattr__(self, "asset_balances", tuple(self.asset_balances))

    def balance_of(self, token: Token) -> int:
        return balance_of(self.asset_balances, token)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

class AddressType(str, Enum):
    BASE = "base"
    CONTRACT = "contract"


@dataclass(frozen=True)
class PlutusScript:
    type: str    # "PlutusV1" / "PlutusV2" / "PlutusV3"
    script: str  # CBOR hex


@dataclass(frozen=True)
class SpendUTxO:
    """Authorisation to spend a script-locked output."""
    utxo: UTxO
    redeemer: Optional[str] = None
    validator: Optional[PlutusScript] = None
    signer: Optional[str] = None


@dataclass(frozen=True)
class PayToAddress:
    """A single payment produced by order assembly."""
    address: str
    address_type: AddressType
    asset_balances: Tuple[AssetBalance, ...]
    datum: Optional[str] = None      # CBOR hex
    is_inline_datum: bool = False
    spend_utxos: Tuple[SpendUTxO, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "asset_balances", tuple(self.asset_balances))
        object.__setattr__(self, "spend_utxos", tuple(self.spend_utxos))

    def balance_of(self, token: Token) -> int:
        return balance_of(self.asset_balances, token)


@dataclass(frozen=True)
class SwapFee:
    id: str
    title: str
    description: str
    value: int
    is_returned: bool


# ---------------------------------------------------------------------------
# Liquidity pool
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LiquidityPool:
    """
    Normalised view of one venue pair.

    Reserves are on-chain integer units.  ``pool_fee_percent`` is a percent
    (0.3 == 0.3 %).
    """
    dex: str
    asset_a: Token
    asset_b: Token
    reserve_a: int
    reserve_b: int
    address: str = ""
    market_order_address: str = ""
    limit_order_address: str = ""
    pool_fee_percent: Decimal = ZERO
    lp_token: Optional[Asset] = None
    total_lp_tokens: Optional[int] = None
    identifier: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        fee = Decimal(str(self.pool_fee_percent))
        object.__setattr__(self, "pool_fee_percent", fee)
        if self.reserve_a < 0 or self.reserve_b < 0:
            raise InvalidPoolError(
                f"Reserves must be non-negative for {self.dex} pool "
                f"{self.identifier or self.pair}: ({self.reserve_a}, {self.reserve_b})"
            )
        if not (ZERO <= fee < Decimal(100)):
            raise InvalidPoolError(f"Pool fee must be in [0, 100): {fee}")
        if self.total_lp_tokens is not None and self.total_lp_tokens < 0:
            raise InvalidPoolError(f"Total LP tokens must be non-negative: {self.total_lp_tokens}")

    def with_identifier(self, identifier: str) -> "LiquidityPool":
        return replace(self, identifier=identifier)

    def with_dex(self, dex: str) -> "LiquidityPool":
        return replace(self, dex=dex)

    @property
    def pair(self) -> str:
        return f"{token_identifier(self.asset_a, '.')}-{token_identifier(self.asset_b, '.')}"

    @property
    def uuid(self) -> str:
        return f"{self.dex}:{self.identifier or self.pair}"

    @property
    def price(self) -> Decimal:
        """Display price of asset B in units of asset A, decimal-scaled."""
        if self.reserve_b == 0:
            return ZERO
        scaled_a = Decimal(self.reserve_a).scaleb(-token_decimals(self.asset_a))
        scaled_b = Decimal(self.reserve_b).scaleb(-token_decimals(self.asset_b))
        return scaled_a / scaled_b

    def has_token(self, token: Token) -> bool:
        return tokens_match(self.asset_a, token) or tokens_match(self.asset_b, token)
