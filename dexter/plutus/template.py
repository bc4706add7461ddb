"""
Datum Field Templates

A template is a structured value whose int/bytes leaves may hold a
``DatumParameterKey`` instead of a literal.  It describes one venue record
type (pool datum, order datum, ...) and converts in both directions:

  - pull_parameters(template, value) -> {key: scalar}
  - push_parameters(template, params) -> value

Literal leaves in the template are asserted equal on pull and passed through
on push.  For every template T and parameter map P covering T's keys,
``pull_parameters(T, push_parameters(T, P)) == normalise(P)``: byte values
come back as lowercase hex (raw ``bytes`` are hex-encoded, uppercase hex is
lower-cased) and ints unchanged.  For P already in that form the round trip
is exact.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Union

from dexter.exceptions import MissingParameter, ShapeMismatch
from dexter.plutus.data import (
    PlutusBytes,
    PlutusConstr,
    PlutusData,
    PlutusInt,
    PlutusList,
    from_json,
)


class DatumParameterKey(str, Enum):
    """Symbolic names for datum fields shared across venues."""

    # Credentials
    SenderPubKeyHash = "SenderPubKeyHash"
    SenderStakingKeyHash = "SenderStakingKeyHash"
    ReceiverPubKeyHash = "ReceiverPubKeyHash"
    ReceiverStakingKeyHash = "ReceiverStakingKeyHash"

    # Swap legs
    SwapInAmount = "SwapInAmount"
    SwapInTokenPolicyId = "SwapInTokenPolicyId"
    SwapInTokenAssetName = "SwapInTokenAssetName"
    SwapOutTokenPolicyId = "SwapOutTokenPolicyId"
    SwapOutTokenAssetName = "SwapOutTokenAssetName"
    MinReceive = "MinReceive"
    TargetQuantity = "TargetQuantity"
    Direction = "Direction"

    # Fees & deposits
    BatcherFee = "BatcherFee"
    DepositFee = "DepositFee"
    LpFee = "LpFee"
    PlatformFee = "PlatformFee"
    SlippageBps = "SlippageBps"

    # Pool identity
    PoolAssetAPolicyId = "PoolAssetAPolicyId"
    PoolAssetAAssetName = "PoolAssetAAssetName"
    PoolAssetBPolicyId = "PoolAssetBPolicyId"
    PoolAssetBAssetName = "PoolAssetBAssetName"
    LpTokenPolicyId = "LpTokenPolicyId"
    LpTokenAssetName = "LpTokenAssetName"
    TotalLpTokens = "TotalLpTokens"

    def __str__(self) -> str:
        return self.value


DatumParameters = Dict[DatumParameterKey, Union[int, str]]


def _is_key(value: Any) -> bool:
    return isinstance(value, Enum)


# ---------------------------------------------------------------------------
# Pull
# ---------------------------------------------------------------------------

def pull_parameters(template: PlutusData, value: PlutusData) -> DatumParameters:
    """
    Walk template and value in lock-step, collecting parameterised leaves.

    Raises:
        ShapeMismatch: on node kind, length, constructor tag or literal mismatch
    """
    params: DatumParameters = {}
    _pull(template, value, params, "$")
    return params


def _pull(template: PlutusData, value: PlutusData, params: DatumParameters, path: str) -> None:
    if isinstance(template, (PlutusInt, PlutusBytes)):
        if type(value) is not type(template):
            raise ShapeMismatch(
                f"Expected {type(template).__name__}, got {type(value).__name__}", path
            )
        if _is_key(template.value):
            if template.value in params and params[template.value] != value.value:
                raise ShapeMismatch(
                    f"Conflicting values for parameter {template.value}", path
                )
            params[template.value] = value.value
        elif template.value != value.value:
            raise ShapeMismatch(
                f"Literal mismatch: expected {template.value!r}, got {value.value!r}", path
            )
        return

    if isinstance(template, PlutusList):
        if not isinstance(value, PlutusList):
            raise ShapeMismatch(f"Expected PlutusList, got {type(value).__name__}", path)
        if len(template.items) != len(value.items):
            raise ShapeMismatch(
                f"List length mismatch: expected {len(template.items)}, got {len(value.items)}",
                path,
            )
        for i, (t, v) in enumerate(zip(template.items, value.items)):
            _pull(t, v, params, f"{path}[{i}]")
        return

    if isinstance(template, PlutusConstr):
        if not isinstance(value, PlutusConstr):
            raise ShapeMismatch(f"Expected PlutusConstr, got {type(value).__name__}", path)
        if template.tag != value.tag:
            raise ShapeMismatch(
                f"Constructor tag mismatch: expected {template.tag}, got {value.tag}", path
            )
        if len(template.fields) != len(value.fields):
            raise ShapeMismatch(
                f"Field count mismatch: expected {len(template.fields)}, got {len(value.fields)}",
                path,
            )
        for i, (t, v) in enumerate(zip(template.fields, value.fields)):
            _pull(t, v, params, f"{path}.fields[{i}]")
        return

    raise ShapeMismatch(f"Not a template node: {type(template).__name__}", path)


# ---------------------------------------------------------------------------
# Push
# ---------------------------------------------------------------------------

def push_parameters(template: PlutusData, params: Mapping[Any, Union[int, str]]) -> PlutusData:
    """
    Substitute parameters into a template, producing a concrete value.

    Raises:
        MissingParameter: when a key in the template is absent from ``params``
        ShapeMismatch: when a supplied value has the wrong scalar kind
    """
    return _push(template, params, "$")


def _push(template: PlutusData, params: Mapping[Any, Union[int, str]], path: str) -> PlutusData:
    if isinstance(template, PlutusInt):
        if not _is_key(template.value):
            return template
        value = _lookup(template.value, params)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ShapeMismatch(f"Parameter {template.value} must be an int, got {value!r}", path)
        return PlutusInt(value)

    if isinstance(template, PlutusBytes):
        if not _is_key(template.value):
            return template
        value = _lookup(template.value, params)
        try:
            return PlutusBytes(value)
        except ValueError as e:
            raise ShapeMismatch(f"Parameter {template.value} must be hex: {e}", path) from e

    if isinstance(template, PlutusList):
        return PlutusList(tuple(
            _push(item, params, f"{path}[{i}]") for i, item in enumerate(template.items)
        ))

    if isinstance(template, PlutusConstr):
        return PlutusConstr(template.tag, tuple(
            _push(field, params, f"{path}.fields[{i}]") for i, field in enumerate(template.fields)
        ))

    raise ShapeMismatch(f"Not a template node: {type(template).__name__}", path)


def _lookup(key: DatumParameterKey, params: Mapping[Any, Union[int, str]]) -> Union[int, str]:
    # Plain-string keys are accepted too; DatumParameterKey hashes like its value
    if key in params:
        return params[key]
    raise MissingParameter(key)


def template_keys(template: PlutusData) -> List[DatumParameterKey]:
    """Parameter keys of a template in walk order, without duplicates."""
    keys: List[DatumParameterKey] = []

    def walk(node: PlutusData) -> None:
        if isinstance(node, (PlutusInt, PlutusBytes)):
            if _is_key(node.value) and node.value not in keys:
                keys.append(node.value)
        elif isinstance(node, PlutusList):
            for item in node.items:
                walk(item)
        elif isinstance(node, PlutusConstr):
            for field in node.fields:
                walk(field)

    walk(template)
    return keys


# ---------------------------------------------------------------------------
# Definition builder
# ---------------------------------------------------------------------------

class DefinitionBuilder:
    """
    Holds one venue datum definition.

    Definitions are written as detailed-schema dicts whose leaves may be
    ``DatumParameterKey`` members, e.g. ``{"int": DatumParameterKey.LpFee}``.
    """

    def __init__(self, definition: Union[PlutusData, Dict[str, Any], None] = None):
        self._definition: PlutusData | None = None
        if definition is not None:
            self.load_definition(definition)

    def load_definition(self, definition: Union[PlutusData, Dict[str, Any]]) -> "DefinitionBuilder":
        self._definition = from_json(definition)
        return self

    def get_definition(self) -> PlutusData:
        if self._definition is None:
            raise ValueError("No definition loaded")
        return self._definition

    def push_parameters(self, params: Mapping[Any, Union[int, str]]) -> PlutusData:
        return push_parameters(self.get_definition(), params)

    def pull_parameters(self, value: Union[PlutusData, Dict[str, Any]]) -> DatumParameters:
        return pull_parameters(self.get_definition(), from_json(value))

    def keys(self) -> List[DatumParameterKey]:
        return template_keys(self.get_definition())
