"""
Plutus Structured Values

The tagged-union data model shared by every venue's on-chain records:

  - PlutusInt      arbitrary precision integer
  - PlutusBytes    byte string, held as lowercase hex
  - PlutusList     ordered sequence of values
  - PlutusConstr   constructor tag + ordered fields

Values are immutable and hashable.  The same node types double as field
templates: an int/bytes leaf may hold a ``DatumParameterKey`` instead of a
literal (see ``dexter.plutus.template``).

JSON conversion follows the Cardano "detailed schema":
``{"int": 1}``, ``{"bytes": "ab"}``, ``{"list": [...]}``,
``{"constructor": 0, "fields": [...]}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple, Union

from dexter.constants import VALID_HEX_PATTERN
from dexter.exceptions import MalformedRecord


# ---------------------------------------------------------------------------
# Node types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlutusInt:
    value: Union[int, Enum]

    def __post_init__(self):
        if isinstance(self.value, bool):
            raise TypeError("PlutusInt does not accept bool")

    def to_json(self) -> Dict[str, Any]:
        return {"int": self.value}


@dataclass(frozen=True)
class PlutusBytes:
    value: Union[str, Enum]

    def __post_init__(self):
        if isinstance(self.value, Enum):
            return
        if isinstance(self.value, (bytes, bytearray)):
            object.__setattr__(self, "value", bytes(self.value).hex())
            return
        if not isinstance(self.value, str) or not VALID_HEX_PATTERN.match(self.value):
            raise ValueError(f"PlutusBytes expects a hex string, got {self.value!r}")
        object.__setattr__(self, "value", self.value.lower())

    @property
    def raw(self) -> bytes:
        return bytes.fromhex(self.value)

    def to_json(self) -> Dict[str, Any]:
        return {"bytes": self.value}


@dataclass(frozen=True)
class PlutusList:
    items: Tuple["PlutusData", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> "PlutusData":
        return self.items[index]

    def to_json(self) -> Dict[str, Any]:
        return {"list": [item.to_json() for item in self.items]}


@dataclass(frozen=True)
class PlutusConstr:
    tag: int
    fields: Tuple["PlutusData", ...] = ()

    def __post_init__(self):
        if self.tag < 0:
            raise ValueError(f"Constructor tag must be non-negative: {self.tag}")
        object.__setattr__(self, "fields", tuple(self.fields))

    def __getitem__(self, index: int) -> "PlutusData":
        return self.fields[index]

    def to_json(self) -> Dict[str, Any]:
        return {
            "constructor": self.tag,
            "fields": [f.to_json() for f in self.fields],
        }


PlutusData = Union[PlutusInt, PlutusBytes, PlutusList, PlutusConstr]


# ---------------------------------------------------------------------------
# JSON (detailed schema)
# ---------------------------------------------------------------------------

def from_json(node: Any) -> PlutusData:
    """
    Build a value from a detailed-schema JSON node.

    Leaves that are already Enum members (parameter keys) are kept as-is, so
    the same function loads both concrete datums and template definitions.

    Raises:
        MalformedRecord: if the node is not a recognised shape
    """
    if isinstance(node, (PlutusInt, PlutusBytes, PlutusList, PlutusConstr)):
        return node
    if not isinstance(node, dict):
        raise MalformedRecord(f"Datum node must be an object, got {type(node).__name__}")

    try:
        if "constructor" in node:
            fields = node.get("fields", [])
            if not isinstance(fields, list):
                raise MalformedRecord("Constructor fields must be a list")
            tag = node["constructor"]
            if not isinstance(tag, int) or isinstance(tag, bool):
                raise MalformedRecord(f"Constructor tag must be an int, got {tag!r}")
            return PlutusConstr(tag, tuple(from_json(f) for f in fields))
        if "list" in node:
            items = node["list"]
            if not isinstance(items, list):
                raise MalformedRecord("List node must hold a list")
            return PlutusList(tuple(from_json(i) for i in items))
        if "int" in node:
            value = node["int"]
            if isinstance(value, Enum):
                return PlutusInt(value)
            if isinstance(value, str):
                value = int(value)
            if not isinstance(value, int) or isinstance(value, bool):
                raise MalformedRecord(f"Int node must hold an integer, got {value!r}")
            return PlutusInt(value)
        if "bytes" in node:
            return PlutusBytes(node["bytes"])
    except (TypeError, ValueError) as e:
        raise MalformedRecord(f"Invalid datum node: {e}") from e

    raise MalformedRecord(f"Unrecognised datum node keys: {sorted(node)}")
