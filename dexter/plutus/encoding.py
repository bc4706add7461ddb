"""
Plutus Data Canonical Encoding

CBOR serialisation of structured values following the ledger's canonical
conventions:

  - constructor 0..6      -> tag 121 + i
  - constructor 7..127    -> tag 1280 + (i - 7)
  - any other constructor -> tag 102 over [i, fields]
  - non-empty lists / constructor fields -> indefinite-length arrays
  - empty lists           -> 0x80
  - byte strings > 64 B   -> indefinite byte string of 64-byte chunks
  - integers beyond 64 bits -> bignum tags 2 / 3 (handled by cbor2)

``encode`` is deterministic and ``decode`` is its exact inverse: only the
canonical spelling of a value is accepted, so ``encode(decode(b)) == b`` for
every ``b`` that decodes.  Definite-length arrays, non-minimal integer heads,
mis-chunked byte strings and any other non-canonical form raise
``MalformedRecord``, as does anything that cannot map onto a structured value.
"""

from __future__ import annotations

from enum import Enum
from io import BytesIO
from typing import Any, Iterable

from cbor2 import CBORDecodeError, CBORDecoder, CBOREncoder, CBORTag, dumps

from dexter.exceptions import MalformedRecord, MissingParameter
from dexter.plutus.data import PlutusBytes, PlutusConstr, PlutusData, PlutusInt, PlutusList

BYTES_CHUNK_SIZE = 64

CONSTR_TAG_BASE = 121            # constructors 0..6
CONSTR_TAG_EXTENDED_BASE = 1280  # constructors 7..127
CONSTR_TAG_GENERAL = 102         # [alternative, fields]


class _IndefiniteList:
    """Marker for arrays that must be written with indefinite length."""

    __slots__ = ("items",)

    def __init__(self, items: Iterable[PlutusData]):
        self.items = tuple(items)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _default_encoder(encoder: CBOREncoder, value: Any) -> None:
    """cbor2 hook writing structured values in canonical form."""
    if isinstance(value, PlutusInt):
        encoder.encode(value.value)
    elif isinstance(value, PlutusBytes):
        raw = value.raw
        if len(raw) <= BYTES_CHUNK_SIZE:
            encoder.encode(raw)
        else:
            encoder.write(b"\x5f")
            for start in range(0, len(raw), BYTES_CHUNK_SIZE):
                encoder.encode(raw[start:start + BYTES_CHUNK_SIZE])
            encoder.write(b"\xff")
    elif isinstance(value, PlutusList):
        encoder.encode(_IndefiniteList(value.items))
    elif isinstance(value, PlutusConstr):
        fields = _IndefiniteList(value.fields)
        if value.tag < 7:
            encoder.encode(CBORTag(CONSTR_TAG_BASE + value.tag, fields))
        elif value.tag < 128:
            encoder.encode(CBORTag(CONSTR_TAG_EXTENDED_BASE + value.tag - 7, fields))
        else:
            encoder.encode(CBORTag(CONSTR_TAG_GENERAL, [value.tag, fields]))
    elif isinstance(value, _IndefiniteList):
        if not value.items:
            encoder.encode([])
            return
        encoder.write(b"\x9f")
        for item in value.items:
            encoder.encode(item)
        encoder.write(b"\xff")
    else:
        raise TypeError(f"Cannot encode {type(value).__name__} as Plutus data")


def _assert_concrete(value: PlutusData) -> None:
    """Reject templates that still hold parameter keys."""
    if isinstance(value, (PlutusInt, PlutusBytes)):
        if isinstance(value.value, Enum):
            raise MissingParameter(value.value)
        if isinstance(value, PlutusInt) and not isinstance(value.value, int):
            raise TypeError(f"PlutusInt holds non-integer {value.value!r}")
    elif isinstance(value, PlutusList):
        for item in value.items:
            _assert_concrete(item)
    elif isinstance(value, PlutusConstr):
        for item in value.fields:
            _assert_concrete(item)
    else:
        raise TypeError(f"Not a Plutus value: {type(value).__name__}")


def encode(value: PlutusData) -> bytes:
    """
    Serialise a structured value to canonical CBOR.

    Raises:
        MissingParameter: if the value is a template with unfilled keys
    """
    _assert_concrete(value)
    return dumps(value, default=_default_encoder)


def encode_hex(value: PlutusData) -> str:
    return encode(value).hex()


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _from_cbor(obj: Any, path: str) -> PlutusData:
    if isinstance(obj, bool) or obj is None:
        raise MalformedRecord(f"Unsupported CBOR simple value at {path}")
    if isinstance(obj, int):
        return PlutusInt(obj)
    if isinstance(obj, (bytes, bytearray)):
        return PlutusBytes(bytes(obj).hex())
    if isinstance(obj, list):
        return PlutusList(tuple(_from_cbor(item, f"{path}[{i}]") for i, item in enumerate(obj)))
    if isinstance(obj, CBORTag):
        tag = obj.tag
        if CONSTR_TAG_BASE <= tag < CONSTR_TAG_BASE + 7:
            return _constr(tag - CONSTR_TAG_BASE, obj.value, path)
        if CONSTR_TAG_EXTENDED_BASE <= tag < CONSTR_TAG_EXTENDED_BASE + 121:
            return _constr(tag - CONSTR_TAG_EXTENDED_BASE + 7, obj.value, path)
        if tag == CONSTR_TAG_GENERAL:
            body = obj.value
            if (not isinstance(body, list) or len(body) != 2
                    or not isinstance(body[0], int) or isinstance(body[0], bool) or body[0] < 0):
                raise MalformedRecord(f"Malformed general constructor at {path}")
            return _constr(body[0], body[1], path)
        raise MalformedRecord(f"Unsupported CBOR tag {tag} at {path}")
    raise MalformedRecord(f"Unsupported CBOR item {type(obj).__name__} at {path}")


def _constr(tag: int, fields: Any, path: str) -> PlutusConstr:
    if not isinstance(fields, list):
        raise MalformedRecord(f"Constructor fields must be an array at {path}")
    return PlutusConstr(
        tag,
        tuple(_from_cbor(item, f"{path}.fields[{i}]") for i, item in enumerate(fields)),
    )


def decode(data: bytes) -> PlutusData:
    """
    Parse canonical CBOR into a structured value.

    Raises:
        MalformedRecord: on empty, truncated, trailing, ill-tagged or
            non-canonical input
    """
    if not data:
        raise MalformedRecord("Empty datum bytes")

    decoder = CBORDecoder(BytesIO(bytes(data)))
    try:
        obj = decoder.decode()
    except (CBORDecodeError, EOFError, ValueError, TypeError, OverflowError, RecursionError) as e:
        raise MalformedRecord(f"Undecodable datum: {e}") from e

    # The decoder reads ahead, so ask it rather than the stream
    try:
        trailing = decoder.read(1)
    except (CBORDecodeError, EOFError):
        trailing = b""
    if trailing:
        raise MalformedRecord("Trailing bytes after datum")

    try:
        value = _from_cbor(obj, "$")
        canonical = encode(value)
    except RecursionError as e:
        raise MalformedRecord(f"Datum nested too deeply: {e}") from e
    if canonical != bytes(data):
        raise MalformedRecord("Datum is not canonically encoded")
    return value


def decode_hex(data_hex: str) -> PlutusData:
    try:
        raw = bytes.fromhex(data_hex)
    except (TypeError, ValueError) as e:
        raise MalformedRecord(f"Datum is not valid hex: {e}") from e
    return decode(raw)
