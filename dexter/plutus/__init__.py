"""
Plutus data: structured values, canonical CBOR and field templates.
"""

from .data import (
    PlutusBytes,
    PlutusConstr,
    PlutusData,
    PlutusInt,
    PlutusList,
    from_json,
)
from .encoding import (
    decode,
    decode_hex,
    encode,
    encode_hex,
)
from .template import (
    DatumParameterKey,
    DatumParameters,
    DefinitionBuilder,
    pull_parameters,
    push_parameters,
    template_keys,
)

__all__ = [
    # Values
    "PlutusBytes", "PlutusConstr", "PlutusData", "PlutusInt", "PlutusList",
    "from_json",
    # Encoding
    "decode", "decode_hex", "encode", "encode_hex",
    # Templates
    "DatumParameterKey", "DatumParameters", "DefinitionBuilder",
    "pull_parameters", "push_parameters", "template_keys",
]
