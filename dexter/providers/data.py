"""
Data Provider Contract

Resolves addresses to unspent outputs and datum hashes to structured
values.  Real providers (indexers, chain followers) live outside this
package; ``MockDataProvider`` serves tests and offline tooling.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from dexter.dex.models import Token, UTxO
from dexter.exceptions import MalformedRecord
from dexter.plutus.data import PlutusData, from_json


class BaseDataProvider(ABC):

    @abstractmethod
    async def utxos(self, address: str, asset: Optional[Token] = None) -> List[UTxO]:
        """Unspent outputs at ``address``, optionally holding ``asset``."""

    @abstractmethod
    async def transaction_utxos(self, tx_hash: str) -> List[UTxO]:
        """Outputs created by transaction ``tx_hash``."""

    @abstractmethod
    async def datum_value(self, datum_hash: str) -> PlutusData:
        """
        Structured value behind ``datum_hash``.

        Raises:
            MalformedRecord: if the datum is unknown or undecodable
        """


class MockDataProvider(BaseDataProvider):
    """In-memory provider."""

    def __init__(self):
        self._utxos: List[UTxO] = []
        self._datums: Dict[str, PlutusData] = {}

    def add_utxo(self, utxo: UTxO) -> "MockDataProvider":
        self._utxos.append(utxo)
        return self

    def set_datum(self, datum_hash: str, datum: Union[PlutusData, Dict[str, Any]]) -> "MockDataProvider":
        self._datums[datum_hash] = from_json(datum)
        return self

    async def utxos(self, address: str, asset: Optional[Token] = None) -> List[UTxO]:
        return [
            u for u in self._utxos
            if u.address == address and (asset is None or u.balance_of(asset) > 0)
        ]

    async def transaction_utxos(self, tx_hash: str) -> List[UTxO]:
        return [u for u in self._utxos if u.tx_hash == tx_hash]

    async def datum_value(self, datum_hash: str) -> PlutusData:
        try:
            return self._datums[datum_hash]
        except KeyError:
            raise MalformedRecord(f"Unknown datum hash: {datum_hash}") from None
