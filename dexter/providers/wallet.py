"""
Wallet Provider Contract

Signing and submission belong to the wallet; the toolkit only hands it
payments.  ``DexTransaction`` tracks a transaction through

    BUILDING -> SIGNING -> SUBMITTING -> SUBMITTED
                                      \\-> ERRORED

and notifies registered listeners on every status change.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Optional, Sequence

from dexter.dex.models import PayToAddress
from dexter.exceptions import DexterException, WalletNotLoaded
from dexter.logger import get_logger

logger = get_logger(__name__)


class TransactionStatus(str, Enum):
    BUILDING = "building"
    SIGNING = "signing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    ERRORED = "errored"


StatusListener = Callable[["DexTransaction"], None]


class DexTransaction:
    """A wallet transaction under construction."""

    def __init__(self, wallet_provider: "BaseWalletProvider"):
        self.wallet_provider = wallet_provider
        self.hash: str = ""
        self.payments: List[PayToAddress] = []
        self.metadata: dict = {}
        self.cbor_hex: str = ""
        self.is_signed: bool = False
        self.error: Optional[str] = None
        self._status = TransactionStatus.BUILDING
        self._listeners: List[StatusListener] = []

    @property
    def status(self) -> TransactionStatus:
        return self._status

    @status.setter
    def status(self, status: TransactionStatus) -> None:
        self._status = status
        for listener in self._listeners:
            listener(self)

    def on_status_change(self, listener: StatusListener) -> "DexTransaction":
        self._listeners.append(listener)
        return self

    async def pay_to_addresses(self, payments: Sequence[PayToAddress]) -> "DexTransaction":
        return await self.wallet_provider.payments_for_transaction(self, payments)

    async def sign(self) -> "DexTransaction":
        return await self.wallet_provider.sign_transaction(self)

    async def submit(self) -> str:
        return await self.wallet_provider.submit_transaction(self)

    def fail(self, error: Exception) -> None:
        self.error = str(error)
        self.status = TransactionStatus.ERRORED


class BaseWalletProvider(ABC):

    is_wallet_loaded: bool = False

    @abstractmethod
    def address(self) -> str:
        ...

    @abstractmethod
    def public_key_hash(self) -> str:
        ...

    @abstractmethod
    def staking_key_hash(self) -> str:
        ...

    def create_transaction(self) -> DexTransaction:
        return DexTransaction(self)

    def new_transaction_from_hex(self, cbor_hex: str) -> DexTransaction:
        """Wrap a transaction built elsewhere (e.g. by a venue API)."""
        transaction = self.create_transaction()
        transaction.cbor_hex = cbor_hex
        return transaction

    def attach_metadata(self, transaction: DexTransaction, key: int, value: dict) -> DexTransaction:
        transaction.metadata[key] = value
        return transaction

    @abstractmethod
    async def payments_for_transaction(
        self, transaction: DexTransaction, payments: Sequence[PayToAddress]
    ) -> DexTransaction:
        ...

    @abstractmethod
    async def sign_transaction(self, transaction: DexTransaction) -> DexTransaction:
        ...

    @abstractmethod
    async def submit_transaction(self, transaction: DexTransaction) -> str:
        ...


class MockWalletProvider(BaseWalletProvider):
    """Deterministic in-memory wallet for tests."""

    def __init__(
        self,
        address: str = "addr_test1qrp4xqmp6ljhz04j7hq3znxgk2t2h2dqzj6xk2mv7ccyeqw7fk3ww4j8s0kjcaq4k0sv7nh8wqchhrxcsq0jt4plqcpq0k5x5l",
        public_key_hash: str = "c3530361d7e5713eb2f5c1114cc8b2d4aba9a014b4656b6cf6304c81",
        staking_key_hash: str = "de4da2e7564783da963a0ab3e0cf4ee7031739bb1880e4baa1f8c080",
    ):
        self._address = address
        self._public_key_hash = public_key_hash
        self._staking_key_hash = staking_key_hash
        self.is_wallet_loaded = False
        self.submitted: List[DexTransaction] = []

    def load_wallet_from_seed_phrase(self, seed: Sequence[str]) -> "MockWalletProvider":
        self.is_wallet_loaded = True
        return self

    def _require_loaded(self) -> None:
        if not self.is_wallet_loaded:
            raise WalletNotLoaded("Mock wallet has not been loaded")

    def address(self) -> str:
        self._require_loaded()
        return self._address

    def public_key_hash(self) -> str:
        self._require_loaded()
        return self._public_key_hash

    def staking_key_hash(self) -> str:
        self._require_loaded()
        return self._staking_key_hash

    async def payments_for_transaction(
        self, transaction: DexTransaction, payments: Sequence[PayToAddress]
    ) -> DexTransaction:
        transaction.payments = list(payments)
        return transaction

    async def sign_transaction(self, transaction: DexTransaction) -> DexTransaction:
        self._require_loaded()
        transaction.is_signed = True
        return transaction

    async def submit_transaction(self, transaction: DexTransaction) -> str:
        if not transaction.is_signed:
            raise DexterException("Transaction must be signed before submission")
        digest = hashlib.blake2b(repr((transaction.cbor_hex, transaction.payments)).encode(), digest_size=32)
        transaction.hash = digest.hexdigest()
        self.submitted.append(transaction)
        logger.debug(f"Mock wallet submitted {transaction.hash}")
        return transaction.hash
