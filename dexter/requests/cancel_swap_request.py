"""
Cancel Swap Request

Cancels an open order placed by an earlier transaction: the order output is
looked up through the data provider and the venue builds the refund.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from dexter.constants import METADATA_MESSAGE_KEY
from dexter.dex.models import PayToAddress
from dexter.exceptions import ConfigurationError, InvalidSwapRequest
from dexter.logger import get_logger
from dexter.providers.wallet import DexTransaction, TransactionStatus

if TYPE_CHECKING:
    from dexter.dexter import Dexter

logger = get_logger(__name__)


class CancelSwapRequest:

    def __init__(self, dexter: "Dexter"):
        self._dexter = dexter
        self.tx_hash: Optional[str] = None
        self.dex_name: Optional[str] = None

    def for_transaction(self, tx_hash: str) -> "CancelSwapRequest":
        self.tx_hash = tx_hash
        return self

    def for_dex(self, name: str) -> "CancelSwapRequest":
        if self._dexter.dex_by_name(name) is None:
            raise InvalidSwapRequest(f"Unknown venue {name!r}")
        self.dex_name = name
        return self

    async def get_payments_to_addresses(self) -> List[PayToAddress]:
        """
        Raises:
            InvalidSwapRequest: transaction or venue not set
            ConfigurationError: no data provider configured
            OrderNotFound: the transaction has no output at the venue order address
        """
        if not self.tx_hash or not self.dex_name:
            raise InvalidSwapRequest("Transaction hash and venue must be set before cancelling")
        provider = self._dexter.data_provider
        if provider is None:
            raise ConfigurationError("A data provider is required to cancel orders")

        outputs = await provider.transaction_utxos(self.tx_hash)
        dex = self._dexter.dex_by_name(self.dex_name)
        return dex.build_cancel_swap_order(outputs, self._dexter.wallet_provider.address())

    async def submit(self) -> DexTransaction:
        """Build, sign and submit the cancel transaction."""
        wallet = self._dexter.wallet_provider
        transaction = wallet.create_transaction()
        try:
            payments = await self.get_payments_to_addresses()
            transaction.status = TransactionStatus.BUILDING
            await transaction.pay_to_addresses(payments)
            wallet.attach_metadata(transaction, METADATA_MESSAGE_KEY, {
                "msg": [f"[{self._dexter.config.metadata_msg_branding}] {self.dex_name} Cancel Swap"],
            })
            transaction.status = TransactionStatus.SIGNING
            await transaction.sign()
            transaction.status = TransactionStatus.SUBMITTING
            await transaction.submit()
            transaction.status = TransactionStatus.SUBMITTED
            logger.info(f"Cancel for {self.tx_hash} on {self.dex_name} submitted: {transaction.hash}")
        except Exception as e:
            logger.error(f"Cancel for {self.tx_hash} failed: {e}")
            transaction.fail(e)
            raise
        return transaction
