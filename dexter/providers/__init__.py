from .data import BaseDataProvider, MockDataProvider
from .wallet import (
    BaseWalletProvider,
    DexTransaction,
    MockWalletProvider,
    TransactionStatus,
)

__all__ = [
    "BaseDataProvider",
    "MockDataProvider",
    "BaseWalletProvider",
    "DexTransaction",
    "MockWalletProvider",
    "TransactionStatus",
]
