"""
Platform fee composer.

Appends the integrator's platform fee payment to a venue's payment list.
The fee address and amount are passed in (see ``PlatformFeeConfig``);
nothing here reads the environment.
"""

from typing import List, Sequence

from dexter.constants import LOVELACE
from dexter.dex.models import AddressType, AssetBalance, PayToAddress


def append_platform_fee_if_missing(
    payments: Sequence[PayToAddress],
    fee_address: str,
    fee_amount: int,
) -> List[PayToAddress]:
    """
    Return ``payments`` plus one native-unit payment of ``fee_amount`` to
    ``fee_address``, unless a payment to that address already carries at
    least that much.  No-op when the address is empty or the amount is not
    positive.
    """
    result = list(payments)
    if not fee_address or fee_amount <= 0:
        return result

    exists = any(
        p.address == fee_address and p.balance_of(LOVELACE) >= fee_amount
        for p in result
    )
    if not exists:
        result.append(
            PayToAddress(
                address=fee_address,
                address_type=AddressType.BASE,
                asset_balances=(AssetBalance(LOVELACE, fee_amount),),
                is_inline_datum=False,
            )
        )
    return result
