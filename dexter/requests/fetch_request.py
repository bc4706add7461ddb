"""
Fetch Request

Concurrent pool discovery across venues:
  - one asyncio task per venue
  - a venue that fails entirely is logged and left out, the others still count
  - pools are merged by ``uuid`` so arrival order never matters
  - a caller-supplied ``asyncio.Event`` cancels every in-flight venue call
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from dexter.dex.base import BaseDex
from dexter.dex.models import LiquidityPool, Token, tokens_match
from dexter.exceptions import InvalidSwapRequest, RequestCancelled
from dexter.logger import get_logger

if TYPE_CHECKING:
    from dexter.dexter import Dexter

logger = get_logger(__name__)


class FetchRequest:

    def __init__(self, dexter: "Dexter"):
        self._dexter = dexter
        self.dexes: List[BaseDex] = list(dexter.available_dexes.values())

    def on_dexes(self, names: Sequence[str]) -> "FetchRequest":
        dexes = []
        for name in names:
            dex = self._dexter.dex_by_name(name)
            if dex is None:
                raise InvalidSwapRequest(f"Unknown venue {name!r}")
            dexes.append(dex)
        self.dexes = dexes
        return self

    def on_all_dexes(self) -> "FetchRequest":
        self.dexes = list(self._dexter.available_dexes.values())
        return self

    async def get_liquidity_pools(
        self,
        asset_a: Optional[Token] = None,
        asset_b: Optional[Token] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[LiquidityPool]:
        """
        Pools from every selected venue, optionally filtered to a pair.

        Raises:
            RequestCancelled: ``cancel_event`` was set before all venues answered
        """
        provider = self._dexter.data_provider
        tasks = {
            asyncio.create_task(dex.liquidity_pools(provider)): dex
            for dex in self.dexes
        }
        if not tasks:
            return []

        cancel_task = asyncio.create_task(cancel_event.wait()) if cancel_event is not None else None
        pending = set(tasks)
        merged: Dict[str, LiquidityPool] = {}

        try:
            while pending:
                waiting = (pending | {cancel_task}) if cancel_task is not None else pending
                done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

                if cancel_task is not None and cancel_task in done:
                    raise RequestCancelled(
                        f"Pool fetch cancelled with {len(pending)} venue(s) still in flight"
                    )

                for task in done:
                    pending.discard(task)
                    dex = tasks[task]
                    try:
                        pools = task.result()
                    except Exception as e:
                        logger.warning(f"{dex.identifier}: pool discovery failed: {e}")
                        continue
                    for pool in pools:
                        merged[pool.uuid] = pool
                    logger.debug(f"{dex.identifier}: {len(pools)} pools")
        finally:
            for task in pending:
                task.cancel()
            if cancel_task is not None:
                cancel_task.cancel()
            leftovers = list(pending) + ([cancel_task] if cancel_task is not None else [])
            await asyncio.gather(*leftovers, return_exceptions=True)

        pools = list(merged.values())
        if asset_a is not None:
            pools = [p for p in pools if p.has_token(asset_a)]
        if asset_b is not None:
            pools = [p for p in pools if p.has_token(asset_b)]
        if asset_a is not None and asset_b is not None and tokens_match(asset_a, asset_b):
            return []
        return pools
