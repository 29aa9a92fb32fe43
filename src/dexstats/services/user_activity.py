from __future__ import annotations

import logging
from typing import Iterable

from dexstats.config.settings import USER_SCAN_BLOCKS
from dexstats.core.dto import RawSwap
from dexstats.core.models import UserStats
from dexstats.core.units import to_unit
from dexstats.ports.chain_data_port import ChainDataPort


logger = logging.getLogger(__name__)


def summarize_swaps(swaps: Iterable[RawSwap]) -> UserStats:
    trades = 0
    volume = 0
    pnl = 0
    for s in swaps:
        trades += 1
        volume += abs(s.amount0) + abs(s.amount1)
        # directional proxy, no cost basis
        pnl += s.amount1 - s.amount0

    return UserStats(
        total_trades=trades,
        total_volume=to_unit(volume),
        profit_loss=to_unit(pnl),
    )


class UserActivityScanner:
    """
    Per-address trading summary from Swap logs over the last `window_blocks`.
    Never raises: a failed scan reads as zero activity.
    """

    def __init__(self, window_blocks: int = USER_SCAN_BLOCKS) -> None:
        self.window_blocks = int(window_blocks)

    async def scan(self, chain: ChainDataPort, address: str) -> UserStats:
        try:
            latest = int(await chain.get_block_number())
            from_block = max(0, latest - self.window_blocks)
            swaps = await chain.get_swap_logs(address, from_block, latest)
        except Exception as e:
            logger.error("error fetching user stats for %s: %s", address, e)
            return UserStats.zero()

        return summarize_swaps(swaps)
