from __future__ import annotations

import asyncio
import logging
from typing import List, Sequence

from dexstats.config.settings import (
    FALLBACK_VOLUME_PCT,
    OBSERVE_WINDOW_SEC,
    TICK_VOLUME_DIVISOR,
    VOLUME_EXTRAPOLATION_FACTOR,
)
from dexstats.core.models import FetchResult, PoolAddress, PoolSnapshot
from dexstats.ports.chain_data_port import ChainDataPort


logger = logging.getLogger(__name__)


def estimate_volume_from_ticks(liquidity: int, tick_cumulatives: Sequence[int]) -> int:
    """
    Hourly volume proxy from tick movement over the observe window,
    scaled by liquidity and extrapolated to 24h.
    """
    tick_change = abs(int(tick_cumulatives[1]) - int(tick_cumulatives[0]))
    return liquidity * tick_change // TICK_VOLUME_DIVISOR * VOLUME_EXTRAPOLATION_FACTOR


def fallback_volume(liquidity: int) -> int:
    # assumes FALLBACK_VOLUME_PCT of liquidity trades per day
    return liquidity * FALLBACK_VOLUME_PCT // 100


class SnapshotFetcher:

    def __init__(self, observe_window_sec: int = OBSERVE_WINDOW_SEC) -> None:
        self.observe_window_sec = int(observe_window_sec)

    async def fetch_all(self, chain: ChainDataPort, pools: Sequence[PoolAddress]) -> List[FetchResult]:
        results = await asyncio.gather(
            *(self.fetch(chain, p) for p in pools),
            return_exceptions=True,
        )

        out: List[FetchResult] = []
        for pool, res in zip(pools, results):
            if isinstance(res, Exception):
                out.append(FetchResult.failure(pool, f"{res.__class__.__name__}: {res}"))
            elif isinstance(res, BaseException):
                raise res
            else:
                out.append(res)
        return out

    async def fetch(self, chain: ChainDataPort, pool: PoolAddress) -> FetchResult:
        if not pool.exists:
            return FetchResult.failure(pool, "pool does not exist")

        address = pool.address
        try:
            slot0, liquidity = await asyncio.gather(
                chain.get_slot0(address),
                chain.get_liquidity(address),
            )
        except Exception as e:
            logger.warning("no data for pool %s: %s", address, e)
            return FetchResult.failure(pool, f"{e.__class__.__name__}: {e}")

        liquidity = int(liquidity)
        estimated_by_fallback = False
        try:
            obs = await chain.observe(address, [0, self.observe_window_sec])
            volume = estimate_volume_from_ticks(liquidity, obs.tick_cumulatives)
        except Exception as e:
            # new pools or pools without recorded observations can't answer observe
            logger.warning("could not fetch historical data for pool %s: %s", address, e)
            volume = fallback_volume(liquidity)
            estimated_by_fallback = True

        snapshot = PoolSnapshot(
            address=address,
            token0=pool.candidate.token0,
            token1=pool.candidate.token1,
            fee=pool.candidate.fee,
            liquidity=liquidity,
            sqrt_price_x96=int(slot0.sqrt_price_x96),
            tick=int(slot0.tick),
            volume24h_raw=volume,
            volume_estimated_by_fallback=estimated_by_fallback,
        )
        return FetchResult.success(pool, snapshot)
