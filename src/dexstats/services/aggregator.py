from __future__ import annotations

from typing import Iterable, Optional

from dexstats.core.models import DexStats, FetchResult
from dexstats.core.units import to_unit


def aggregate(results: Iterable[FetchResult], chain_id: Optional[int] = None) -> DexStats:
    """
    Reduce settled pool fetches into chain-wide totals.

    Failed fetches are left out; the survivors keep their input order.
    """
    pools = tuple(r.snapshot for r in results if r.ok)

    # sum raw integers, convert once
    total_liquidity = sum((p.liquidity for p in pools), 0)
    total_volume = sum((p.volume24h_raw for p in pools), 0)

    return DexStats(
        total_value_locked=to_unit(total_liquidity),
        volume24h=to_unit(total_volume),
        total_pools=len(pools),
        pools=pools,
        chain_id=chain_id,
    )
