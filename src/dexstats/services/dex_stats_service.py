from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from dexstats.config.settings import DEFAULT_CHAIN_ID
from dexstats.core.errors import ConfigurationError, UnsupportedChainError
from dexstats.core.models import ChainContracts, DexStats
from dexstats.ports.chain_context_port import ChainContextPort
from dexstats.ports.chain_data_port import ChainDataPort
from dexstats.services.aggregator import aggregate
from dexstats.services.pool_discovery import PoolDiscovery
from dexstats.services.result_cache import ResultCache
from dexstats.services.snapshot_fetcher import SnapshotFetcher
from dexstats.services.user_activity import UserActivityScanner


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveChain:
    chain_id: int
    chain: ChainDataPort
    contracts: ChainContracts


class DexStatsService:
    """
    Chain-wide pool statistics, served from a short-lived cache.

    - Miss: discover pools -> fetch snapshots -> aggregate -> cache
    - Address given: user activity is scanned on every call and attached
      to a copy of the aggregate; the cached aggregate never carries it
    - Network trouble degrades the result; only configuration errors raise
    """

    def __init__(
        self,
        context: ChainContextPort,
        chain_id: int = DEFAULT_CHAIN_ID,
        cache: Optional[ResultCache] = None,
        discovery: Optional[PoolDiscovery] = None,
        fetcher: Optional[SnapshotFetcher] = None,
        scanner: Optional[UserActivityScanner] = None,
    ) -> None:
        self.context = context
        self.cache = cache or ResultCache()
        self.discovery = discovery or PoolDiscovery()
        self.fetcher = fetcher or SnapshotFetcher()
        self.scanner = scanner or UserActivityScanner()

        self._active: Optional[ActiveChain] = None
        self.update_active_chain(chain_id)

    @property
    def active_chain_id(self) -> int:
        return self._active.chain_id

    def update_active_chain(self, chain_id: int) -> None:
        cid = int(chain_id)
        provider = self.context.resolve_provider(cid)
        if provider is None:
            raise UnsupportedChainError(f"no provider available for chain {cid}")
        contracts = self.context.get_contracts_for_chain(cid)

        # whole-value swap; work already in flight keeps the old provider
        self._active = ActiveChain(chain_id=cid, chain=provider, contracts=contracts)
        logger.info("switched to chain %s", cid)

    def invalidate(self) -> None:
        self.cache.invalidate()

    async def get_stats(self, user_address: Optional[str] = None) -> DexStats:
        active = self._active

        try:
            stats = await self.cache.get_or_compute(
                active.chain_id,
                lambda: self._recompute(active),
            )
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error("error fetching DEX stats for chain %s: %s", active.chain_id, e)
            stats = DexStats.empty(chain_id=active.chain_id)

        if user_address:
            user_stats = await self.scanner.scan(active.chain, user_address)
            stats = replace(stats, user_stats=user_stats)

        return stats

    async def _recompute(self, active: ActiveChain) -> DexStats:
        pools = await self.discovery.discover(active.chain, active.contracts)
        results = await self.fetcher.fetch_all(active.chain, pools)
        stats = aggregate(results, chain_id=active.chain_id)

        failed = len(results) - stats.total_pools
        logger.info(
            "chain %s: aggregated %d pools (%d failed), tvl=%s volume24h=%s",
            active.chain_id, stats.total_pools, failed,
            stats.total_value_locked, stats.volume24h,
        )
        return stats
