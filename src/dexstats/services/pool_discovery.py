from __future__ import annotations

import asyncio
import logging
from typing import List, Sequence, Tuple

from dexstats.config.settings import POOL_FEES
from dexstats.core.errors import FactoryUnavailableError
from dexstats.core.models import ChainContracts, PoolAddress, PoolCandidate, TokenRef
from dexstats.ports.chain_data_port import ChainDataPort


logger = logging.getLogger(__name__)


def _is_zero_address(address: str) -> bool:
    if not address:
        return True
    try:
        return int(address, 16) == 0
    except ValueError:
        return False


class PoolDiscovery:
    """
    Finds the pools that exist for every unordered token pair x fee tier.

    - Enumeration: (i, j) with i < j in token order, then every fee tier
    - Lookup: one factory.getPool per candidate, all in flight at once
    - Misses: zero address or a failed lookup both mean "no pool"
    """

    def __init__(self, fees: Sequence[int] = POOL_FEES) -> None:
        self.fees = tuple(int(f) for f in fees)

    def enumerate_candidates(self, tokens: Sequence[TokenRef]) -> List[PoolCandidate]:
        out: List[PoolCandidate] = []
        for i in range(len(tokens)):
            for j in range(i + 1, len(tokens)):
                for fee in self.fees:
                    out.append(PoolCandidate.create(tokens[i], tokens[j], fee))
        return out

    async def discover(self, chain: ChainDataPort, contracts: ChainContracts) -> List[PoolAddress]:
        candidates = self.enumerate_candidates(contracts.tokens)
        if not candidates:
            return []

        # gather keeps argument order, so the output follows enumeration order
        results = await asyncio.gather(
            *(self._lookup(chain, contracts.factory_address, c) for c in candidates)
        )

        failed = sum(1 for _, err in results if err)
        if failed == len(candidates):
            raise FactoryUnavailableError(
                f"all {failed} getPool lookups failed against factory {contracts.factory_address}"
            )

        found = [pool for pool, _ in results if pool.exists]
        logger.info(
            "chain %s: %d/%d candidates resolved to pools (%d lookups failed)",
            contracts.chain_id, len(found), len(candidates), failed,
        )
        return found

    async def _lookup(
        self,
        chain: ChainDataPort,
        factory_address: str,
        candidate: PoolCandidate,
    ) -> Tuple[PoolAddress, bool]:
        try:
            address = await chain.get_pool(
                factory_address,
                candidate.token0.address,
                candidate.token1.address,
                candidate.fee,
            )
        except Exception as e:
            logger.debug(
                "getPool %s/%s fee %s failed: %s",
                candidate.token0.symbol, candidate.token1.symbol, candidate.fee, e,
            )
            return PoolAddress(candidate=candidate), True

        if _is_zero_address(address):
            return PoolAddress(candidate=candidate), False
        return PoolAddress(candidate=candidate, address=address), False
