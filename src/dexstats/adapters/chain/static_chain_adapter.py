from dexstats.ports.chain_data_port import ChainDataPort
from dexstats.ports.chain_context_port import ChainContextPort
from dexstats.core.dto import Observation, RawSwap, Slot0
from dexstats.core.errors import DataSourceError, UnsupportedChainError
from dexstats.core.models import ZERO_ADDRESS, ChainContracts
from typing import Optional, Dict, List, Tuple

class StaticChainAdapter(ChainDataPort):
    """
    In-memory chain for dev runs and tests.

    Every read is recorded in `calls` as (method, *args). Keys listed in
    `failures` as (method, key) raise DataSourceError instead of answering;
    key is the pool address, or the (token_a, token_b, fee) triple for get_pool.
    """

    def __init__(self,
                 pools: Optional[Dict[Tuple[str, str, int], str]] = None,
                 slot0: Optional[Dict[str, Slot0]] = None,
                 liquidity: Optional[Dict[str, int]] = None,
                 observations: Optional[Dict[str, List[int]]] = None,
                 swaps: Optional[List[RawSwap]] = None,
                 block_number: int = 0,
                 failures: Optional[set] = None,
                 ):
        self._pools = {self._pair_key(a, b, f): addr for (a, b, f), addr in (pools or {}).items()}
        self._slot0 = {k.lower(): v for k, v in (slot0 or {}).items()}
        self._liquidity = {k.lower(): v for k, v in (liquidity or {}).items()}
        self._observations = {k.lower(): v for k, v in (observations or {}).items()}
        self._swaps = swaps or []
        self._block_number = block_number
        self._failures = set(failures or ())
        self.calls: List[tuple] = []

    @staticmethod
    def _pair_key(token_a, token_b, fee):
        a, b = sorted((token_a.lower(), token_b.lower()))
        return (a, b, int(fee))

    def _maybe_fail(self, method, key):
        if (method, key) in self._failures:
            raise DataSourceError(f"static {method} failure for {key}")

    def calls_to(self, method):
        return [c for c in self.calls if c[0] == method]

    async def get_pool(self, factory_address, token_a, token_b, fee):
        self.calls.append(("get_pool", factory_address, token_a, token_b, fee))
        key = self._pair_key(token_a, token_b, fee)
        self._maybe_fail("get_pool", key)
        return self._pools.get(key, ZERO_ADDRESS)

    async def get_slot0(self, pool_address):
        self.calls.append(("get_slot0", pool_address))
        pa = pool_address.lower()
        self._maybe_fail("get_slot0", pa)
        if pa not in self._slot0:
            raise DataSourceError(f"static slot0 missing for {pa}")
        return self._slot0[pa]

    async def get_liquidity(self, pool_address):
        self.calls.append(("get_liquidity", pool_address))
        pa = pool_address.lower()
        self._maybe_fail("get_liquidity", pa)
        if pa not in self._liquidity:
            raise DataSourceError(f"static liquidity missing for {pa}")
        return self._liquidity[pa]

    async def observe(self, pool_address, seconds_agos):
        self.calls.append(("observe", pool_address, tuple(seconds_agos)))
        pa = pool_address.lower()
        self._maybe_fail("observe", pa)
        if pa not in self._observations:
            raise DataSourceError(f"static observe: no observations recorded for {pa}")
        return Observation(tick_cumulatives=list(self._observations[pa]))

    async def get_block_number(self):
        self.calls.append(("get_block_number",))
        self._maybe_fail("get_block_number", None)
        return self._block_number

    async def get_swap_logs(self, recipient, from_block, to_block):
        self.calls.append(("get_swap_logs", recipient, from_block, to_block))
        rc = recipient.lower()
        self._maybe_fail("get_swap_logs", rc)
        return [
            s for s in self._swaps
            if s.recipient.lower() == rc
            and s.block_number >= from_block
            and s.block_number <= to_block
        ]


class StaticChainContext(ChainContextPort):
    def __init__(self,
                 providers: Optional[Dict[int, ChainDataPort]] = None,
                 contracts: Optional[Dict[int, ChainContracts]] = None,
                 ):
        self._providers = dict(providers or {})
        self._contracts = dict(contracts or {})

    def resolve_provider(self, chain_id):
        return self._providers.get(int(chain_id))

    def get_contracts_for_chain(self, chain_id):
        cid = int(chain_id)
        if cid not in self._contracts:
            raise UnsupportedChainError(f"no contracts registered for chain {cid}")
        return self._contracts[cid]
