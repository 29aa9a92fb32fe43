from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from dexstats.config import settings
from dexstats.core.errors import UnsupportedChainError
from dexstats.core.models import ChainContracts, TokenRef
from dexstats.ports.chain_context_port import ChainContextPort
from dexstats.ports.chain_data_port import ChainDataPort
from dexstats.adapters.chain.web3_chain_adapter import Web3ChainAdapter


logger = logging.getLogger(__name__)


class ChainRegistry(ChainContextPort):
    """
    Chain id -> (RPC-backed provider, contract set), built from settings.

    Providers are created lazily and reused for the life of the registry.
    """

    def __init__(
        self,
        registry: Optional[Dict[int, dict]] = None,
        rpc_url_for: Callable[[int], Optional[str]] = settings.rpc_url_for,
    ) -> None:
        self._registry = dict(registry if registry is not None else settings.CHAIN_REGISTRY)
        self._rpc_url_for = rpc_url_for
        self._providers: Dict[int, ChainDataPort] = {}

    def resolve_provider(self, chain_id: int) -> Optional[ChainDataPort]:
        cid = int(chain_id)
        if cid in self._providers:
            return self._providers[cid]

        url = self._rpc_url_for(cid)
        if not url:
            logger.warning("no RPC url configured for chain %s", cid)
            return None

        provider = Web3ChainAdapter(url)
        self._providers[cid] = provider
        return provider

    def get_contracts_for_chain(self, chain_id: int) -> ChainContracts:
        cid = int(chain_id)
        entry = self._registry.get(cid)
        if entry is None:
            raise UnsupportedChainError(f"no contracts registered for chain {cid}")

        tokens = tuple(
            TokenRef(address=address, symbol=symbol, decimals=int(decimals))
            for address, symbol, decimals in entry.get("tokens", [])
        )
        return ChainContracts(
            chain_id=cid,
            factory_address=entry["factory"],
            tokens=tokens,
            name=entry.get("name"),
        )
