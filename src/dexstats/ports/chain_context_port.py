from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from dexstats.core.models import ChainContracts
from dexstats.ports.chain_data_port import ChainDataPort


class ChainContextPort(ABC):

    @abstractmethod
    def resolve_provider(self, chain_id: int) -> Optional[ChainDataPort]:
        raise NotImplementedError

    @abstractmethod
    def get_contracts_for_chain(self, chain_id: int) -> ChainContracts:
        """Raises UnsupportedChainError for chains without a contract set."""
        raise NotImplementedError
