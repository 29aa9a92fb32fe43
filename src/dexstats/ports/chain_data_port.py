from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence
from dexstats.core.dto import Observation, RawSwap, Slot0

class ChainDataPort(ABC):
    """
    Abstract Class for read-only chain access used by the stats engine.
    All reads are coroutines so callers can keep many in flight.
    """

    # --- Factory ---

    @abstractmethod
    async def get_pool(self, factory_address: str, token_a: str, token_b: str, fee: int) -> str:
        """Pool address for the pair + fee, zero address when none exists."""
        raise NotImplementedError

    # --- Pool state ---

    @abstractmethod
    async def get_slot0(self, pool_address: str) -> Slot0:
        raise NotImplementedError

    @abstractmethod
    async def get_liquidity(self, pool_address: str) -> int:
        raise NotImplementedError

    @abstractmethod
    async def observe(self, pool_address: str, seconds_agos: Sequence[int]) -> Observation:
        raise NotImplementedError

    # --- Blocks / logs ---

    @abstractmethod
    async def get_block_number(self) -> int:
        raise NotImplementedError

    @abstractmethod
    async def get_swap_logs(self, recipient: str, from_block: int, to_block: int) -> List[RawSwap]:
        """Decoded Swap events whose indexed recipient is `recipient`."""
        raise NotImplementedError
