from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Slot0:
    sqrt_price_x96: int
    tick: int


@dataclass(frozen=True)
class Observation:
    tick_cumulatives: List[int]      # one per requested secondsAgo, same order


@dataclass(frozen=True)
class RawSwap:
    pool_address: str
    block_number: int
    tx_hash: str
    sender: str
    recipient: str
    amount0: int            # signed, raw units (pool perspective)
    amount1: int
    sqrt_price_x96: int
    liquidity: int
    tick: int
