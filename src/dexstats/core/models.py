from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

from dexstats.core.units import to_unit


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"



# Chain / token models

@dataclass(frozen=True)
class TokenRef:

    address: str
    symbol: str
    decimals: int = 18

    @property
    def key(self) -> str:
        return self.address.lower()


@dataclass(frozen=True)
class ChainContracts:
    """
    Contract set for one chain: the pool factory plus the tokens to pair up.
    """

    chain_id: int
    factory_address: str
    tokens: Tuple[TokenRef, ...] = ()
    name: Optional[str] = None



# Discovery models

@dataclass(frozen=True)
class PoolCandidate:

    token0: TokenRef
    token1: TokenRef
    fee: int

    def __post_init__(self) -> None:
        if self.token0.key == self.token1.key:
            raise ValueError(f"pool candidate needs two distinct tokens, got {self.token0.address} twice")

    @classmethod
    def create(cls, token_a: TokenRef, token_b: TokenRef, fee: int) -> "PoolCandidate":
        # same ordering the factory uses for token0/token1
        if token_b.key < token_a.key:
            token_a, token_b = token_b, token_a
        return cls(token0=token_a, token1=token_b, fee=fee)


@dataclass(frozen=True)
class PoolAddress:

    candidate: PoolCandidate
    address: Optional[str] = None      # None = no pool for this pair + fee

    @property
    def exists(self) -> bool:
        return self.address is not None



# Snapshot / aggregate models

@dataclass(frozen=True)
class PoolSnapshot:

    address: str
    token0: TokenRef
    token1: TokenRef
    fee: int

    liquidity: int             # raw uint128
    sqrt_price_x96: int
    tick: int
    volume24h_raw: int         # estimate, same raw scale as liquidity
    volume_estimated_by_fallback: bool = False

    @property
    def tvl(self) -> Decimal:
        return to_unit(self.liquidity)

    @property
    def volume24h(self) -> Decimal:
        return to_unit(self.volume24h_raw)


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of one pool fetch: either a snapshot or the reason it failed.
    """

    pool: PoolAddress
    snapshot: Optional[PoolSnapshot] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None

    @classmethod
    def success(cls, pool: PoolAddress, snapshot: PoolSnapshot) -> "FetchResult":
        return cls(pool=pool, snapshot=snapshot)

    @classmethod
    def failure(cls, pool: PoolAddress, reason: str) -> "FetchResult":
        return cls(pool=pool, reason=reason)


@dataclass(frozen=True)
class UserStats:

    total_trades: int
    total_volume: Decimal
    profit_loss: Decimal       # naive sum of (amount1 - amount0)

    @classmethod
    def zero(cls) -> "UserStats":
        return cls(total_trades=0, total_volume=Decimal("0"), profit_loss=Decimal("0"))


@dataclass(frozen=True)
class DexStats:

    total_value_locked: Decimal
    volume24h: Decimal
    total_pools: int
    pools: Tuple[PoolSnapshot, ...] = field(default_factory=tuple)
    user_stats: Optional[UserStats] = None
    chain_id: Optional[int] = None

    @classmethod
    def empty(cls, chain_id: Optional[int] = None) -> "DexStats":
        # all-zero means "stats unavailable", not a zero-liquidity market
        return cls(
            total_value_locked=Decimal("0"),
            volume24h=Decimal("0"),
            total_pools=0,
            pools=(),
            chain_id=chain_id,
        )


@dataclass(frozen=True)
class CacheEntry:

    stats: DexStats
    last_update: float

    def is_valid(self, now: float, ttl: float) -> bool:
        return now - self.last_update < ttl
