from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from dexstats.core.models import DexStats, PoolSnapshot, TokenRef, UserStats


def _dec_to_str(x: Decimal) -> str:
    # keep as string for JSON precision safety
    return format(x, "f")


def _token_to_dict(t: TokenRef) -> Dict[str, Any]:
    return {"address": t.address, "symbol": t.symbol, "decimals": t.decimals}


def pool_to_dict(p: PoolSnapshot) -> Dict[str, Any]:
    return {
        "address": p.address,
        "token0": _token_to_dict(p.token0),
        "token1": _token_to_dict(p.token1),
        "fee": p.fee,
        # big ints as strings, JSON consumers can't hold uint160
        "liquidity": str(p.liquidity),
        "sqrt_price_x96": str(p.sqrt_price_x96),
        "tick": p.tick,
        "volume24h": _dec_to_str(p.volume24h),
        "volume_estimated_by_fallback": p.volume_estimated_by_fallback,
        "tvl": _dec_to_str(p.tvl),
    }


def user_stats_to_dict(u: Optional[UserStats]) -> Optional[Dict[str, Any]]:
    if u is None:
        return None
    return {
        "total_trades": u.total_trades,
        "total_volume": _dec_to_str(u.total_volume),
        "profit_loss": _dec_to_str(u.profit_loss),
    }


def stats_to_dict(s: DexStats) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "chain_id": s.chain_id,
        "total_value_locked": _dec_to_str(s.total_value_locked),
        "volume24h": _dec_to_str(s.volume24h),
        "total_pools": s.total_pools,
        "pools": [pool_to_dict(p) for p in s.pools],
    }
    if s.user_stats is not None:
        out["user_stats"] = user_stats_to_dict(s.user_stats)
    return out
