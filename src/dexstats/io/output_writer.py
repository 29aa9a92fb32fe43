from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from dexstats.core.models import DexStats
from dexstats.io.schemas import stats_to_dict


def write_stats_json(stats: DexStats, out_dir: str, filename: str = "stats.json") -> str:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(stats_to_dict(stats), f, indent=2)

    return str(out_path)


def write_summary_md(
    stats: DexStats,
    out_dir: str,
    filename: str = "summary.md",
    user_address: Optional[str] = None,
) -> str:
    """
    Short human-readable summary next to stats.json.
    """
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename

    def pair(pool) -> str:
        return f"{pool.token0.symbol}/{pool.token1.symbol} {pool.fee / 10000:.2f}%"

    def short(addr: str) -> str:
        return addr if len(addr) <= 14 else f"{addr[:10]}..."

    top = sorted(stats.pools, key=lambda x: x.liquidity, reverse=True)[:10]
    fallback_count = sum(1 for x in stats.pools if x.volume_estimated_by_fallback)

    lines = []
    lines.append("# DEX Stats Summary\n")
    if stats.chain_id is not None:
        lines.append(f"- Chain: **{stats.chain_id}**\n")
    lines.append(f"- Pools: **{stats.total_pools}**\n")
    lines.append(f"- TVL (liquidity units): **{stats.total_value_locked:.4f}**\n")
    lines.append(f"- Volume 24h (estimate): **{stats.volume24h:.4f}**\n")
    lines.append("\n")

    if stats.total_pools == 0:
        lines.append("_Stats unavailable: no pool could be read on this chain._\n\n")

    lines.append("## Top 10 Pools (by liquidity)\n\n")
    if not top:
        lines.append("_No pools found._\n\n")
    else:
        for x in top:
            est = " (fallback estimate)" if x.volume_estimated_by_fallback else ""
            lines.append(
                f"- **{pair(x)}** | tvl {x.tvl:.4f} | vol24h {x.volume24h:.4f}{est} "
                f"| tick {x.tick} | {short(x.address)}\n"
            )
        lines.append("\n")

    if stats.user_stats is not None:
        u = stats.user_stats
        lines.append("## User Activity (last ~24h)\n\n")
        if user_address:
            lines.append(f"- Address: **{user_address.lower()}**\n")
        lines.append(f"- Trades: **{u.total_trades}**\n")
        lines.append(f"- Volume: **{u.total_volume:.4f}**\n")
        lines.append(f"- Naive P&L: **{u.profit_loss:.4f}**\n\n")

    lines.append("## Limitations\n\n")
    lines.append("- Volume is a proxy derived from tick movement, not summed trades.\n")
    lines.append(f"- {fallback_count} pool(s) had no usable history and use the 5%-of-liquidity estimate.\n")
    lines.append("- TVL is raw pool liquidity, not a USD valuation.\n")
    lines.append("- User P&L ignores cost basis.\n")

    with out_path.open("w", encoding="utf-8") as f:
        f.writelines(lines)

    return str(out_path)
