from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import logging
import sys
import time

from dexstats.config import settings
from dexstats.core.dto import RawSwap, Slot0
from dexstats.core.errors import ConfigurationError
from dexstats.core.models import ChainContracts, TokenRef
from dexstats.services.dex_stats_service import DexStatsService
from dexstats.services.result_cache import ResultCache
from dexstats.io.output_writer import write_stats_json, write_summary_md

from dexstats.adapters.chain.chain_registry import ChainRegistry
from dexstats.adapters.chain.static_chain_adapter import StaticChainAdapter, StaticChainContext


DEMO_ADDRESS = "0x00000000000000000000000000000000000000aa"


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dexstats", description="Uniswap V3 pool statistics (TVL, volume, user activity)")
    p.add_argument("--chain-id", type=int, default=settings.DEFAULT_CHAIN_ID, help="Chain to read from")
    p.add_argument("--address", required=False, help="Also summarize swaps received by this address")
    p.add_argument("--out", default="out", help="Output folder")
    p.add_argument("--use-static", action="store_true", help="Use static in-memory chain (dev/testing)")
    p.add_argument("--repeat", type=int, default=1, help="Query N times (repeats within the TTL are served from cache)")
    p.add_argument("--log-level", default="WARNING", help="Python logging level")
    return p


def _demo_context(chain_id: int) -> StaticChainContext:
    weth = TokenRef("0x00000000000000000000000000000000000000e1", "WETH", 18)
    usdc = TokenRef("0x00000000000000000000000000000000000000e2", "USDC", 6)
    usdt = TokenRef("0x00000000000000000000000000000000000000e3", "USDT", 6)
    factory = "0x00000000000000000000000000000000000000f0"
    pool_a = "0x00000000000000000000000000000000000000a1"
    pool_b = "0x00000000000000000000000000000000000000a2"

    chain = StaticChainAdapter(
        pools={
            (weth.address, usdc.address, 500): pool_a,
            (usdc.address, usdt.address, 500): pool_b,
        },
        slot0={
            pool_a: Slot0(sqrt_price_x96=1771595571142957166518320255467520, tick=200000),
            pool_b: Slot0(sqrt_price_x96=79228162514264337593543950336, tick=0),
        },
        liquidity={pool_a: 4 * 10**21, pool_b: 2 * 10**21},
        observations={pool_a: [720000000, 719999000]},
        swaps=[
            RawSwap(pool_a, 990, "0x01", DEMO_ADDRESS, DEMO_ADDRESS, 10**18, -3 * 10**18, 0, 0, 0),
        ],
        block_number=1000,
    )
    contracts = ChainContracts(chain_id=chain_id, factory_address=factory, tokens=(weth, usdc, usdt), name="static")
    return StaticChainContext(providers={chain_id: chain}, contracts={chain_id: contracts})


async def _run(svc: DexStatsService, address, repeat: int):
    stats = None
    for _ in range(max(1, repeat)):
        stats = await svc.get_stats(address)
    return stats


def main() -> int:
    args = build_arg_parser().parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    def _ts() -> str:
        return dt.datetime.now().strftime("%H:%M:%S")

    # Ports
    if args.use_static:
        context = _demo_context(args.chain_id)
        adapter_label = "StaticChainAdapter (dev/testing)"
    else:
        context = ChainRegistry()
        adapter_label = "Web3ChainAdapter"

    try:
        svc = DexStatsService(context=context, chain_id=args.chain_id, cache=ResultCache())
    except ConfigurationError as exc:
        print(f"[{_ts()}] Error: {exc}", file=sys.stderr)
        if not args.use_static:
            print(f"Set DEXSTATS_RPC_URL_{args.chain_id} (or DEXSTATS_RPC_URL)", file=sys.stderr)
        return 2

    print(f"Adapter: {adapter_label}")
    print(f"[{_ts()}] Reading pools on chain {args.chain_id}...")
    start_time = time.time()
    try:
        stats = asyncio.run(_run(svc, args.address, args.repeat))
    except ConfigurationError as exc:
        print(f"[{_ts()}] Error: {exc}", file=sys.stderr)
        return 2

    elapsed = time.time() - start_time
    print(
        f"[{_ts()}] Done in {elapsed:.1f}s • "
        f"{stats.total_pools} pools • tvl {stats.total_value_locked:.4f} • vol24h {stats.volume24h:.4f}"
    )
    if stats.total_pools == 0:
        print("Stats unavailable (no pool could be read)", file=sys.stderr)

    # Outputs
    stats_path = write_stats_json(stats, args.out)
    summary_path = write_summary_md(stats, args.out, user_address=args.address)
    print(f"Wrote: {stats_path}")
    print(f"Wrote: {summary_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
