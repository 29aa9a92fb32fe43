import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from eth_utils import encode_hex, keccak, to_checksum_address
from web3 import AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from dexstats.config.settings import (
    RPC_REQUESTS_PER_SEC,
    RPC_TIMEOUT_SEC,
    RPC_MAX_RETRIES,
)

from dexstats.adapters.chain.rate_limiter import AsyncRateLimiter, backoff_delay
from dexstats.core.errors import DataSourceError, RateLimitError
from dexstats.ports.chain_data_port import ChainDataPort
from dexstats.core.dto import Observation, RawSwap, Slot0


logger = logging.getLogger(__name__)


FACTORY_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "tokenA", "type": "address"},
            {"internalType": "address", "name": "tokenB", "type": "address"},
            {"internalType": "uint24", "name": "fee", "type": "uint24"},
        ],
        "name": "getPool",
        "outputs": [{"internalType": "address", "name": "pool", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    }
]

POOL_ABI = [
    {
        "inputs": [],
        "name": "slot0",
        "outputs": [
            {"internalType": "uint160", "name": "sqrtPriceX96", "type": "uint160"},
            {"internalType": "int24", "name": "tick", "type": "int24"},
            {"internalType": "uint16", "name": "observationIndex", "type": "uint16"},
            {"internalType": "uint16", "name": "observationCardinality", "type": "uint16"},
            {"internalType": "uint16", "name": "observationCardinalityNext", "type": "uint16"},
            {"internalType": "uint8", "name": "feeProtocol", "type": "uint8"},
            {"internalType": "bool", "name": "unlocked", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "liquidity",
        "outputs": [{"internalType": "uint128", "name": "", "type": "uint128"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint32[]", "name": "secondsAgos", "type": "uint32[]"}],
        "name": "observe",
        "outputs": [
            {"internalType": "int56[]", "name": "tickCumulatives", "type": "int56[]"},
            {"internalType": "uint160[]", "name": "secondsPerLiquidityCumulativeX128s", "type": "uint160[]"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "address", "name": "sender", "type": "address"},
            {"indexed": True, "internalType": "address", "name": "recipient", "type": "address"},
            {"indexed": False, "internalType": "int256", "name": "amount0", "type": "int256"},
            {"indexed": False, "internalType": "int256", "name": "amount1", "type": "int256"},
            {"indexed": False, "internalType": "uint160", "name": "sqrtPriceX96", "type": "uint160"},
            {"indexed": False, "internalType": "uint128", "name": "liquidity", "type": "uint128"},
            {"indexed": False, "internalType": "int24", "name": "tick", "type": "int24"},
        ],
        "name": "Swap",
        "type": "event",
    },
]

SWAP_TOPIC = encode_hex(keccak(text="Swap(address,address,int256,int256,uint160,uint128,int24)"))


def address_topic(address: str) -> str:
    return "0x" + address.lower().replace("0x", "", 1).rjust(64, "0")


class Web3ChainAdapter(ChainDataPort):

    def __init__(self, rpc_url: str, w3: Optional[AsyncWeb3] = None) -> None:
        self._rpc_url = rpc_url
        self._max_retries = RPC_MAX_RETRIES
        self._w3 = w3 or AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": RPC_TIMEOUT_SEC})
        )
        self._rl = AsyncRateLimiter(RPC_REQUESTS_PER_SEC)

        self._contracts: Dict[str, Any] = {}
        self._swap_decoder = self._w3.eth.contract(abi=POOL_ABI).events.Swap()

    # ---------- internal ----------

    def _contract(self, address: str, abi: list) -> Any:
        addr = to_checksum_address(address)
        c = self._contracts.get(addr)
        if c is None:
            c = self._w3.eth.contract(address=addr, abi=abi)
            self._contracts[addr] = c
        return c

    async def _call(self, label: str, make_call: Callable[[], Awaitable[Any]]) -> Any:
        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            await self._rl.wait()
            try:
                return await make_call()
            except (ContractLogicError, BadFunctionCallOutput) as e:
                # reverts are deterministic, retrying won't help
                raise DataSourceError(f"{label} reverted: {e}") from e
            except Exception as e:
                msg = str(e)
                if "429" in msg or "rate limit" in msg.lower():
                    last_err = RateLimitError(msg)
                else:
                    last_err = e
                logger.debug("%s attempt %d failed: %s", label, attempt + 1, e)
                await asyncio.sleep(backoff_delay(attempt))

        if isinstance(last_err, RateLimitError):
            raise last_err
        raise DataSourceError(f"{label} failed after retries: {last_err}")

    # ---------- port methods ----------

    async def get_pool(self, factory_address: str, token_a: str, token_b: str, fee: int) -> str:
        factory = self._contract(factory_address, FACTORY_ABI)
        fn = factory.functions.getPool(to_checksum_address(token_a), to_checksum_address(token_b), int(fee))
        return str(await self._call(f"getPool({token_a},{token_b},{fee})", fn.call))

    async def get_slot0(self, pool_address: str) -> Slot0:
        pool = self._contract(pool_address, POOL_ABI)
        res = await self._call(f"slot0({pool_address})", pool.functions.slot0().call)
        return Slot0(sqrt_price_x96=int(res[0]), tick=int(res[1]))

    async def get_liquidity(self, pool_address: str) -> int:
        pool = self._contract(pool_address, POOL_ABI)
        return int(await self._call(f"liquidity({pool_address})", pool.functions.liquidity().call))

    async def observe(self, pool_address: str, seconds_agos: Sequence[int]) -> Observation:
        pool = self._contract(pool_address, POOL_ABI)
        fn = pool.functions.observe([int(s) for s in seconds_agos])
        res = await self._call(f"observe({pool_address})", fn.call)
        return Observation(tick_cumulatives=[int(t) for t in res[0]])

    async def get_block_number(self) -> int:
        return int(await self._call("blockNumber", lambda: self._w3.eth.block_number))

    async def get_swap_logs(self, recipient: str, from_block: int, to_block: int) -> List[RawSwap]:
        params = {
            "fromBlock": max(0, int(from_block)),
            "toBlock": int(to_block),
            "topics": [SWAP_TOPIC, None, address_topic(recipient)],
        }
        logs = await self._call(f"getLogs(Swap,{recipient})", lambda: self._w3.eth.get_logs(params))

        out: List[RawSwap] = []
        for log in logs:
            ev = self._swap_decoder.process_log(log)
            args = ev["args"]
            out.append(
                RawSwap(
                    pool_address=str(ev["address"]).lower(),
                    block_number=int(ev["blockNumber"]),
                    tx_hash=encode_hex(ev["transactionHash"]),
                    sender=str(args["sender"]).lower(),
                    recipient=str(args["recipient"]).lower(),
                    amount0=int(args["amount0"]),
                    amount1=int(args["amount1"]),
                    sqrt_price_x96=int(args["sqrtPriceX96"]),
                    liquidity=int(args["liquidity"]),
                    tick=int(args["tick"]),
                )
            )
        return out
