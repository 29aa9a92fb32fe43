import time
import unittest
from types import SimpleNamespace
from unittest import mock

from eth_abi import encode as abi_encode
from eth_utils import to_checksum_address
from hexbytes import HexBytes

from web3.exceptions import ContractLogicError

from dexstats.adapters.chain import web3_chain_adapter
from dexstats.adapters.chain.chain_registry import ChainRegistry
from dexstats.adapters.chain.rate_limiter import AsyncRateLimiter, backoff_delay
from dexstats.adapters.chain.web3_chain_adapter import SWAP_TOPIC, Web3ChainAdapter, address_topic
from dexstats.core.errors import DataSourceError, RateLimitError, UnsupportedChainError


REGISTRY = {
    1: {
        "name": "ethereum",
        "factory": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
        "tokens": [
            ("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "WETH", 18),
            ("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "USDC", 6),
        ],
    },
}


class ChainRegistryTests(unittest.TestCase):
    def test_contracts_for_known_chain(self) -> None:
        contracts = ChainRegistry(registry=REGISTRY, rpc_url_for=lambda cid: None).get_contracts_for_chain(1)

        self.assertEqual(contracts.chain_id, 1)
        self.assertEqual(contracts.factory_address, REGISTRY[1]["factory"])
        self.assertEqual([t.symbol for t in contracts.tokens], ["WETH", "USDC"])
        self.assertEqual(contracts.tokens[1].decimals, 6)

    def test_unknown_chain_is_a_configuration_error(self) -> None:
        with self.assertRaises(UnsupportedChainError):
            ChainRegistry(registry=REGISTRY, rpc_url_for=lambda cid: None).get_contracts_for_chain(56)

    def test_provider_needs_rpc_url(self) -> None:
        reg = ChainRegistry(registry=REGISTRY, rpc_url_for=lambda cid: None)
        self.assertIsNone(reg.resolve_provider(1))

    def test_provider_is_created_once(self) -> None:
        reg = ChainRegistry(registry=REGISTRY, rpc_url_for=lambda cid: "http://127.0.0.1:8545")

        p1 = reg.resolve_provider(1)
        p2 = reg.resolve_provider(1)

        self.assertIsInstance(p1, Web3ChainAdapter)
        self.assertIs(p1, p2)


class Web3AdapterTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.adapter = Web3ChainAdapter("http://127.0.0.1:8545")
        patcher = mock.patch.object(web3_chain_adapter, "backoff_delay", return_value=0)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_swap_topic_and_address_topic(self) -> None:
        self.assertEqual(SWAP_TOPIC, "0xc42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67")
        topic = address_topic("0x00000000000000000000000000000000000000AA")
        self.assertEqual(len(topic), 66)
        self.assertTrue(topic.endswith("00aa"))
        self.assertTrue(topic.startswith("0x000000"))

    async def test_transient_errors_are_retried(self) -> None:
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionError("reset by peer")
            return 7

        self.assertEqual(await self.adapter._call("flaky", flaky), 7)
        self.assertEqual(len(attempts), 3)

    async def test_revert_is_not_retried(self) -> None:
        attempts = []

        async def reverts():
            attempts.append(1)
            raise ContractLogicError("execution reverted: OLD")

        with self.assertRaises(DataSourceError):
            await self.adapter._call("observe", reverts)
        self.assertEqual(len(attempts), 1)

    async def test_gives_up_after_retries(self) -> None:
        async def down():
            raise ConnectionError("refused")

        with self.assertRaises(DataSourceError):
            await self.adapter._call("down", down)

    async def test_rate_limit_surfaces_as_rate_limit_error(self) -> None:
        async def limited():
            raise Exception("429 Too Many Requests")

        with self.assertRaises(RateLimitError):
            await self.adapter._call("limited", limited)


POOL = "0x000000000000000000000000000000000000A001"
SENDER = "0x00000000000000000000000000000000000000Bb"
TRADER = "0x00000000000000000000000000000000000000Aa"


class _FakeEth:
    def __init__(self, block_number: int) -> None:
        self._block_number = block_number

    @property
    def block_number(self):
        async def _get():
            return self._block_number
        return _get()


def _swap_log(amount0: int, amount1: int, tick: int) -> dict:
    data = abi_encode(
        ["int256", "int256", "uint160", "uint128", "int24"],
        [amount0, amount1, 2**96, 10**18, tick],
    )
    return {
        "address": to_checksum_address(POOL),
        "topics": [HexBytes(SWAP_TOPIC), HexBytes(address_topic(SENDER)), HexBytes(address_topic(TRADER))],
        "data": HexBytes(data),
        "blockNumber": 9990,
        "transactionHash": HexBytes("0x" + "ab" * 32),
        "transactionIndex": 0,
        "blockHash": HexBytes("0x" + "cd" * 32),
        "logIndex": 3,
        "removed": False,
    }


class Web3AdapterReadTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.adapter = Web3ChainAdapter("http://127.0.0.1:8545")
        self.contract = mock.MagicMock()
        patcher = mock.patch.object(self.adapter, "_contract", return_value=self.contract)
        patcher.start()
        self.addCleanup(patcher.stop)

    async def test_get_swap_logs_decodes_swap_events(self) -> None:
        get_logs = mock.AsyncMock(return_value=[_swap_log(10**18, -3 * 10**18, -5)])

        with mock.patch.object(self.adapter._w3.eth, "get_logs", new=get_logs):
            swaps = await self.adapter.get_swap_logs(TRADER, 2790, 9990)

        params = get_logs.await_args.args[0]
        self.assertEqual(params["fromBlock"], 2790)
        self.assertEqual(params["toBlock"], 9990)
        self.assertEqual(params["topics"], [SWAP_TOPIC, None, address_topic(TRADER)])

        self.assertEqual(len(swaps), 1)
        s = swaps[0]
        self.assertEqual(s.pool_address, POOL.lower())
        self.assertEqual(s.recipient, TRADER.lower())
        self.assertEqual(s.sender, SENDER.lower())
        self.assertEqual(s.amount0, 10**18)
        self.assertEqual(s.amount1, -3 * 10**18)
        self.assertEqual(s.tick, -5)
        self.assertEqual(s.sqrt_price_x96, 2**96)
        self.assertEqual(s.liquidity, 10**18)
        self.assertEqual(s.block_number, 9990)
        self.assertEqual(s.tx_hash, "0x" + "ab" * 32)

    async def test_negative_from_block_is_clamped(self) -> None:
        get_logs = mock.AsyncMock(return_value=[])

        with mock.patch.object(self.adapter._w3.eth, "get_logs", new=get_logs):
            swaps = await self.adapter.get_swap_logs(TRADER, -100, 50)

        self.assertEqual(swaps, [])
        self.assertEqual(get_logs.await_args.args[0]["fromBlock"], 0)

    async def test_get_slot0_maps_price_and_tick(self) -> None:
        self.contract.functions.slot0.return_value.call = mock.AsyncMock(
            return_value=[2**96, -7, 1, 2, 3, 0, True]
        )

        slot0 = await self.adapter.get_slot0(POOL)

        self.assertEqual(slot0.sqrt_price_x96, 2**96)
        self.assertEqual(slot0.tick, -7)

    async def test_get_liquidity(self) -> None:
        self.contract.functions.liquidity.return_value.call = mock.AsyncMock(return_value=12345)

        self.assertEqual(await self.adapter.get_liquidity(POOL), 12345)

    async def test_observe_maps_tick_cumulatives(self) -> None:
        self.contract.functions.observe.return_value.call = mock.AsyncMock(
            return_value=[[7200000, 7196400], [11, 10]]
        )

        obs = await self.adapter.observe(POOL, (0, 3600))

        self.contract.functions.observe.assert_called_once_with([0, 3600])
        self.assertEqual(obs.tick_cumulatives, [7200000, 7196400])

    async def test_get_pool_passes_checksummed_pair_and_fee(self) -> None:
        pool = to_checksum_address(POOL)
        self.contract.functions.getPool.return_value.call = mock.AsyncMock(return_value=pool)
        token_a = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
        token_b = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"

        res = await self.adapter.get_pool(POOL, token_a, token_b, 3000)

        self.assertEqual(res, pool)
        self.contract.functions.getPool.assert_called_once_with(
            to_checksum_address(token_a), to_checksum_address(token_b), 3000
        )

    async def test_get_block_number(self) -> None:
        self.adapter._w3 = SimpleNamespace(eth=_FakeEth(19000000))

        self.assertEqual(await self.adapter.get_block_number(), 19000000)

class RateLimiterTests(unittest.IsolatedAsyncioTestCase):
    def test_rejects_non_positive_rate(self) -> None:
        with self.assertRaises(ValueError):
            AsyncRateLimiter(0)

    def test_backoff_is_capped(self) -> None:
        for attempt in range(10):
            self.assertLessEqual(backoff_delay(attempt, base=0.5, cap=8.0), 8.0 * 1.3)
        self.assertGreaterEqual(backoff_delay(0, base=0.5), 0.5 * 0.7)

    async def test_waits_are_spaced_by_the_rate(self) -> None:
        rate = 20.0
        n = 4
        rl = AsyncRateLimiter(rate)

        start = time.monotonic()
        for _ in range(n):
            await rl.wait()
        elapsed = time.monotonic() - start

        # small slack for monotonic clock resolution
        self.assertGreaterEqual(elapsed, (n - 1) / rate - 0.005)


if __name__ == "__main__":
    unittest.main()
