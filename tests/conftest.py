"""Pytest configuration for onchain-history tests."""

import threading
from collections import Counter
from collections.abc import Callable
from typing import Any

import pytest

from onchain_history.config import ScanConfig
from onchain_history.core.cache import HistoryCache
from onchain_history.core.models import ChainConfig
from onchain_history.core.registry import ChainRegistry
from onchain_history.core.scanner import TransactionScanner
from onchain_history.rpc.client import ChainClient
from onchain_history.rpc.codec import TRANSFER_SINGLE_TOPIC, TRANSFER_TOPIC, pad_address
from onchain_history.rpc.provider import RPCError

GENESIS_TIMESTAMP = 1_700_000_000
BLOCK_TIME = 12


def pytest_configure(config):
    """Disable ape plugin during tests."""
    # Unregister ape pytest plugin to avoid network connection issues
    config.pluginmanager.set_blocked("ape_test")


def block_timestamp(number: int) -> int:
    return GENESIS_TIMESTAMP + number * BLOCK_TIME


class FakeChain:
    """
    In-memory node answering the JSON-RPC methods the scanner uses.

    Every block up to ``head`` exists and is empty unless transactions were
    added to it. Requests are recorded so tests can count RPC traffic.
    """

    def __init__(self, head: int = 10_000) -> None:
        self.head = head
        self.transactions: dict[int, list[dict[str, Any]]] = {}
        self.receipts: dict[str, dict[str, Any]] = {}
        self.logs: list[dict[str, Any]] = []
        self.calls: dict[tuple[str, str], str] = {}
        self.failing_blocks: set[int] = set()
        self.failing_receipts: set[str] = set()
        self.fail_when: Callable[[str, list[Any]], bool] | None = None
        self.requests: list[tuple[str, list[Any]]] = []
        self._lock = threading.Lock()

    # -- setup helpers -----------------------------------------------------

    def add_transaction(
        self,
        block: int,
        tx_hash: str,
        sender: str,
        to: str | None,
        value: int = 0,
        input: str = "0x",
        nonce: int = 0,
        gas_price: int = 10**9,
        status: int | None = 1,
        gas_used: int = 21_000,
    ) -> None:
        """Add a transaction and, unless ``status`` is None, its receipt."""
        self.transactions.setdefault(block, []).append(
            {
                "hash": tx_hash,
                "from": sender,
                "to": to,
                "value": hex(value),
                "input": input,
                "nonce": hex(nonce),
                "gasPrice": hex(gas_price),
                "blockNumber": hex(block),
            }
        )
        if status is not None:
            self.receipts[tx_hash] = {
                "transactionHash": tx_hash,
                "status": hex(status),
                "gasUsed": hex(gas_used),
                "effectiveGasPrice": hex(gas_price),
            }

    def add_log(self, tx_hash: str, block: int, token: str, topics: list[str], data: str = "0x") -> dict[str, Any]:
        log = {
            "address": token,
            "topics": topics,
            "data": data,
            "blockNumber": hex(block),
            "transactionHash": tx_hash,
            "logIndex": hex(len(self.logs)),
            "removed": False,
        }
        self.logs.append(log)
        return log

    def add_erc20_transfer(
        self, tx_hash: str, block: int, token: str, sender: str, recipient: str, value: int
    ) -> dict[str, Any]:
        topics = [TRANSFER_TOPIC, pad_address(sender), pad_address(recipient)]
        return self.add_log(tx_hash, block, token, topics, "0x" + format(value, "064x"))

    def add_erc721_transfer(
        self, tx_hash: str, block: int, token: str, sender: str, recipient: str, token_id: int
    ) -> dict[str, Any]:
        topics = [TRANSFER_TOPIC, pad_address(sender), pad_address(recipient), "0x" + format(token_id, "064x")]
        return self.add_log(tx_hash, block, token, topics)

    def add_transfer_single(
        self,
        tx_hash: str,
        block: int,
        token: str,
        operator: str,
        sender: str,
        recipient: str,
        token_id: int,
        amount: int,
    ) -> dict[str, Any]:
        topics = [TRANSFER_SINGLE_TOPIC, pad_address(operator), pad_address(sender), pad_address(recipient)]
        data = "0x" + format(token_id, "064x") + format(amount, "064x")
        return self.add_log(tx_hash, block, token, topics, data)

    def count(self, method: str) -> int:
        with self._lock:
            return Counter(name for name, _ in self.requests)[method]

    # -- JSON-RPC ----------------------------------------------------------

    def make_request(self, method: str, params: list[Any]) -> Any:
        with self._lock:
            self.requests.append((method, params))

        if self.fail_when is not None and self.fail_when(method, params):
            raise RPCError(f"{method}: injected failure", code=-32000)

        handler = getattr(self, "_" + method, None)
        if handler is None:
            raise RPCError(f"the method {method} does not exist", code=-32601)
        return handler(*params)

    def _eth_blockNumber(self) -> str:
        return hex(self.head)

    def _eth_getBlockByNumber(self, number: str, full: bool) -> dict[str, Any] | None:
        block = int(number, 16)
        if block in self.failing_blocks:
            raise RPCError(f"block {block} unavailable", code=-32000)
        if block > self.head:
            return None

        transactions = self.transactions.get(block, [])
        return {
            "number": hex(block),
            "hash": "0x" + format(block, "064x"),
            "timestamp": hex(block_timestamp(block)),
            "transactions": transactions if full else [tx.get("hash") for tx in transactions],
        }

    def _eth_getTransactionReceipt(self, tx_hash: str) -> dict[str, Any] | None:
        if tx_hash in self.failing_receipts:
            raise RPCError(f"receipt {tx_hash} unavailable", code=-32000)
        return self.receipts.get(tx_hash)

    def _eth_getLogs(self, log_filter: dict[str, Any]) -> list[dict[str, Any]]:
        start = int(log_filter["fromBlock"], 16)
        end = int(log_filter["toBlock"], 16)
        wanted = log_filter.get("topics") or []
        return [
            log
            for log in self.logs
            if start <= int(log["blockNumber"], 16) <= end and self._topics_match(log["topics"], wanted)
        ]

    @staticmethod
    def _topics_match(topics: list[str], wanted: list[str | None]) -> bool:
        for index, topic in enumerate(wanted):
            if topic is None:
                continue
            if index >= len(topics) or topics[index].lower() != topic.lower():
                return False
        return True

    def _eth_call(self, call: dict[str, str], block: str) -> str:
        return self.calls.get((call["to"].lower(), call["data"]), "0x")


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = float(GENESIS_TIMESTAMP)) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_chain():
    return FakeChain()


@pytest.fixture
def scan_config():
    """Small pages so tests exercise batching."""
    return ScanConfig(page_size=10, max_block_range=50)


@pytest.fixture
def chain_config():
    return ChainConfig(
        chain_id=1,
        name="Ethereum",
        rpc_url="http://localhost:8545",
        explorer_url="https://etherscan.io",
    )


@pytest.fixture
def registry(fake_chain, scan_config, chain_config):
    return ChainRegistry([chain_config], config=scan_config, provider_factory=lambda chain, config: fake_chain)


@pytest.fixture
def client(fake_chain):
    return ChainClient(fake_chain, 1)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scanner(registry, scan_config, clock):
    cache = HistoryCache(ttl=scan_config.cache_ttl_seconds, clock=clock)
    return TransactionScanner(registry=registry, config=scan_config, cache=cache)
