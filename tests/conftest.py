from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import pytest

from counter_dapp.base import ChainClient, WalletProvider
from counter_dapp.config import DappConfig
from counter_dapp.constants import SEPOLIA_CHAIN_ID
from counter_dapp.orchestrator import Orchestrator
from counter_dapp.types import ReceiptStatus, TxReceipt, WalletAccount

WALLET_ADDRESS = "0x" + "11" * 20
TX_HASH = "0xabc"


class FakeWallet(WalletProvider):
    def __init__(self, chain_id: int = SEPOLIA_CHAIN_ID) -> None:
        super().__init__()
        self.address = WALLET_ADDRESS
        self.chain_id = chain_id
        self.connect_error: Exception | None = None
        self.connect_gate: asyncio.Event | None = None
        self.switch_error: Exception | None = None
        self.switch_gate: asyncio.Event | None = None
        self.disconnect_error: Exception | None = None
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.switch_calls: list[int] = []

    async def connect(self) -> WalletAccount:
        self.connect_calls += 1
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.connect_error is not None:
            raise self.connect_error
        return WalletAccount(address=self.address, chain_id=self.chain_id)

    def disconnect(self) -> None:
        self.disconnect_calls += 1
        if self.disconnect_error is not None:
            raise self.disconnect_error

    async def switch_chain(self, chain_id: int) -> None:
        self.switch_calls.append(chain_id)
        if self.switch_gate is not None:
            await self.switch_gate.wait()
        if self.switch_error is not None:
            raise self.switch_error
        self.chain_id = chain_id
        self.emit_chain_changed(chain_id)


class FakeChain(ChainClient):
    def __init__(self, count: int = 0) -> None:
        self.count = count
        self.balance = 10**18
        self.tx_hash = TX_HASH
        self.calls: list[str] = []
        self.sent: list[tuple[str, str]] = []
        self.receipts: list[str] = []
        self.balance_calls = 0
        self.read_results: list[asyncio.Future[Any]] = []
        self.read_error: Exception | None = None
        self.send_gate: asyncio.Event | None = None
        self.send_error: Exception | None = None
        self.receipt_gate: asyncio.Event | None = None
        self.receipt_error: Exception | None = None
        self.revert = False
        self._pending: dict[str, str] = {}

    async def call(
        self,
        address: str,
        abi: Sequence[dict],
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        self.calls.append(function_name)
        if self.read_results:
            return await self.read_results.pop(0)
        if self.read_error is not None:
            raise self.read_error
        return self.count

    async def send_transaction(
        self,
        address: str,
        abi: Sequence[dict],
        function_name: str,
        args: Sequence[Any] = (),
        *,
        sender: str,
    ) -> str:
        self.sent.append((function_name, sender))
        if self.send_gate is not None:
            await self.send_gate.wait()
        if self.send_error is not None:
            raise self.send_error
        self._pending[self.tx_hash] = function_name
        return self.tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        self.receipts.append(tx_hash)
        if self.receipt_gate is not None:
            await self.receipt_gate.wait()
        if self.receipt_error is not None:
            raise self.receipt_error
        function_name = self._pending.pop(tx_hash, None)
        if self.revert:
            return TxReceipt(status=ReceiptStatus.REVERTED, block_number=2, raw={"status": 0})
        if function_name == "inc":
            self.count += 1
        elif function_name == "dec":
            self.count -= 1
        return TxReceipt(
            status=ReceiptStatus.SUCCESS,
            block_number=1,
            raw={"status": 1, "transactionHash": tx_hash},
        )

    async def get_balance(self, address: str) -> int:
        self.balance_calls += 1
        return self.balance


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def config() -> DappConfig:
    return DappConfig(auto_read=False)


@pytest.fixture
def dapp(wallet: FakeWallet, chain: FakeChain, config: DappConfig) -> Orchestrator:
    return Orchestrator(wallet, chain, config)


@pytest.fixture
def settle() -> Callable[..., Awaitable[None]]:
    async def _settle(rounds: int = 20) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle
