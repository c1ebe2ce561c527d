from __future__ import annotations

from types import SimpleNamespace
from typing import Any, cast

import pytest
from hexbytes import HexBytes
from web3.datastructures import AttributeDict

from counter_dapp.config import DappConfig
from counter_dapp.constants import COUNTER_ABI, COUNTER_ADDRESS
from counter_dapp.evm.client import Web3ChainClient, receipt_from_web3
from counter_dapp.evm.connections import Web3Connections
from counter_dapp.exceptions import RpcError
from counter_dapp.types import ReceiptStatus

SENDER = "0x" + "22" * 20
TX_HASH = HexBytes("0x" + "cd" * 32)


class DummyCall:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self._result = result
        self._error = error
        self.transactions: list[dict[str, Any]] = []

    def call(self) -> Any:
        if self._error is not None:
            raise self._error
        return self._result

    def transact(self, tx: dict[str, Any]) -> HexBytes:
        self.transactions.append(tx)
        if self._error is not None:
            raise self._error
        return TX_HASH


class DummyEth:
    def __init__(self, receipt: Any = None, balance: int = 0) -> None:
        self._receipt = receipt
        self._balance = balance
        self.receipt_calls: list[tuple[Any, float, float]] = []

    def wait_for_transaction_receipt(self, tx_hash: Any, timeout: float, poll_latency: float):
        self.receipt_calls.append((tx_hash, timeout, poll_latency))
        if isinstance(self._receipt, Exception):
            raise self._receipt
        return self._receipt

    def get_balance(self, address: str) -> int:
        return self._balance


def _connections(
    functions: dict[str, DummyCall] | None = None,
    eth: DummyEth | None = None,
    connected: bool = True,
) -> Web3Connections:
    contract = SimpleNamespace(
        functions=SimpleNamespace(
            **{name: (lambda call=call: call) for name, call in (functions or {}).items()}
        )
    )

    def ensure_connected() -> None:
        if not connected:
            raise RpcError("RPC connection is not established", endpoint="https://rpc")

    connections = SimpleNamespace(
        rpc_url="https://rpc",
        web3=SimpleNamespace(eth=eth or DummyEth()),
        contract=lambda address, abi: contract,
        ensure_connected=ensure_connected,
    )
    return cast(Web3Connections, connections)


@pytest.mark.asyncio
async def test_call_returns_contract_value() -> None:
    client = Web3ChainClient(_connections({"count": DummyCall(result=41)}))

    assert await client.call(COUNTER_ADDRESS, COUNTER_ABI, "count") == 41


@pytest.mark.asyncio
async def test_call_failure_raises_rpc_error() -> None:
    client = Web3ChainClient(_connections({"count": DummyCall(error=ValueError("boom"))}))

    with pytest.raises(RpcError) as excinfo:
        await client.call(COUNTER_ADDRESS, COUNTER_ABI, "count")

    assert excinfo.value.endpoint == "https://rpc"
    assert excinfo.value.details["error"] == "boom"


@pytest.mark.asyncio
async def test_call_requires_connection() -> None:
    client = Web3ChainClient(_connections({"count": DummyCall(result=1)}, connected=False))

    with pytest.raises(RpcError):
        await client.call(COUNTER_ADDRESS, COUNTER_ABI, "count")


@pytest.mark.asyncio
async def test_send_transaction_returns_hex_hash() -> None:
    inc = DummyCall()
    client = Web3ChainClient(_connections({"inc": inc}))

    tx_hash = await client.send_transaction(COUNTER_ADDRESS, COUNTER_ABI, "inc", sender=SENDER)

    assert tx_hash == TX_HASH.to_0x_hex()
    assert inc.transactions == [{"from": "0x2222222222222222222222222222222222222222"}]


@pytest.mark.asyncio
async def test_send_transaction_failure_raises_rpc_error() -> None:
    client = Web3ChainClient(_connections({"inc": DummyCall(error=ValueError("denied"))}))

    with pytest.raises(RpcError):
        await client.send_transaction(COUNTER_ADDRESS, COUNTER_ABI, "inc", sender=SENDER)


@pytest.mark.asyncio
async def test_wait_for_receipt_uses_configured_timeouts() -> None:
    eth = DummyEth(receipt=AttributeDict({"status": 1, "blockNumber": 77}))
    config = DappConfig(receipt_timeout=30.0, receipt_poll_interval=0.5)
    client = Web3ChainClient.from_config(config, _connections(eth=eth))

    receipt = await client.wait_for_receipt("0xabc")

    assert receipt.status is ReceiptStatus.SUCCESS
    assert receipt.block_number == 77
    assert eth.receipt_calls == [("0xabc", 30.0, 0.5)]


@pytest.mark.asyncio
async def test_wait_for_receipt_timeout_raises_rpc_error() -> None:
    client = Web3ChainClient(_connections(eth=DummyEth(receipt=TimeoutError("not mined"))))

    with pytest.raises(RpcError):
        await client.wait_for_receipt("0xabc")


@pytest.mark.asyncio
async def test_get_balance() -> None:
    client = Web3ChainClient(_connections(eth=DummyEth(balance=10**18)))

    assert await client.get_balance(SENDER) == 10**18


def test_receipt_from_web3_reverted() -> None:
    receipt = receipt_from_web3(
        AttributeDict({"status": 0, "blockNumber": 5, "transactionHash": TX_HASH})
    )

    assert receipt.status is ReceiptStatus.REVERTED
    assert receipt.block_number == 5
    assert receipt.raw == {"status": 0, "blockNumber": 5, "transactionHash": TX_HASH.to_0x_hex()}
