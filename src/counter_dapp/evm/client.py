"""Chain client that routes contract calls and receipts through web3."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from web3 import Web3

from ..base import ChainClient
from ..config import DEFAULT_RECEIPT_POLL_INTERVAL, DEFAULT_RECEIPT_TIMEOUT, DappConfig
from ..exceptions import RpcError
from ..types import ReceiptStatus, TxReceipt
from ..utils import serialise_receipt
from .connections import Web3Connections

logger = logging.getLogger(__name__)


class Web3ChainClient(ChainClient):
    """Run blocking web3 calls off the event loop and translate their results."""

    def __init__(
        self,
        connections: Web3Connections,
        *,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
        receipt_poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL,
    ) -> None:
        self._connections = connections
        self._receipt_timeout = receipt_timeout
        self._receipt_poll_interval = receipt_poll_interval

    @classmethod
    def from_config(cls, config: DappConfig, connections: Web3Connections) -> Web3ChainClient:
        return cls(
            connections,
            receipt_timeout=config.receipt_timeout,
            receipt_poll_interval=config.receipt_poll_interval,
        )

    async def call(
        self,
        address: str,
        abi: Sequence[dict],
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        return await asyncio.to_thread(self._call, address, abi, function_name, args)

    async def send_transaction(
        self,
        address: str,
        abi: Sequence[dict],
        function_name: str,
        args: Sequence[Any] = (),
        *,
        sender: str,
    ) -> str:
        return await asyncio.to_thread(
            self._send_transaction, address, abi, function_name, args, sender
        )

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        return await asyncio.to_thread(self._wait_for_receipt, tx_hash)

    async def get_balance(self, address: str) -> int:
        return await asyncio.to_thread(self._get_balance, address)

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------
    def _call(
        self, address: str, abi: Sequence[dict], function_name: str, args: Sequence[Any]
    ) -> Any:
        self._connections.ensure_connected()
        contract = self._connections.contract(address, abi)
        contract_function = getattr(contract.functions, function_name)(*args)

        try:
            return contract_function.call()
        except Exception as exc:
            raise RpcError(
                f"Call to {function_name} failed",
                endpoint=self._connections.rpc_url,
                details={"args": list(args), "error": str(exc)},
            ) from exc

    def _send_transaction(
        self,
        address: str,
        abi: Sequence[dict],
        function_name: str,
        args: Sequence[Any],
        sender: str,
    ) -> str:
        self._connections.ensure_connected()
        contract = self._connections.contract(address, abi)
        contract_function = getattr(contract.functions, function_name)(*args)
        logger.info("Dispatching %s from %s", function_name, sender)

        try:
            tx_hash = contract_function.transact({"from": Web3.to_checksum_address(sender)})
        except Exception as exc:
            raise RpcError(
                f"Failed to submit transaction for {function_name}",
                endpoint=self._connections.rpc_url,
                details={"args": list(args), "error": str(exc)},
            ) from exc

        return tx_hash.to_0x_hex()

    def _wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        self._connections.ensure_connected()
        web3 = self._connections.web3

        try:
            receipt = web3.eth.wait_for_transaction_receipt(
                tx_hash,  # type: ignore[arg-type]
                timeout=self._receipt_timeout,
                poll_latency=self._receipt_poll_interval,
            )
        except Exception as exc:
            raise RpcError(
                f"Failed waiting for receipt of {tx_hash}",
                endpoint=self._connections.rpc_url,
                details={"error": str(exc)},
            ) from exc

        return receipt_from_web3(receipt)

    def _get_balance(self, address: str) -> int:
        self._connections.ensure_connected()
        web3 = self._connections.web3

        try:
            return int(web3.eth.get_balance(Web3.to_checksum_address(address)))
        except Exception as exc:
            raise RpcError(
                f"Failed to read balance of {address}",
                endpoint=self._connections.rpc_url,
                details={"error": str(exc)},
            ) from exc


def receipt_from_web3(receipt: Mapping[str, Any]) -> TxReceipt:
    """Convert a web3 receipt into a ``TxReceipt``."""

    status = ReceiptStatus.SUCCESS if receipt.get("status", 0) == 1 else ReceiptStatus.REVERTED
    block_number = receipt.get("blockNumber")
    return TxReceipt(
        status=status,
        block_number=int(block_number) if block_number is not None else None,
        raw=serialise_receipt(receipt),
    )
