"""Interfaces for the wallet and chain collaborators."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

from .types import TxReceipt, WalletAccount

ChainChangedHandler = Callable[[int], None]
DisconnectedHandler = Callable[[], None]


class WalletProvider(ABC):
    """Wallet that owns an account, its active chain, and transaction signing."""

    def __init__(self) -> None:
        self._chain_changed_handlers: list[ChainChangedHandler] = []
        self._disconnected_handlers: list[DisconnectedHandler] = []

    @abstractmethod
    async def connect(self) -> WalletAccount:
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass

    @abstractmethod
    async def switch_chain(self, chain_id: int) -> None:
        pass

    def on_chain_changed(self, handler: ChainChangedHandler) -> None:
        self._chain_changed_handlers.append(handler)

    def on_disconnected(self, handler: DisconnectedHandler) -> None:
        self._disconnected_handlers.append(handler)

    def emit_chain_changed(self, chain_id: int) -> None:
        for handler in list(self._chain_changed_handlers):
            handler(chain_id)

    def emit_disconnected(self) -> None:
        for handler in list(self._disconnected_handlers):
            handler()


class ChainClient(ABC):
    """Chain RPC endpoint bound to contract calls and receipts."""

    @abstractmethod
    async def call(
        self,
        address: str,
        abi: Sequence[dict],
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        pass

    @abstractmethod
    async def send_transaction(
        self,
        address: str,
        abi: Sequence[dict],
        function_name: str,
        args: Sequence[Any] = (),
        *,
        sender: str,
    ) -> str | bytes:
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        pass

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        pass
