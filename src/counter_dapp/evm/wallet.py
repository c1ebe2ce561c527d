"""Wallet provider backed by a local eth-account key."""

from __future__ import annotations

import asyncio
import logging
from typing import cast

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..base import WalletProvider
from ..config import LocalWalletConfig
from ..exceptions import NetworkMismatchError, RpcError, ValidationError, WalletConnectionError
from ..types import WalletAccount
from .connections import Web3Connections

logger = logging.getLogger(__name__)


class LocalAccountWallet(WalletProvider):
    """Sign with a private key held in process and talk to one RPC per chain.

    The wallet shares its ``Web3Connections`` with the chain client, so a
    chain switch moves both to the new endpoint.
    """

    def __init__(self, config: LocalWalletConfig, connections: Web3Connections) -> None:
        super().__init__()
        self._config = config
        self._connections = connections
        self._account: LocalAccount | None = None

    @classmethod
    def from_config(cls, config: LocalWalletConfig) -> tuple[LocalAccountWallet, Web3Connections]:
        rpc_url = config.rpc_url_for(config.initial_chain_id)
        if rpc_url is None:
            raise ValidationError(
                "No RPC URL configured for the initial chain",
                field="rpc_urls",
                value=config.initial_chain_id,
            )
        connections = Web3Connections(rpc_url, request_timeout=config.request_timeout)
        return cls(config, connections), connections

    @property
    def account(self) -> LocalAccount | None:
        return self._account

    async def connect(self) -> WalletAccount:
        try:
            signer = cast(LocalAccount, Account.from_key(self._config.private_key))
        except Exception as exc:
            raise WalletConnectionError(
                "Failed to derive signer account from provided private key",
                details={"error": str(exc)},
            ) from exc

        self._connections.attach_account(signer)
        await asyncio.to_thread(self._connections.connect)
        chain_id = self._connections.chain_id
        if chain_id is None:  # pragma: no cover - connect() sets it or raises
            raise WalletConnectionError("RPC did not report a chain id")

        self._account = signer
        logger.info("Local wallet %s ready on chain %s", signer.address, chain_id)
        return WalletAccount(address=signer.address, chain_id=chain_id)

    def disconnect(self) -> None:
        self._connections.disconnect()
        self._account = None

    async def switch_chain(self, chain_id: int) -> None:
        if self._account is None:
            raise WalletConnectionError("Wallet is not connected")

        rpc_url = self._config.rpc_url_for(chain_id)
        if rpc_url is None:
            raise RpcError(f"Unrecognized chain id {chain_id}; no RPC URL configured")

        previous_url = self._connections.rpc_url
        await asyncio.to_thread(self._connections.reconnect, rpc_url)
        actual = self._connections.chain_id
        if actual != chain_id:
            await asyncio.to_thread(self._connections.reconnect, previous_url)
            raise NetworkMismatchError(
                f"RPC at {rpc_url} serves chain {actual}",
                chain_id=actual,
                required_chain_id=chain_id,
            )

        logger.info("Local wallet switched to chain %s", chain_id)
        self.emit_chain_changed(chain_id)
