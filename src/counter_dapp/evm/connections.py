"""Connection helpers for the web3-backed adapters."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from eth_account.signers.local import LocalAccount
from web3 import HTTPProvider, Web3
from web3.contract import Contract
from web3.middleware import SignAndSendRawMiddlewareBuilder
from web3.types import ChecksumAddress

from ..config import DEFAULT_REQUEST_TIMEOUT
from ..exceptions import RpcError, ValidationError

logger = logging.getLogger(__name__)


class Web3Connections:
    """Manage the Web3 provider, signing middleware, and contract handles."""

    def __init__(
        self,
        rpc_url: str,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._rpc_url = rpc_url
        self._request_timeout = request_timeout
        self._provider: HTTPProvider | None = None
        self._web3: Web3 | None = None
        self._account: LocalAccount | None = None
        self._chain_id: int | None = None
        self._contracts: dict[ChecksumAddress, Contract] = {}
        self._connected = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def connect(self) -> None:
        """Initialise the provider and, when an account is attached, its signer."""

        provider, web3 = self._build_web3_provider(self._rpc_url)
        if self._account is not None:
            self._apply_account_middleware(web3, self._account)

        try:
            chain_id = int(web3.eth.chain_id)
        except Exception as exc:
            raise RpcError(
                "Failed to read chain id", endpoint=self._rpc_url, details={"error": str(exc)}
            ) from exc

        self._provider = provider
        self._web3 = web3
        self._chain_id = chain_id
        self._contracts.clear()
        self._connected = True
        logger.info("Connected to RPC at %s (chain %s)", self._rpc_url, chain_id)

    def reconnect(self, rpc_url: str) -> None:
        """Point the connection at another RPC endpoint and connect to it."""

        previous = self._rpc_url
        self._rpc_url = rpc_url
        try:
            self.connect()
        except RpcError:
            self._rpc_url = previous
            raise

    def disconnect(self) -> None:
        self._provider = None
        self._web3 = None
        self._account = None
        self._chain_id = None
        self._contracts.clear()
        self._connected = False

    def attach_account(self, account: LocalAccount) -> None:
        self._account = account
        if self._web3 is not None:
            self._apply_account_middleware(self._web3, account)

    def is_connected(self) -> bool:
        return self._connected and self._web3 is not None

    def ensure_connected(self) -> None:
        if not self.is_connected():
            raise RpcError("RPC connection is not established", endpoint=self._rpc_url)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    @property
    def chain_id(self) -> int | None:
        return self._chain_id

    @property
    def web3(self) -> Web3:
        if self._web3 is None:
            raise RpcError("RPC provider not connected", endpoint=self._rpc_url)
        return self._web3

    def contract(self, address: str, abi: Sequence[dict]) -> Contract:
        try:
            checksum = Web3.to_checksum_address(address)
        except Exception as exc:
            raise ValidationError(
                "Invalid contract address", field="address", value=address
            ) from exc

        contract = self._contracts.get(checksum)
        if contract is None:
            contract = self.web3.eth.contract(address=checksum, abi=list(abi))
            self._contracts[checksum] = contract
        return contract

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    def _build_web3_provider(self, rpc_url: str) -> tuple[HTTPProvider, Web3]:
        provider = HTTPProvider(rpc_url, request_kwargs={"timeout": self._request_timeout})
        web3 = Web3(provider)
        if not web3.is_connected():
            raise RpcError("Unable to connect to RPC", endpoint=rpc_url)
        return provider, web3

    def _apply_account_middleware(self, web3: Web3, account: LocalAccount) -> None:
        web3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(account))  # type: ignore[arg-type]
        web3.eth.default_account = account.address
