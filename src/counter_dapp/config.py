"""Configuration containers for the counter dapp."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace

from dotenv import load_dotenv
from web3 import Web3

from .constants import (
    COUNTER_ABI,
    COUNTER_ADDRESS,
    DECREMENT_FUNCTION,
    SEPOLIA_CHAIN_ID,
    WRITE_FUNCTIONS,
    ChainInfo,
    get_chain_info,
)
from .exceptions import ValidationError

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_RECEIPT_POLL_INTERVAL = 1.0

_VIEW_MUTABILITY = frozenset({"view", "pure"})


@dataclass(frozen=True)
class DappConfig:
    """Fixed description of the one contract on the one chain the dapp targets."""

    chain_id: int = SEPOLIA_CHAIN_ID
    contract_address: str = COUNTER_ADDRESS
    abi: Sequence[dict] = field(default_factory=lambda: tuple(COUNTER_ABI), hash=False)
    read_function: str = "count"
    write_functions: tuple[str, ...] = WRITE_FUNCTIONS
    rpc_url: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    receipt_poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL
    auto_read: bool = True

    def __post_init__(self) -> None:
        if self.chain_id <= 0:
            raise ValidationError("Chain id must be positive", field="chain_id", value=self.chain_id)

        if not Web3.is_address(self.contract_address):
            raise ValidationError(
                "Contract address is not a valid address",
                field="contract_address",
                value=self.contract_address,
            )

        functions = {
            entry.get("name"): entry for entry in self.abi if entry.get("type") == "function"
        }

        read_entry = functions.get(self.read_function)
        if read_entry is None or read_entry.get("stateMutability") not in _VIEW_MUTABILITY:
            raise ValidationError(
                "Read function must be a view function of the ABI",
                field="read_function",
                value=self.read_function,
            )

        for name in self.write_functions:
            entry = functions.get(name)
            if entry is None or entry.get("stateMutability") in _VIEW_MUTABILITY:
                raise ValidationError(
                    "Write function must be a state-mutating function of the ABI",
                    field="write_functions",
                    value=name,
                )

    @property
    def chain(self) -> ChainInfo:
        return get_chain_info(self.chain_id)

    @property
    def guards_decrement(self) -> bool:
        return DECREMENT_FUNCTION in self.write_functions

    def with_defaulted_urls(self) -> DappConfig:
        """Return a copy with the RPC URL defaulted from the chain registry."""

        if self.rpc_url is not None:
            return replace(self, rpc_url=self.rpc_url.rstrip("/"))

        default_url = self.chain.default_rpc_url
        if default_url is None:
            raise ValidationError(
                "No default RPC URL for chain; set rpc_url explicitly",
                field="rpc_url",
                value=self.chain_id,
            )
        return replace(self, rpc_url=default_url)


@dataclass(frozen=True)
class LocalWalletConfig:
    """Configuration for the local-key wallet adapter."""

    private_key: str
    rpc_urls: Mapping[int, str] = field(default_factory=dict, hash=False)
    initial_chain_id: int = SEPOLIA_CHAIN_ID
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def rpc_url_for(self, chain_id: int) -> str | None:
        url = self.rpc_urls.get(chain_id)
        if url is None:
            url = get_chain_info(chain_id).default_rpc_url
        return url


def parse_rpc_urls(raw: str | None) -> dict[int, str]:
    """Parse ``"<chain_id>=<url>,..."`` into a mapping."""

    urls: dict[int, str] = {}
    if not raw:
        return urls

    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        chain_part, sep, url = item.partition("=")
        if not sep or not url.strip():
            raise ValidationError(
                "RPC URL entries must look like <chain_id>=<url>", field="rpc_urls", value=item
            )
        try:
            chain_id = int(chain_part.strip())
        except ValueError as exc:
            raise ValidationError(
                "RPC URL entry has a non-numeric chain id", field="rpc_urls", value=item
            ) from exc
        urls[chain_id] = url.strip().rstrip("/")

    return urls


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer", field=name, value=raw) from exc


def load_config_from_env(
    dotenv_path: str | None = None,
) -> tuple[DappConfig, LocalWalletConfig | None]:
    """Build configuration from environment variables, reading ``.env`` first.

    Returns the dapp configuration and, when ``PRIVATE_KEY`` is set, the
    configuration for the local-key wallet.
    """

    load_dotenv(dotenv_path)

    chain_id = _env_int("COUNTER_CHAIN_ID", SEPOLIA_CHAIN_ID)
    raw_address = os.getenv("COUNTER_ADDRESS", COUNTER_ADDRESS)
    if not Web3.is_address(raw_address):
        raise ValidationError(
            "COUNTER_ADDRESS is not a valid address", field="COUNTER_ADDRESS", value=raw_address
        )

    config = DappConfig(
        chain_id=chain_id,
        contract_address=Web3.to_checksum_address(raw_address),
        read_function=os.getenv("COUNTER_READ_FUNCTION", "count"),
        rpc_url=os.getenv("COUNTER_RPC_URL") or None,
        auto_read=os.getenv("COUNTER_AUTO_READ", "1").lower() not in ("0", "false", "no"),
    ).with_defaulted_urls()

    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        return config, None

    rpc_urls = parse_rpc_urls(os.getenv("WALLET_RPC_URLS"))
    if config.rpc_url is not None:
        rpc_urls.setdefault(config.chain_id, config.rpc_url)

    wallet_config = LocalWalletConfig(
        private_key=private_key,
        rpc_urls=rpc_urls,
        initial_chain_id=_env_int("WALLET_CHAIN_ID", config.chain_id),
        request_timeout=config.request_timeout,
    )
    return config, wallet_config
