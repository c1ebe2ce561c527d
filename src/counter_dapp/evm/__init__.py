"""web3-backed wallet and chain client adapters."""

from .client import Web3ChainClient, receipt_from_web3
from .connections import Web3Connections
from .wallet import LocalAccountWallet

__all__ = [
    "LocalAccountWallet",
    "Web3ChainClient",
    "Web3Connections",
    "receipt_from_web3",
]
