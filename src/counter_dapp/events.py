"""Wallet events delivered to the orchestrator."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChainChanged:
    """The wallet moved to another chain."""

    chain_id: int


@dataclass(frozen=True)
class WalletDisconnected:
    """The wallet ended the session on its own."""


WalletEvent = ChainChanged | WalletDisconnected
