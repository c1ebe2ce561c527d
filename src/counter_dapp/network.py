"""Network correctness and chain switching."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .base import WalletProvider
from .constants import get_chain_info
from .exceptions import DappError, NetworkMismatchError
from .types import NetworkState, Session, SessionStatus

logger = logging.getLogger(__name__)


def chain_display_name(chain_id: int | None) -> str:
    """Human label for a chain id; ``"-"`` when there is none."""
    if chain_id is None:
        return "-"
    return get_chain_info(chain_id).name


def evaluate(session: Session, required_chain_id: int) -> NetworkState:
    """Derive network correctness from the session alone."""
    is_correct = (
        session.status is SessionStatus.CONNECTED and session.chain_id == required_chain_id
    )
    return NetworkState(
        is_correct_chain=is_correct,
        display_name=chain_display_name(session.chain_id),
        chain_id=session.chain_id,
        required_chain_id=required_chain_id,
    )


def mismatch_error(network: NetworkState) -> NetworkMismatchError:
    return NetworkMismatchError(
        f"Wallet is on {network.display_name}, expected "
        f"{chain_display_name(network.required_chain_id)}",
        chain_id=network.chain_id,
        required_chain_id=network.required_chain_id,
    )


class NetworkSwitcher:
    """Forward chain switch requests to the wallet without stacking duplicates."""

    def __init__(
        self,
        wallet: WalletProvider,
        *,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._wallet = wallet
        self._on_change = on_change
        self._pending: asyncio.Task[bool] | None = None
        self._pending_chain_id: int | None = None
        self._token = 0
        self._error: DappError | None = None

    @property
    def is_switching(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def error(self) -> DappError | None:
        return self._error

    async def request_switch(self, chain_id: int) -> bool:
        """Switch the wallet to ``chain_id``.

        A request for the chain already being switched to joins the pending
        wallet call. A request for another chain supersedes it; the superseded
        call's outcome is discarded and its awaiters receive ``False``.
        """

        pending = self._pending
        if pending is not None and not pending.done() and self._pending_chain_id == chain_id:
            return await asyncio.shield(pending)

        self._token += 1
        token = self._token
        task = asyncio.ensure_future(self._switch(chain_id, token))
        self._pending = task
        self._pending_chain_id = chain_id
        self._notify()
        return await asyncio.shield(task)

    def reset(self) -> None:
        self._token += 1
        self._pending = None
        self._pending_chain_id = None
        self._error = None
        self._notify()

    async def _switch(self, chain_id: int, token: int) -> bool:
        logger.info("Requesting wallet switch to chain %s", chain_id)
        try:
            await self._wallet.switch_chain(chain_id)
        except Exception as exc:
            if token != self._token:
                logger.debug("Ignoring superseded switch failure: %s", exc)
                return False
            detail = exc.message if isinstance(exc, DappError) else str(exc)
            self._error = NetworkMismatchError(
                f"Switch to {chain_display_name(chain_id)} failed: {detail}",
                required_chain_id=chain_id,
                details={"error": str(exc)},
            )
            logger.warning("Chain switch to %s failed: %s", chain_id, detail)
            self._finish()
            return False

        if token != self._token:
            logger.debug("Ignoring superseded switch to chain %s", chain_id)
            return False

        self._error = None
        self._finish()
        return True

    def _finish(self) -> None:
        self._pending = None
        self._pending_chain_id = None
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
