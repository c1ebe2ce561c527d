"""Wallet session ownership."""

from __future__ import annotations

import logging
from collections.abc import Callable

from .base import WalletProvider
from .exceptions import DappError, WalletConnectionError
from .types import Session, SessionStatus

logger = logging.getLogger(__name__)


class SessionManager:
    """Own the wallet session and apply wallet results and events to it."""

    def __init__(
        self,
        wallet: WalletProvider,
        *,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._wallet = wallet
        self._on_change = on_change
        self._session = Session()
        self._epoch = 0

    @property
    def session(self) -> Session:
        return self._session

    @property
    def epoch(self) -> int:
        return self._epoch

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def connect(self) -> Session:
        """Ask the wallet for an account; a connect already underway is not repeated."""

        if self._session.status in (SessionStatus.CONNECTING, SessionStatus.CONNECTED):
            return self._session

        epoch = self._epoch
        self._set(Session(status=SessionStatus.CONNECTING, error=self._session.error))

        try:
            account = await self._wallet.connect()
        except Exception as exc:
            if epoch != self._epoch:
                logger.debug("Ignoring wallet connect failure after disconnect: %s", exc)
                return self._session
            error = _connection_error("Wallet connection failed", exc)
            logger.warning("Wallet connection failed: %s", error.message)
            self._set(Session(status=SessionStatus.ERROR, error=error))
            return self._session

        if epoch != self._epoch:
            logger.debug("Ignoring wallet connect for %s after disconnect", account.address)
            return self._session

        self._set(
            Session(
                status=SessionStatus.CONNECTED,
                address=account.address,
                chain_id=int(account.chain_id),
            )
        )
        logger.info("Wallet connected address=%s chain_id=%s", account.address, account.chain_id)
        return self._session

    def disconnect(self) -> Session:
        """Reset the session and release the wallet; safe to call in any state."""

        self._epoch += 1
        error: DappError | None = None
        try:
            self._wallet.disconnect()
        except Exception as exc:
            error = _connection_error("Wallet disconnect failed", exc)
            logger.warning("Wallet disconnect failed: %s", error.message)

        self._set(Session(error=error))
        return self._session

    # ------------------------------------------------------------------
    # Wallet events
    # ------------------------------------------------------------------
    def handle_chain_changed(self, chain_id: int) -> None:
        if self._session.status is not SessionStatus.CONNECTED:
            logger.debug("Ignoring chain change to %s while %s", chain_id, self._session.status)
            return
        if self._session.chain_id == chain_id:
            return

        logger.info("Wallet chain changed %s -> %s", self._session.chain_id, chain_id)
        self._set(
            Session(
                status=SessionStatus.CONNECTED,
                address=self._session.address,
                chain_id=int(chain_id),
            )
        )

    def handle_wallet_disconnected(self) -> None:
        self._epoch += 1
        if self._session == Session():
            return
        logger.info("Wallet reported disconnect")
        self._set(Session())

    def _set(self, session: Session) -> None:
        self._session = session
        if self._on_change is not None:
            self._on_change()


def _connection_error(message: str, exc: Exception) -> WalletConnectionError:
    if isinstance(exc, WalletConnectionError):
        return exc
    detail = exc.message if isinstance(exc, DappError) else str(exc)
    return WalletConnectionError(f"{message}: {detail}", details={"error": str(exc)})
