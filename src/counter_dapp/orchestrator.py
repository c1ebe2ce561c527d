"""Transaction orchestration state machine for the counter dapp."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from .base import ChainClient, WalletProvider
from .config import DappConfig
from .constants import DECREMENT_FUNCTION
from .events import ChainChanged, WalletDisconnected, WalletEvent
from .exceptions import ValidationError
from .network import NetworkSwitcher, evaluate, mismatch_error
from .reader import BalanceReader, ContractReader
from .session import SessionManager
from .transactions import TransactionSubmitter
from .types import (
    BlockReason,
    Eligibility,
    ErrorReport,
    NetworkState,
    OrchestratorState,
    ReadResult,
    Session,
    Snapshot,
    Transaction,
)

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[Snapshot], None]


def derive_state(
    session: Session, network: NetworkState, transaction: Transaction | None
) -> OrchestratorState:
    """Map the current session, network and transaction onto a machine state."""
    if not session.is_connected:
        return OrchestratorState.NOT_CONNECTED
    if not network.is_correct_chain:
        return OrchestratorState.WRONG_NETWORK
    if transaction is not None and transaction.is_live:
        return OrchestratorState.BUSY
    return OrchestratorState.READY


def read_eligibility(session: Session, network: NetworkState) -> Eligibility:
    if not session.is_connected:
        return Eligibility.blocked(BlockReason.NOT_CONNECTED)
    if not network.is_correct_chain:
        return Eligibility.blocked(BlockReason.WRONG_NETWORK)
    return Eligibility.ok()


def write_eligibility(
    session: Session, network: NetworkState, transaction: Transaction | None
) -> Eligibility:
    eligibility = read_eligibility(session, network)
    if not eligibility:
        return eligibility
    if transaction is not None and transaction.is_live:
        return Eligibility.blocked(BlockReason.TRANSACTION_PENDING)
    return Eligibility.ok()


class Orchestrator:
    """Sequence wallet connection, network checks, reads and writes for one contract.

    Wallet events enter through :meth:`dispatch`. Each component owns its own
    state; the orchestrator only derives from that state and issues commands.
    """

    def __init__(
        self,
        wallet: WalletProvider,
        client: ChainClient,
        config: DappConfig | None = None,
    ) -> None:
        self._config = config or DappConfig()
        self._wallet = wallet
        self._listeners: list[SnapshotListener] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._could_read = False

        self._session = SessionManager(wallet, on_change=self._changed)
        self._switcher = NetworkSwitcher(wallet, on_change=self._changed)
        self._reader = ContractReader(
            client,
            self._config,
            lambda: bool(self.read_eligibility()),
            on_change=self._changed,
        )
        self._balance = BalanceReader(
            client,
            lambda: self.session.address,
            lambda: self.session.chain_id,
            lambda: self.session.is_connected,
            on_change=self._changed,
        )
        self._submitter = TransactionSubmitter(
            client,
            self._config,
            self.read_eligibility,
            on_change=self._changed,
            on_confirmed=self._handle_confirmed,
        )

        wallet.on_chain_changed(lambda chain_id: self._post(ChainChanged(chain_id)))
        wallet.on_disconnected(lambda: self._post(WalletDisconnected()))

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    @property
    def config(self) -> DappConfig:
        return self._config

    @property
    def session(self) -> Session:
        return self._session.session

    @property
    def network(self) -> NetworkState:
        return evaluate(self.session, self._config.chain_id)

    @property
    def state(self) -> OrchestratorState:
        return derive_state(self.session, self.network, self.transaction)

    @property
    def count(self) -> ReadResult:
        return self._reader.result

    @property
    def balance(self) -> ReadResult:
        return self._balance.result

    @property
    def transaction(self) -> Transaction | None:
        return self._submitter.transaction

    @property
    def is_switching(self) -> bool:
        return self._switcher.is_switching

    @property
    def errors(self) -> ErrorReport:
        network = self.network
        network_error = self._switcher.error
        if network_error is None and self.session.is_connected and not network.is_correct_chain:
            network_error = mismatch_error(network)
        return ErrorReport(
            connection=self.session.error,
            network=network_error,
            read=self._reader.result.error,
            submission=self._submitter.submission_error,
            confirmation=self._submitter.confirmation_error,
        )

    def read_eligibility(self) -> Eligibility:
        return read_eligibility(self.session, self.network)

    def write_eligibility(self, function_name: str) -> Eligibility:
        eligibility = write_eligibility(self.session, self.network, self.transaction)
        if not eligibility:
            return eligibility
        if function_name == DECREMENT_FUNCTION and self._config.guards_decrement:
            # dec() reverts at zero; an unread count is treated as zero
            if not self._reader.result.value:
                return Eligibility.blocked(BlockReason.COUNT_IS_ZERO)
        return eligibility

    def snapshot(self) -> Snapshot:
        read = self.read_eligibility()
        return Snapshot(
            state=self.state,
            session=self.session,
            network=self.network,
            count=self.count,
            balance=self.balance,
            transaction=self.transaction,
            errors=self.errors,
            can_read=read.allowed,
            can_write=write_eligibility(self.session, self.network, self.transaction).allowed,
            can_decrement=self.write_eligibility(DECREMENT_FUNCTION).allowed,
            is_switching=self.is_switching,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every change."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def connect(self) -> Snapshot:
        self._loop = asyncio.get_running_loop()
        await self._session.connect()
        if self.session.is_connected:
            self._spawn(self._balance.read())
        return self.snapshot()

    def disconnect(self) -> Snapshot:
        self._reset(wallet_initiated=False)
        return self.snapshot()

    async def switch_network(self) -> bool:
        """Ask the wallet to move to the required chain."""

        if not self.session.is_connected:
            logger.info("Ignoring network switch while not connected")
            return False

        switched = await self._switcher.request_switch(self._config.chain_id)
        if switched:
            self._session.handle_chain_changed(self._config.chain_id)
        return switched and self.network.is_correct_chain

    async def read(self) -> ReadResult:
        return await self._reader.read()

    async def refresh_balance(self) -> ReadResult:
        return await self._balance.read()

    def submit(self, function_name: str) -> Eligibility:
        """Submit a write; returns a blocked ``Eligibility`` if it may not run now."""

        if function_name not in self._config.write_functions:
            raise ValidationError(
                f"Unknown write function: {function_name}",
                field="function_name",
                value=function_name,
            )

        eligibility = self.write_eligibility(function_name)
        if not eligibility:
            logger.info("Rejecting %s(): %s", function_name, eligibility.reason)
            return eligibility

        address = self.session.address
        if address is None:  # pragma: no cover - implied by eligibility
            return Eligibility.blocked(BlockReason.NOT_CONNECTED)
        return self._submitter.submit(function_name, sender=address)

    def increment(self) -> Eligibility:
        return self.submit("inc")

    def decrement(self) -> Eligibility:
        return self.submit(DECREMENT_FUNCTION)

    async def wait_for_transaction(self) -> Transaction | None:
        return await self._submitter.wait()

    async def drain(self) -> None:
        """Wait until no background work (lifecycles, refreshes) remains."""

        while True:
            pending = {task for task in self._tasks if not task.done()}
            lifecycle = self._submitter.task
            if lifecycle is not None and not lifecycle.done():
                pending.add(lifecycle)
            if not pending:
                return
            await asyncio.gather(*pending)

    # ------------------------------------------------------------------
    # Wallet events
    # ------------------------------------------------------------------
    def dispatch(self, event: WalletEvent) -> None:
        """Apply a wallet event; the single entry point for wallet callbacks."""

        if isinstance(event, ChainChanged):
            previous = self.session.chain_id
            self._session.handle_chain_changed(event.chain_id)
            if self.session.is_connected and self.session.chain_id != previous:
                self._spawn(self._balance.read())
        elif isinstance(event, WalletDisconnected):
            self._reset(wallet_initiated=True)
        else:
            raise ValidationError("Unknown wallet event", field="event", value=event)

    def _post(self, event: WalletEvent) -> None:
        loop = self._loop
        if loop is not None and loop.is_running() and not _running_on(loop):
            loop.call_soon_threadsafe(self.dispatch, event)
            return
        self.dispatch(event)

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    def _reset(self, *, wallet_initiated: bool) -> None:
        if wallet_initiated:
            self._session.handle_wallet_disconnected()
        else:
            self._session.disconnect()
        self._switcher.reset()
        self._reader.invalidate()
        self._balance.invalidate()
        lifecycle = self._submitter.task
        self._submitter.abandon()
        if lifecycle is not None and not lifecycle.done():
            # its outcome is ignored, but drain() still waits for it
            self._track(lifecycle)

    def _handle_confirmed(self, transaction: Transaction) -> None:
        logger.info(
            "Refreshing %s after transaction %s", self._config.read_function, transaction.id
        )
        self._spawn(self._reader.read())
        self._spawn(self._balance.read())

    def _changed(self) -> None:
        can_read = bool(self.read_eligibility())
        became_readable = can_read and not self._could_read
        self._could_read = can_read
        if became_readable and self._config.auto_read:
            self._spawn(self._reader.read())

        if self._listeners:
            snapshot = self.snapshot()
            for listener in list(self._listeners):
                listener(snapshot)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; dropping background %s", coro)
            coro.close()
            return
        self._track(loop.create_task(coro))

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


def _running_on(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False
