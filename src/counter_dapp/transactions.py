"""Transaction submission and receipt tracking for the counter contract."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .base import ChainClient
from .config import DappConfig
from .exceptions import ConfirmationError, DappError, SubmissionError, ValidationError
from .types import BlockReason, Eligibility, ReceiptStatus, Transaction, TxPhase
from .utils import normalise_tx_hash

logger = logging.getLogger(__name__)


class TransactionSubmitter:
    """Hold at most one live transaction and drive it to a terminal phase."""

    def __init__(
        self,
        client: ChainClient,
        config: DappConfig,
        gate: Callable[[], Eligibility],
        *,
        on_change: Callable[[], None] | None = None,
        on_confirmed: Callable[[Transaction], None] | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._gate = gate
        self._on_change = on_change
        self._on_confirmed = on_confirmed
        self._transaction: Transaction | None = None
        self._task: asyncio.Task[None] | None = None
        self._next_id = 0
        self._generation = 0
        self._submission_error: DappError | None = None
        self._confirmation_error: DappError | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def transaction(self) -> Transaction | None:
        return self._transaction

    @property
    def phase(self) -> TxPhase:
        if self._transaction is None:
            return TxPhase.IDLE
        return self._transaction.phase

    @property
    def is_live(self) -> bool:
        return self._transaction is not None and self._transaction.is_live

    @property
    def task(self) -> asyncio.Task[None] | None:
        return self._task

    @property
    def submission_error(self) -> DappError | None:
        return self._submission_error

    @property
    def confirmation_error(self) -> DappError | None:
        return self._confirmation_error

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def submit(self, function_name: str, *, sender: str) -> Eligibility:
        """Start a new transaction calling ``function_name``.

        Returns a blocked ``Eligibility`` without creating anything when a
        transaction is still live or the gate refuses. Must be called from a
        running event loop (``RuntimeError`` otherwise, before any transaction
        exists); the lifecycle continues as a background task.
        """

        if function_name not in self._config.write_functions:
            raise ValidationError(
                f"Unknown write function: {function_name}",
                field="function_name",
                value=function_name,
            )

        if self.is_live:
            logger.info("Rejecting %s: transaction %s is live", function_name, self.phase.value)
            return Eligibility.blocked(BlockReason.TRANSACTION_PENDING)

        eligibility = self._gate()
        if not eligibility:
            logger.info("Rejecting %s: %s", function_name, eligibility.reason)
            return eligibility

        loop = asyncio.get_running_loop()
        self._next_id += 1
        tx = Transaction(id=self._next_id, function_name=function_name)
        self._set(tx)
        logger.info("Transaction %s awaiting signature for %s()", tx.id, function_name)

        self._task = loop.create_task(self._run(tx.id, self._generation, sender))
        return Eligibility.ok(transaction_id=tx.id)

    async def wait(self) -> Transaction | None:
        """Wait for the current lifecycle task, if any, to finish."""

        task = self._task
        if task is not None:
            await asyncio.shield(task)
        return self._transaction

    def abandon(self) -> None:
        """Fail a live transaction and ignore whatever its lifecycle reports later.

        The lifecycle task is released, not cancelled; callers that need to
        await it should take ``task`` first.
        """

        self._generation += 1
        self._task = None
        tx = self._transaction
        if tx is None or not tx.is_live:
            return

        error: DappError
        if tx.phase is TxPhase.AWAITING_SIGNATURE:
            error = SubmissionError(
                "Wallet disconnected before the transaction was signed",
                function_name=tx.function_name,
            )
            self._submission_error = error
        else:
            error = ConfirmationError(
                "Wallet disconnected before the transaction was confirmed",
                tx_hash=tx.hash,
            )
            self._confirmation_error = error

        logger.info("Abandoning transaction %s in phase %s", tx.id, tx.phase.value)
        self._set(tx.failed(error))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def _run(self, tx_id: int, generation: int, sender: str) -> None:
        if not self._is_current(tx_id, generation):
            return
        function_name = self._current().function_name

        try:
            raw_hash = await self._client.send_transaction(
                self._config.contract_address,
                self._config.abi,
                function_name,
                (),
                sender=sender,
            )
            tx_hash = normalise_tx_hash(raw_hash)
        except Exception as exc:
            if not self._is_current(tx_id, generation):
                logger.debug("Ignoring stale submission failure for tx %s: %s", tx_id, exc)
                return
            detail = exc.message if isinstance(exc, DappError) else str(exc)
            error = SubmissionError(
                f"Submitting {function_name}() failed: {detail}",
                function_name=function_name,
                details={"error": str(exc)},
            )
            logger.warning("Transaction %s submission failed: %s", tx_id, detail)
            self._submission_error = error
            self._set(self._current().failed(error))
            return

        if not self._is_current(tx_id, generation):
            logger.debug("Ignoring stale hash %s for tx %s", tx_hash, tx_id)
            return

        self._submission_error = None
        self._set(self._current().submitted(tx_hash))
        logger.info("Transaction sent for action=%s hash=%s", function_name, tx_hash)

        try:
            receipt = await self._client.wait_for_receipt(tx_hash)
        except Exception as exc:
            if not self._is_current(tx_id, generation):
                logger.debug("Ignoring stale receipt failure for %s: %s", tx_hash, exc)
                return
            detail = exc.message if isinstance(exc, DappError) else str(exc)
            error = ConfirmationError(
                f"Waiting for receipt failed: {detail}",
                tx_hash=tx_hash,
                details={"error": str(exc)},
            )
            logger.warning("Receipt watch for %s failed: %s", tx_hash, detail)
            self._confirmation_error = error
            self._set(self._current().failed(error))
            return

        if not self._is_current(tx_id, generation):
            logger.debug("Ignoring stale receipt for %s", tx_hash)
            return

        if receipt.status is not ReceiptStatus.SUCCESS:
            error = ConfirmationError(
                f"Transaction reverted in block {receipt.block_number}",
                tx_hash=tx_hash,
                details={"receipt": receipt.raw},
            )
            logger.warning("Transaction %s reverted", tx_hash)
            self._confirmation_error = error
            self._set(self._current().failed(error, receipt))
            return

        self._confirmation_error = None
        confirmed = self._current().confirmed(receipt)
        self._set(confirmed)
        logger.info(
            "Transaction confirmed for action=%s hash=%s block=%s",
            function_name,
            tx_hash,
            receipt.block_number,
        )
        if self._on_confirmed is not None:
            self._on_confirmed(confirmed)

    def _current(self) -> Transaction:
        tx = self._transaction
        if tx is None:  # pragma: no cover - guarded by _is_current
            raise ValidationError("No transaction in flight", field="transaction")
        return tx

    def _is_current(self, tx_id: int, generation: int) -> bool:
        tx = self._transaction
        return tx is not None and tx.id == tx_id and generation == self._generation

    def _set(self, tx: Transaction) -> None:
        self._transaction = tx
        if self._on_change is not None:
            self._on_change()
