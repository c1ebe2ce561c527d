"""Read-only queries against the chain: the contract counter and the account balance."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .base import ChainClient
from .config import DappConfig
from .constants import get_chain_info
from .exceptions import DappError, ReadError
from .types import Balance, ReadResult

logger = logging.getLogger(__name__)

Gate = Callable[[], bool]


class LatestValueQuery:
    """Cache the outcome of a repeatable query where the last started call wins.

    Every call is issued. Only the most recently started call may apply its
    outcome, so a slow early call can never overwrite a later one. Outcomes of
    calls started before ``invalidate()`` are discarded.
    """

    label = "query"

    def __init__(self, gate: Gate, *, on_change: Callable[[], None] | None = None) -> None:
        self._gate = gate
        self._on_change = on_change
        self._result = ReadResult()
        self._started = 0
        self._generation = 0

    @property
    def result(self) -> ReadResult:
        return self._result

    async def read(self) -> ReadResult:
        if not self._gate():
            logger.debug("Skipping %s read: not eligible", self.label)
            return self._result

        self._started += 1
        seq = self._started
        generation = self._generation
        self._set(ReadResult(value=self._result.value, fetching=True, error=self._result.error))

        try:
            value = await self._fetch()
        except Exception as exc:
            if not self._is_current(seq, generation):
                logger.debug("Discarding stale %s failure #%s: %s", self.label, seq, exc)
                return self._result
            error = self._wrap_error(exc)
            logger.warning("%s read failed: %s", self.label.capitalize(), error.message)
            self._set(ReadResult(value=self._result.value, fetching=False, error=error))
            return self._result

        if not self._is_current(seq, generation):
            logger.debug("Discarding stale %s result #%s", self.label, seq)
            return self._result

        self._set(ReadResult(value=value, fetching=False, error=None))
        return self._result

    def invalidate(self) -> None:
        self._generation += 1
        if self._result.fetching:
            self._set(ReadResult(value=self._result.value, fetching=False, error=self._result.error))

    async def _fetch(self) -> Any:
        raise NotImplementedError

    def _wrap_error(self, exc: Exception) -> DappError:
        detail = exc.message if isinstance(exc, DappError) else str(exc)
        return ReadError(
            f"{self.label.capitalize()} read failed: {detail}", details={"error": str(exc)}
        )

    def _is_current(self, seq: int, generation: int) -> bool:
        return seq == self._started and generation == self._generation

    def _set(self, result: ReadResult) -> None:
        self._result = result
        if self._on_change is not None:
            self._on_change()


class ContractReader(LatestValueQuery):
    """Call the configured view function of the contract."""

    label = "count"

    def __init__(
        self,
        client: ChainClient,
        config: DappConfig,
        gate: Gate,
        *,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(gate, on_change=on_change)
        self._client = client
        self._config = config

    async def _fetch(self) -> int:
        value = await self._client.call(
            self._config.contract_address,
            self._config.abi,
            self._config.read_function,
            (),
        )
        return int(value)

    def _wrap_error(self, exc: Exception) -> DappError:
        detail = exc.message if isinstance(exc, DappError) else str(exc)
        return ReadError(
            f"Call to {self._config.read_function}() failed: {detail}",
            function_name=self._config.read_function,
            details={"error": str(exc)},
        )


class BalanceReader(LatestValueQuery):
    """Fetch the native balance of the connected account."""

    label = "balance"

    def __init__(
        self,
        client: ChainClient,
        address: Callable[[], str | None],
        chain_id: Callable[[], int | None],
        gate: Gate,
        *,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(gate, on_change=on_change)
        self._client = client
        self._address = address
        self._chain_id = chain_id

    async def _fetch(self) -> Balance:
        address = self._address()
        if address is None:
            raise ReadError("No connected account to read a balance for")

        value = await self._client.get_balance(address)
        chain_id = self._chain_id()
        if chain_id is None:
            return Balance(value=int(value))
        chain = get_chain_info(chain_id)
        return Balance(value=int(value), decimals=chain.native_decimals, symbol=chain.native_symbol)
