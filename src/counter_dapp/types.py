"""Type definitions and state records for the counter dapp."""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any

from .exceptions import DappError, TransitionError
from .utils import format_units, to_decimal


class SessionStatus(str, Enum):
    """Wallet connection status."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class TxPhase(str, Enum):
    """Lifecycle phases of a single transaction."""

    IDLE = "idle"
    AWAITING_SIGNATURE = "awaiting_signature"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


LIVE_PHASES = frozenset({TxPhase.AWAITING_SIGNATURE, TxPhase.SUBMITTED})
TERMINAL_PHASES = frozenset({TxPhase.CONFIRMED, TxPhase.FAILED})

_NEXT_PHASES: dict[TxPhase, frozenset[TxPhase]] = {
    TxPhase.IDLE: frozenset({TxPhase.AWAITING_SIGNATURE}),
    TxPhase.AWAITING_SIGNATURE: frozenset({TxPhase.SUBMITTED, TxPhase.FAILED}),
    TxPhase.SUBMITTED: frozenset({TxPhase.CONFIRMED, TxPhase.FAILED}),
    TxPhase.CONFIRMED: frozenset(),
    TxPhase.FAILED: frozenset(),
}


class ReceiptStatus(str, Enum):
    """Outcome recorded in a transaction receipt."""

    SUCCESS = "success"
    REVERTED = "reverted"


class OrchestratorState(str, Enum):
    """States of the orchestration state machine."""

    NOT_CONNECTED = "not_connected"
    WRONG_NETWORK = "wrong_network"
    READY = "ready"
    BUSY = "busy"


class BlockReason(str, Enum):
    """Why a read or write is not allowed right now."""

    NOT_CONNECTED = "not_connected"
    WRONG_NETWORK = "wrong_network"
    TRANSACTION_PENDING = "transaction_pending"
    COUNT_IS_ZERO = "count_is_zero"


@dataclass(frozen=True)
class WalletAccount:
    """Account details returned by a successful wallet connection."""

    address: str
    chain_id: int


@dataclass(frozen=True)
class Session:
    """Wallet connection state."""

    status: SessionStatus = SessionStatus.DISCONNECTED
    address: str | None = None
    chain_id: int | None = None
    error: DappError | None = None

    @property
    def is_connected(self) -> bool:
        return self.status is SessionStatus.CONNECTED


@dataclass(frozen=True)
class NetworkState:
    """Network correctness derived from a session."""

    is_correct_chain: bool
    display_name: str
    chain_id: int | None
    required_chain_id: int


@dataclass(frozen=True)
class ReadResult:
    """Last outcome of a read-only query."""

    value: Any = None
    fetching: bool = False
    error: DappError | None = None


@dataclass(frozen=True)
class Balance:
    """Native currency balance of an account."""

    value: int
    decimals: int = 18
    symbol: str = "ETH"

    @property
    def amount(self) -> Decimal:
        return to_decimal(self.value, self.decimals)

    @property
    def formatted(self) -> str:
        return f"{format_units(self.value, self.decimals)} {self.symbol}"


@dataclass(frozen=True)
class TxReceipt:
    """Chain receipt for a mined transaction."""

    status: ReceiptStatus
    block_number: int | None = None
    raw: dict[str, Any] | None = None


@dataclass(frozen=True)
class Transaction:
    """A single state-mutating contract call and its lifecycle."""

    id: int
    function_name: str
    phase: TxPhase = TxPhase.AWAITING_SIGNATURE
    hash: str | None = None
    error: DappError | None = None
    block_number: int | None = None
    receipt: dict[str, Any] | None = None

    @property
    def is_live(self) -> bool:
        return self.phase in LIVE_PHASES

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def submitted(self, tx_hash: str) -> "Transaction":
        """Return a copy in the submitted phase carrying ``tx_hash``."""

        self._check(TxPhase.SUBMITTED)
        if self.hash is not None and self.hash != tx_hash:
            raise TransitionError(f"hash {self.hash}", f"hash {tx_hash}")
        return replace(self, phase=TxPhase.SUBMITTED, hash=tx_hash)

    def confirmed(self, receipt: TxReceipt) -> "Transaction":
        """Return a copy in the confirmed phase."""

        self._check(TxPhase.CONFIRMED)
        return replace(
            self,
            phase=TxPhase.CONFIRMED,
            block_number=receipt.block_number,
            receipt=receipt.raw,
        )

    def failed(self, error: DappError, receipt: TxReceipt | None = None) -> "Transaction":
        """Return a copy in the failed phase recording ``error``."""

        self._check(TxPhase.FAILED)
        if receipt is None:
            return replace(self, phase=TxPhase.FAILED, error=error)
        return replace(
            self,
            phase=TxPhase.FAILED,
            error=error,
            block_number=receipt.block_number,
            receipt=receipt.raw,
        )

    def _check(self, target: TxPhase) -> None:
        if target not in _NEXT_PHASES[self.phase]:
            raise TransitionError(self.phase.value, target.value)


@dataclass(frozen=True)
class Eligibility:
    """Whether an action may run, and why not when it may not."""

    allowed: bool
    reason: BlockReason | None = None
    transaction_id: int | None = None

    @classmethod
    def ok(cls, transaction_id: int | None = None) -> "Eligibility":
        return cls(allowed=True, transaction_id=transaction_id)

    @classmethod
    def blocked(cls, reason: BlockReason) -> "Eligibility":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class ErrorReport:
    """Last error of each category."""

    connection: DappError | None = None
    network: DappError | None = None
    read: DappError | None = None
    submission: DappError | None = None
    confirmation: DappError | None = None

    def any(self) -> bool:
        return any(
            error is not None
            for error in (
                self.connection,
                self.network,
                self.read,
                self.submission,
                self.confirmation,
            )
        )


@dataclass(frozen=True)
class Snapshot:
    """Everything an observer of the orchestrator can see at one instant."""

    state: OrchestratorState
    session: Session
    network: NetworkState
    count: ReadResult
    balance: ReadResult
    transaction: Transaction | None
    errors: ErrorReport = field(default_factory=ErrorReport)
    can_read: bool = False
    can_write: bool = False
    can_decrement: bool = False
    is_switching: bool = False
