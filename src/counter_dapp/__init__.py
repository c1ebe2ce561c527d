"""Counter dapp - transaction orchestration for a single on-chain counter.

This library sequences wallet connection, network validation, contract reads,
contract writes and confirmation tracking behind one state machine, with
web3-backed adapters for running it against a real node.
"""

from .base import ChainClient, WalletProvider
from .config import DappConfig, LocalWalletConfig, load_config_from_env
from .constants import COUNTER_ABI, COUNTER_ADDRESS, SEPOLIA_CHAIN_ID, ChainInfo
from .events import ChainChanged, WalletDisconnected
from .exceptions import (
    ConfirmationError,
    DappError,
    NetworkMismatchError,
    ReadError,
    RpcError,
    SubmissionError,
    TransitionError,
    ValidationError,
    WalletConnectionError,
)
from .network import NetworkSwitcher, chain_display_name, evaluate
from .orchestrator import Orchestrator, derive_state
from .reader import BalanceReader, ContractReader
from .session import SessionManager
from .transactions import TransactionSubmitter
from .types import (
    Balance,
    BlockReason,
    Eligibility,
    ErrorReport,
    NetworkState,
    OrchestratorState,
    ReadResult,
    ReceiptStatus,
    Session,
    SessionStatus,
    Snapshot,
    Transaction,
    TxPhase,
    TxReceipt,
    WalletAccount,
)
from .utils import format_units, normalise_tx_hash

__version__ = "0.1.0"

__all__ = [
    # Orchestration
    "Orchestrator",
    "derive_state",
    "SessionManager",
    "NetworkSwitcher",
    "ContractReader",
    "BalanceReader",
    "TransactionSubmitter",
    "evaluate",
    "chain_display_name",
    # Interfaces and events
    "WalletProvider",
    "ChainClient",
    "ChainChanged",
    "WalletDisconnected",
    # Configuration
    "DappConfig",
    "LocalWalletConfig",
    "load_config_from_env",
    "ChainInfo",
    "COUNTER_ABI",
    "COUNTER_ADDRESS",
    "SEPOLIA_CHAIN_ID",
    # Types and enums
    "Balance",
    "BlockReason",
    "Eligibility",
    "ErrorReport",
    "NetworkState",
    "OrchestratorState",
    "ReadResult",
    "ReceiptStatus",
    "Session",
    "SessionStatus",
    "Snapshot",
    "Transaction",
    "TxPhase",
    "TxReceipt",
    "WalletAccount",
    # Exceptions
    "DappError",
    "WalletConnectionError",
    "NetworkMismatchError",
    "ReadError",
    "SubmissionError",
    "ConfirmationError",
    "RpcError",
    "ValidationError",
    "TransitionError",
    # Utility functions
    "format_units",
    "normalise_tx_hash",
]
