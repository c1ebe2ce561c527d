"""Exception hierarchy for the counter dapp orchestration core."""

from typing import Any


class DappError(Exception):
    """Base exception for all counter dapp errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class WalletConnectionError(DappError):
    """Raised when the wallet rejects or cannot complete a connection."""

    pass


class NetworkMismatchError(DappError):
    """Raised when the wallet is on the wrong chain or a switch fails."""

    def __init__(
        self,
        message: str,
        chain_id: int | None = None,
        required_chain_id: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.chain_id = chain_id
        self.required_chain_id = required_chain_id


class ReadError(DappError):
    """Raised when a read-only contract call fails."""

    def __init__(
        self,
        message: str,
        function_name: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.function_name = function_name


class SubmissionError(DappError):
    """Raised when a transaction is rejected before a hash exists."""

    def __init__(
        self,
        message: str,
        function_name: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.function_name = function_name


class ConfirmationError(DappError):
    """Raised when a submitted transaction reverts or its receipt watch fails."""

    def __init__(
        self,
        message: str,
        tx_hash: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.tx_hash = tx_hash


class RpcError(DappError):
    """Raised when the chain RPC endpoint cannot serve a request."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class ValidationError(DappError):
    """Raised when configuration or input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class TransitionError(DappError):
    """Raised when a transaction is asked to move to a phase it cannot reach."""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move transaction from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested
