"""Utility functions for the counter dapp."""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from hexbytes import HexBytes

from .exceptions import ValidationError

_HEX_DIGITS = frozenset("0123456789abcdef")


def format_units(value: int, decimals: int = 18) -> str:
    """Render an integer amount of base units as a decimal string."""
    if decimals < 0:
        raise ValidationError("Decimals cannot be negative", field="decimals", value=decimals)

    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(int(value)), 10**decimals)
    if decimals == 0 or fraction == 0:
        return f"{sign}{whole}"
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{fraction_text}"


def to_decimal(value: int, decimals: int = 18) -> Decimal:
    """Convert base units to a Decimal amount."""
    return Decimal(format_units(value, decimals))


def normalise_tx_hash(tx_hash: Any) -> str:
    """Return a transaction hash as a lowercase 0x-prefixed hex string."""
    if isinstance(tx_hash, str):
        lower = tx_hash.lower()
        if not lower.startswith("0x"):
            raise ValidationError(
                "Transaction hash must be 0x-prefixed", field="tx_hash", value=tx_hash
            )
        digits = lower[2:]
        if not digits or any(char not in _HEX_DIGITS for char in digits):
            raise ValidationError(
                "Transaction hash is not valid hex", field="tx_hash", value=tx_hash
            )
        return lower

    if isinstance(tx_hash, bytes | bytearray):
        return HexBytes(tx_hash).to_0x_hex()

    raise ValidationError(
        f"Unsupported transaction hash type: {type(tx_hash)!r}", field="tx_hash", value=tx_hash
    )


def serialise_receipt(receipt: Any) -> Any:
    """Serialise web3 receipt objects into JSON-friendly structures."""
    if receipt is None:
        return None
    if isinstance(receipt, Mapping):
        return {key: serialise_receipt(value) for key, value in receipt.items()}
    if isinstance(receipt, Sequence) and not isinstance(
        receipt, str | bytes | bytearray | HexBytes
    ):
        return [serialise_receipt(item) for item in receipt]
    if isinstance(receipt, bytes | bytearray | HexBytes):
        return HexBytes(receipt).to_0x_hex()
    return receipt
