"""Tests for counter_dapp.types records."""

from decimal import Decimal

import pytest

from counter_dapp.exceptions import ConfirmationError, ReadError, TransitionError
from counter_dapp.types import (
    Balance,
    BlockReason,
    Eligibility,
    ErrorReport,
    ReceiptStatus,
    Session,
    SessionStatus,
    Transaction,
    TxPhase,
    TxReceipt,
)


def test_session_defaults() -> None:
    session = Session()
    assert session.status is SessionStatus.DISCONNECTED
    assert session.address is None
    assert session.chain_id is None
    assert not session.is_connected


def test_transaction_moves_forward() -> None:
    tx = Transaction(id=1, function_name="inc")
    assert tx.is_live

    submitted = tx.submitted("0xabc")
    assert submitted.phase is TxPhase.SUBMITTED
    assert submitted.hash == "0xabc"
    assert tx.phase is TxPhase.AWAITING_SIGNATURE

    confirmed = submitted.confirmed(
        TxReceipt(status=ReceiptStatus.SUCCESS, block_number=12, raw={"status": 1})
    )
    assert confirmed.is_terminal
    assert confirmed.block_number == 12
    assert confirmed.receipt == {"status": 1}
    assert confirmed.hash == "0xabc"


def test_transaction_cannot_confirm_without_submission() -> None:
    tx = Transaction(id=1, function_name="inc")

    with pytest.raises(TransitionError) as excinfo:
        tx.confirmed(TxReceipt(status=ReceiptStatus.SUCCESS))

    assert excinfo.value.current == "awaiting_signature"
    assert excinfo.value.requested == "confirmed"


@pytest.mark.parametrize("phase", [TxPhase.CONFIRMED, TxPhase.FAILED])
def test_terminal_transaction_cannot_move(phase: TxPhase) -> None:
    tx = Transaction(id=1, function_name="inc", phase=phase, hash="0xabc")

    with pytest.raises(TransitionError):
        tx.failed(ConfirmationError("late"))
    with pytest.raises(TransitionError):
        tx.submitted("0xabc")


def test_submitted_hash_cannot_change() -> None:
    tx = Transaction(id=1, function_name="inc", hash="0xabc")

    with pytest.raises(TransitionError):
        tx.submitted("0xdef")


def test_failed_with_receipt_records_block() -> None:
    tx = Transaction(id=3, function_name="dec", phase=TxPhase.SUBMITTED, hash="0xabc")
    error = ConfirmationError("reverted", tx_hash="0xabc")

    failed = tx.failed(error, TxReceipt(status=ReceiptStatus.REVERTED, block_number=9))

    assert failed.error is error
    assert failed.block_number == 9
    assert failed.hash == "0xabc"


def test_eligibility_truthiness() -> None:
    assert Eligibility.ok()
    assert Eligibility.ok(transaction_id=4).transaction_id == 4

    blocked = Eligibility.blocked(BlockReason.COUNT_IS_ZERO)
    assert not blocked
    assert blocked.reason is BlockReason.COUNT_IS_ZERO


def test_balance_formatting() -> None:
    balance = Balance(value=1_230_000_000_000_000_000)
    assert balance.amount == Decimal("1.23")
    assert balance.formatted == "1.23 ETH"
    assert Balance(value=0).formatted == "0 ETH"
    assert Balance(value=5, decimals=0, symbol="WEI").formatted == "5 WEI"


def test_error_report_any() -> None:
    assert not ErrorReport().any()
    assert ErrorReport(read=ReadError("boom")).any()
