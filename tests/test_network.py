from __future__ import annotations

import asyncio

import pytest

from counter_dapp.exceptions import NetworkMismatchError
from counter_dapp.network import NetworkSwitcher, chain_display_name, evaluate, mismatch_error
from counter_dapp.types import Session, SessionStatus

from conftest import FakeWallet

SEPOLIA = 11155111


def _connected(chain_id: int) -> Session:
    return Session(status=SessionStatus.CONNECTED, address="0x1", chain_id=chain_id)


def test_chain_display_names() -> None:
    assert chain_display_name(None) == "-"
    assert chain_display_name(1) == "Ethereum"
    assert chain_display_name(SEPOLIA) == "Sepolia"
    assert chain_display_name(31337) == "Chain 31337"


@pytest.mark.parametrize(
    ("session", "expected"),
    [
        (Session(), False),
        (Session(status=SessionStatus.CONNECTING), False),
        (_connected(1), False),
        (_connected(SEPOLIA), True),
    ],
)
def test_evaluate_only_correct_when_connected_on_required_chain(session, expected) -> None:
    state = evaluate(session, SEPOLIA)

    assert state.is_correct_chain is expected
    assert state.required_chain_id == SEPOLIA
    assert state.chain_id == session.chain_id


def test_evaluate_has_no_memory() -> None:
    sequence = [_connected(SEPOLIA), _connected(1), _connected(SEPOLIA), Session()]

    results = [evaluate(session, SEPOLIA).is_correct_chain for session in sequence]

    assert results == [True, False, True, False]
    assert evaluate(_connected(1), SEPOLIA) == evaluate(_connected(1), SEPOLIA)


def test_mismatch_error_names_both_chains() -> None:
    error = mismatch_error(evaluate(_connected(1), SEPOLIA))

    assert isinstance(error, NetworkMismatchError)
    assert error.chain_id == 1
    assert error.required_chain_id == SEPOLIA
    assert "Ethereum" in error.message
    assert "Sepolia" in error.message


@pytest.mark.asyncio
async def test_switch_success() -> None:
    wallet = FakeWallet(chain_id=1)
    switched: list[int] = []
    wallet.on_chain_changed(switched.append)
    switcher = NetworkSwitcher(wallet)

    assert await switcher.request_switch(SEPOLIA) is True
    assert switched == [SEPOLIA]
    assert switcher.error is None
    assert not switcher.is_switching


@pytest.mark.asyncio
async def test_switch_failure_records_error() -> None:
    wallet = FakeWallet(chain_id=1)
    wallet.switch_error = RuntimeError("Unrecognized chain ID")
    switcher = NetworkSwitcher(wallet)

    assert await switcher.request_switch(SEPOLIA) is False
    assert isinstance(switcher.error, NetworkMismatchError)
    assert switcher.error.required_chain_id == SEPOLIA

    wallet.switch_error = None
    assert await switcher.request_switch(SEPOLIA) is True
    assert switcher.error is None


@pytest.mark.asyncio
async def test_duplicate_switch_requests_join() -> None:
    wallet = FakeWallet(chain_id=1)
    wallet.switch_gate = asyncio.Event()
    switcher = NetworkSwitcher(wallet)

    first = asyncio.create_task(switcher.request_switch(SEPOLIA))
    await asyncio.sleep(0)
    second = asyncio.create_task(switcher.request_switch(SEPOLIA))
    await asyncio.sleep(0)
    assert switcher.is_switching

    wallet.switch_gate.set()
    assert await asyncio.gather(first, second) == [True, True]
    assert wallet.switch_calls == [SEPOLIA]


@pytest.mark.asyncio
async def test_switch_to_other_chain_supersedes_pending() -> None:
    wallet = FakeWallet(chain_id=5)
    wallet.switch_gate = asyncio.Event()
    switcher = NetworkSwitcher(wallet)

    first = asyncio.create_task(switcher.request_switch(SEPOLIA))
    await asyncio.sleep(0)
    second = asyncio.create_task(switcher.request_switch(1))
    await asyncio.sleep(0)

    wallet.switch_gate.set()
    assert await first is False
    assert await second is True
    assert wallet.switch_calls == [SEPOLIA, 1]


@pytest.mark.asyncio
async def test_reset_discards_pending_switch() -> None:
    wallet = FakeWallet(chain_id=1)
    wallet.switch_gate = asyncio.Event()
    switcher = NetworkSwitcher(wallet)

    pending = asyncio.create_task(switcher.request_switch(SEPOLIA))
    await asyncio.sleep(0)
    switcher.reset()
    assert not switcher.is_switching

    wallet.switch_gate.set()
    assert await pending is False
    assert switcher.error is None
