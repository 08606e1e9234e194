"""
Unit tests for the base ledger primitives.

Every test runs against both the in-memory and the SQLite ledger.

Tests cover:
- transfer, mint, burn, approve, spend_allowance
- Transaction nesting and rollback
- Event delivery after commit
- Cross-thread transaction serialization
"""

import logging
import threading
from collections.abc import Generator
from pathlib import Path

import pytest

from tollgate.errors import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidAmountError,
    SupplyOverflowError,
)
from tollgate.ledger import InMemoryLedger, Ledger
from tollgate.schema import MAX_UINT256, ZERO_ADDRESS, EventKind, LedgerEvent
from tollgate.store import TokenDB


ALICE = "0x" + "a" * 40
BOB = "0x" + "b" * 40
CAROL = "0x" + "c" * 40


@pytest.fixture(params=["memory", "sqlite"])
def ledger(request: pytest.FixtureRequest, temp_dir: Path) -> Generator[Ledger, None, None]:
    if request.param == "memory":
        yield InMemoryLedger()
    else:
        with TokenDB(temp_dir / "ledger.db") as db:
            yield db


@pytest.fixture
def funded(ledger: Ledger) -> Ledger:
    """Ledger where ALICE holds 1000."""
    ledger.mint(ALICE, 1000)
    return ledger


class TestTransfer:
    """Tests for the plain transfer primitive."""

    def test_moves_balance(self, funded: Ledger) -> None:
        funded.transfer(ALICE, BOB, 300)
        assert funded.balance_of(ALICE) == 700
        assert funded.balance_of(BOB) == 300
        assert funded.total_supply() == 1000

    def test_full_balance(self, funded: Ledger) -> None:
        funded.transfer(ALICE, BOB, 1000)
        assert funded.balance_of(ALICE) == 0
        assert funded.holders() == {BOB: 1000}

    def test_insufficient_balance(self, funded: Ledger) -> None:
        with pytest.raises(InsufficientBalanceError) as exc_info:
            funded.transfer(ALICE, BOB, 1001)
        assert exc_info.value.context["balance"] == 1000
        assert funded.balance_of(ALICE) == 1000
        assert funded.balance_of(BOB) == 0

    def test_zero_address_rejected(self, funded: Ledger) -> None:
        with pytest.raises(InvalidAddressError):
            funded.transfer(ALICE, ZERO_ADDRESS, 1)
        with pytest.raises(InvalidAddressError):
            funded.transfer(ZERO_ADDRESS, BOB, 1)

    def test_negative_amount_rejected(self, funded: Ledger) -> None:
        with pytest.raises(InvalidAmountError):
            funded.transfer(ALICE, BOB, -1)

    def test_emits_transfer_event(self, funded: Ledger) -> None:
        funded.transfer(ALICE, BOB, 5)
        event = funded.events(EventKind.TRANSFER)[-1]
        assert event.data == {"from": ALICE, "to": BOB, "value": 5}


class TestMintBurn:
    """Tests for supply-changing primitives."""

    def test_mint_records_from_zero(self, ledger: Ledger) -> None:
        ledger.mint(ALICE, 10)
        assert ledger.total_supply() == 10
        assert ledger.events()[0].data == {"from": ZERO_ADDRESS, "to": ALICE, "value": 10}

    def test_mint_overflow(self, ledger: Ledger) -> None:
        ledger.mint(ALICE, MAX_UINT256)
        with pytest.raises(SupplyOverflowError):
            ledger.mint(BOB, 1)
        assert ledger.total_supply() == MAX_UINT256
        assert ledger.balance_of(BOB) == 0

    def test_mint_to_zero_rejected(self, ledger: Ledger) -> None:
        with pytest.raises(InvalidAddressError):
            ledger.mint(ZERO_ADDRESS, 1)

    def test_burn(self, funded: Ledger) -> None:
        funded.burn(ALICE, 400)
        assert funded.balance_of(ALICE) == 600
        assert funded.total_supply() == 600
        assert funded.events()[-1].data == {"from": ALICE, "to": ZERO_ADDRESS, "value": 400}

    def test_burn_more_than_balance(self, funded: Ledger) -> None:
        with pytest.raises(InsufficientBalanceError):
            funded.burn(ALICE, 1001)
        assert funded.total_supply() == 1000


class TestAllowance:
    """Tests for approve and spend_allowance."""

    def test_approve_sets_allowance(self, funded: Ledger) -> None:
        funded.approve(ALICE, BOB, 50)
        assert funded.allowance(ALICE, BOB) == 50
        assert funded.allowance(BOB, ALICE) == 0
        assert funded.events(EventKind.APPROVAL)[0].data == {
            "owner": ALICE,
            "spender": BOB,
            "value": 50,
        }

    def test_approve_overwrites(self, funded: Ledger) -> None:
        funded.approve(ALICE, BOB, 50)
        funded.approve(ALICE, BOB, 20)
        assert funded.allowance(ALICE, BOB) == 20

    def test_spend(self, funded: Ledger) -> None:
        funded.approve(ALICE, BOB, 50)
        funded.spend_allowance(ALICE, BOB, 30)
        assert funded.allowance(ALICE, BOB) == 20

    def test_spend_too_much(self, funded: Ledger) -> None:
        funded.approve(ALICE, BOB, 50)
        with pytest.raises(InsufficientAllowanceError):
            funded.spend_allowance(ALICE, BOB, 51)
        assert funded.allowance(ALICE, BOB) == 50

    def test_unlimited_allowance_untouched(self, funded: Ledger) -> None:
        funded.approve(ALICE, BOB, MAX_UINT256)
        funded.spend_allowance(ALICE, BOB, 999)
        assert funded.allowance(ALICE, BOB) == MAX_UINT256

    def test_approve_zero_spender_rejected(self, funded: Ledger) -> None:
        with pytest.raises(InvalidAddressError):
            funded.approve(ALICE, ZERO_ADDRESS, 1)


class TestTransactions:
    """Tests for atomicity and nesting."""

    def test_rollback_undoes_every_write(self, funded: Ledger) -> None:
        with pytest.raises(InsufficientBalanceError):
            with funded.transaction():
                funded.transfer(ALICE, BOB, 600)
                funded.burn(ALICE, 100)
                funded.set_meta("note", "partial")
                funded.transfer(ALICE, CAROL, 600)

        assert funded.balance_of(ALICE) == 1000
        assert funded.balance_of(BOB) == 0
        assert funded.total_supply() == 1000
        assert funded.get_meta("note") is None
        assert len(funded.events()) == 1

    def test_nested_blocks_join_outer(self, funded: Ledger) -> None:
        with pytest.raises(RuntimeError):
            with funded.transaction():
                with funded.transaction():
                    funded.transfer(ALICE, BOB, 10)
                assert funded.in_transaction
                raise RuntimeError("abort")

        assert funded.balance_of(BOB) == 0
        assert not funded.in_transaction

    def test_commit(self, funded: Ledger) -> None:
        with funded.transaction():
            funded.transfer(ALICE, BOB, 10)
            funded.transfer(BOB, CAROL, 5)
        assert funded.holders() == {ALICE: 990, BOB: 5, CAROL: 5}

    def test_meta_roundtrip(self, ledger: Ledger) -> None:
        ledger.set_meta("settings", {"tax_bps": 500, "tax_address": ALICE})
        assert ledger.get_meta("settings") == {"tax_bps": 500, "tax_address": ALICE}
        assert ledger.get_meta("missing", "default") == "default"


class TestListeners:
    """Events reach listeners only after the outermost commit."""

    def test_delivered_after_commit(self, funded: Ledger) -> None:
        received: list[LedgerEvent] = []
        seen_during: list[int] = []
        funded.subscribe(received.append)

        with funded.transaction():
            funded.transfer(ALICE, BOB, 1)
            funded.transfer(ALICE, BOB, 2)
            seen_during.append(len(received))

        assert seen_during == [0]
        assert [e.data["value"] for e in received] == [1, 2]

    def test_not_delivered_on_rollback(self, funded: Ledger) -> None:
        received: list[LedgerEvent] = []
        funded.subscribe(received.append)

        with pytest.raises(InsufficientBalanceError):
            with funded.transaction():
                funded.transfer(ALICE, BOB, 1)
                funded.transfer(ALICE, BOB, 5000)

        assert received == []

    def test_unsubscribe(self, funded: Ledger) -> None:
        received: list[LedgerEvent] = []
        funded.subscribe(received.append)
        funded.unsubscribe(received.append)
        funded.transfer(ALICE, BOB, 1)
        assert received == []

    def test_failing_listener_does_not_block_delivery(
        self, funded: Ledger, caplog: pytest.LogCaptureFixture
    ) -> None:
        received: list[LedgerEvent] = []

        def broken(event: LedgerEvent) -> None:
            raise RuntimeError("listener down")

        funded.subscribe(broken)
        funded.subscribe(received.append)

        with caplog.at_level(logging.ERROR, logger="tollgate.ledger.base"):
            with funded.transaction():
                funded.transfer(ALICE, BOB, 1)
                funded.burn(ALICE, 2)
                funded.transfer(ALICE, CAROL, 3)

        assert [e.data["value"] for e in received] == [1, 2, 3]
        assert funded.balance_of(CAROL) == 3
        failures = [r for r in caplog.records if r.exc_info and isinstance(r.exc_info[1], RuntimeError)]
        assert len(failures) == 3


class TestThreads:
    """Transactions from different threads never interleave."""

    def test_other_thread_waits_for_open_transaction(self, funded: Ledger) -> None:
        errors: list[Exception] = []

        def pay_carol() -> None:
            try:
                funded.transfer(ALICE, CAROL, 10)
            except Exception as e:
                errors.append(e)

        worker = threading.Thread(target=pay_carol)
        with pytest.raises(RuntimeError):
            with funded.transaction():
                funded.transfer(ALICE, BOB, 100)
                worker.start()
                worker.join(timeout=0.2)
                assert worker.is_alive()
                raise RuntimeError("abort")

        worker.join(timeout=5)
        assert not worker.is_alive()
        assert errors == []
        assert funded.balance_of(BOB) == 0
        assert funded.balance_of(CAROL) == 10
        assert funded.balance_of(ALICE) == 990
