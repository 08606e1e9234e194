"""
Base ledger for Tollgate.

This module defines the balance/allowance ledger the overlay runs on top of.
The public primitives (transfer, mint, burn, approve, spend_allowance) are
implemented once here; concrete ledgers only supply storage hooks and the
three transaction hooks (_begin, _commit, _rollback).

Design Principles:
    - Primitives are plain: no fees, no caps, no ownership checks
    - Every primitive runs inside a transaction; transactions nest and only
      the outermost one commits or rolls back
    - Events are recorded inside the transaction and delivered to listeners
      only after the outermost commit
    - Metadata (owner, capability flags, settings) lives in the same
      transactional store, so a rollback restores it with the balances
    - One re-entrant lock per ledger spans each outermost transaction, so
      threads sharing a ledger run their transactions one at a time
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from tollgate.errors import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidAmountError,
    SupplyOverflowError,
)
from tollgate.schema import MAX_UINT256, ZERO_ADDRESS, EventKind, LedgerEvent

logger = logging.getLogger(__name__)

EventListener = Callable[[LedgerEvent], None]


class Ledger(ABC):
    """
    Abstract balance/allowance ledger.

    Subclasses implement the storage hooks. Everything else, including the
    transaction nesting and event delivery, is shared.

    Usage:
        with ledger.transaction():
            ledger.transfer(alice, bob, 100)
            ledger.burn(alice, 5)
        # both applied, or neither

    Attributes:
        _depth: Current transaction nesting level
        _emitted: Events recorded in the open transaction
        _listeners: Callbacks notified of committed events
        _lock: Serializes transactions across threads
    """

    def __init__(self) -> None:
        self._depth = 0
        self._emitted: list[LedgerEvent] = []
        self._listeners: list[EventListener] = []
        self._lock = threading.RLock()

    # =========================================================================
    # Storage Hooks
    # =========================================================================

    @abstractmethod
    def _read_balance(self, address: str) -> int: ...

    @abstractmethod
    def _write_balance(self, address: str, amount: int) -> None: ...

    @abstractmethod
    def _read_allowance(self, holder: str, spender: str) -> int: ...

    @abstractmethod
    def _write_allowance(self, holder: str, spender: str, amount: int) -> None: ...

    @abstractmethod
    def _read_meta(self, key: str) -> Any: ...

    @abstractmethod
    def _write_meta(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def _append_event(self, kind: EventKind, data: dict[str, Any], created_at: datetime) -> LedgerEvent:
        """Persist an event and return it with its assigned id."""

    @abstractmethod
    def _load_events(self, kind: EventKind | None) -> list[LedgerEvent]: ...

    @abstractmethod
    def holders(self) -> dict[str, int]:
        """All addresses with a nonzero balance."""

    @abstractmethod
    def _begin(self) -> None: ...

    @abstractmethod
    def _commit(self) -> None: ...

    @abstractmethod
    def _rollback(self) -> None: ...

    # =========================================================================
    # Transactions and Events
    # =========================================================================

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """
        Run a block atomically.

        The ledger lock is held for the whole block, so transactions from
        different threads never interleave. Nested blocks on the same thread
        join the outermost transaction. Any exception escaping the outermost
        block undoes every write made inside it and discards its events.

        Events are delivered after commit. A failing listener is logged and
        delivery continues to the remaining listeners.
        """
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._depth = 1
            self._emitted = []
            self._begin()
            try:
                yield
            except BaseException:
                self._depth = 0
                self._emitted = []
                self._rollback()
                raise
            self._depth = 0
            self._commit()

            emitted, self._emitted = self._emitted, []
            for event in emitted:
                for listener in list(self._listeners):
                    try:
                        listener(event)
                    except Exception:
                        logger.exception(
                            "Listener %r failed on %s event %d",
                            listener,
                            event.kind.value,
                            event.event_id,
                        )

    @property
    def in_transaction(self) -> bool:
        """Whether a transaction is open."""
        return self._depth > 0

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback for committed events."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Remove a previously registered callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def record_event(self, kind: EventKind, data: dict[str, Any]) -> LedgerEvent:
        """Record an event as part of the current transaction."""
        with self.transaction():
            event = self._append_event(kind, dict(data), datetime.now(UTC))
            self._emitted.append(event)
            return event

    def events(self, kind: EventKind | None = None) -> list[LedgerEvent]:
        """Committed and in-flight events, oldest first, optionally filtered."""
        return self._load_events(kind)

    # =========================================================================
    # Metadata
    # =========================================================================

    def get_meta(self, key: str, default: Any = None) -> Any:
        """Read a metadata value (JSON-compatible)."""
        value = self._read_meta(key)
        return default if value is None else value

    def set_meta(self, key: str, value: Any) -> None:
        """Write a metadata value as part of the current transaction."""
        with self.transaction():
            self._write_meta(key, value)

    # =========================================================================
    # Queries
    # =========================================================================

    def balance_of(self, address: str) -> int:
        return self._read_balance(address)

    def total_supply(self) -> int:
        return int(self._read_meta("total_supply") or 0)

    def allowance(self, holder: str, spender: str) -> int:
        return self._read_allowance(holder, spender)

    # =========================================================================
    # Primitives
    # =========================================================================

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move amount from sender to recipient.

        Raises:
            InvalidAddressError: If either side is the zero address
            InsufficientBalanceError: If sender cannot cover amount
        """
        _check_amount(amount)
        if sender == ZERO_ADDRESS:
            raise InvalidAddressError(address=sender, role="sender", reason="zero address")
        if recipient == ZERO_ADDRESS:
            raise InvalidAddressError(address=recipient, role="recipient", reason="zero address")

        with self.transaction():
            balance = self._read_balance(sender)
            if balance < amount:
                raise InsufficientBalanceError(address=sender, balance=balance, needed=amount)
            self._write_balance(sender, balance - amount)
            self._write_balance(recipient, self._read_balance(recipient) + amount)
            self.record_event(
                EventKind.TRANSFER,
                {"from": sender, "to": recipient, "value": amount},
            )

    def mint(self, to: str, amount: int) -> None:
        """
        Create amount new tokens for to.

        Raises:
            InvalidAddressError: If to is the zero address
            SupplyOverflowError: If total supply would leave the uint256 range
        """
        _check_amount(amount)
        if to == ZERO_ADDRESS:
            raise InvalidAddressError(address=to, role="recipient", reason="zero address")

        with self.transaction():
            supply = self.total_supply()
            if supply + amount > MAX_UINT256:
                raise SupplyOverflowError(total_supply=supply, amount=amount)
            self._write_meta("total_supply", supply + amount)
            self._write_balance(to, self._read_balance(to) + amount)
            self.record_event(
                EventKind.TRANSFER,
                {"from": ZERO_ADDRESS, "to": to, "value": amount},
            )

    def burn(self, holder: str, amount: int) -> None:
        """
        Destroy amount tokens held by holder.

        Raises:
            InvalidAddressError: If holder is the zero address
            InsufficientBalanceError: If holder cannot cover amount
        """
        _check_amount(amount)
        if holder == ZERO_ADDRESS:
            raise InvalidAddressError(address=holder, role="sender", reason="zero address")

        with self.transaction():
            balance = self._read_balance(holder)
            if balance < amount:
                raise InsufficientBalanceError(address=holder, balance=balance, needed=amount)
            self._write_balance(holder, balance - amount)
            self._write_meta("total_supply", self.total_supply() - amount)
            self.record_event(
                EventKind.TRANSFER,
                {"from": holder, "to": ZERO_ADDRESS, "value": amount},
            )

    def approve(self, holder: str, spender: str, amount: int) -> None:
        """Set spender's allowance over holder's tokens."""
        _check_amount(amount)
        if holder == ZERO_ADDRESS:
            raise InvalidAddressError(address=holder, role="approver", reason="zero address")
        if spender == ZERO_ADDRESS:
            raise InvalidAddressError(address=spender, role="spender", reason="zero address")

        with self.transaction():
            self._write_allowance(holder, spender, amount)
            self.record_event(
                EventKind.APPROVAL,
                {"owner": holder, "spender": spender, "value": amount},
            )

    def spend_allowance(self, holder: str, spender: str, amount: int) -> None:
        """
        Consume amount of spender's allowance over holder's tokens.

        An allowance of MAX_UINT256 is unlimited and left untouched.

        Raises:
            InsufficientAllowanceError: If the allowance is too small
        """
        _check_amount(amount)
        with self.transaction():
            current = self._read_allowance(holder, spender)
            if current == MAX_UINT256:
                return
            if current < amount:
                raise InsufficientAllowanceError(
                    holder=holder,
                    spender=spender,
                    allowance=current,
                    needed=amount,
                )
            self._write_allowance(holder, spender, current - amount)


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(amount=amount)
    if amount < 0 or amount > MAX_UINT256:
        raise InvalidAmountError(amount=amount)
