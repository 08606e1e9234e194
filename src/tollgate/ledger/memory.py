"""
In-memory ledger for Tollgate.

Keeps balances, allowances, metadata and events in plain dicts and lists.
Transactions snapshot the whole state on entry and restore it on rollback.
"""

import copy
from datetime import datetime
from typing import Any

from tollgate.ledger.base import Ledger
from tollgate.schema import EventKind, LedgerEvent


class InMemoryLedger(Ledger):
    """
    Ledger backed by process memory.

    Usage:
        ledger = InMemoryLedger()
        token = Token.deploy(spec, ledger=ledger)
    """

    def __init__(self) -> None:
        super().__init__()
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._meta: dict[str, Any] = {}
        self._events: list[LedgerEvent] = []
        self._snapshot: tuple[Any, ...] | None = None

    def _read_balance(self, address: str) -> int:
        return self._balances.get(address, 0)

    def _write_balance(self, address: str, amount: int) -> None:
        if amount:
            self._balances[address] = amount
        else:
            self._balances.pop(address, None)

    def _read_allowance(self, holder: str, spender: str) -> int:
        return self._allowances.get((holder, spender), 0)

    def _write_allowance(self, holder: str, spender: str, amount: int) -> None:
        self._allowances[(holder, spender)] = amount

    def _read_meta(self, key: str) -> Any:
        return copy.deepcopy(self._meta.get(key))

    def _write_meta(self, key: str, value: Any) -> None:
        self._meta[key] = copy.deepcopy(value)

    def _append_event(self, kind: EventKind, data: dict[str, Any], created_at: datetime) -> LedgerEvent:
        event = LedgerEvent(
            event_id=len(self._events) + 1,
            kind=kind,
            data=data,
            created_at=created_at,
        )
        self._events.append(event)
        return event

    def _load_events(self, kind: EventKind | None) -> list[LedgerEvent]:
        if kind is None:
            return list(self._events)
        return [event for event in self._events if event.kind == kind]

    def holders(self) -> dict[str, int]:
        return dict(self._balances)

    def _begin(self) -> None:
        self._snapshot = (
            dict(self._balances),
            dict(self._allowances),
            copy.deepcopy(self._meta),
            len(self._events),
        )

    def _commit(self) -> None:
        self._snapshot = None

    def _rollback(self) -> None:
        if self._snapshot is None:
            return
        balances, allowances, meta, event_count = self._snapshot
        self._balances = balances
        self._allowances = allowances
        self._meta = meta
        del self._events[event_count:]
        self._snapshot = None
