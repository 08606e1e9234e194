"""
Ledger module for Tollgate.

The ledger is the plain balance/allowance store the fee and cap overlay
runs on. It knows nothing about taxes, caps or owners.

Implementations:
    - InMemoryLedger: dicts in process memory, snapshot/restore transactions
    - TokenDB (tollgate.store): SQLite file, commit/rollback transactions
"""

from tollgate.ledger.base import EventListener, Ledger
from tollgate.ledger.memory import InMemoryLedger

__all__ = [
    "EventListener",
    "InMemoryLedger",
    "Ledger",
]
