"""
Storage module for Tollgate.

This module provides the SQLite-backed ledger. A deployed token, its
balances, allowances, settings and full event history live in one file.

Tables:
    - balances: Holder balances (decimal text, full uint256 range)
    - allowances: Spender allowances per holder
    - meta: Token metadata, capability flags, settings, owner
    - events: Append-only audit log of every committed event
"""

from tollgate.store.db import TokenDB

__all__ = [
    "TokenDB",
]
