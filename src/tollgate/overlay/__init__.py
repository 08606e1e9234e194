"""
Fee and cap overlay for Tollgate.

This module implements the value-moving logic layered over the base ledger:
    - FeeEngine: tax and deflation deductions
    - CapEnforcer: per-holder balance cap
    - TransferOverlay: the transfer/mint sequence that ties them together
    - StateStore: write-once flags and tunable settings, kept in the ledger
"""

from tollgate.overlay.caps import CapEnforcer
from tollgate.overlay.fees import FeeEngine
from tollgate.overlay.state import StateStore
from tollgate.overlay.transfer import TransferOverlay

__all__ = [
    "CapEnforcer",
    "FeeEngine",
    "StateStore",
    "TransferOverlay",
]
