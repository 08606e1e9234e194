"""
Policy module for Tollgate.

This module holds the checks that run before any ledger mutation:
    - ConfigValidator: bounds on decimals, rates, caps, addresses, amounts
    - CapabilityGate: the six write-once capability flags, fail-closed
    - AccessControl: single-owner gate for privileged operations

Checks never mutate state. An operation that fails here leaves the ledger
exactly as it was.
"""

from tollgate.policy.access import AccessControl
from tollgate.policy.gate import CapabilityGate
from tollgate.policy.validator import ConfigValidator, normalize_address

__all__ = [
    "AccessControl",
    "CapabilityGate",
    "ConfigValidator",
    "normalize_address",
]
