"""
Tollgate - Configurable fungible-token ledger with a fee and cap overlay.

Tollgate wraps a plain balance/allowance ledger with optional capabilities
fixed at deployment:
- Minting and burning by the owner
- A per-holder maximum balance
- A transfer tax redirected to a configured address
- A transfer deflation that burns part of every transfer
- An owner-settable document URI

Every operation is validated before anything is written and runs as one
all-or-nothing ledger transaction.

Example usage:
    $ tollgate deploy token.yaml --db token.db
    $ tollgate transfer 0xaaa... 0xbbb... 1000 --db token.db
    $ tollgate report --db token.db
"""

__version__ = "0.1.0"
__author__ = "Tollgate Contributors"

from tollgate.ledger import InMemoryLedger, Ledger
from tollgate.schema import FeeQuote, TokenConfig, TokenSettings, TokenSpec
from tollgate.store import TokenDB
from tollgate.token import Token

__all__ = [
    "__version__",
    "__author__",
    "FeeQuote",
    "InMemoryLedger",
    "Ledger",
    "Token",
    "TokenConfig",
    "TokenDB",
    "TokenSettings",
    "TokenSpec",
]
