"""
Schema definitions for Tollgate.

This module defines the Pydantic models used throughout Tollgate:
- TokenConfig: The six write-once capability flags
- TokenSettings: Tunable overlay state (cap, tax, deflation, document URI)
- TokenSpec: Everything needed to deploy a token, loadable from YAML
- FeeQuote: Breakdown of a transfer into tax, deflation and net amount
- LedgerEvent: An entry in the ledger's audit log

Design Decisions:
    - Capability flags live in their own frozen model so they can never be
      toggled after deployment
    - Settings are frozen too; an update replaces the whole model
    - Bounds that carry a domain error (decimals, bps, cap) are checked by
      the config validator, not by Pydantic, so callers get typed errors
"""

import uuid
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Constants
# =============================================================================

BPS_DENOMINATOR = 10_000
MAX_BPS = 5_000
MAX_DECIMALS = 18
MAX_UINT256 = 2**256 - 1
ZERO_ADDRESS = "0x" + "0" * 40


def generate_address() -> str:
    """Generate a random address for a newly deployed token."""
    return "0x" + uuid.uuid4().hex + uuid.uuid4().hex[:8]


# =============================================================================
# Enums
# =============================================================================


class Capability(str, Enum):
    """The optional capabilities a token can be deployed with."""

    MINT = "mintable"
    BURN = "burnable"
    DOCUMENT_URI = "document_uri"
    MAX_AMOUNT = "max_amount_of_tokens"
    TAX = "taxable"
    DEFLATION = "deflationary"


class EventKind(str, Enum):
    """Kinds of events recorded in the ledger's audit log."""

    TRANSFER = "transfer"
    APPROVAL = "approval"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    DOCUMENT_URI_CHANGED = "document_uri_changed"
    CAP_RAISED = "cap_raised"
    TAX_CONFIG_CHANGED = "tax_config_changed"
    DEFLATION_CONFIG_CHANGED = "deflation_config_changed"


# =============================================================================
# Token Models
# =============================================================================


class TokenConfig(BaseModel):
    """
    Capability flags of a token.

    Fixed at deployment. The model is frozen and the state store refuses to
    write it a second time, so a flag can never be toggled afterwards.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    is_mintable: bool = Field(default=False, description="Owner may mint new tokens")
    is_burnable: bool = Field(default=False, description="Owner may burn own tokens")
    is_document_uri_allowed: bool = Field(
        default=False,
        description="Token carries an owner-settable document URI",
    )
    is_max_amount_of_tokens_set: bool = Field(
        default=False,
        description="Per-holder balance cap is enforced",
    )
    is_taxable: bool = Field(
        default=False,
        description="Transfers divert a share to the tax address",
    )
    is_deflationary: bool = Field(
        default=False,
        description="Transfers burn a share of the amount",
    )


class TokenSettings(BaseModel):
    """
    Tunable overlay state.

    Each field is meaningful only when the matching capability is enabled.

    Attributes:
        max_token_amount_per_address: Balance cap per holder (only ever raised)
        document_uri: Free-form document reference
        tax_address: Recipient of transfer tax
        tax_bps: Tax rate in basis points
        deflation_bps: Burn rate in basis points
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_token_amount_per_address: int = Field(default=0, ge=0)
    document_uri: str = Field(default="")
    tax_address: str = Field(default=ZERO_ADDRESS)
    tax_bps: int = Field(default=0)
    deflation_bps: int = Field(default=0)


class TokenSpec(BaseModel):
    """
    Deployment parameters for a token.

    Attributes:
        name: Token name
        symbol: Token ticker symbol
        initial_supply: Supply minted to the owner, in whole tokens
        decimals: Number of decimals; the initial mint is scaled by 10**decimals
        owner: Address that owns the token after deployment
        capabilities: The write-once capability flags
        max_token_amount_per_address: Initial balance cap (base units)
        document_uri: Initial document URI
        tax_address: Initial tax recipient
        tax_bps: Initial tax rate
        deflation_bps: Initial deflation rate
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1)
    initial_supply: int = Field(default=0, ge=0)
    decimals: int = Field(default=18)
    owner: str = Field(..., description="Owner address after deployment")
    capabilities: TokenConfig = Field(default_factory=TokenConfig)
    max_token_amount_per_address: int = Field(default=0, ge=0)
    document_uri: str = Field(default="")
    tax_address: str = Field(default=ZERO_ADDRESS)
    tax_bps: int = Field(default=0)
    deflation_bps: int = Field(default=0)

    def initial_settings(self) -> TokenSettings:
        """Extract the tunable part of the spec."""
        return TokenSettings(
            max_token_amount_per_address=self.max_token_amount_per_address,
            document_uri=self.document_uri,
            tax_address=self.tax_address,
            tax_bps=self.tax_bps,
            deflation_bps=self.deflation_bps,
        )


# =============================================================================
# Runtime Models
# =============================================================================


class FeeQuote(BaseModel):
    """
    How a transfer amount splits between tax, deflation and the recipient.

    Attributes:
        amount: Gross amount debited from the sender
        tax_amount: Portion sent to the tax address
        deflation_amount: Portion burned
        net_amount: Portion credited to the recipient
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    amount: int = Field(..., ge=0)
    tax_amount: int = Field(default=0, ge=0)
    deflation_amount: int = Field(default=0, ge=0)

    @property
    def net_amount(self) -> int:
        """Amount credited to the recipient."""
        return self.amount - self.tax_amount - self.deflation_amount


class LedgerEvent(BaseModel):
    """
    A recorded ledger event.

    Attributes:
        event_id: Sequence number assigned by the ledger
        kind: What happened
        data: Event payload (addresses and amounts)
        created_at: When the event was recorded
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    event_id: int = Field(..., ge=0)
    kind: EventKind
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def load_token_spec(path: Path | str) -> TokenSpec:
    """
    Load a token spec from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated TokenSpec object

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the YAML doesn't match the schema
    """
    path = Path(path)
    with path.open() as f:
        data = yaml.safe_load(f)

    return TokenSpec.model_validate(data)


def load_token_spec_from_string(content: str) -> TokenSpec:
    """Load a token spec from a YAML string."""
    data = yaml.safe_load(content)
    return TokenSpec.model_validate(data)
