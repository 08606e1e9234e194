"""
Exception hierarchy for Tollgate.

All Tollgate exceptions inherit from TollgateError, allowing callers to catch
all Tollgate-specific exceptions with a single except clause.

Exception Categories:
    - ConfigValidationError: Constructor or setter input out of bounds
    - CapabilityDisabledError: Operation gated by a capability the token lacks
    - InvariantViolationError: Balance cap exceeded or lowered
    - AuthorizationError: Non-owner calling a privileged operation
    - LedgerError: Base ledger primitive refused the operation
    - StorageError: Database operation failed

Every error aborts the whole operation. Nothing is partially applied.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Validation errors: 1xxx
ERROR_INVALID_DECIMALS = 1001
ERROR_INVALID_MAX_TOKEN_AMOUNT = 1002
ERROR_INVALID_TAX_BPS = 1003
ERROR_INVALID_DEFLATION_BPS = 1004
ERROR_INVALID_ADDRESS = 1005
ERROR_INVALID_AMOUNT = 1006

# Capability errors: 2xxx
ERROR_MINTING_NOT_ENABLED = 2001
ERROR_BURNING_NOT_ENABLED = 2002
ERROR_DOCUMENT_URI_NOT_ALLOWED = 2003
ERROR_MAX_TOKEN_AMOUNT_NOT_ALLOWED = 2004
ERROR_TOKEN_NOT_TAXABLE = 2005
ERROR_TOKEN_NOT_DEFLATIONARY = 2006

# Invariant errors: 3xxx
ERROR_DEST_BALANCE_EXCEEDS_MAX = 3001
ERROR_MAX_TOKEN_AMOUNT_LT_PREVIOUS = 3002

# Authorization errors: 4xxx
ERROR_NOT_OWNER = 4001

# Ledger errors: 5xxx
ERROR_INSUFFICIENT_BALANCE = 5001
ERROR_INSUFFICIENT_ALLOWANCE = 5002
ERROR_SUPPLY_OVERFLOW = 5003

# Storage errors: 6xxx
ERROR_STORAGE_CONNECTION = 6001
ERROR_STORAGE_WRITE = 6002
ERROR_STORAGE_READ = 6003
ERROR_TOKEN_NOT_DEPLOYED = 6004
ERROR_TOKEN_ALREADY_DEPLOYED = 6005


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class TollgateError(Exception):
    """
    Base exception for all Tollgate errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Validation Errors
# =============================================================================


@dataclass
class ConfigValidationError(TollgateError):
    """
    Base class for input validation errors.

    Raised by the config validator before any state is touched, both at
    deployment and when an owner re-tunes a setting.
    """


@dataclass
class InvalidDecimalsError(ConfigValidationError):
    """Raised when decimals fall outside [0, 18]."""

    decimals: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid decimals: {self.decimals}"
        if self.code == 0:
            self.code = ERROR_INVALID_DECIMALS
        if not self.suggestion:
            self.suggestion = "Use a value between 0 and 18"
        self.context["decimals"] = self.decimals


@dataclass
class InvalidMaxTokenAmountError(ConfigValidationError):
    """Raised when the balance cap is enabled with a zero cap."""

    max_token_amount: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid max token amount per address: {self.max_token_amount}"
        if self.code == 0:
            self.code = ERROR_INVALID_MAX_TOKEN_AMOUNT
        if not self.suggestion:
            self.suggestion = "Set max_token_amount_per_address above zero"
        self.context["max_token_amount"] = self.max_token_amount


@dataclass
class InvalidTaxBPSError(ConfigValidationError):
    """Raised when the tax rate is outside [0, 5000] basis points."""

    tax_bps: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid tax BPS: {self.tax_bps}"
        if self.code == 0:
            self.code = ERROR_INVALID_TAX_BPS
        if not self.suggestion:
            self.suggestion = "Tax must be between 0 and 5000 basis points (50%)"
        self.context["tax_bps"] = self.tax_bps


@dataclass
class InvalidDeflationBPSError(ConfigValidationError):
    """Raised when the deflation rate is outside [0, 5000] basis points."""

    deflation_bps: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid deflation BPS: {self.deflation_bps}"
        if self.code == 0:
            self.code = ERROR_INVALID_DEFLATION_BPS
        if not self.suggestion:
            self.suggestion = "Deflation must be between 0 and 5000 basis points (50%)"
        self.context["deflation_bps"] = self.deflation_bps


@dataclass
class InvalidAddressError(ConfigValidationError):
    """
    Raised when an address is malformed, zero, or otherwise unusable.

    Attributes:
        address: The offending address as supplied
        role: What the address was meant to be (owner, tax_address, recipient...)
        reason: Why it was rejected
    """

    address: str = ""
    role: str = "address"
    reason: str = "invalid"

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid {self.role} {self.address!r}: {self.reason}"
        if self.code == 0:
            self.code = ERROR_INVALID_ADDRESS
        self.context.update({
            "address": self.address,
            "role": self.role,
            "reason": self.reason,
        })


@dataclass
class InvalidAmountError(ConfigValidationError):
    """Raised when an amount is not an integer in the uint256 range."""

    amount: Any = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid amount: {self.amount!r}"
        if self.code == 0:
            self.code = ERROR_INVALID_AMOUNT
        if not self.suggestion:
            self.suggestion = "Amounts are non-negative integers in base units"
        self.context["amount"] = self.amount


# =============================================================================
# Capability Errors
# =============================================================================


@dataclass
class CapabilityDisabledError(TollgateError):
    """
    Base class for operations blocked by a disabled capability.

    Capabilities are fixed when the token is deployed, so these errors can
    only be resolved by deploying a different token.

    Attributes:
        capability: The capability that is disabled
    """

    capability: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Capability not enabled: {self.capability}"
        if not self.suggestion:
            self.suggestion = "Capabilities are fixed at deployment and cannot be enabled later"
        self.context["capability"] = self.capability


@dataclass
class MintingNotEnabledError(CapabilityDisabledError):
    """Raised when minting on a non-mintable token."""

    capability: str = "mintable"

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Minting is not enabled for this token"
        if self.code == 0:
            self.code = ERROR_MINTING_NOT_ENABLED
        super().__post_init__()


@dataclass
class BurningNotEnabledError(CapabilityDisabledError):
    """Raised when burning on a non-burnable token."""

    capability: str = "burnable"

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Burning is not enabled for this token"
        if self.code == 0:
            self.code = ERROR_BURNING_NOT_ENABLED
        super().__post_init__()


@dataclass
class DocumentUriNotAllowedError(CapabilityDisabledError):
    """Raised when setting a document URI on a token that does not allow one."""

    capability: str = "document_uri"

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Document URI is not allowed for this token"
        if self.code == 0:
            self.code = ERROR_DOCUMENT_URI_NOT_ALLOWED
        super().__post_init__()


@dataclass
class MaxTokenAmountNotAllowedError(CapabilityDisabledError):
    """Raised when changing the balance cap on a token without one."""

    capability: str = "max_amount_of_tokens"

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Max token amount per address is not set for this token"
        if self.code == 0:
            self.code = ERROR_MAX_TOKEN_AMOUNT_NOT_ALLOWED
        super().__post_init__()


@dataclass
class TokenIsNotTaxableError(CapabilityDisabledError):
    """Raised when changing the tax config of a non-taxable token."""

    capability: str = "taxable"

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Token is not taxable"
        if self.code == 0:
            self.code = ERROR_TOKEN_NOT_TAXABLE
        super().__post_init__()


@dataclass
class TokenIsNotDeflationaryError(CapabilityDisabledError):
    """Raised when changing the deflation config of a non-deflationary token."""

    capability: str = "deflationary"

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Token is not deflationary"
        if self.code == 0:
            self.code = ERROR_TOKEN_NOT_DEFLATIONARY
        super().__post_init__()


# =============================================================================
# Invariant Errors
# =============================================================================


@dataclass
class InvariantViolationError(TollgateError):
    """Base class for operations that would break a ledger invariant."""


@dataclass
class DestBalanceExceedsMaxAllowedError(InvariantViolationError):
    """
    Raised when a credit would push a holder above the balance cap.

    Attributes:
        destination: The holder that would exceed the cap
        balance: Current balance of the destination
        incoming: Amount that would be credited
        max_allowed: The configured cap
    """

    destination: str = ""
    balance: int = 0
    incoming: int = 0
    max_allowed: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"Destination balance exceeds max allowed: {self.destination} "
                f"({self.balance} + {self.incoming} > {self.max_allowed})"
            )
        if self.code == 0:
            self.code = ERROR_DEST_BALANCE_EXCEEDS_MAX
        self.context.update({
            "destination": self.destination,
            "balance": self.balance,
            "incoming": self.incoming,
            "max_allowed": self.max_allowed,
        })


@dataclass
class MaxTokenAmountPerAddrLtPreviousError(InvariantViolationError):
    """Raised when a new balance cap is not strictly above the current one."""

    new_cap: int = 0
    current_cap: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"New max token amount per address {self.new_cap} "
                f"must be greater than {self.current_cap}"
            )
        if self.code == 0:
            self.code = ERROR_MAX_TOKEN_AMOUNT_LT_PREVIOUS
        if not self.suggestion:
            self.suggestion = "The cap can only be raised"
        self.context.update({
            "new_cap": self.new_cap,
            "current_cap": self.current_cap,
        })


# =============================================================================
# Authorization Errors
# =============================================================================


@dataclass
class AuthorizationError(TollgateError):
    """Base class for callers lacking permission."""


@dataclass
class NotOwnerError(AuthorizationError):
    """
    Raised when a non-owner calls an owner-only operation.

    Attributes:
        caller: The address that attempted the call
        owner: The current owner (None once ownership is renounced)
        operation: Name of the privileged operation
    """

    caller: str = ""
    owner: str | None = None
    operation: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Caller {self.caller} is not the owner"
            if self.operation:
                self.message += f" (operation: {self.operation})"
        if self.code == 0:
            self.code = ERROR_NOT_OWNER
        self.context.update({
            "caller": self.caller,
            "owner": self.owner,
            "operation": self.operation,
        })


# =============================================================================
# Ledger Errors
# =============================================================================


@dataclass
class LedgerError(TollgateError):
    """Base class for errors raised by the base ledger primitives."""


@dataclass
class InsufficientBalanceError(LedgerError):
    """Raised when a holder cannot cover a debit."""

    address: str = ""
    balance: int = 0
    needed: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"Insufficient balance for {self.address}: "
                f"has {self.balance}, needs {self.needed}"
            )
        if self.code == 0:
            self.code = ERROR_INSUFFICIENT_BALANCE
        self.context.update({
            "address": self.address,
            "balance": self.balance,
            "needed": self.needed,
        })


@dataclass
class InsufficientAllowanceError(LedgerError):
    """Raised when a spender's allowance cannot cover a delegated transfer."""

    holder: str = ""
    spender: str = ""
    allowance: int = 0
    needed: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"Insufficient allowance for {self.spender} on {self.holder}: "
                f"has {self.allowance}, needs {self.needed}"
            )
        if self.code == 0:
            self.code = ERROR_INSUFFICIENT_ALLOWANCE
        if not self.suggestion:
            self.suggestion = "Ask the holder to approve a larger allowance"
        self.context.update({
            "holder": self.holder,
            "spender": self.spender,
            "allowance": self.allowance,
            "needed": self.needed,
        })


@dataclass
class SupplyOverflowError(LedgerError):
    """Raised when minting would push total supply past the uint256 range."""

    total_supply: int = 0
    amount: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Minting {self.amount} would overflow total supply"
        if self.code == 0:
            self.code = ERROR_SUPPLY_OVERFLOW
        self.context.update({
            "total_supply": self.total_supply,
            "amount": self.amount,
        })


# =============================================================================
# Storage Errors
# =============================================================================


@dataclass
class StorageError(TollgateError):
    """
    Base class for storage/database errors.

    Attributes:
        operation: The operation that failed (e.g., "write_balance", "load_events")
    """

    operation: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["operation"] = self.operation


@dataclass
class StorageConnectionError(StorageError):
    """Raised when database connection fails."""

    db_path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to connect to database: {self.db_path}"
        if self.code == 0:
            self.code = ERROR_STORAGE_CONNECTION
        if not self.suggestion:
            self.suggestion = "Check that the database path is valid and writable"
        super().__post_init__()
        self.context["db_path"] = self.db_path


@dataclass
class StorageWriteError(StorageError):
    """Raised when a write operation fails."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database write failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_WRITE
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class StorageReadError(StorageError):
    """Raised when a read operation fails."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database read failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_READ
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class TokenNotDeployedError(StorageError):
    """Raised when opening a ledger that holds no token."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "No token has been deployed on this ledger"
        if self.code == 0:
            self.code = ERROR_TOKEN_NOT_DEPLOYED
        if not self.suggestion:
            self.suggestion = "Run 'tollgate deploy <spec.yaml>' first"
        super().__post_init__()


@dataclass
class TokenAlreadyDeployedError(StorageError):
    """Raised when deploying onto a ledger that already holds a token."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "A token is already deployed on this ledger"
        if self.code == 0:
            self.code = ERROR_TOKEN_ALREADY_DEPLOYED
        if not self.suggestion:
            self.suggestion = "Use a fresh database for a new token"
        super().__post_init__()
