"""
Configuration validation for Tollgate.

The validator checks deployment parameters and setter inputs against their
bounds. It never mutates anything: callers run it to completion before
opening a ledger transaction, so a rejected input leaves no trace.

Bounds:
    - decimals in [0, 18]
    - tax and deflation rates in [0, 5000] basis points
    - balance cap nonzero when the cap capability is enabled
    - addresses well-formed, nonzero, and never the token's own address
      when used as the tax sink
    - amounts are integers in the uint256 range
"""

import re

from tollgate.errors import (
    InvalidAddressError,
    InvalidAmountError,
    InvalidDecimalsError,
    InvalidDeflationBPSError,
    InvalidMaxTokenAmountError,
    InvalidTaxBPSError,
)
from tollgate.schema import (
    MAX_BPS,
    MAX_DECIMALS,
    MAX_UINT256,
    ZERO_ADDRESS,
    TokenSpec,
)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(address: str, role: str = "address") -> str:
    """
    Check address format and return its canonical lower-case form.

    The zero address is well-formed and passes; callers that must reject
    it use ConfigValidator.validate_address.

    Raises:
        InvalidAddressError: If the address is not 0x followed by 40 hex digits
    """
    if not isinstance(address, str) or not ADDRESS_PATTERN.match(address):
        raise InvalidAddressError(
            address=str(address),
            role=role,
            reason="expected 0x followed by 40 hex digits",
        )
    return address.lower()


def is_valid_amount(amount: object) -> bool:
    """Whether amount is a plain int in the uint256 range."""
    # bool is an int subclass; True is not an amount
    if isinstance(amount, bool) or not isinstance(amount, int):
        return False
    return 0 <= amount <= MAX_UINT256


class ConfigValidator:
    """
    Validates token inputs against their bounds.

    Usage:
        validator = ConfigValidator(token_address)
        validator.validate_spec(spec)
        validator.validate_tax_config(tax_address, tax_bps)

    Attributes:
        token_address: Address of the token itself, which may never serve
            as the tax sink (None before the address is known)
    """

    def __init__(self, token_address: str | None = None) -> None:
        self.token_address = token_address.lower() if token_address else None

    def validate_decimals(self, decimals: int) -> None:
        """Reject decimals outside [0, 18]."""
        if isinstance(decimals, bool) or not isinstance(decimals, int):
            raise InvalidDecimalsError(decimals=decimals)
        if decimals < 0 or decimals > MAX_DECIMALS:
            raise InvalidDecimalsError(decimals=decimals)

    def validate_max_token_amount(self, enabled: bool, max_token_amount: int) -> None:
        """Reject a zero cap when the cap capability is enabled."""
        if not is_valid_amount(max_token_amount):
            raise InvalidMaxTokenAmountError(max_token_amount=max_token_amount)
        if enabled and max_token_amount == 0:
            raise InvalidMaxTokenAmountError(max_token_amount=max_token_amount)

    def validate_tax_bps(self, tax_bps: int) -> None:
        """Reject tax rates outside [0, MAX_BPS]."""
        if not _is_bps(tax_bps):
            raise InvalidTaxBPSError(tax_bps=tax_bps)

    def validate_deflation_bps(self, deflation_bps: int) -> None:
        """Reject deflation rates outside [0, MAX_BPS]."""
        if not _is_bps(deflation_bps):
            raise InvalidDeflationBPSError(deflation_bps=deflation_bps)

    def validate_address(self, address: str, role: str = "address") -> str:
        """
        Reject malformed, zero and self addresses.

        Returns:
            The normalized address
        """
        normalized = normalize_address(address, role)
        if normalized == ZERO_ADDRESS:
            raise InvalidAddressError(address=address, role=role, reason="zero address")
        if self.token_address is not None and normalized == self.token_address:
            raise InvalidAddressError(
                address=address,
                role=role,
                reason="token's own address",
            )
        return normalized

    def validate_amount(self, amount: int) -> None:
        """Reject anything that is not a uint256 integer."""
        if not is_valid_amount(amount):
            raise InvalidAmountError(amount=amount)

    def validate_tax_config(self, tax_address: str, tax_bps: int) -> str:
        """
        Validate a tax address and rate together.

        Returns:
            The normalized tax address
        """
        self.validate_tax_bps(tax_bps)
        return self.validate_address(tax_address, role="tax_address")

    def validate_spec(self, spec: TokenSpec) -> None:
        """
        Run every deployment check.

        Tax address validity is only required for taxable tokens; rates are
        always bounded.

        Raises:
            ConfigValidationError: The first failing check
        """
        self.validate_decimals(spec.decimals)
        self.validate_address(spec.owner, role="owner")
        self.validate_amount(spec.initial_supply)
        self.validate_amount(spec.initial_supply * 10**spec.decimals)
        self.validate_max_token_amount(
            spec.capabilities.is_max_amount_of_tokens_set,
            spec.max_token_amount_per_address,
        )
        self.validate_tax_bps(spec.tax_bps)
        if spec.capabilities.is_taxable:
            self.validate_address(spec.tax_address, role="tax_address")
        self.validate_deflation_bps(spec.deflation_bps)


def _is_bps(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 <= value <= MAX_BPS
