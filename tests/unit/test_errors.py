"""
Unit tests for error hierarchy.

Tests cover:
- Base TollgateError behavior
- Validation errors with context
- Capability, invariant and authorization errors
- Ledger and storage errors
- Error serialization
"""

import pytest

from tollgate.errors import (
    ERROR_BURNING_NOT_ENABLED,
    ERROR_DEST_BALANCE_EXCEEDS_MAX,
    ERROR_DOCUMENT_URI_NOT_ALLOWED,
    ERROR_INVALID_ADDRESS,
    ERROR_INVALID_DECIMALS,
    ERROR_MAX_TOKEN_AMOUNT_LT_PREVIOUS,
    ERROR_MAX_TOKEN_AMOUNT_NOT_ALLOWED,
    ERROR_MINTING_NOT_ENABLED,
    ERROR_NOT_OWNER,
    ERROR_STORAGE_CONNECTION,
    ERROR_TOKEN_NOT_DEFLATIONARY,
    ERROR_TOKEN_NOT_TAXABLE,
    AuthorizationError,
    BurningNotEnabledError,
    CapabilityDisabledError,
    ConfigValidationError,
    DestBalanceExceedsMaxAllowedError,
    DocumentUriNotAllowedError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidDecimalsError,
    InvalidDeflationBPSError,
    InvalidMaxTokenAmountError,
    InvalidTaxBPSError,
    InvariantViolationError,
    LedgerError,
    MaxTokenAmountNotAllowedError,
    MaxTokenAmountPerAddrLtPreviousError,
    MintingNotEnabledError,
    NotOwnerError,
    StorageConnectionError,
    StorageError,
    StorageWriteError,
    TokenIsNotDeflationaryError,
    TokenIsNotTaxableError,
    TokenNotDeployedError,
    TollgateError,
)


class TestTollgateError:
    """Tests for base TollgateError."""

    def test_basic_error(self) -> None:
        """Create a basic error with message."""
        err = TollgateError(message="Something went wrong", code=9999)
        assert err.message == "Something went wrong"
        assert err.code == 9999
        assert err.suggestion is None
        assert err.context == {}

    def test_error_with_suggestion(self) -> None:
        """Error with suggestion text."""
        err = TollgateError(message="Failed", code=1, suggestion="Try again")
        assert "Suggestion: Try again" in str(err)

    def test_str_format(self) -> None:
        """String format includes code and message."""
        err = TollgateError(message="Test error", code=1234)
        assert str(err) == "[E1234] Test error"

    def test_repr_format(self) -> None:
        """Repr includes class name and details."""
        err = TollgateError(message="Test", code=1)
        assert "TollgateError" in repr(err)
        assert "code=1" in repr(err)

    def test_can_raise_and_catch(self) -> None:
        """Errors are real exceptions."""
        with pytest.raises(TollgateError):
            raise TollgateError(message="boom", code=1)


class TestValidationErrors:
    """Tests for configuration validation errors."""

    def test_invalid_decimals(self) -> None:
        err = InvalidDecimalsError(decimals=19)
        assert err.code == ERROR_INVALID_DECIMALS
        assert "19" in err.message
        assert err.context["decimals"] == 19
        assert isinstance(err, ConfigValidationError)

    def test_invalid_max_token_amount(self) -> None:
        err = InvalidMaxTokenAmountError(max_token_amount=0)
        assert err.context["max_token_amount"] == 0
        assert err.suggestion

    def test_invalid_bps_errors_are_distinct(self) -> None:
        tax = InvalidTaxBPSError(tax_bps=5001)
        deflation = InvalidDeflationBPSError(deflation_bps=5001)
        assert tax.code != deflation.code
        assert tax.context["tax_bps"] == 5001
        assert deflation.context["deflation_bps"] == 5001

    def test_invalid_address_context(self) -> None:
        err = InvalidAddressError(address="0x0", role="tax_address", reason="zero address")
        assert err.code == ERROR_INVALID_ADDRESS
        assert "tax_address" in err.message
        assert err.context == {"address": "0x0", "role": "tax_address", "reason": "zero address"}


class TestCapabilityErrors:
    """Each disabled capability has its own error and code."""

    @pytest.mark.parametrize(
        ("error_cls", "code", "capability"),
        [
            (MintingNotEnabledError, ERROR_MINTING_NOT_ENABLED, "mintable"),
            (BurningNotEnabledError, ERROR_BURNING_NOT_ENABLED, "burnable"),
            (DocumentUriNotAllowedError, ERROR_DOCUMENT_URI_NOT_ALLOWED, "document_uri"),
            (MaxTokenAmountNotAllowedError, ERROR_MAX_TOKEN_AMOUNT_NOT_ALLOWED, "max_amount_of_tokens"),
            (TokenIsNotTaxableError, ERROR_TOKEN_NOT_TAXABLE, "taxable"),
            (TokenIsNotDeflationaryError, ERROR_TOKEN_NOT_DEFLATIONARY, "deflationary"),
        ],
    )
    def test_defaults(self, error_cls: type, code: int, capability: str) -> None:
        err = error_cls()
        assert isinstance(err, CapabilityDisabledError)
        assert err.code == code
        assert err.capability == capability
        assert err.context["capability"] == capability
        assert err.message
        assert "fixed at deployment" in err.suggestion


class TestInvariantErrors:
    """Tests for cap invariant errors."""

    def test_dest_balance_exceeds_max(self) -> None:
        err = DestBalanceExceedsMaxAllowedError(
            destination="0xb",
            balance=9_500,
            incoming=600,
            max_allowed=10_000,
        )
        assert err.code == ERROR_DEST_BALANCE_EXCEEDS_MAX
        assert isinstance(err, InvariantViolationError)
        assert "9500 + 600 > 10000" in err.message
        assert err.context["destination"] == "0xb"

    def test_cap_lt_previous(self) -> None:
        err = MaxTokenAmountPerAddrLtPreviousError(new_cap=5, current_cap=10)
        assert err.code == ERROR_MAX_TOKEN_AMOUNT_LT_PREVIOUS
        assert err.context == {"new_cap": 5, "current_cap": 10}


class TestAuthorizationAndLedgerErrors:
    """Tests for owner and ledger errors."""

    def test_not_owner(self) -> None:
        err = NotOwnerError(caller="0xa", owner="0x1", operation="mint")
        assert err.code == ERROR_NOT_OWNER
        assert isinstance(err, AuthorizationError)
        assert "mint" in err.message

    def test_insufficient_balance(self) -> None:
        err = InsufficientBalanceError(address="0xa", balance=5, needed=10)
        assert isinstance(err, LedgerError)
        assert err.context["needed"] == 10

    def test_insufficient_allowance(self) -> None:
        err = InsufficientAllowanceError(holder="0xa", spender="0xb", allowance=1, needed=2)
        assert err.suggestion
        assert err.context["spender"] == "0xb"


class TestStorageErrors:
    """Tests for storage errors."""

    def test_connection_error(self) -> None:
        err = StorageConnectionError(db_path="/x/y.db", operation="connect")
        assert err.code == ERROR_STORAGE_CONNECTION
        assert err.context["db_path"] == "/x/y.db"
        assert err.context["operation"] == "connect"

    def test_write_error(self) -> None:
        err = StorageWriteError(operation="write_balance", underlying_error="disk full")
        assert isinstance(err, StorageError)
        assert "disk full" in err.message

    def test_not_deployed_suggests_deploy(self) -> None:
        err = TokenNotDeployedError()
        assert "deploy" in err.suggestion


class TestSerialization:
    """Tests for to_dict."""

    def test_to_dict(self) -> None:
        err = MaxTokenAmountPerAddrLtPreviousError(new_cap=1, current_cap=2)
        data = err.to_dict()
        assert data["error_type"] == "MaxTokenAmountPerAddrLtPreviousError"
        assert data["code"] == ERROR_MAX_TOKEN_AMOUNT_LT_PREVIOUS
        assert data["context"]["current_cap"] == 2
