"""
Capability gate for Tollgate.

The gate answers one question per capability and turns a "no" into the
capability-specific error. Every privileged operation asks the gate before
touching the ledger, so a disabled capability fails closed.
"""

from tollgate.errors import (
    BurningNotEnabledError,
    CapabilityDisabledError,
    DocumentUriNotAllowedError,
    MaxTokenAmountNotAllowedError,
    MintingNotEnabledError,
    TokenIsNotDeflationaryError,
    TokenIsNotTaxableError,
)
from tollgate.schema import Capability, TokenConfig

_DISABLED_ERRORS: dict[Capability, type[CapabilityDisabledError]] = {
    Capability.MINT: MintingNotEnabledError,
    Capability.BURN: BurningNotEnabledError,
    Capability.DOCUMENT_URI: DocumentUriNotAllowedError,
    Capability.MAX_AMOUNT: MaxTokenAmountNotAllowedError,
    Capability.TAX: TokenIsNotTaxableError,
    Capability.DEFLATION: TokenIsNotDeflationaryError,
}


class CapabilityGate:
    """
    Read-only view over a token's capability flags.

    Usage:
        gate = CapabilityGate(config)
        if gate.is_taxable():
            ...
        gate.require(Capability.MINT)  # raises MintingNotEnabledError

    Attributes:
        config: The frozen capability flags
    """

    def __init__(self, config: TokenConfig) -> None:
        self._config = config

    @property
    def config(self) -> TokenConfig:
        """The capability flags (frozen)."""
        return self._config

    def is_mintable(self) -> bool:
        return self._config.is_mintable

    def is_burnable(self) -> bool:
        return self._config.is_burnable

    def is_document_uri_allowed(self) -> bool:
        return self._config.is_document_uri_allowed

    def is_max_amount_of_tokens_set(self) -> bool:
        return self._config.is_max_amount_of_tokens_set

    def is_taxable(self) -> bool:
        return self._config.is_taxable

    def is_deflationary(self) -> bool:
        return self._config.is_deflationary

    def enabled(self, capability: Capability) -> bool:
        """Whether the given capability is enabled."""
        if capability == Capability.MINT:
            return self.is_mintable()
        if capability == Capability.BURN:
            return self.is_burnable()
        if capability == Capability.DOCUMENT_URI:
            return self.is_document_uri_allowed()
        if capability == Capability.MAX_AMOUNT:
            return self.is_max_amount_of_tokens_set()
        if capability == Capability.TAX:
            return self.is_taxable()
        if capability == Capability.DEFLATION:
            return self.is_deflationary()
        # Unknown capability - fail closed
        return False

    def require(self, capability: Capability) -> None:
        """
        Fail unless the capability is enabled.

        Raises:
            CapabilityDisabledError: The capability-specific subclass
        """
        if not self.enabled(capability):
            error_cls = _DISABLED_ERRORS.get(capability, CapabilityDisabledError)
            raise error_cls()

    def as_dict(self) -> dict[str, bool]:
        """Capability name to enabled flag, for reports."""
        return {capability.value: self.enabled(capability) for capability in Capability}
