"""
Transfer overlay for Tollgate.

Replaces the base ledger's plain transfer with the fee/cap sequence:

    1. Quote tax and deflation for the gross amount
    2. net = amount - tax - deflation
    3. Check the recipient's cap against net (before any write)
    4. Move tax from sender to the tax address
    5. Burn deflation from sender
    6. Move net from sender to recipient

Steps 4-6 run in one ledger transaction. If any primitive fails, for example
because the sender cannot cover the amount, every earlier step is undone.
"""

from tollgate.ledger import Ledger
from tollgate.overlay.caps import CapEnforcer
from tollgate.overlay.fees import FeeEngine
from tollgate.overlay.state import StateStore
from tollgate.schema import FeeQuote


class TransferOverlay:
    """
    Orchestrates fees and caps around the ledger primitives.

    The overlay holds the ledger and calls its primitives explicitly; it
    does not subclass it.

    Attributes:
        ledger: The base ledger
        fees: Tax and deflation calculator
        caps: Balance cap enforcer
        state: Source of the tax address
    """

    def __init__(
        self,
        ledger: Ledger,
        fees: FeeEngine,
        caps: CapEnforcer,
        state: StateStore,
    ) -> None:
        self.ledger = ledger
        self.fees = fees
        self.caps = caps
        self.state = state

    def transfer(self, sender: str, recipient: str, amount: int) -> FeeQuote:
        """
        Transfer amount from sender, crediting recipient with the net.

        Returns:
            The fee breakdown that was applied

        Raises:
            DestBalanceExceedsMaxAllowedError: If recipient would exceed the cap
            InsufficientBalanceError: If sender cannot cover amount
        """
        quote = self.fees.quote(sender, amount)
        self.caps.check_cap(recipient, quote.net_amount)

        with self.ledger.transaction():
            self._apply(sender, recipient, quote)
        return quote

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> FeeQuote:
        """
        Delegated transfer of amount from holder on behalf of spender.

        The allowance is charged the full gross amount, not the net.

        Raises:
            DestBalanceExceedsMaxAllowedError: If recipient would exceed the cap
            InsufficientAllowanceError: If spender's allowance is too small
            InsufficientBalanceError: If holder cannot cover amount
        """
        quote = self.fees.quote(holder, amount)
        self.caps.check_cap(recipient, quote.net_amount)

        with self.ledger.transaction():
            self.ledger.spend_allowance(holder, spender, amount)
            self._apply(holder, recipient, quote)
        return quote

    def mint(self, to: str, amount: int) -> None:
        """Mint amount to to after a cap check. Never taxed or deflated."""
        self.caps.check_cap(to, amount)
        self.ledger.mint(to, amount)

    def _apply(self, sender: str, recipient: str, quote: FeeQuote) -> None:
        if quote.tax_amount:
            tax_address = self.state.settings().tax_address
            self.ledger.transfer(sender, tax_address, quote.tax_amount)
        if quote.deflation_amount:
            self.ledger.burn(sender, quote.deflation_amount)
        self.ledger.transfer(sender, recipient, quote.net_amount)
