"""
Fee engine for Tollgate.

Computes how much of a transfer goes to the tax address and how much is
burned. Both deductions are integer floor divisions of amount * bps by
10_000. Python integers are unbounded, so the product never overflows.

Since each rate is at most 5000 bps, tax + deflation never exceeds the
amount and the net credited to the recipient is never negative.
"""

from tollgate.overlay.state import StateStore
from tollgate.policy.gate import CapabilityGate
from tollgate.schema import BPS_DENOMINATOR, FeeQuote


class FeeEngine:
    """
    Tax and deflation calculator.

    Usage:
        fees = FeeEngine(gate, state)
        quote = fees.quote(sender, 1000)
        quote.tax_amount, quote.deflation_amount, quote.net_amount

    Attributes:
        gate: Capability flags of the token
        state: Source of the current rates and tax address
    """

    def __init__(self, gate: CapabilityGate, state: StateStore) -> None:
        self.gate = gate
        self.state = state

    def compute_tax(self, sender: str, amount: int) -> int:
        """
        Tax owed on a transfer of amount by sender.

        Zero when the token is not taxable, the rate is zero, or the sender
        is the tax address itself.
        """
        if not self.gate.is_taxable():
            return 0
        settings = self.state.settings()
        if settings.tax_bps == 0 or sender == settings.tax_address:
            return 0
        return amount * settings.tax_bps // BPS_DENOMINATOR

    def compute_deflation(self, amount: int) -> int:
        """Amount burned on a transfer; zero unless deflationary with a nonzero rate."""
        if not self.gate.is_deflationary():
            return 0
        deflation_bps = self.state.settings().deflation_bps
        if deflation_bps == 0:
            return 0
        return amount * deflation_bps // BPS_DENOMINATOR

    def quote(self, sender: str, amount: int) -> FeeQuote:
        """Split amount into tax, deflation and net."""
        return FeeQuote(
            amount=amount,
            tax_amount=self.compute_tax(sender, amount),
            deflation_amount=self.compute_deflation(amount),
        )
