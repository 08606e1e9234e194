"""
Per-holder balance cap for Tollgate.

When the cap capability is enabled, no credit may push a holder's balance
above max_token_amount_per_address. The check reads the destination's
current balance and runs before any write, so a violation leaves nothing to
undo. The cap itself can only ever be raised.

No address is exempt, including the tax address.
"""

from tollgate.errors import (
    DestBalanceExceedsMaxAllowedError,
    MaxTokenAmountPerAddrLtPreviousError,
)
from tollgate.ledger import Ledger
from tollgate.overlay.state import StateStore
from tollgate.policy.gate import CapabilityGate
from tollgate.policy.validator import ConfigValidator
from tollgate.schema import Capability, TokenSettings


class CapEnforcer:
    """
    Enforces and raises the balance cap.

    Attributes:
        gate: Capability flags of the token
        ledger: Ledger to read destination balances from
        state: Source and sink of the current cap
    """

    def __init__(self, gate: CapabilityGate, ledger: Ledger, state: StateStore) -> None:
        self.gate = gate
        self.ledger = ledger
        self.state = state

    def check_cap(self, destination: str, incoming_amount: int) -> None:
        """
        Fail if crediting incoming_amount would put destination over the cap.

        Raises:
            DestBalanceExceedsMaxAllowedError: If the cap would be exceeded
        """
        if not self.gate.is_max_amount_of_tokens_set():
            return
        max_allowed = self.state.settings().max_token_amount_per_address
        balance = self.ledger.balance_of(destination)
        if balance + incoming_amount > max_allowed:
            raise DestBalanceExceedsMaxAllowedError(
                destination=destination,
                balance=balance,
                incoming=incoming_amount,
                max_allowed=max_allowed,
            )

    def raise_cap(self, new_cap: int) -> TokenSettings:
        """
        Replace the cap with a strictly larger one.

        Returns:
            The updated settings

        Raises:
            MaxTokenAmountNotAllowedError: If the cap capability is disabled
            InvalidAmountError: If new_cap is not a uint256 integer
            MaxTokenAmountPerAddrLtPreviousError: If new_cap <= current cap
        """
        self.gate.require(Capability.MAX_AMOUNT)
        ConfigValidator().validate_amount(new_cap)
        current = self.state.settings().max_token_amount_per_address
        if new_cap <= current:
            raise MaxTokenAmountPerAddrLtPreviousError(new_cap=new_cap, current_cap=current)
        return self.state.update_settings(max_token_amount_per_address=new_cap)
