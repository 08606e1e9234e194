"""
Single-owner access control for Tollgate.

The owner address is kept in the ledger's metadata store, so ownership
changes commit and roll back together with the rest of an operation.
"""

from tollgate.errors import InvalidAddressError, NotOwnerError
from tollgate.ledger import Ledger
from tollgate.policy.validator import normalize_address
from tollgate.schema import ZERO_ADDRESS, EventKind

OWNER_KEY = "owner"


class AccessControl:
    """
    Owner gate for privileged operations.

    Usage:
        access = AccessControl(ledger)
        access.only_owner(caller, "mint")  # raises NotOwnerError

    Attributes:
        ledger: The ledger holding the owner record
    """

    def __init__(self, ledger: Ledger) -> None:
        self.ledger = ledger

    @property
    def owner(self) -> str | None:
        """Current owner, or None once ownership is renounced."""
        return self.ledger.get_meta(OWNER_KEY)

    def is_owner(self, caller: str) -> bool:
        owner = self.owner
        return owner is not None and caller.lower() == owner

    def only_owner(self, caller: str, operation: str = "") -> None:
        """
        Fail unless caller is the current owner.

        Raises:
            NotOwnerError: For any other caller, and for everyone after renouncement
        """
        if not self.is_owner(caller):
            raise NotOwnerError(caller=caller, owner=self.owner, operation=operation)

    def initialize(self, owner: str) -> None:
        """Set the first owner. Used once, at deployment."""
        owner = normalize_address(owner, role="owner")
        if owner == ZERO_ADDRESS:
            raise InvalidAddressError(address=owner, role="owner", reason="zero address")
        self._set_owner(owner)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """
        Hand ownership to new_owner.

        Raises:
            NotOwnerError: If caller is not the owner
            InvalidAddressError: If new_owner is malformed or zero
        """
        self.only_owner(caller, "transfer_ownership")
        new_owner = normalize_address(new_owner, role="new_owner")
        if new_owner == ZERO_ADDRESS:
            raise InvalidAddressError(address=new_owner, role="new_owner", reason="zero address")
        self._set_owner(new_owner)

    def renounce_ownership(self, caller: str) -> None:
        """Give up ownership for good; every privileged operation fails afterwards."""
        self.only_owner(caller, "renounce_ownership")
        self._set_owner(None)

    def _set_owner(self, new_owner: str | None) -> None:
        with self.ledger.transaction():
            previous = self.owner
            self.ledger.set_meta(OWNER_KEY, new_owner)
            self.ledger.record_event(
                EventKind.OWNERSHIP_TRANSFERRED,
                {
                    "previous_owner": previous or ZERO_ADDRESS,
                    "new_owner": new_owner or ZERO_ADDRESS,
                },
            )
