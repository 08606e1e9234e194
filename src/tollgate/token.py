"""
Token facade for Tollgate.

The Token is the public entry point. It wires the policy checks and the fee/cap
overlay onto a ledger and exposes every operation a holder or owner can
perform.

Operation Flow:
    1. Normalize addresses and validate amounts
    2. Privileged operations: owner check, then capability check, then bounds
    3. Overlay: fee quote and cap check, before any write
    4. Ledger primitives inside one transaction
    5. Events delivered to subscribers after commit

Design Principles:
    - Fail-closed: a disabled capability or failed check aborts before any write
    - All-or-nothing: each operation is one ledger transaction
    - Serial: the ledger lock guards every transaction, so threaded callers
      observe a sequential state machine, however many Tokens share a ledger
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from tollgate.errors import TokenAlreadyDeployedError, TollgateError
from tollgate.ledger import EventListener, InMemoryLedger, Ledger
from tollgate.overlay import CapEnforcer, FeeEngine, StateStore, TransferOverlay
from tollgate.policy import AccessControl, CapabilityGate, ConfigValidator, normalize_address
from tollgate.schema import (
    Capability,
    EventKind,
    FeeQuote,
    LedgerEvent,
    TokenConfig,
    TokenSettings,
    TokenSpec,
    generate_address,
)

logger = logging.getLogger(__name__)


class Token:
    """
    A deployed token with its fee/cap overlay.

    Usage:
        token = Token.deploy(spec)
        quote = token.transfer(alice, bob, 1_000)
        token.mint(owner, alice, 500)

        # Reattach to a persisted token
        with TokenDB("token.db") as db:
            token = Token.open(db)

    Attributes:
        ledger: The base ledger
        state: Flags and settings store
        gate: Capability gate
        access: Owner gate
        validator: Bound checks
        fees: Tax and deflation calculator
        caps: Balance cap enforcer
        overlay: Transfer orchestration
    """

    def __init__(self, ledger: Ledger) -> None:
        """
        Attach to a ledger that already holds a deployed token.

        Raises:
            TokenNotDeployedError: If the ledger holds no token
        """
        self.ledger = ledger
        self.state = StateStore(ledger)
        self._info = self.state.token()
        self.gate = CapabilityGate(self.state.config())
        self.access = AccessControl(ledger)
        self.validator = ConfigValidator(self._info["address"])
        self.fees = FeeEngine(self.gate, self.state)
        self.caps = CapEnforcer(self.gate, ledger, self.state)
        self.overlay = TransferOverlay(ledger, self.fees, self.caps, self.state)

    @classmethod
    def open(cls, ledger: Ledger) -> "Token":
        """Attach to a previously deployed token."""
        return cls(ledger)

    @classmethod
    def deploy(
        cls,
        spec: TokenSpec,
        ledger: Ledger | None = None,
        deployer: str | None = None,
        token_address: str | None = None,
    ) -> "Token":
        """
        Deploy a new token.

        Every input is validated before anything is written. The deployer
        becomes the first owner, the initial supply (scaled by 10**decimals)
        is minted to the designated owner, and ownership is handed over if
        the deployer is someone else.

        Args:
            spec: Deployment parameters
            ledger: Ledger to deploy on (defaults to a fresh InMemoryLedger)
            deployer: Account performing the deployment (defaults to spec.owner)
            token_address: Address of the token itself (generated if omitted)

        Returns:
            The deployed Token

        Raises:
            ConfigValidationError: If any input is out of bounds
            TokenAlreadyDeployedError: If the ledger already holds a token
            DestBalanceExceedsMaxAllowedError: If the initial supply exceeds the cap
        """
        ledger = ledger if ledger is not None else InMemoryLedger()
        token_address = normalize_address(token_address or generate_address(), role="token_address")

        validator = ConfigValidator(token_address)
        validator.validate_spec(spec)
        owner = validator.validate_address(spec.owner, role="owner")
        deployer = validator.validate_address(deployer, role="deployer") if deployer else owner

        settings = spec.initial_settings()
        if spec.capabilities.is_taxable:
            settings = settings.model_copy(
                update={"tax_address": validator.validate_address(spec.tax_address, role="tax_address")}
            )
        initial_amount = spec.initial_supply * 10**spec.decimals

        state = StateStore(ledger)
        if state.deployed:
            raise TokenAlreadyDeployedError(operation="deploy")

        with ledger.transaction():
            state.initialize(
                {
                    "name": spec.name,
                    "symbol": spec.symbol,
                    "decimals": spec.decimals,
                    "address": token_address,
                },
                spec.capabilities,
                settings,
            )
            AccessControl(ledger).initialize(deployer)
            token = cls(ledger)
            if initial_amount:
                token.overlay.mint(owner, initial_amount)
            if owner != deployer:
                token.access.transfer_ownership(deployer, owner)

        logger.info(
            "Deployed %s (%s) at %s: supply=%d owner=%s",
            spec.name,
            spec.symbol,
            token_address,
            initial_amount,
            owner,
        )
        return token

    # =========================================================================
    # Identity and Queries
    # =========================================================================

    @property
    def name(self) -> str:
        return self._info["name"]

    @property
    def symbol(self) -> str:
        return self._info["symbol"]

    @property
    def decimals(self) -> int:
        return self._info["decimals"]

    @property
    def address(self) -> str:
        """The token's own address."""
        return self._info["address"]

    @property
    def owner(self) -> str | None:
        return self.access.owner

    @property
    def config(self) -> TokenConfig:
        return self.gate.config

    @property
    def settings(self) -> TokenSettings:
        return self.state.settings()

    @property
    def max_token_amount_per_address(self) -> int:
        return self.settings.max_token_amount_per_address

    @property
    def document_uri(self) -> str:
        return self.settings.document_uri

    @property
    def tax_address(self) -> str:
        return self.settings.tax_address

    @property
    def tax_bps(self) -> int:
        return self.settings.tax_bps

    @property
    def deflation_bps(self) -> int:
        return self.settings.deflation_bps

    def is_mintable(self) -> bool:
        return self.gate.is_mintable()

    def is_burnable(self) -> bool:
        return self.gate.is_burnable()

    def is_document_uri_allowed(self) -> bool:
        return self.gate.is_document_uri_allowed()

    def is_max_amount_of_tokens_set(self) -> bool:
        return self.gate.is_max_amount_of_tokens_set()

    def is_taxable(self) -> bool:
        return self.gate.is_taxable()

    def is_deflationary(self) -> bool:
        return self.gate.is_deflationary()

    def total_supply(self) -> int:
        return self.ledger.total_supply()

    def balance_of(self, address: str) -> int:
        return self.ledger.balance_of(normalize_address(address))

    def allowance(self, holder: str, spender: str) -> int:
        return self.ledger.allowance(
            normalize_address(holder, role="holder"),
            normalize_address(spender, role="spender"),
        )

    def quote_transfer(self, sender: str, amount: int) -> FeeQuote:
        """Preview the fee breakdown of a transfer without performing it."""
        self.validator.validate_amount(amount)
        return self.fees.quote(normalize_address(sender, role="sender"), amount)

    def events(self, kind: EventKind | None = None) -> list[LedgerEvent]:
        return self.ledger.events(kind)

    def subscribe(self, listener: EventListener) -> None:
        """Receive every event once its operation has committed."""
        self.ledger.subscribe(listener)

    def info(self) -> dict[str, Any]:
        """Identity, flags and settings as plain data."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "address": self.address,
            "owner": self.owner,
            "total_supply": self.total_supply(),
            "capabilities": self.gate.as_dict(),
            "settings": self.settings.model_dump(),
        }

    def __repr__(self) -> str:
        return f"Token(name={self.name!r}, symbol={self.symbol!r}, address={self.address!r})"

    # =========================================================================
    # Holder Operations
    # =========================================================================

    def transfer(self, sender: str, recipient: str, amount: int) -> FeeQuote:
        """
        Transfer amount from sender to recipient, applying tax, deflation and cap.

        Returns:
            The applied fee breakdown
        """
        sender = normalize_address(sender, role="sender")
        recipient = normalize_address(recipient, role="recipient")
        with self._operation("transfer"):
            self.validator.validate_amount(amount)
            quote = self.overlay.transfer(sender, recipient, amount)

        logger.debug(
            "Transfer %s -> %s: amount=%d tax=%d deflation=%d net=%d",
            sender,
            recipient,
            amount,
            quote.tax_amount,
            quote.deflation_amount,
            quote.net_amount,
        )
        return quote

    def transfer_from(self, spender: str, holder: str, recipient: str, amount: int) -> FeeQuote:
        """
        Transfer on behalf of holder using spender's allowance.

        The allowance is reduced by the full amount.
        """
        spender = normalize_address(spender, role="spender")
        holder = normalize_address(holder, role="holder")
        recipient = normalize_address(recipient, role="recipient")
        with self._operation("transfer_from"):
            self.validator.validate_amount(amount)
            quote = self.overlay.transfer_from(spender, holder, recipient, amount)

        logger.debug(
            "Delegated transfer by %s, %s -> %s: amount=%d net=%d",
            spender,
            holder,
            recipient,
            amount,
            quote.net_amount,
        )
        return quote

    def approve(self, holder: str, spender: str, amount: int) -> None:
        """Let spender move up to amount of holder's tokens."""
        holder = normalize_address(holder, role="holder")
        spender = normalize_address(spender, role="spender")
        with self._operation("approve"):
            self.validator.validate_amount(amount)
            self.ledger.approve(holder, spender, amount)

    # =========================================================================
    # Privileged Operations
    # =========================================================================

    def mint(self, caller: str, to: str, amount: int) -> None:
        """Create amount tokens for to. Owner only, mintable tokens only."""
        caller = normalize_address(caller, role="caller")
        to = normalize_address(to, role="recipient")
        with self._operation("mint"):
            self.access.only_owner(caller, "mint")
            self.gate.require(Capability.MINT)
            self.validator.validate_amount(amount)
            self.overlay.mint(to, amount)

        logger.info("Minted %d to %s", amount, to)

    def burn(self, caller: str, amount: int) -> None:
        """Destroy amount of the caller's own tokens. Owner only, burnable tokens only."""
        caller = normalize_address(caller, role="caller")
        with self._operation("burn"):
            self.access.only_owner(caller, "burn")
            self.gate.require(Capability.BURN)
            self.validator.validate_amount(amount)
            self.ledger.burn(caller, amount)

        logger.info("Burned %d from %s", amount, caller)

    def set_document_uri(self, caller: str, document_uri: str) -> None:
        """Replace the document URI."""
        caller = normalize_address(caller, role="caller")
        with self._operation("set_document_uri"):
            self.access.only_owner(caller, "set_document_uri")
            self.gate.require(Capability.DOCUMENT_URI)
            self.state.update_settings(document_uri=document_uri)
            self.ledger.record_event(EventKind.DOCUMENT_URI_CHANGED, {"document_uri": document_uri})

        logger.info("Document URI set to %r", document_uri)

    def set_max_token_amount_per_address(self, caller: str, new_cap: int) -> None:
        """Raise the per-holder balance cap. The new cap must exceed the current one."""
        caller = normalize_address(caller, role="caller")
        with self._operation("set_max_token_amount_per_address"):
            self.access.only_owner(caller, "set_max_token_amount_per_address")
            settings = self.caps.raise_cap(new_cap)
            self.ledger.record_event(
                EventKind.CAP_RAISED,
                {"max_token_amount_per_address": settings.max_token_amount_per_address},
            )

        logger.info("Max token amount per address raised to %d", new_cap)

    def set_tax_config(self, caller: str, tax_address: str, tax_bps: int) -> None:
        """Replace the tax address and rate."""
        caller = normalize_address(caller, role="caller")
        with self._operation("set_tax_config"):
            self.access.only_owner(caller, "set_tax_config")
            self.gate.require(Capability.TAX)
            tax_address = self.validator.validate_tax_config(tax_address, tax_bps)
            self.state.update_settings(tax_address=tax_address, tax_bps=tax_bps)
            self.ledger.record_event(
                EventKind.TAX_CONFIG_CHANGED,
                {"tax_address": tax_address, "tax_bps": tax_bps},
            )

        logger.info("Tax config set: address=%s bps=%d", tax_address, tax_bps)

    def set_deflation_config(self, caller: str, deflation_bps: int) -> None:
        """Replace the deflation rate."""
        caller = normalize_address(caller, role="caller")
        with self._operation("set_deflation_config"):
            self.access.only_owner(caller, "set_deflation_config")
            self.gate.require(Capability.DEFLATION)
            self.validator.validate_deflation_bps(deflation_bps)
            self.state.update_settings(deflation_bps=deflation_bps)
            self.ledger.record_event(
                EventKind.DEFLATION_CONFIG_CHANGED,
                {"deflation_bps": deflation_bps},
            )

        logger.info("Deflation config set: bps=%d", deflation_bps)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        caller = normalize_address(caller, role="caller")
        with self._operation("transfer_ownership"):
            self.access.transfer_ownership(caller, new_owner)

        logger.info("Ownership transferred to %s", self.owner)

    def renounce_ownership(self, caller: str) -> None:
        caller = normalize_address(caller, role="caller")
        with self._operation("renounce_ownership"):
            self.access.renounce_ownership(caller)

        logger.info("Ownership renounced by %s", caller)

    @contextmanager
    def _operation(self, name: str) -> Generator[None, None, None]:
        """Serialize an operation and run it as one ledger transaction."""
        try:
            with self.ledger.transaction():
                yield
        except TollgateError as e:
            logger.debug("%s rejected: %s", name, e.message)
            raise
