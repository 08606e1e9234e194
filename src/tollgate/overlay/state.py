"""
Persistent overlay state.

Stores the token's identity, its write-once capability flags and its tunable
settings in the ledger's metadata, so they share the ledger's transactions
and survive a reopen of a SQLite ledger.
"""

from typing import Any

from tollgate.errors import TokenAlreadyDeployedError, TokenNotDeployedError
from tollgate.ledger import Ledger
from tollgate.schema import TokenConfig, TokenSettings

CONFIG_KEY = "config"
SETTINGS_KEY = "settings"
TOKEN_KEY = "token"


class StateStore:
    """
    Typed access to the overlay's metadata.

    Attributes:
        ledger: The ledger whose metadata store is used
    """

    def __init__(self, ledger: Ledger) -> None:
        self.ledger = ledger

    @property
    def deployed(self) -> bool:
        return self.ledger.get_meta(CONFIG_KEY) is not None

    def initialize(
        self,
        token: dict[str, Any],
        config: TokenConfig,
        settings: TokenSettings,
    ) -> None:
        """
        Write identity, flags and settings for a new token.

        Raises:
            TokenAlreadyDeployedError: If the flags were already written
        """
        if self.deployed:
            raise TokenAlreadyDeployedError(operation="initialize")
        with self.ledger.transaction():
            self.ledger.set_meta(TOKEN_KEY, token)
            self.ledger.set_meta(CONFIG_KEY, config.model_dump())
            self.ledger.set_meta(SETTINGS_KEY, settings.model_dump())

    def token(self) -> dict[str, Any]:
        """Name, symbol, decimals and address of the token."""
        token = self.ledger.get_meta(TOKEN_KEY)
        if token is None:
            raise TokenNotDeployedError(operation="load_token")
        return token

    def config(self) -> TokenConfig:
        data = self.ledger.get_meta(CONFIG_KEY)
        if data is None:
            raise TokenNotDeployedError(operation="load_config")
        return TokenConfig.model_validate(data)

    def settings(self) -> TokenSettings:
        data = self.ledger.get_meta(SETTINGS_KEY)
        if data is None:
            raise TokenNotDeployedError(operation="load_settings")
        return TokenSettings.model_validate(data)

    def update_settings(self, **changes: Any) -> TokenSettings:
        """
        Replace the given settings fields and persist the result.

        Raises:
            ValidationError: If a changed field has the wrong type or range
        """
        settings = TokenSettings.model_validate({**self.settings().model_dump(), **changes})
        self.ledger.set_meta(SETTINGS_KEY, settings.model_dump())
        return settings
