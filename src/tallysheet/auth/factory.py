"""Token resolver factory."""

from __future__ import annotations

from tallysheet.auth.base import TokenResolver
from tallysheet.auth.resolvers.env import EnvTokenResolver
from tallysheet.auth.resolvers.static import AnonymousTokenResolver, StaticTokenResolver
from tallysheet.config import TallysheetConfig
from tallysheet.contracts.exceptions import ConfigError


def create_token_resolver(config: TallysheetConfig) -> TokenResolver:
    # The in-memory store has no owner to authenticate.
    if config.store == "memory" or config.auth == "none":
        return AnonymousTokenResolver()
    if config.auth == "env":
        return EnvTokenResolver()
    if config.auth == "token":
        return StaticTokenResolver(token=config.token or "")
    raise ConfigError(f"Unknown auth mode: {config.auth}")
