"""Token resolver implementations."""

from tallysheet.auth.resolvers.env import EnvTokenResolver
from tallysheet.auth.resolvers.static import AnonymousTokenResolver, StaticTokenResolver

__all__ = ["AnonymousTokenResolver", "EnvTokenResolver", "StaticTokenResolver"]
