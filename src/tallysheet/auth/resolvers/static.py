"""Static and anonymous token resolvers."""

from __future__ import annotations

from dataclasses import dataclass

from tallysheet.auth.base import TokenResolver
from tallysheet.contracts.exceptions import AuthenticationError


@dataclass(frozen=True)
class StaticTokenResolver(TokenResolver):
    token: str

    async def resolve(self) -> str:
        resolved = self.token.strip()
        if not resolved:
            raise AuthenticationError("Static token is empty")
        return resolved


class AnonymousTokenResolver(TokenResolver):
    async def resolve(self) -> None:
        return None
