"""Authentication token resolution."""

from tallysheet.auth.base import TokenResolver
from tallysheet.auth.factory import create_token_resolver

__all__ = ["TokenResolver", "create_token_resolver"]
