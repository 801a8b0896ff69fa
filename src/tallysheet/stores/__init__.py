"""Store implementations."""

from tallysheet.stores.factory import create_store, register
from tallysheet.stores.graphql import GraphQLStore
from tallysheet.stores.memory import InMemoryStore, StoreOperation

__all__ = ["GraphQLStore", "InMemoryStore", "StoreOperation", "create_store", "register"]
