"""Factory for creating store instances.

Decouples store selection from store implementation: the CLI and SDK pick a
store by the configured name without importing concrete stores.
"""

from __future__ import annotations

from collections.abc import Callable

from tallysheet.config import TallysheetConfig
from tallysheet.contracts.exceptions import ConfigError
from tallysheet.contracts.store import RemoteStore
from tallysheet.stores.graphql import GraphQLStore
from tallysheet.stores.memory import InMemoryStore

StoreBuilder = Callable[[TallysheetConfig, str | None], RemoteStore]


def _build_memory(config: TallysheetConfig, token: str | None) -> RemoteStore:
    return InMemoryStore()


def _build_graphql(config: TallysheetConfig, token: str | None) -> RemoteStore:
    if not config.endpoint:
        raise ConfigError("graphql store requires an endpoint")
    return GraphQLStore(
        endpoint=config.endpoint,
        token=token,
        poll_interval=config.poll_interval,
        max_retries=config.max_retries,
    )


_REGISTRY: dict[str, StoreBuilder] = {
    "memory": _build_memory,
    "graphql": _build_graphql,
}


def register(name: str, builder: StoreBuilder) -> None:
    """Register a store builder by name."""
    _REGISTRY[name] = builder


def create_store(config: TallysheetConfig, token: str | None = None) -> RemoteStore:
    """Create the store named by ``config.store``.

    The returned store is an async context manager::

        async with create_store(config, token) as store:
            response = await store.list(RecordModel.TIMESHEET)

    Raises:
        ConfigError: If the store name is not registered.
    """
    builder = _REGISTRY.get(config.store)
    if builder is None:
        available = ", ".join(sorted(_REGISTRY)) or "(none registered)"
        raise ConfigError(f"Unknown store: {config.store!r}. Available: {available}")
    return builder(config, token)
