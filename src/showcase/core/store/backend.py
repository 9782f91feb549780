"""
Record store protocol and registry.

This module defines the RecordStore protocol every store adapter must
implement, enabling pluggable backing stores (memory, JSON file, REST API).

Documents cross this boundary as plain dicts carrying an ``id`` key; typing
them into records is the caller's job (see showcase.core.records).
"""

import os
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from showcase.core.config.models import StoreConfig

Document = dict[str, Any]
SnapshotCallback = Callable[[list[Document]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class RecordStore(Protocol):
    """
    Protocol for record store implementations.

    Reads and writes are coroutines and may suspend the caller. Failures are
    raised as classified StoreError subclasses (see
    showcase.core.store.errors).

    Subscriptions:
    - deliver the full current document set on every change, never a delta
    - deliver the first snapshot asynchronously, after subscribe() returns
    - report failures to on_error; no further snapshots follow a failure
    """

    @property
    def store_name(self) -> str:
        """Backend name (e.g. 'memory', 'json', 'http')."""
        ...

    async def fetch_all(self, collection: str) -> list[Document]:
        """
        Fetch every document of a collection.

        Args:
            collection: Collection name (e.g. 'posts')

        Returns:
            Documents in store order

        Raises:
            StoreError: If the read fails
        """
        ...

    async def fetch_one(self, collection: str, doc_id: str) -> Document | None:
        """
        Fetch a single document.

        Returns:
            The document, or None if it does not exist
        """
        ...

    def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        """
        Watch a collection for changes.

        Args:
            collection: Collection name
            on_snapshot: Called with the full document set on every change
            on_error: Called once with the failure when the watch breaks

        Returns:
            Callable that releases the subscription (safe to call twice)
        """
        ...

    async def increment(self, collection: str, doc_id: str, field: str, delta: int = 1) -> None:
        """Atomically add ``delta`` to a numeric field (missing counts as 0)."""
        ...

    async def add(self, collection: str, data: Document) -> str:
        """Create a document and return its store-assigned id."""
        ...

    async def update(self, collection: str, doc_id: str, data: Document) -> None:
        """Merge ``data`` into an existing document."""
        ...

    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document (no-op if it does not exist)."""
        ...


# Store registry
_stores: dict[str, type] = {}


def register_store(name: str) -> Callable[[type], type]:
    """
    Decorator to register a record store implementation.

    Registered classes must provide a ``from_config(config)`` classmethod.

    Usage:
        @register_store('memory')
        class InMemoryRecordStore:
            ...

    Args:
        name: Store name (e.g. 'memory', 'json')

    Returns:
        Decorator function
    """

    def decorator(store_class: type) -> type:
        _stores[name] = store_class
        return store_class

    return decorator


def detect_store() -> str:
    """
    Pick a store backend when none was configured.

    Detection order:
    1. SHOWCASE_STORE environment variable (memory, json or http)
    2. SHOWCASE_STORE_URL set -> http
    3. Default to json

    Returns:
        Store name
    """
    store_env = os.environ.get("SHOWCASE_STORE", "").lower()
    if store_env in ("memory", "json", "http"):
        return store_env

    if os.environ.get("SHOWCASE_STORE_URL"):
        return "http"

    return "json"


def get_store(name: str | None = None, config: StoreConfig | None = None) -> RecordStore:
    """
    Build a record store by name or auto-detect.

    Args:
        name: Store name ('memory', 'json', 'http', or None for the
            configured/auto-detected backend)
        config: Store settings (defaults to StoreConfig())

    Returns:
        RecordStore instance

    Raises:
        ValueError: If the store name is not registered
    """
    if config is None:
        config = StoreConfig(backend=detect_store())
    if name is None:
        name = config.backend

    store_class = _stores.get(name)
    if store_class is None:
        raise ValueError(
            f"Store '{name}' not registered. Available stores: {', '.join(_stores.keys())}"
        )

    store: RecordStore = store_class.from_config(config)
    return store


def list_stores() -> list[str]:
    """List all registered store names."""
    return list(_stores.keys())
