"""
In-process record store.

Keeps every collection in a dict and pushes the full collection to
subscribers after each write. Used by the test-suite and for demos; data is
lost when the process exits.
"""

import asyncio
import copy
import uuid
from collections.abc import Mapping
from typing import Any

from showcase.core.config.models import StoreConfig

from .backend import Document, ErrorCallback, SnapshotCallback, Unsubscribe, register_store
from .errors import StoreUnknownError, classify_store_error


class _Subscription:
    def __init__(self, collection: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback):
        self.collection = collection
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.active = True


@register_store("memory")
class InMemoryRecordStore:
    """
    Record store backed by a dict of collections.

    Every read returns deep copies so callers can never mutate stored state.
    A failure can be injected per collection with ``set_failure``; reads
    then raise it and open subscriptions receive it through ``on_error``.

    Example:
        >>> store = InMemoryRecordStore({"posts": [{"id": "p1", "title": "Hi"}]})
        >>> await store.fetch_all("posts")
        [{'id': 'p1', 'title': 'Hi'}]
    """

    def __init__(self, data: Mapping[str, list[Document]] | None = None):
        self._collections: dict[str, dict[str, Document]] = {}
        self._subscriptions: list[_Subscription] = []
        self._failures: dict[str, Exception] = {}
        for collection, documents in (data or {}).items():
            self._collections[collection] = {
                str(doc["id"]): copy.deepcopy(dict(doc)) for doc in documents
            }

    @classmethod
    def from_config(cls, config: StoreConfig) -> "InMemoryRecordStore":
        return cls()

    @property
    def store_name(self) -> str:
        return "memory"

    def set_failure(self, collection: str, error: Exception | None) -> None:
        """
        Make every access to ``collection`` fail with ``error``.

        Passing None clears the failure. Open subscriptions on the collection
        are notified and released.
        """
        if error is None:
            self._failures.pop(collection, None)
            return
        self._failures[collection] = error
        for sub in self._subscriptions:
            if sub.active and sub.collection == collection:
                sub.active = False
                self._schedule(sub.on_error, error)
        self._subscriptions = [s for s in self._subscriptions if s.active]

    def _check(self, collection: str) -> None:
        if (error := self._failures.get(collection)) is not None:
            classified = classify_store_error(error)
            if classified is error:
                raise classified
            raise classified from error

    def _snapshot(self, collection: str) -> list[Document]:
        return copy.deepcopy(list(self._collections.get(collection, {}).values()))

    def _schedule(self, callback: Any, *args: Any) -> None:
        asyncio.get_running_loop().call_soon(callback, *args)

    def _notify(self, collection: str) -> None:
        for sub in self._subscriptions:
            if sub.collection == collection:
                self._schedule(self._deliver, sub, self._snapshot(collection))

    @staticmethod
    def _deliver(sub: _Subscription, documents: list[Document]) -> None:
        if sub.active:
            sub.on_snapshot(documents)

    def _require(self, collection: str, doc_id: str) -> Document:
        document = self._collections.get(collection, {}).get(doc_id)
        if document is None:
            raise StoreUnknownError(f"No document {collection}/{doc_id}", code="not-found")
        return document

    async def fetch_all(self, collection: str) -> list[Document]:
        self._check(collection)
        return self._snapshot(collection)

    async def fetch_one(self, collection: str, doc_id: str) -> Document | None:
        self._check(collection)
        document = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        sub = _Subscription(collection, on_snapshot, on_error)

        if (error := self._failures.get(collection)) is not None:
            sub.active = False
            self._schedule(on_error, error)
        else:
            self._subscriptions.append(sub)
            self._schedule(self._deliver, sub, self._snapshot(collection))

        def unsubscribe() -> None:
            sub.active = False
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

        return unsubscribe

    async def increment(self, collection: str, doc_id: str, field: str, delta: int = 1) -> None:
        self._check(collection)
        document = self._require(collection, doc_id)
        current = document.get(field)
        document[field] = (current if isinstance(current, (int, float)) else 0) + delta
        self._notify(collection)

    async def add(self, collection: str, data: Document) -> str:
        self._check(collection)
        doc_id = str(data.get("id") or uuid.uuid4().hex)
        self._collections.setdefault(collection, {})[doc_id] = {
            **copy.deepcopy(dict(data)),
            "id": doc_id,
        }
        self._notify(collection)
        return doc_id

    async def update(self, collection: str, doc_id: str, data: Document) -> None:
        self._check(collection)
        document = self._require(collection, doc_id)
        document.update({k: copy.deepcopy(v) for k, v in data.items() if k != "id"})
        self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._check(collection)
        if self._collections.get(collection, {}).pop(doc_id, None) is not None:
            self._notify(collection)
