"""
REST document API record store.

Talks to a document service over HTTP with httpx:

    GET    /{collection}                 -> list of documents
    GET    /{collection}/{id}            -> document (404 when missing)
    POST   /{collection}                 -> {"id": ...}
    PATCH  /{collection}/{id}
    DELETE /{collection}/{id}
    POST   /{collection}/{id}:increment  <- {"field": ..., "delta": ...}

The service has no push channel, so subscriptions poll.
"""

import logging
from typing import Any

import httpx

from showcase.core.config.models import StoreConfig

from .backend import Document, ErrorCallback, SnapshotCallback, Unsubscribe, register_store
from .errors import StoreUnknownError, classify_store_error
from .watch import CollectionWatcher

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@register_store("http")
class HttpRecordStore:
    """
    Record store backed by a REST document API.

    Transport failures and 502/503/504 classify as connectivity errors,
    401/403 as permission errors, anything else as unknown.

    Example:
        >>> store = HttpRecordStore("https://docs.example.com/v1", token="...")
        >>> posts = await store.fetch_all("posts")
        >>> await store.aclose()
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        poll_interval: float = 2.0,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the HTTP store.

        Args:
            base_url: API root, e.g. https://docs.example.com/v1
            token: Optional bearer token
            poll_interval: Seconds between change checks for subscriptions
            client: Pre-built client (tests pass one with a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url, headers=headers, timeout=DEFAULT_TIMEOUT
        )

    @classmethod
    def from_config(cls, config: StoreConfig) -> "HttpRecordStore":
        if not config.base_url:
            raise ValueError("The http store needs store.base_url (or SHOWCASE_STORE_URL)")
        return cls(config.base_url, token=config.token, poll_interval=config.poll_interval)

    @property
    def store_name(self) -> str:
        return "http"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise classify_store_error(e) from e
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise StoreUnknownError(f"Invalid JSON from {response.request.url}: {e}") from e

    async def fetch_all(self, collection: str) -> list[Document]:
        payload = self._json(await self._request("GET", f"/{collection}"))
        # Accept a bare list or {"documents": [...]}
        if isinstance(payload, dict):
            payload = payload.get("documents", [])
        if not isinstance(payload, list):
            raise StoreUnknownError(f"Expected a list of documents for {collection}")
        return [doc for doc in payload if isinstance(doc, dict)]

    async def fetch_one(self, collection: str, doc_id: str) -> Document | None:
        try:
            response = await self._client.get(f"/{collection}/{doc_id}")
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise classify_store_error(e) from e
        document = self._json(response)
        return document if isinstance(document, dict) else None

    def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        watcher = CollectionWatcher(
            fetch=lambda: self.fetch_all(collection),
            on_snapshot=on_snapshot,
            on_error=on_error,
            poll_interval=self.poll_interval,
            name=f"{self.base_url}/{collection}",
        )
        return watcher.start()

    async def increment(self, collection: str, doc_id: str, field: str, delta: int = 1) -> None:
        await self._request(
            "POST", f"/{collection}/{doc_id}:increment", json={"field": field, "delta": delta}
        )

    async def add(self, collection: str, data: Document) -> str:
        payload = self._json(await self._request("POST", f"/{collection}", json=data))
        if not isinstance(payload, dict) or not payload.get("id"):
            raise StoreUnknownError(f"Create in {collection} returned no id")
        logger.debug("Created %s/%s", collection, payload["id"])
        return str(payload["id"])

    async def update(self, collection: str, doc_id: str, data: Document) -> None:
        await self._request("PATCH", f"/{collection}/{doc_id}", json=data)

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            response = await self._client.delete(f"/{collection}/{doc_id}")
            if response.status_code != 404:
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise classify_store_error(e) from e
