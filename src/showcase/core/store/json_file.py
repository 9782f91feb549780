"""
JSON file record store.

Stores every collection in a single JSON file for local development and
small deployments. Writes are atomic; subscriptions poll the file.
"""

import asyncio
import copy
import json
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any

from showcase.core.config.models import StoreConfig

from .backend import Document, ErrorCallback, SnapshotCallback, Unsubscribe, register_store
from .errors import StoreUnknownError, classify_store_error
from .watch import CollectionWatcher


class DataFileCorruptedError(StoreUnknownError):
    """Raised when the data file is not a JSON object of collections."""


@register_store("json")
class JsonFileRecordStore:
    """
    Record store that uses one JSON file for storage.

    File format:
        {
            "posts": [{"id": "p1", "title": "...", ...}],
            "portfolios": [...],
            "statistics": [{"id": "visitors", "count": 42}]
        }

    A missing file reads as an empty store; it is created on first write.
    Parsed content is cached by mtime so polling an unchanged file is cheap.

    Example:
        >>> store = JsonFileRecordStore(Path("showcase-data.json"))
        >>> posts = await store.fetch_all("posts")
    """

    def __init__(self, path: Path, poll_interval: float = 2.0):
        """
        Initialize the JSON store.

        Args:
            path: Path to the data file
            poll_interval: Seconds between change checks for subscriptions
        """
        self.path = Path(path)
        self.poll_interval = poll_interval

        self._cache: dict[str, list[Document]] | None = None
        self._cache_mtime: float | None = None
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: StoreConfig) -> "JsonFileRecordStore":
        return cls(config.path, poll_interval=config.poll_interval)

    @property
    def store_name(self) -> str:
        return "json"

    def _load(self) -> dict[str, list[Document]]:
        """
        Load and parse the data file with caching.

        Raises:
            DataFileCorruptedError: If the JSON is invalid or has the wrong shape
            StoreError: If the file cannot be read
        """
        if not self.path.exists():
            self._cache = None
            self._cache_mtime = None
            return {}

        try:
            current_mtime = os.path.getmtime(self.path)
            if self._cache is not None and self._cache_mtime == current_mtime:
                return self._cache

            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise DataFileCorruptedError(f"Failed to parse {self.path}: {e}") from e
        except OSError as e:
            raise classify_store_error(e) from e

        if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
            raise DataFileCorruptedError(
                f"{self.path} must be a JSON object mapping collection names to lists"
            )

        self._cache = data
        self._cache_mtime = current_mtime
        return data

    def _save(self, data: dict[str, list[Document]]) -> None:
        """
        Save the data file atomically.

        Uses a temporary file and atomic rename so readers never see a
        partial write.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=".showcase_", suffix=".json.tmp"
        )

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
                f.write("\n")

            os.replace(temp_path, self.path)

            self._cache = None
            self._cache_mtime = None

        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def _read_collection(self, collection: str) -> list[Document]:
        return copy.deepcopy(self._load().get(collection, []))

    async def _mutate(self, mutate: Any) -> Any:
        async with self._write_lock:

            def run() -> Any:
                data = copy.deepcopy(self._load())
                result = mutate(data)
                self._save(data)
                return result

            try:
                return await asyncio.to_thread(run)
            except OSError as e:
                raise classify_store_error(e) from e

    @staticmethod
    def _find(data: dict[str, list[Document]], collection: str, doc_id: str) -> Document:
        for document in data.get(collection, []):
            if document.get("id") == doc_id:
                return document
        raise StoreUnknownError(f"No document {collection}/{doc_id}", code="not-found")

    async def fetch_all(self, collection: str) -> list[Document]:
        return await asyncio.to_thread(self._read_collection, collection)

    async def fetch_one(self, collection: str, doc_id: str) -> Document | None:
        for document in await self.fetch_all(collection):
            if document.get("id") == doc_id:
                return document
        return None

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
            name=f"{self.path.name}:{collection}",
        )
        return watcher.start()

    async def increment(self, collection: str, doc_id: str, field: str, delta: int = 1) -> None:
        def apply(data: dict[str, list[Document]]) -> None:
            document = self._find(data, collection, doc_id)
            current = document.get(field)
            document[field] = (current if isinstance(current, (int, float)) else 0) + delta

        await self._mutate(apply)

    async def add(self, collection: str, data: Document) -> str:
        doc_id = str(data.get("id") or uuid.uuid4().hex)

        def apply(stored: dict[str, list[Document]]) -> None:
            stored.setdefault(collection, []).append({**data, "id": doc_id})

        await self._mutate(apply)
        return doc_id

    async def update(self, collection: str, doc_id: str, data: Document) -> None:
        def apply(stored: dict[str, list[Document]]) -> None:
            document = self._find(stored, collection, doc_id)
            document.update({k: v for k, v in data.items() if k != "id"})

        await self._mutate(apply)

    async def delete(self, collection: str, doc_id: str) -> None:
        def apply(stored: dict[str, list[Document]]) -> None:
            documents = stored.get(collection, [])
            stored[collection] = [d for d in documents if d.get("id") != doc_id]

        await self._mutate(apply)
