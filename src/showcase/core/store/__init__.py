"""
Record store protocol, adapters and error classification.

Importing this package registers the built-in adapters (memory, json, http).
"""

from .backend import (
    Document,
    ErrorCallback,
    RecordStore,
    SnapshotCallback,
    Unsubscribe,
    detect_store,
    get_store,
    list_stores,
    register_store,
)
from .errors import (
    FailureKind,
    StoreConnectivityError,
    StoreError,
    StorePermissionError,
    StoreUnknownError,
    classify_store_error,
)
from .http import HttpRecordStore
from .json_file import DataFileCorruptedError, JsonFileRecordStore
from .memory import InMemoryRecordStore
from .watch import CollectionWatcher

__all__ = [
    # Protocol and registry
    "Document",
    "ErrorCallback",
    "RecordStore",
    "SnapshotCallback",
    "Unsubscribe",
    "detect_store",
    "get_store",
    "list_stores",
    "register_store",
    # Errors
    "DataFileCorruptedError",
    "FailureKind",
    "StoreConnectivityError",
    "StoreError",
    "StorePermissionError",
    "StoreUnknownError",
    "classify_store_error",
    # Adapters
    "CollectionWatcher",
    "HttpRecordStore",
    "InMemoryRecordStore",
    "JsonFileRecordStore",
]
