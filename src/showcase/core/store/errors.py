"""
Classified record-store failures.

Every failure coming out of a store is reduced to one of three kinds so the
layers above can decide what to show and whether a retry makes sense:

- permission: the store rejected the call because of its access rules
- connectivity: the store could not be reached (network, service down)
- unknown: anything else; the raw message is surfaced as a last resort

Example:
    >>> try:
    ...     await store.fetch_all("posts")
    ... except Exception as e:
    ...     err = classify_store_error(e)
    ...     print(err.kind, err.user_message())
"""

from enum import Enum

import httpx

# Error codes used by document store APIs and our adapters
PERMISSION_CODES = frozenset({"permission-denied", "unauthenticated"})
CONNECTIVITY_CODES = frozenset({"unavailable", "deadline-exceeded"})

# HTTP statuses that mean "could not reach a healthy backend"
CONNECTIVITY_STATUSES = frozenset({502, 503, 504})
PERMISSION_STATUSES = frozenset({401, 403})


class FailureKind(str, Enum):
    """Classification of a store failure."""

    PERMISSION = "permission"
    CONNECTIVITY = "connectivity"
    UNKNOWN = "unknown"


class StoreError(Exception):
    """
    Base exception for classified store failures.

    Attributes:
        kind: Failure classification
        message: Raw message from the store or transport
        code: Optional store error code (e.g. "permission-denied")
    """

    kind: FailureKind = FailureKind.UNKNOWN

    def __init__(self, message: str, *, code: str | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Whether offering the user a retry makes sense."""
        return self.kind is FailureKind.CONNECTIVITY

    def user_message(self) -> str:
        """Human-readable explanation with guidance."""
        return f"Unexpected store error: {self.message or 'unknown error'}"


class StorePermissionError(StoreError):
    """The store rejected the read or write because of its access rules."""

    kind = FailureKind.PERMISSION

    def user_message(self) -> str:
        return (
            f"Access to the record store was denied ({self.message}). "
            "Check the backend access rules and credentials."
        )


class StoreConnectivityError(StoreError):
    """The store could not be reached."""

    kind = FailureKind.CONNECTIVITY

    def user_message(self) -> str:
        return (
            f"Could not connect to the record store ({self.message}). "
            "Check your network connection and retry."
        )


class StoreUnknownError(StoreError):
    """Any other store failure."""

    kind = FailureKind.UNKNOWN


_KIND_TO_ERROR: dict[FailureKind, type[StoreError]] = {
    FailureKind.PERMISSION: StorePermissionError,
    FailureKind.CONNECTIVITY: StoreConnectivityError,
    FailureKind.UNKNOWN: StoreUnknownError,
}


def _kind_from_code(code: str | None) -> FailureKind | None:
    if not code:
        return None
    normalized = code.lower().removeprefix("firestore/")
    if normalized in PERMISSION_CODES:
        return FailureKind.PERMISSION
    if normalized in CONNECTIVITY_CODES:
        return FailureKind.CONNECTIVITY
    return None


def _kind_from_status(status_code: int) -> FailureKind:
    if status_code in PERMISSION_STATUSES:
        return FailureKind.PERMISSION
    if status_code in CONNECTIVITY_STATUSES:
        return FailureKind.CONNECTIVITY
    return FailureKind.UNKNOWN


def error_for_kind(kind: FailureKind, message: str, *, code: str | None = None) -> StoreError:
    """Build the StoreError subclass matching a failure kind."""
    return _KIND_TO_ERROR[kind](message, code=code)


def classify_store_error(exc: BaseException) -> StoreError:
    """
    Reduce any exception raised by a store call to a classified StoreError.

    Already-classified errors are returned unchanged. Otherwise the
    classification looks, in order, at a ``code`` attribute, httpx
    transport/status errors, and the builtin OS error types.

    Args:
        exc: Exception raised by a store call

    Returns:
        StoreError subclass describing the failure

    Example:
        >>> classify_store_error(ConnectionRefusedError("refused")).kind
        <FailureKind.CONNECTIVITY: 'connectivity'>
    """
    if isinstance(exc, StoreError):
        return exc

    message = str(exc) or exc.__class__.__name__
    code = getattr(exc, "code", None)
    code = code if isinstance(code, str) else None

    kind = _kind_from_code(code)
    if kind is None:
        if isinstance(exc, httpx.HTTPStatusError):
            kind = _kind_from_status(exc.response.status_code)
        elif isinstance(exc, httpx.TransportError):
            kind = FailureKind.CONNECTIVITY
        elif isinstance(exc, PermissionError):
            kind = FailureKind.PERMISSION
        elif isinstance(exc, (ConnectionError, TimeoutError)):
            kind = FailureKind.CONNECTIVITY
        else:
            kind = FailureKind.UNKNOWN

    return error_for_kind(kind, message, code=code)
