"""
Tests for store error classification.
"""

import httpx
import pytest

from showcase.core.store import (
    FailureKind,
    StoreConnectivityError,
    StoreError,
    StorePermissionError,
    StoreUnknownError,
    classify_store_error,
)


class CodedError(Exception):
    """Exception carrying a document-store style error code."""

    def __init__(self, code, message: str = "failed"):
        super().__init__(message)
        self.code = code


def http_status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://docs.test/posts")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("bad status", request=request, response=response)


class TestClassifyStoreError:
    """Test classify_store_error."""

    @pytest.mark.parametrize(
        ("code", "kind"),
        [
            ("permission-denied", FailureKind.PERMISSION),
            ("unauthenticated", FailureKind.PERMISSION),
            ("firestore/permission-denied", FailureKind.PERMISSION),
            ("unavailable", FailureKind.CONNECTIVITY),
            ("deadline-exceeded", FailureKind.CONNECTIVITY),
            ("UNAVAILABLE", FailureKind.CONNECTIVITY),
            ("internal", FailureKind.UNKNOWN),
        ],
    )
    def test_codes(self, code, kind):
        error = classify_store_error(CodedError(code))
        assert error.kind is kind
        assert error.code == code

    def test_non_string_code_ignored(self):
        error = classify_store_error(CodedError(7))
        assert error.kind is FailureKind.UNKNOWN
        assert error.code is None

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (401, StorePermissionError),
            (403, StorePermissionError),
            (503, StoreConnectivityError),
            (500, StoreUnknownError),
            (400, StoreUnknownError),
        ],
    )
    def test_http_status(self, status_code, expected):
        assert type(classify_store_error(http_status_error(status_code))) is expected

    def test_http_transport_error(self):
        request = httpx.Request("GET", "https://docs.test/posts")
        error = classify_store_error(httpx.ReadTimeout("timed out", request=request))
        assert isinstance(error, StoreConnectivityError)

    @pytest.mark.parametrize(
        ("exc", "kind"),
        [
            (PermissionError("nope"), FailureKind.PERMISSION),
            (ConnectionResetError("reset"), FailureKind.CONNECTIVITY),
            (TimeoutError("slow"), FailureKind.CONNECTIVITY),
            (ValueError("weird"), FailureKind.UNKNOWN),
        ],
    )
    def test_builtin_errors(self, exc, kind):
        assert classify_store_error(exc).kind is kind

    def test_already_classified_returned_unchanged(self):
        error = StorePermissionError("denied")
        assert classify_store_error(error) is error

    def test_empty_message_uses_class_name(self):
        assert classify_store_error(RuntimeError()).message == "RuntimeError"


class TestStoreErrorMessages:
    """Test user-facing guidance and retry hints."""

    def test_permission_guidance(self):
        error = StorePermissionError("missing rule")
        assert "access rules" in error.user_message()
        assert "missing rule" in error.user_message()
        assert error.retryable is False

    def test_connectivity_guidance(self):
        error = StoreConnectivityError("offline")
        assert "network" in error.user_message()
        assert error.retryable is True

    def test_unknown_shows_raw_message(self):
        error = StoreUnknownError("disk full")
        assert "disk full" in error.user_message()
        assert error.retryable is False

    def test_all_are_store_errors(self):
        for cls in (StorePermissionError, StoreConnectivityError, StoreUnknownError):
            assert issubclass(cls, StoreError)
