"""
Dashboard failure types.
"""

from showcase.core.store.errors import StoreError


class DashboardError(Exception):
    """
    The dashboard could not be assembled.

    Raised when the project slice fails: every other slice's percentages key
    off the project collection, so a dashboard without it is wrong rather
    than incomplete.

    Attributes:
        cause: Classified store failure behind the error
    """

    def __init__(self, cause: StoreError):
        self.cause = cause
        super().__init__(f"Failed to load dashboard statistics: {cause.message}")

    def user_message(self) -> str:
        return self.cause.user_message()


class DegradedSliceError(Exception):
    """
    A non-project statistics slice failed to load.

    Caught by the cache, which substitutes the slice's zero value.
    """

    def __init__(self, slice_name: str, cause: StoreError):
        self.slice_name = slice_name
        self.cause = cause
        super().__init__(f"{slice_name} statistics unavailable: {cause.message}")
