"""
HTTP API for showcase (FastAPI).
"""

from showcase.api.app import ErrorCode, create_app

__all__ = ["ErrorCode", "create_app"]
