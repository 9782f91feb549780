"""Utility modules for showcase."""

from .clock import Clock, utc_now
from .project import find_project_root

__all__ = [
    "Clock",
    "find_project_root",
    "utc_now",
]
