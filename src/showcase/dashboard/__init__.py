"""
Terminal rendering for showcase using Rich.
"""

from showcase.dashboard.renderer import DashboardRenderer

__all__ = ["DashboardRenderer"]
