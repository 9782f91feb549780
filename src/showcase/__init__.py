"""
Showcase - statistics dashboard and realtime board feed.

Aggregates gallery projects, board posts, users and tech stacks from a
record store into cached dashboard snapshots, and mirrors store
collections into live filtered lists.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
