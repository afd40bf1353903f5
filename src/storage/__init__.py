"""
In-memory storage for detection results.
"""

from .history import DEFAULT_CAPACITY, ResultHistory

__all__ = ["DEFAULT_CAPACITY", "ResultHistory"]
