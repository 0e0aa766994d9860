"""
Error types raised by the review engine.

Store backends raise StoreError for I/O failures; the session controller
lets every store error bubble to its caller unchanged.
"""

from __future__ import annotations


class ReviewEngineError(Exception):
    """Base class for all review engine errors."""

    pass


class ValidationError(ReviewEngineError):
    """Raised when caller input cannot be normalised into a valid value."""

    pass


class NotFoundError(ReviewEngineError):
    """Raised when a referenced item or schedule entry does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class StoreError(ReviewEngineError):
    """Raised when a store backend fails to read or write."""

    pass


class IntegrityError(ReviewEngineError):
    """Raised when an active item has no schedule entry."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Active item has no schedule entry: {item_id}")
