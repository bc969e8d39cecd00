"""Exceptions raised by the vocabulary services."""
from typing import Optional


class VocabDrillError(Exception):
    """Base exception for all application errors."""


class RepositoryError(VocabDrillError):
    """Raised when the item store cannot complete an operation."""

    def __init__(self, operation: str, message: str, item_id: Optional[str] = None):
        self.operation = operation
        self.item_id = item_id
        super().__init__(f"{operation} failed: {message}")


class ItemNotFoundError(VocabDrillError):
    """Raised when an item cannot be found."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item {item_id} not found")


class InvalidItemError(VocabDrillError):
    """Raised when an item record breaks the data model rules."""


class ContentGenerationError(VocabDrillError):
    """Raised when translations or examples cannot be generated."""


class SessionStateError(VocabDrillError):
    """Raised when a session operation is not allowed in the current phase."""
