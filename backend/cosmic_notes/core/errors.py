from __future__ import annotations

from typing import Any


class CosmicNotesError(Exception):
    """Base exception for the note organization pipeline."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CosmicNotesError):
    """Static configuration is wrong; retrying will not help."""


class UnknownCategoryError(ConfigurationError):
    """No synthesis strategy is registered for a category value."""

    def __init__(self, category: object) -> None:
        super().__init__(f"Unknown category: {category!r}", details={"category": str(category)})
        self.category = category


class ProviderError(CosmicNotesError):
    """An embedding or synthesis call failed or returned an unusable response."""


class PersistenceError(CosmicNotesError):
    """A store insert/update/delete failed."""


class NotFoundError(CosmicNotesError):
    """A referenced note, tag, cluster or to-do item does not exist."""
