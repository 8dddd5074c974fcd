"""Exceptions raised by briefbot outside the per-turn path."""

from typing import List


class BriefbotError(Exception):
    """Base class for briefbot errors."""


class CatalogValidationError(BriefbotError):
    """A question catalog file exists but does not match the schema."""

    def __init__(self, path: str, errors: List[str]):
        self.path = path
        self.errors = errors
        details = "; ".join(errors[:5])
        super().__init__(f"Invalid question catalog {path}: {details}")


class SessionNotFoundError(BriefbotError):
    """No cached or persisted session exists for the given id."""
