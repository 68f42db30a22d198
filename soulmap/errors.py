"""Exception types raised across the SoulMap backend."""

from __future__ import annotations


class SoulMapError(Exception):
    """Base class for all application errors."""


class InvalidRequestError(SoulMapError, ValueError):
    """A finish request is missing required input or is malformed."""


class EmbeddingError(SoulMapError):
    """The embedding API answered without a usable vector."""


class GraphMergeError(SoulMapError):
    """A graph merge transaction failed and was rolled back."""


class EntryNotFoundError(SoulMapError, LookupError):
    """No journal entry exists with the requested id."""
