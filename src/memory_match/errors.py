from __future__ import annotations


class MemoryMatchError(Exception):
    """Base exception for the memory match core."""


class InvalidGridError(MemoryMatchError, ValueError):
    """Raised when a grid cannot hold a whole number of card pairs."""


class InsufficientContentError(MemoryMatchError, ValueError):
    """Raised when fewer playable items are supplied than the round has pairs."""


class SettingsError(MemoryMatchError):
    """Raised when a settings file cannot be read or has the wrong shape."""


class RecommendationUnavailable(MemoryMatchError):
    """Raised by recommendation sources that cannot produce a level."""


class RemoteServiceError(RecommendationUnavailable):
    """Raised when the remote difficulty service answers with a server error."""
