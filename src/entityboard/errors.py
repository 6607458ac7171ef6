class EntityboardError(Exception):
    """Base class for entityboard errors."""


class FetchError(EntityboardError):
    """The remote entity could not be fetched (network, auth, not found)."""


class FormatError(EntityboardError):
    """State and attributes could not be composed into display text."""


class ConfigError(EntityboardError):
    """A required widget configuration field is missing."""
