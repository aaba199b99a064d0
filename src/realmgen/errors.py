"""Exceptions raised by the generator."""


class ConfigurationError(ValueError):
    """A map configuration failed validation before generation started."""
