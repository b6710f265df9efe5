from __future__ import annotations


class ConfigurationError(Exception):
    """Raised when there is a problem loading or accessing configuration."""

class ConfigSourceError(ConfigurationError):
    """Raised when a configuration source cannot be read."""

class ValidationError(ConfigurationError):
    """Raised when there is a problem validating configuration."""

class MissingKeyError(ConfigurationError, KeyError):
    """Raised for an absent key when the configuration is asked to throw on missing keys."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message
        return ConfigurationError.__str__(self)

class ConversionError(ConfigurationError):
    """Raised when a property value cannot be converted to the requested type."""

class AmbiguousKeyError(ConfigurationError, ValueError):
    """Raised when a key must select exactly one node but selects none or several."""

class ConfigurationRuntimeError(ConfigurationError, RuntimeError):
    """Raised when the configuration tree is in an unexpected state."""
