"""Custom exceptions for configuration management."""


class ConfigError(Exception):
    """Raised when docsort configuration cannot be read, merged, or validated."""
