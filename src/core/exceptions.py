"""
propstore - Custom Exceptions

All store failures are reported as ConfigError. Names end with "Error"
and do not shadow built-in exception names.
"""

from __future__ import annotations


class PropertyStoreError(Exception):
    """Base exception for propstore.

    All custom exceptions inherit from this base class.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class ConfigError(PropertyStoreError):
    """Raised when the configuration store cannot fulfil a request.

    This exception is raised in scenarios such as:
    - Missing path or stream argument
    - Property file does not exist or is not readable
    - I/O failures while loading or saving
    - Malformed ``key=value`` expression or property-file escape
    - Integer value that cannot be parsed
    - Missing mandatory key

    Underlying failures are chained via ``raise ... from err``.
    """
