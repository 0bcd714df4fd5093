"""Errors raised by the cleaner. The CLI decides which of them are fatal."""

from typing import Optional


class CleanerError(Exception):
    """Base class for all cleaner errors."""


class InvalidDurationError(CleanerError, ValueError):
    """A duration argument does not follow the `1h30m` grammar."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"invalid duration {value!r}")


class ConfigError(CleanerError):
    """The logging config file is unreadable or malformed."""


class DaemonError(CleanerError):
    """A call to the Docker daemon failed."""

    def __init__(self, message: str, identifier: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message)


class DaemonConnectionError(DaemonError):
    """The Docker daemon could not be reached."""
