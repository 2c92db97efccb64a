"""Custom exception hierarchy for configuration loading and log routing."""
from __future__ import annotations

from typing import Optional


class TierconfError(Exception):
    """Base exception for all tierconf errors."""
    pass


class ConfigError(TierconfError):
    """Raised when a configuration document cannot be turned into a typed instance."""
    pass


class ConfigFileError(ConfigError):
    """Raised when a configuration file is missing or unreadable."""

    def __init__(self, path, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"failed to open config file: {path}")


class ConfigPathError(ConfigError):
    """Raised when a configuration path has no file name component."""
    pass


class ConfigParseError(ConfigError):
    """Raised when a configuration document is not valid YAML."""
    pass


class ConfigDeserializeError(ConfigError):
    """Raised when a document does not match the target dataclass.

    Attributes:
        reason: Structural error text (what was expected and found)
        line: 1-based line of the offending node, or None when unknown
        context: Rendered window of the substituted document around ``line``
    """

    def __init__(self, reason: str, line: Optional[int] = None, context: str = ""):
        self.reason = reason
        self.line = line
        self.context = context
        super().__init__(reason)

    def __str__(self) -> str:
        if self.context:
            return self.context
        return self.reason


class LoggerError(TierconfError):
    """Raised when log routing cannot be set up or changed."""
    pass


class FilterSyntaxError(LoggerError):
    """Raised when a filter directive carries an unknown level."""
    pass


class SinkPathError(LoggerError):
    """Raised when a log file prefix cannot be split into directory and file name."""
    pass


class ReloadError(LoggerError):
    """Raised when a new filter cannot be installed."""
    pass


class PathConversionError(LoggerError):
    """Raised when a configured path value cannot be rendered as text."""
    pass


class LoggerAlreadyInitializedError(LoggerError):
    """Raised when a second logger is initialized while one is live."""
    pass
