"""Core infrastructure: exception hierarchy and shared decorators."""
from __future__ import annotations

from .exceptions import (
    ConfigDeserializeError,
    ConfigError,
    ConfigFileError,
    ConfigParseError,
    ConfigPathError,
    FilterSyntaxError,
    LoggerAlreadyInitializedError,
    LoggerError,
    PathConversionError,
    ReloadError,
    SinkPathError,
    TierconfError,
)

__all__ = [
    "TierconfError",
    "ConfigError",
    "ConfigFileError",
    "ConfigPathError",
    "ConfigParseError",
    "ConfigDeserializeError",
    "LoggerError",
    "FilterSyntaxError",
    "SinkPathError",
    "ReloadError",
    "PathConversionError",
    "LoggerAlreadyInitializedError",
]
