"""tierconf: layered YAML configuration and multi-sink log routing.

Typical bootstrap:

    params = load_logger_params(read_embedded("myapp", "logger.yml"), "logger.yml", env="LOGGER_CONFIG")
    with Logger.init(params):
        settings = load_layered(Settings, read_embedded("myapp", "config.yml"), "config.yml")
"""
from __future__ import annotations

from tierconf.config import (
    load_env,
    load_layered,
    load_path,
    load_str,
    merge,
    read_embedded,
    resolve_tree,
    section_name,
)
from tierconf.core import (
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
from tierconf.logger import Logger, LoggerParams, active_logger, compile_filter, load_logger_params

__version__ = "0.1.0"

__all__ = [
    "load_str",
    "load_path",
    "load_env",
    "resolve_tree",
    "merge",
    "load_layered",
    "read_embedded",
    "section_name",
    "Logger",
    "LoggerParams",
    "active_logger",
    "compile_filter",
    "load_logger_params",
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
