"""Multi-sink log routing on top of loguru.

Main components:
- params.py: typed logging parameters
- filter.py: default level + per-target directives, reloadable handle
- router.py: sink planning and include/exclude target routing
- intercept.py: stdlib ``logging`` bridge
- logger.py: the process-wide Logger handle
"""
from __future__ import annotations

from .filter import Directive, FilterHandle, LevelFilter, compile_filter, parse_level
from .logger import Logger, active_logger
from .params import LOGGER_SECTION, LoggerParams, load_logger_params
from .router import Route, SinkPlan, event_target, plan_sinks, split_prefix

__all__ = [
    "Logger",
    "active_logger",
    "LoggerParams",
    "LOGGER_SECTION",
    "load_logger_params",
    "Directive",
    "LevelFilter",
    "FilterHandle",
    "compile_filter",
    "parse_level",
    "Route",
    "SinkPlan",
    "plan_sinks",
    "split_prefix",
    "event_target",
]
