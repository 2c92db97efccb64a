"""Timing decorator used while resolving configuration."""
from __future__ import annotations

import functools
import time
from typing import Callable

from loguru import logger


def log_execution_time(logger_instance=logger, level: str = "DEBUG"):
    """Decorator to log function execution time.

    Args:
        logger_instance: Logger to use
        level: Log level name understood by loguru
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed = time.perf_counter() - start_time
                log_func = getattr(logger_instance, level.lower(), logger_instance.debug)
                log_func("{} executed in {:.3f}s", func.__name__, elapsed)
        return wrapper
    return decorator
