"""Bridge from the stdlib ``logging`` module into loguru.

Records keep their stdlib logger name as target, so directives and
``add_filter`` substrings apply to third-party libraries as well.
"""
from __future__ import annotations

import logging
from typing import Optional

from loguru import logger


class InterceptHandler(logging.Handler):
    """Re-emit stdlib records through loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # find the caller that issued the stdlib call
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(target=record.name).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


class StdLoggingBridge:
    """Attaches an InterceptHandler to the root logger and detaches it again."""

    def __init__(self) -> None:
        self._handler: Optional[InterceptHandler] = None
        self._previous_level: int = logging.WARNING

    @property
    def installed(self) -> bool:
        return self._handler is not None

    def install(self) -> None:
        if self._handler is not None:
            return
        root = logging.getLogger()
        self._previous_level = root.level
        self._handler = InterceptHandler()
        root.addHandler(self._handler)
        # level decisions belong to the tierconf filter
        root.setLevel(logging.NOTSET)

    def uninstall(self) -> None:
        if self._handler is None:
            return
        root = logging.getLogger()
        root.removeHandler(self._handler)
        root.setLevel(self._previous_level)
        self._handler = None
