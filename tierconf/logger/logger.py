"""Process-wide log pipeline built on loguru.

``Logger.init`` replaces loguru's handlers with the sinks planned by the
router, each gated by the shared reloadable filter. File sinks are added
with ``enqueue=True``: records are handed to a background writer thread
over an unbounded queue, so callers never block on disk I/O and records
are not dropped while the process runs. ``shutdown`` removes the sinks,
which drains the queues, joins the writers and closes the files.

Only one Logger can be live at a time; a second ``init`` raises until the
first has been shut down. Shutting down twice is an error.
"""
from __future__ import annotations

import sys
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from loguru import logger

from tierconf.core.exceptions import LoggerAlreadyInitializedError, LoggerError, SinkPathError
from tierconf.logger.filter import FilterHandle, compile_filter
from tierconf.logger.intercept import StdLoggingBridge
from tierconf.logger.params import LoggerParams
from tierconf.logger.router import SinkPlan, event_target, plan_sinks

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSSSSS} {level: <8} [{thread.name}] "
    "{extra[target]}:{line}: {message}"
)
STDERR_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <8}</level> [{thread.name}] "
    "<cyan>{extra[target]}</cyan>:{line}: <level>{message}</level>"
)
ROTATION = "00:00"

_registry_lock = threading.Lock()
_active: Optional["Logger"] = None


def active_logger() -> Optional["Logger"]:
    """The live Logger, if any."""
    return _active


def _tag_target(record: Dict[str, Any]) -> None:
    record["extra"].setdefault("target", record["name"] or "")


class Logger:
    """Handle over the live log pipeline.

    Owns the loguru sink ids, the filter handle and the stdlib bridge.
    Use ``Logger.init`` to create one.
    """

    def __init__(
        self,
        handle: FilterHandle,
        plans: List[SinkPlan],
        sink_ids: List[int],
        bridge: StdLoggingBridge,
        span_timings: bool = False,
    ):
        self._handle = handle
        self._plans = list(plans)
        self._sink_ids = list(sink_ids)
        self._bridge = bridge
        self._span_timings = span_timings
        self._closed = False

    @classmethod
    def init(cls, params: LoggerParams, base_dir: Optional[Path] = None) -> "Logger":
        """Build the pipeline for ``params`` and make it the process's log destination.

        Args:
            params: Logging parameters
            base_dir: Directory relative log prefixes resolve against (default: cwd)

        Raises:
            LoggerAlreadyInitializedError: If another Logger is live
            FilterSyntaxError: If a level in ``params`` is unknown
            SinkPathError: If a log file prefix is unusable
            PathConversionError: If a log file prefix is not path-like
        """
        global _active

        with _registry_lock:
            if _active is not None:
                raise LoggerAlreadyInitializedError(
                    "a logger is already initialized for this process; shut it down first"
                )

            # everything that can fail on bad params happens before global state changes
            handle = FilterHandle(compile_filter(params.default_level, params.directives()))
            plans = plan_sinks(params, base_dir)
            _try_open_file_sinks(plans)

            logger.remove()
            logger.configure(patcher=_tag_target)

            sink_ids: List[int] = []
            try:
                for plan in plans:
                    sink_ids.append(_add_sink(plan, handle))
            except OSError as e:
                for sink_id in sink_ids:
                    logger.remove(sink_id)
                # the old handlers are gone; fall back to loguru's default stderr sink
                logger.add(sys.stderr)
                raise SinkPathError(f"cannot open log file: {e}") from e

            bridge = StdLoggingBridge()
            if params.capture_std_logging:
                bridge.install()

            instance = cls(handle, plans, sink_ids, bridge, params.span_timings)
            _active = instance

        if params.log_file_prefix is not None:
            logger.info("Started logging to file {}", params.log_file_prefix)
        else:
            logger.info("Started logging")
        return instance

    @property
    def plans(self) -> List[SinkPlan]:
        return list(self._plans)

    @property
    def filter_handle(self) -> FilterHandle:
        return self._handle

    @property
    def closed(self) -> bool:
        return self._closed

    def reload(self, params: LoggerParams) -> None:
        """Swap in the filter described by ``params``; sinks are kept.

        Raises:
            FilterSyntaxError: If a level is unknown (the old filter stays active)
            ReloadError: If the logger has been shut down
        """
        new_filter = compile_filter(params.default_level, params.directives())
        self._handle.reload(new_filter)
        logger.debug("Log filter reloaded: {!r}", new_filter)

    @contextmanager
    def span(self, name: str) -> Iterator[None]:
        """Log enter and close of a unit of work with its duration, when span timings are on."""
        if not self._span_timings:
            yield
            return

        start = time.perf_counter()
        logger.opt(depth=2).trace("{}: enter", name)
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            logger.opt(depth=2).trace("{}: close time.busy={:.3f}ms", name, elapsed * 1000)

    def shutdown(self) -> None:
        """Flush and close every sink and release the process-wide slot.

        Raises:
            LoggerError: If called a second time
        """
        global _active

        with _registry_lock:
            if self._closed:
                raise LoggerError("logger has already been shut down")
            self._closed = True

            self._handle.close()
            self._bridge.uninstall()
            for sink_id in self._sink_ids:
                logger.remove(sink_id)
            self._sink_ids.clear()

            if _active is self:
                _active = None

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._closed:
            self.shutdown()


def _try_open_file_sinks(plans: List[SinkPlan]) -> None:
    """Open each planned file once, keeping the current handlers if one fails.

    Raises:
        SinkPathError: If a log file cannot be created
    """
    opened: List[int] = []
    try:
        for plan in plans:
            if plan.is_file:
                opened.append(logger.add(plan.file_pattern(), filter=lambda record: False, encoding="utf-8"))
    except OSError as e:
        raise SinkPathError(f"cannot open log file: {e}") from e
    finally:
        for sink_id in opened:
            logger.remove(sink_id)


def _add_sink(plan: SinkPlan, handle: FilterHandle) -> int:
    def accept(record: Dict[str, Any]) -> bool:
        target = event_target(record)
        return plan.accepts(target) and handle.enabled(target, record["level"].no)

    if plan.is_file:
        return logger.add(
            plan.file_pattern(),
            format=FILE_FORMAT,
            filter=accept,
            level=0,
            rotation=ROTATION,
            enqueue=True,
            colorize=False,
            encoding="utf-8",
        )
    return logger.add(sys.stderr, format=STDERR_FORMAT, filter=accept, level=0)
