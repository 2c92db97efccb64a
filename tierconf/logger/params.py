"""Typed logging parameters, read from the ``logger`` section of a document."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tierconf.config.layered import load_layered, read_embedded
from tierconf.config.loader import PathLike

LOGGER_SECTION = "logger"
DEFAULT_LOGGER_RESOURCE = "default_logger.yml"


@dataclass(frozen=True)
class LoggerParams:
    """Logger parameters.

    Attributes:
        default_level: Level for targets no directive matches
        log_file_prefix: Path of the primary log file; the file name is
            suffixed with the current date. Logs go to stderr when unset.
        add_log_file_prefix: Path of the additional log file
        filter: Ordered ``target -> level`` directives
        add_filter: Target substrings diverted to the additional file
        span_timings: Log enter/close events with timings for spans
        capture_std_logging: Route records of the stdlib ``logging`` module too
    """
    default_level: str
    log_file_prefix: Optional[Path] = None
    add_log_file_prefix: Optional[Path] = None
    filter: Dict[str, str] = field(default_factory=dict)
    add_filter: Optional[List[str]] = None
    span_timings: bool = False
    capture_std_logging: bool = True

    __deny_unknown_fields__ = True

    def directives(self) -> List[Tuple[str, str]]:
        """Filter directives in document order."""
        return list(self.filter.items())


def load_logger_params(
    embedded: Optional[str] = None,
    path: Optional[PathLike] = None,
    env: Optional[str] = None,
) -> LoggerParams:
    """Resolve logging parameters from an embedded baseline and an optional runtime file.

    The packaged default_logger.yml is the baseline when ``embedded`` is None.
    """
    if embedded is None:
        embedded = read_embedded(__package__, DEFAULT_LOGGER_RESOURCE)
    return load_layered(LoggerParams, embedded, path=path, env=env, section=LOGGER_SECTION)
