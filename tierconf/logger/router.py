"""Sink planning and target routing.

Given ``LoggerParams`` the router decides which destinations exist and
which events each one accepts:

- no ``log_file_prefix``: a single stderr sink taking everything;
- ``log_file_prefix`` alone: a single daily file taking everything;
- ``log_file_prefix`` + ``add_log_file_prefix`` + non-empty ``add_filter``:
  the primary file and a stderr mirror take events whose target contains
  none of the ``add_filter`` substrings, the additional file takes the
  ones containing any of them. Matching events are moved, not copied.

Severity filtering is applied on top of routing by the logger.
"""
from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from tierconf.core.exceptions import PathConversionError, SinkPathError
from tierconf.logger.params import LoggerParams

DATE_SUFFIX = "{time:YYYY-MM-DD}"


class Route(enum.Enum):
    ALL = "all"
    INCLUDE = "include"
    EXCLUDE = "exclude"


@dataclass(frozen=True)
class SinkPlan:
    """One destination and the targets it accepts.

    A plan with a ``prefix`` is a daily file ``<directory>/<prefix>.<date>``;
    one without is the standard error stream.
    """
    name: str
    route: Route = Route.ALL
    targets: Tuple[str, ...] = ()
    directory: Optional[Path] = None
    prefix: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.prefix is not None

    def accepts(self, target: str) -> bool:
        if self.route is Route.INCLUDE:
            return any(part in target for part in self.targets)
        if self.route is Route.EXCLUDE:
            return not any(part in target for part in self.targets)
        return True

    def file_pattern(self) -> str:
        """Path template for loguru, with the date placeholder."""
        if self.prefix is None or self.directory is None:
            raise SinkPathError(f"sink {self.name!r} is not a file sink")
        escaped = self.prefix.replace("{", "{{").replace("}", "}}")
        return str(self.directory / f"{escaped}.{DATE_SUFFIX}")


def split_prefix(prefix: Any, base_dir: Optional[Path] = None) -> Tuple[Path, str]:
    """Split a log file prefix into ``(directory, file name)``.

    Relative directories are resolved against ``base_dir`` (default: cwd).

    Raises:
        PathConversionError: If ``prefix`` is not a path-like value
        SinkPathError: If ``prefix`` has no file name
    """
    try:
        path = Path(os.fspath(prefix))
    except TypeError as e:
        raise PathConversionError(f"cannot use {prefix!r} as a log path: {e}") from e

    if path.name in ("", ".", ".."):
        raise SinkPathError(f"log file prefix {str(path)!r} has no file name")

    root = Path(base_dir) if base_dir is not None else Path.cwd()
    return root / path.parent, path.name


def plan_sinks(params: LoggerParams, base_dir: Optional[Path] = None) -> List[SinkPlan]:
    """Decide the sinks for ``params``."""
    if params.log_file_prefix is None:
        return [SinkPlan("stderr")]

    directory, prefix = split_prefix(params.log_file_prefix, base_dir)
    targets = tuple(params.add_filter or ())

    if params.add_log_file_prefix is None or not targets:
        return [SinkPlan("primary", directory=directory, prefix=prefix)]

    add_directory, add_prefix = split_prefix(params.add_log_file_prefix, base_dir)
    return [
        SinkPlan("primary", Route.EXCLUDE, targets, directory, prefix),
        SinkPlan("additional", Route.INCLUDE, targets, add_directory, add_prefix),
        SinkPlan("stderr", Route.EXCLUDE, targets),
    ]


def event_target(record: Mapping[str, Any]) -> str:
    """Target name of a loguru record: bound ``target`` extra, else the module name."""
    target = record["extra"].get("target")
    if target is None:
        target = record["name"] or ""
    return str(target)
