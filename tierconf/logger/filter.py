"""Severity filter: a default level plus per-target directives, and a
handle that swaps the active filter while events are being logged.

Levels are ordered ``trace < debug < info < warn < error``; ``off`` disables
a target completely. Level numbers line up with loguru's so that
``record["level"].no`` can be compared directly.
"""
from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

from tierconf.core.exceptions import FilterSyntaxError, ReloadError

TRACE = 5
DEBUG = 10
INFO = 20
WARN = 30
ERROR = 40
OFF = sys.maxsize

LEVELS: Dict[str, int] = {
    "trace": TRACE,
    "debug": DEBUG,
    "info": INFO,
    "warn": WARN,
    "warning": WARN,
    "error": ERROR,
    "off": OFF,
}


def parse_level(token: str) -> int:
    """Map a level name to its number.

    Raises:
        FilterSyntaxError: If ``token`` is not a known level
    """
    try:
        return LEVELS[str(token).strip().lower()]
    except KeyError:
        raise FilterSyntaxError(
            f"invalid log level {token!r}, expected one of {', '.join(LEVELS)}"
        ) from None


@dataclass(frozen=True)
class Directive:
    """Level override for every target containing ``target``."""
    target: str
    level: int

    def matches(self, target: str) -> bool:
        return self.target in target


class LevelFilter:
    """Immutable compiled filter.

    When several directives match a target, the longest directive target
    wins and ties go to the directive listed last.
    """

    def __init__(self, default_level: int, directives: Sequence[Directive] = ()):
        self.default_level = default_level
        self.directives: Tuple[Directive, ...] = tuple(directives)
        ranked = sorted(
            enumerate(self.directives),
            key=lambda item: (len(item[1].target), item[0]),
            reverse=True,
        )
        self._ranked = tuple(directive for _, directive in ranked)
        self._cache: Dict[str, int] = {}

    def level_for(self, target: str) -> int:
        level = self._cache.get(target)
        if level is None:
            level = self.default_level
            for directive in self._ranked:
                if directive.matches(target):
                    level = directive.level
                    break
            self._cache[target] = level
        return level

    def enabled(self, target: str, level_no: int) -> bool:
        """Whether an event of ``level_no`` from ``target`` passes."""
        return level_no >= self.level_for(target)

    def __repr__(self) -> str:
        return f"LevelFilter(default_level={self.default_level}, directives={list(self.directives)!r})"


def compile_filter(default_level: str, directives: Iterable[Tuple[str, str]] = ()) -> LevelFilter:
    """Compile a default level and ``(target, level)`` pairs into a filter.

    Any invalid level aborts the whole compilation.

    Raises:
        FilterSyntaxError: If the default or a directive level is unknown
    """
    default = parse_level(default_level)
    compiled = [Directive(str(target), parse_level(level)) for target, level in directives]
    return LevelFilter(default, compiled)


class FilterHandle:
    """Holds the active filter; readers never lock, reloads swap the reference."""

    def __init__(self, initial: LevelFilter):
        self._current = initial
        self._lock = threading.Lock()
        self._closed = False

    @property
    def current(self) -> LevelFilter:
        return self._current

    def enabled(self, target: str, level_no: int) -> bool:
        return self._current.enabled(target, level_no)

    def reload(self, new_filter: LevelFilter) -> None:
        """Install ``new_filter``.

        Raises:
            ReloadError: If the handle has been closed
        """
        with self._lock:
            if self._closed:
                raise ReloadError("filter handle is closed; the logger has been shut down")
            self._current = new_filter

    def close(self) -> None:
        with self._lock:
            self._closed = True
