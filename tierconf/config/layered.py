"""Two-layer resolution: an embedded baseline merged under a runtime document.

    baseline = load_str(cls, embedded)
    runtime  = load_path(cls, $env or path)
    result   = merge(baseline, runtime)

A runtime document that does not exist leaves the baseline as the result.
Any other runtime failure (bad YAML, shape mismatch, unreadable file) is
raised to the caller.
"""
from __future__ import annotations

from importlib import resources
from typing import Optional, Type, TypeVar

from loguru import logger

from tierconf.config.env import env_var
from tierconf.config.loader import PathLike, load_path, load_str
from tierconf.config.merge import merge
from tierconf.config.schema import section_name
from tierconf.core.exceptions import ConfigFileError

T = TypeVar("T")

_SECTION_FROM_CLASS = object()


def read_embedded(package: str, resource: str) -> str:
    """Read a text resource shipped inside ``package``."""
    return resources.files(package).joinpath(resource).read_text(encoding="utf-8")


def load_layered(
    cls: Type[T],
    embedded: str,
    path: Optional[PathLike] = None,
    env: Optional[str] = None,
    section=_SECTION_FROM_CLASS,
) -> T:
    """Resolve ``cls`` from an embedded baseline and an optional runtime file.

    Args:
        cls: Target dataclass
        embedded: Baseline YAML text
        path: Runtime document (file name looked up in the working directory)
        env: Environment variable that, when set, replaces ``path``;
            an empty value counts as unset
        section: Top-level key holding the instance. Defaults to the
            snake_case class name; pass None to decode the whole document.

    Returns:
        The baseline merged under the runtime document
    """
    if section is _SECTION_FROM_CLASS:
        section = section_name(cls)

    baseline = load_str(cls, embedded, section)
    selected = env_var(env) if env is not None else None
    if path is None and not selected:
        return baseline

    try:
        runtime = load_path(cls, selected or path, section)
    except ConfigFileError as e:
        if not isinstance(e.__cause__, FileNotFoundError):
            raise
        logger.debug("No runtime config ({}); using embedded baseline", e)
        return baseline

    return merge(baseline, runtime)
