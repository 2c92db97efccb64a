"""Loading primitives: embedded text, a file in the working directory, or a
file selected through an environment variable.

Each primitive parses YAML, interpolates environment variables, and decodes
the result into the requested dataclass:

    text/file -> load_yaml -> substitute -> safe_dump -> compose -> decode

The substituted document is re-rendered before decoding so that decode
errors point at lines of the document that was actually decoded.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional, Type, TypeVar, Union

import yaml
from loguru import logger

from tierconf.config.env import DEBUG_CONFIG_ENV, debug_config_enabled, env_var
from tierconf.config.schema import compose, decode, load_yaml
from tierconf.config.substitution import substitute
from tierconf.core.error_handler import log_execution_time
from tierconf.core.exceptions import (
    ConfigDeserializeError,
    ConfigFileError,
    ConfigParseError,
    ConfigPathError,
)

T = TypeVar("T")
PathLike = Union[str, os.PathLike]

CONTEXT_RADIUS = 5
HIGHLIGHT_START = "\x1b[31;1m"
HIGHLIGHT_END = "\x1b[0m"
FULL_CONFIG_HINT = f"set {DEBUG_CONFIG_ENV}=1 to print full config"


def load_str(cls: Type[T], text: str, section: Optional[str] = None) -> T:
    """Load an instance of ``cls`` from embedded YAML text.

    Args:
        cls: Target dataclass
        text: YAML document
        section: Top-level key holding the instance; the whole document if None

    Raises:
        ConfigParseError: If the text is not valid YAML
        ConfigDeserializeError: If the document does not match ``cls``
    """
    return resolve_tree(cls, _parse(text, "<embedded>"), section)


def load_path(cls: Type[T], path: PathLike, section: Optional[str] = None) -> T:
    """Load an instance of ``cls`` from a file in the current working directory.

    Only the file name of ``path`` is used; directory components are dropped.

    Raises:
        ConfigPathError: If ``path`` has no file name
        ConfigFileError: If the file cannot be opened or read
        ConfigParseError: If the file is not valid YAML
        ConfigDeserializeError: If the document does not match ``cls``
    """
    name = Path(os.fspath(path)).name
    if name in ("", ".", ".."):
        raise ConfigPathError(f"file name is not set: {os.fspath(path)!r}")

    full_path = Path.cwd() / name
    logger.trace("Loading config from {}", full_path)
    try:
        text = full_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(full_path, f"failed to open config file: {full_path}: {e}") from e

    return resolve_tree(cls, _parse(text, str(full_path)), section)


def load_env(cls: Type[T], env: str, fallback_path: PathLike, section: Optional[str] = None) -> T:
    """Load from the path named by environment variable ``env``, else ``fallback_path``.

    An empty value names no file and counts as unset.
    """
    selected = env_var(env)
    if selected:
        logger.trace("Config path taken from ${}: {}", env, selected)
        return load_path(cls, selected, section)
    return load_path(cls, fallback_path, section)


@log_execution_time(level="TRACE")
def resolve_tree(cls: Type[T], tree: Any, section: Optional[str] = None) -> T:
    """Substitute and decode an already parsed value tree.

    The tree is modified in place.
    """
    tree = substitute(tree)
    rendered = yaml.safe_dump(tree, sort_keys=False, allow_unicode=True)

    if debug_config_enabled():
        logger.trace("Full processed config:\n{}", rendered)

    try:
        return decode(cls, compose(rendered), section)
    except ConfigDeserializeError as e:
        raise _with_context(e, rendered) from e


def render_context(rendered: str, line: int, radius: int = CONTEXT_RADIUS) -> str:
    """Render lines ``line - radius .. line + radius`` with ``line`` highlighted."""
    lines = rendered.splitlines()
    start = max(1, line - radius)
    end = min(len(lines), line + radius)

    out = []
    for number in range(start, end + 1):
        text = lines[number - 1]
        if number == line:
            out.append(f"{HIGHLIGHT_START}{number:>3}: {text}{HIGHLIGHT_END}\n")
        else:
            out.append(f"{number:>3}: {text}\n")
    return "".join(out)


def _parse(text: str, source: str) -> Any:
    try:
        return load_yaml(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"invalid YAML in {source}: {e}") from e


def _with_context(error: ConfigDeserializeError, rendered: str) -> ConfigDeserializeError:
    if error.line is None:
        return ConfigDeserializeError(error.reason, None, f"{error.reason} ({FULL_CONFIG_HINT})")

    message = (
        f"{error.reason}\nRelevant part of the config ({FULL_CONFIG_HINT}):\n"
        f"{render_context(rendered, error.line)}"
    )
    return ConfigDeserializeError(error.reason, error.line, message)
